from __future__ import annotations


class CODError(Exception):
    code = "COD_ERROR"
    default_message = "COD payment error"

    def __init__(self, message: str | None = None):
        self.message = (message or self.default_message).strip()
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"ok": False, "error": self.code, "message": self.message}


class CODValidationError(CODError):
    code = "COD_VALIDATION_FAILED"


class CODNotFoundError(CODError):
    code = "COD_NOT_FOUND"


class CODIntegrityError(CODError):
    code = "COD_INTEGRITY_FAILED"


class CODConflictError(CODError):
    code = "COD_CONFLICT"


class CODDependencyError(CODError):
    code = "COD_DEPENDENCY_FAILED"


class MissingCurrencyError(CODValidationError):
    code = "MISSING_CURRENCY"
    default_message = "Currency is required."


class EmptyCartError(CODValidationError):
    code = "EMPTY_CART"
    default_message = "Cart is empty or not provided."


class InvalidCustomerEmailError(CODValidationError):
    code = "INVALID_CUSTOMER_EMAIL"
    default_message = "A valid customer email is required to make a purchase."


class InvalidAmountError(CODValidationError):
    code = "INVALID_AMOUNT"
    default_message = "A valid amount is required to initiate a payment."


class UnsupportedCurrencyError(CODValidationError):
    code = "UNSUPPORTED_CURRENCY"


class OrderBelowMinimumError(CODValidationError):
    code = "ORDER_BELOW_MINIMUM"


class OrderAboveMaximumError(CODValidationError):
    code = "ORDER_ABOVE_MAXIMUM"


class RegionNotAllowedError(CODValidationError):
    code = "REGION_NOT_ALLOWED"


class MissingOrderIDError(CODValidationError):
    code = "MISSING_ORDER_ID"
    default_message = "COD Order ID is required"


class InvalidDeliveryTransitionError(CODValidationError):
    code = "INVALID_DELIVERY_TRANSITION"


class TransactionRejectedError(CODValidationError):
    code = "TRANSACTION_REJECTED"


class TransactionNotFoundError(CODNotFoundError):
    code = "TRANSACTION_NOT_FOUND"
    default_message = "No transaction found for the provided COD Order ID"


class MissingCartReferenceError(CODIntegrityError):
    code = "MISSING_CART_REFERENCE"
    default_message = "Cart ID not found in the transaction"


class InvalidItemSnapshotError(CODIntegrityError):
    code = "INVALID_ITEM_SNAPSHOT"
    default_message = "Cart items snapshot not found or invalid in the transaction"


class AlreadyConfirmedError(CODConflictError):
    code = "ALREADY_CONFIRMED"
