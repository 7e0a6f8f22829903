from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

PAYMENT_METHOD_COD = "cod"


class TransactionStatus:
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    CANCELLED = "cancelled"


class OrderStatus:
    PROCESSING = "processing"


class ValidationStatus:
    PENDING = "pending"
    VALIDATED = "validated"
    REJECTED = "rejected"

    ALL = (PENDING, VALIDATED, REJECTED)
    ALLOWED = {
        PENDING: {PENDING, VALIDATED, REJECTED},
        VALIDATED: {VALIDATED},
        REJECTED: {REJECTED},
    }


class DeliveryStatus:
    PREPARING = "preparing"
    DISPATCHED = "dispatched"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    RETURNED = "returned"

    ALL = (PREPARING, DISPATCHED, OUT_FOR_DELIVERY, DELIVERED, RETURNED)
    TERMINAL = {DELIVERED, RETURNED}
    ALLOWED = {
        PREPARING: {PREPARING, DISPATCHED, RETURNED},
        DISPATCHED: {DISPATCHED, OUT_FOR_DELIVERY, RETURNED},
        OUT_FOR_DELIVERY: {OUT_FOR_DELIVERY, DELIVERED, RETURNED},
        DELIVERED: {DELIVERED},
        RETURNED: {RETURNED},
    }


class ConfirmationStep:
    """Progress of a confirmation, derived from the persisted documents.

    pending -> order_created -> cart_updated -> validated
    """

    PENDING = "pending"
    ORDER_CREATED = "order_created"
    CART_UPDATED = "cart_updated"
    VALIDATED = "validated"

    ORDER = (PENDING, ORDER_CREATED, CART_UPDATED, VALIDATED)


def reference_id(value: Any) -> Any:
    """Collapse an expanded relation (mapping or object) to its bare id."""
    if value is None:
        return None
    if isinstance(value, Mapping):
        return value.get("id")
    if hasattr(value, "id") and not isinstance(value, (str, int)):
        return getattr(value, "id")
    return value


@dataclass(frozen=True)
class LineItem:
    product: Any
    quantity: Any = None
    variant: Any = None
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, raw: Mapping) -> "LineItem":
        extra = {k: v for k, v in raw.items() if k not in ("product", "variant", "quantity")}
        return cls(
            product=reference_id(raw.get("product")),
            quantity=raw.get("quantity"),
            variant=reference_id(raw.get("variant")) or None,
            extra=extra,
        )

    def to_snapshot(self) -> dict:
        out = dict(self.extra)
        out["product"] = self.product
        out["quantity"] = self.quantity
        if self.variant:
            out["variant"] = self.variant
        return out


@dataclass(frozen=True)
class CartSnapshot:
    id: Any
    items: tuple = ()
    subtotal: Any = None

    @classmethod
    def from_mapping(cls, raw: Mapping) -> "CartSnapshot":
        items = []
        for item in raw.get("items") or ():
            items.append(item if isinstance(item, LineItem) else LineItem.from_mapping(item))
        return cls(id=raw.get("id"), items=tuple(items), subtotal=raw.get("subtotal"))


@dataclass(frozen=True)
class AuthenticatedOwner:
    user_id: Any

    def as_fields(self) -> dict:
        return {"customer": self.user_id}


@dataclass(frozen=True)
class GuestOwner:
    email: str

    def as_fields(self) -> dict:
        return {"customer_email": self.email}


Owner = AuthenticatedOwner | GuestOwner


@dataclass
class InitiatePaymentResult:
    message: str
    order_id: str
    service_charge: int = 0

    def to_dict(self) -> dict:
        out = {"message": self.message, "order_id": self.order_id}
        if self.service_charge > 0:
            out["service_charge"] = self.service_charge
        return out


@dataclass
class ConfirmOrderResult:
    message: str
    order_id: Any
    transaction_id: Any

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "order_id": self.order_id,
            "transaction_id": self.transaction_id,
        }
