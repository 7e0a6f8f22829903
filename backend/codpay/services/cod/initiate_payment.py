from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Mapping

from codpay.integrations.common import StoreError
from codpay.integrations.store.base import RecordStore
from codpay.services.cod.errors import (
    CODDependencyError,
    CODError,
    EmptyCartError,
    InvalidAmountError,
    InvalidCustomerEmailError,
    MissingCurrencyError,
    OrderAboveMaximumError,
    OrderBelowMinimumError,
    RegionNotAllowedError,
    UnsupportedCurrencyError,
)
from codpay.services.cod.policy import (
    DEFAULT_COLLECTIONS,
    CODCollections,
    CODPolicy,
    compute_service_charge,
    format_major,
    generate_cod_order_id,
    is_valid_email,
)
from codpay.services.cod.types import (
    PAYMENT_METHOD_COD,
    AuthenticatedOwner,
    CartSnapshot,
    DeliveryStatus,
    GuestOwner,
    InitiatePaymentResult,
    Owner,
    TransactionStatus,
    ValidationStatus,
    reference_id,
)
from codpay.utils.observability import get_logger

INITIATE_FAILED_MESSAGE = "Error initiating COD payment"


def resolve_owner(user: Any = None, customer_email: str | None = None) -> Owner | None:
    user_id = reference_id(user)
    if user_id is not None and user_id != "":
        return AuthenticatedOwner(user_id=user_id)
    if is_valid_email(customer_email):
        return GuestOwner(email=customer_email.strip())
    return None


def _subtotal_minor(value) -> int | None:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return None
    try:
        whole = int(value)
    except (ValueError, OverflowError):
        return None
    if value <= 0 or value != whole:
        return None
    return whole


def _shipping_country(address) -> str:
    if isinstance(address, Mapping):
        return str(address.get("country") or "").strip().upper()
    return str(getattr(address, "country", "") or "").strip().upper()


def validate_eligibility(
    *,
    cart: CartSnapshot | None,
    currency: str | None,
    owner: Owner | None,
    shipping_address: Any,
    policy: CODPolicy,
) -> tuple[str, int]:
    """Run the unconditional checks, then the policy checks.

    Returns the normalized currency code and the subtotal in minor units.
    """
    if not currency or not str(currency).strip():
        raise MissingCurrencyError()
    if cart is None or not cart.items:
        raise EmptyCartError()
    if owner is None:
        raise InvalidCustomerEmailError()
    subtotal = _subtotal_minor(cart.subtotal)
    if subtotal is None:
        raise InvalidAmountError()

    code = str(currency).strip().upper()
    if policy.supported_currencies and code not in policy.supported_currencies:
        raise UnsupportedCurrencyError(
            f"COD is not available for {currency}. "
            f"Supported currencies: {', '.join(policy.supported_currencies)}"
        )
    if policy.minimum_order and subtotal < int(policy.minimum_order):
        raise OrderBelowMinimumError(
            f"Order amount must be at least {format_major(policy.minimum_order)} {currency} for COD payment."
        )
    if policy.maximum_order and subtotal > int(policy.maximum_order):
        raise OrderAboveMaximumError(
            f"Order amount must not exceed {format_major(policy.maximum_order)} {currency} for COD payment."
        )
    if policy.allowed_regions and shipping_address:
        country = _shipping_country(shipping_address)
        if country and country not in policy.allowed_regions:
            raise RegionNotAllowedError(
                f"COD is not available in {country}. "
                f"Available regions: {', '.join(policy.allowed_regions)}"
            )
    return code, subtotal


def initiate_payment(
    store: RecordStore,
    policy: CODPolicy | None = None,
    *,
    cart: CartSnapshot | Mapping | None,
    currency: str | None,
    customer_email: str | None = None,
    user: Any = None,
    billing_address: Any = None,
    shipping_address: Any = None,
    collections: CODCollections = DEFAULT_COLLECTIONS,
    logger: logging.Logger | None = None,
) -> InitiatePaymentResult:
    policy = policy or CODPolicy()
    log = get_logger(logger)
    snapshot = CartSnapshot.from_mapping(cart) if isinstance(cart, Mapping) else cart
    owner = resolve_owner(user, customer_email)

    code, subtotal = validate_eligibility(
        cart=snapshot,
        currency=currency,
        owner=owner,
        shipping_address=shipping_address,
        policy=policy,
    )

    try:
        service_charge = compute_service_charge(subtotal, policy)
        cod_order_id = generate_cod_order_id()
        data = {
            **owner.as_fields(),
            "amount": subtotal + service_charge,
            "billing_address": billing_address,
            "cart": snapshot.id,
            "currency": code,
            "items": [item.to_snapshot() for item in snapshot.items],
            "payment_method": PAYMENT_METHOD_COD,
            "status": TransactionStatus.PENDING,
            "cod": {
                "order_id": cod_order_id,
                "validation_status": ValidationStatus.PENDING,
                "delivery_status": DeliveryStatus.PREPARING,
                "payment_collected": False,
            },
        }
        transaction = store.create(collections.transactions, data)
    except CODError:
        raise
    except Exception as e:
        log.exception("cod_initiate_failed cart_id=%s", snapshot.id)
        message = str(e).strip() if isinstance(e, StoreError) else ""
        raise CODDependencyError(message or INITIATE_FAILED_MESSAGE) from e

    log.info(
        "cod_payment_initiated cod_order_id=%s transaction_id=%s amount=%s service_charge=%s",
        cod_order_id,
        (transaction or {}).get("id"),
        subtotal + service_charge,
        service_charge,
    )
    return InitiatePaymentResult(
        message="COD order initiated successfully",
        order_id=cod_order_id,
        service_charge=service_charge,
    )
