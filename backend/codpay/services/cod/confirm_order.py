from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from codpay.integrations.common import StoreError
from codpay.integrations.store.base import RecordStore
from codpay.services.cod.errors import (
    AlreadyConfirmedError,
    CODDependencyError,
    CODError,
    InvalidItemSnapshotError,
    MissingCartReferenceError,
    MissingOrderIDError,
    TransactionNotFoundError,
    TransactionRejectedError,
)
from codpay.services.cod.policy import DEFAULT_COLLECTIONS, CODCollections
from codpay.services.cod.types import (
    ConfirmationStep,
    ConfirmOrderResult,
    OrderStatus,
    TransactionStatus,
    ValidationStatus,
    reference_id,
)
from codpay.utils.observability import get_logger

CONFIRM_FAILED_MESSAGE = "Error confirming COD order"


def find_cod_transaction(
    store: RecordStore,
    cod_order_id: str,
    collections: CODCollections = DEFAULT_COLLECTIONS,
) -> dict:
    result = store.find(collections.transactions, {"cod.order_id": cod_order_id})
    docs = list(result.docs or [])
    if not result.total_docs or not docs:
        raise TransactionNotFoundError()
    return docs[0]


def find_funded_order(
    store: RecordStore,
    transaction_id,
    collections: CODCollections = DEFAULT_COLLECTIONS,
) -> dict | None:
    result = store.find(collections.orders, {"transactions": transaction_id}, limit=1)
    docs = list(result.docs or [])
    return docs[0] if docs else None


def is_confirmed(transaction: dict) -> bool:
    return transaction.get("status") == TransactionStatus.SUCCEEDED


def is_rejected(transaction: dict) -> bool:
    cod = transaction.get("cod") or {}
    return (
        transaction.get("status") == TransactionStatus.CANCELLED
        or cod.get("validation_status") == ValidationStatus.REJECTED
    )


def confirmation_step(transaction: dict, order: dict | None = None, cart: dict | None = None) -> str:
    if is_confirmed(transaction):
        return ConfirmationStep.VALIDATED
    if order is None:
        return ConfirmationStep.PENDING
    if cart is not None and cart.get("purchased_at"):
        return ConfirmationStep.CART_UPDATED
    return ConfirmationStep.ORDER_CREATED


def _order_owner(transaction: dict, user: Any, customer_email: str | None) -> dict:
    user_id = reference_id(user)
    if user_id is not None and user_id != "":
        return {"customer": user_id}
    if customer_email:
        return {"customer_email": customer_email}
    if transaction.get("customer") is not None:
        return {"customer": transaction.get("customer")}
    return {"customer_email": transaction.get("customer_email")}


def confirm_order(
    store: RecordStore,
    *,
    cod_order_id: str | None,
    customer_email: str | None = None,
    user: Any = None,
    collections: CODCollections = DEFAULT_COLLECTIONS,
    logger: logging.Logger | None = None,
    now: datetime | None = None,
) -> ConfirmOrderResult:
    """Turn a pending COD transaction into an order.

    Creates the order, stamps the cart as purchased and marks the transaction
    validated, all inside ``store.atomic()``. When a previous attempt already
    created the order, that order is reused instead of creating another.
    """
    cod_order_id = str(cod_order_id or "").strip()
    if not cod_order_id:
        raise MissingOrderIDError()

    log = get_logger(logger)
    try:
        transaction = find_cod_transaction(store, cod_order_id, collections)
        transaction_id = transaction.get("id")

        cart_id = reference_id(transaction.get("cart"))
        if cart_id is None or cart_id == "":
            raise MissingCartReferenceError()

        items = transaction.get("items")
        if not isinstance(items, list):
            raise InvalidItemSnapshotError()

        cod = dict(transaction.get("cod") or {})
        if is_confirmed(transaction):
            raise AlreadyConfirmedError(f"COD order {cod_order_id} has already been confirmed")
        if is_rejected(transaction):
            raise TransactionRejectedError(f"COD order {cod_order_id} was rejected and cannot be confirmed")

        timestamp = (now or datetime.now(timezone.utc)).isoformat()

        with store.atomic():
            order = find_funded_order(store, transaction_id, collections)
            if order is not None:
                log.info(
                    "cod_confirm_resumed cod_order_id=%s order_id=%s",
                    cod_order_id,
                    order.get("id"),
                )
            else:
                order = store.create(
                    collections.orders,
                    {
                        "amount": transaction.get("amount"),
                        "currency": transaction.get("currency"),
                        **_order_owner(transaction, user, customer_email),
                        "items": items,
                        "shipping_address": transaction.get("billing_address"),
                        "status": OrderStatus.PROCESSING,
                        "transactions": [transaction_id],
                    },
                )

            store.update(collections.carts, cart_id, {"purchased_at": timestamp})

            store.update(
                collections.transactions,
                transaction_id,
                {
                    "order": order.get("id"),
                    "status": TransactionStatus.SUCCEEDED,
                    "cod": {**cod, "validation_status": ValidationStatus.VALIDATED},
                },
            )
    except CODError as e:
        log.info("cod_confirm_refused cod_order_id=%s code=%s", cod_order_id, e.code)
        raise
    except Exception as e:
        log.exception("cod_confirm_failed cod_order_id=%s", cod_order_id)
        message = str(e).strip() if isinstance(e, StoreError) else ""
        raise CODDependencyError(message or CONFIRM_FAILED_MESSAGE) from e

    log.info(
        "cod_order_confirmed cod_order_id=%s order_id=%s transaction_id=%s",
        cod_order_id,
        order.get("id"),
        transaction_id,
    )
    return ConfirmOrderResult(
        message="COD order confirmed successfully",
        order_id=order.get("id"),
        transaction_id=transaction_id,
    )
