from __future__ import annotations

import logging
from datetime import date, datetime, timezone

from codpay.integrations.store.base import RecordStore
from codpay.models.document import parse_date
from codpay.services.cod.confirm_order import find_cod_transaction
from codpay.services.cod.errors import (
    CODValidationError,
    InvalidDeliveryTransitionError,
    MissingOrderIDError,
)
from codpay.services.cod.policy import DEFAULT_COLLECTIONS, CODCollections
from codpay.services.cod.types import DeliveryStatus, TransactionStatus, ValidationStatus
from codpay.utils.observability import get_logger


def _load(store: RecordStore, cod_order_id: str | None, collections: CODCollections) -> tuple[dict, dict]:
    key = str(cod_order_id or "").strip()
    if not key:
        raise MissingOrderIDError()
    transaction = find_cod_transaction(store, key, collections)
    return transaction, dict(transaction.get("cod") or {})


def _write_cod(store: RecordStore, collections: CODCollections, transaction: dict, cod: dict, **extra) -> dict:
    return store.update(collections.transactions, transaction.get("id"), {"cod": cod, **extra})


def update_delivery_status(
    store: RecordStore,
    cod_order_id: str | None,
    delivery_status: str,
    *,
    collections: CODCollections = DEFAULT_COLLECTIONS,
    logger: logging.Logger | None = None,
) -> dict:
    transaction, cod = _load(store, cod_order_id, collections)
    if cod.get("validation_status") != ValidationStatus.VALIDATED:
        raise CODValidationError(f"COD order {cod_order_id} must be confirmed before it can be delivered")

    current = (cod.get("delivery_status") or DeliveryStatus.PREPARING).strip().lower()
    target = (delivery_status or "").strip().lower()
    allowed = DeliveryStatus.ALLOWED.get(current, {current})
    if target not in allowed:
        raise InvalidDeliveryTransitionError(f"invalid_delivery_transition {current}->{target}")
    if target == current:
        return transaction

    cod["delivery_status"] = target
    updated = _write_cod(store, collections, transaction, cod)
    get_logger(logger).info(
        "cod_delivery_status_changed cod_order_id=%s from=%s to=%s", cod_order_id, current, target
    )
    return updated


def mark_payment_collected(
    store: RecordStore,
    cod_order_id: str | None,
    collection_date: date | str | None = None,
    *,
    collections: CODCollections = DEFAULT_COLLECTIONS,
    logger: logging.Logger | None = None,
) -> dict:
    transaction, cod = _load(store, cod_order_id, collections)
    if cod.get("payment_collected"):
        return transaction
    if cod.get("delivery_status") != DeliveryStatus.DELIVERED:
        raise CODValidationError(f"COD order {cod_order_id} must be delivered before payment is collected")

    collected_on = parse_date(collection_date) or datetime.now(timezone.utc).date()
    cod["payment_collected"] = True
    cod["collection_date"] = collected_on.isoformat()
    updated = _write_cod(store, collections, transaction, cod)
    get_logger(logger).info(
        "cod_payment_collected cod_order_id=%s amount=%s collection_date=%s",
        cod_order_id,
        transaction.get("amount"),
        cod["collection_date"],
    )
    return updated


def reject_order(
    store: RecordStore,
    cod_order_id: str | None,
    *,
    collections: CODCollections = DEFAULT_COLLECTIONS,
    logger: logging.Logger | None = None,
) -> dict:
    transaction, cod = _load(store, cod_order_id, collections)
    current = cod.get("validation_status") or ValidationStatus.PENDING
    if ValidationStatus.REJECTED not in ValidationStatus.ALLOWED.get(current, {current}):
        raise CODValidationError(f"invalid_validation_transition {current}->{ValidationStatus.REJECTED}")
    if current == ValidationStatus.REJECTED:
        return transaction

    cod["validation_status"] = ValidationStatus.REJECTED
    updated = _write_cod(store, collections, transaction, cod, status=TransactionStatus.CANCELLED)
    get_logger(logger).info("cod_order_rejected cod_order_id=%s", cod_order_id)
    return updated
