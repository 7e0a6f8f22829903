from __future__ import annotations

from dataclasses import dataclass, field

from codpay.integrations.store.base import RecordStore
from codpay.services.cod.confirm_order import confirm_order
from codpay.services.cod.initiate_payment import initiate_payment
from codpay.services.cod.policy import DEFAULT_COLLECTIONS, CODCollections, CODPolicy
from codpay.services.cod.types import (
    PAYMENT_METHOD_COD,
    ConfirmOrderResult,
    DeliveryStatus,
    InitiatePaymentResult,
    ValidationStatus,
)

DEFAULT_LABEL = "Cash on Delivery"

_STATUS_LABELS = {
    ValidationStatus.PENDING: "Pending",
    ValidationStatus.VALIDATED: "Validated",
    ValidationStatus.REJECTED: "Rejected",
    DeliveryStatus.PREPARING: "Preparing",
    DeliveryStatus.DISPATCHED: "Dispatched",
    DeliveryStatus.OUT_FOR_DELIVERY: "Out for Delivery",
    DeliveryStatus.DELIVERED: "Delivered",
    DeliveryStatus.RETURNED: "Returned",
}


def _options(values) -> list[dict]:
    return [{"label": _STATUS_LABELS[v], "value": v} for v in values]


def _is_cod_transaction(data) -> bool:
    return bool(data) and data.get("payment_method") == PAYMENT_METHOD_COD


def _payment_collected(data) -> bool:
    return bool(data) and (data.get("cod") or {}).get("payment_collected") is True


def default_group_fields() -> list[dict]:
    """Admin field definitions for the ``cod`` group on a transaction."""
    return [
        {"name": "order_id", "type": "text", "label": "COD Order ID"},
        {
            "name": "validation_status",
            "type": "select",
            "label": "Validation Status",
            "options": _options(ValidationStatus.ALL),
            "default_value": ValidationStatus.PENDING,
        },
        {
            "name": "delivery_status",
            "type": "select",
            "label": "Delivery Status",
            "options": _options(DeliveryStatus.ALL),
            "default_value": DeliveryStatus.PREPARING,
        },
        {
            "name": "payment_collected",
            "type": "checkbox",
            "label": "Payment Collected",
            "default_value": False,
        },
        {
            "name": "collection_date",
            "type": "date",
            "label": "Payment Collection Date",
            "admin": {"condition": _payment_collected},
        },
    ]


def build_group(group_overrides: dict | None = None) -> dict:
    overrides = dict(group_overrides or {})
    fields_override = overrides.pop("fields", None)
    admin_override = overrides.pop("admin", None) or {}
    defaults = default_group_fields()

    group = {"name": PAYMENT_METHOD_COD, "type": "group", **overrides}
    group["admin"] = {"condition": _is_cod_transaction, **admin_override}
    if callable(fields_override):
        group["fields"] = fields_override(default_fields=defaults)
    else:
        group["fields"] = defaults
    return group


@dataclass(frozen=True)
class CODAdapter:
    label: str
    policy: CODPolicy
    collections: CODCollections
    group: dict
    endpoints: list = field(default_factory=list)
    name: str = PAYMENT_METHOD_COD

    def initiate_payment(self, store: RecordStore, **kwargs) -> InitiatePaymentResult:
        kwargs.setdefault("collections", self.collections)
        return initiate_payment(store, self.policy, **kwargs)

    def confirm_order(self, store: RecordStore, **kwargs) -> ConfirmOrderResult:
        kwargs.setdefault("collections", self.collections)
        return confirm_order(store, **kwargs)


def cod_adapter(
    *,
    label: str | None = None,
    policy: CODPolicy | None = None,
    collections: CODCollections | None = None,
    group_overrides: dict | None = None,
) -> CODAdapter:
    return CODAdapter(
        label=label or DEFAULT_LABEL,
        policy=policy or CODPolicy(),
        collections=collections or DEFAULT_COLLECTIONS,
        group=build_group(group_overrides),
    )


def cod_adapter_client(*, label: str | None = None) -> dict:
    return {
        "name": PAYMENT_METHOD_COD,
        "label": label or DEFAULT_LABEL,
        "confirm_order": True,
        "initiate_payment": True,
    }
