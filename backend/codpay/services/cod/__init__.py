from codpay.services.cod.adapter import CODAdapter, cod_adapter, cod_adapter_client
from codpay.services.cod.confirm_order import confirm_order
from codpay.services.cod.fulfillment import mark_payment_collected, reject_order, update_delivery_status
from codpay.services.cod.initiate_payment import initiate_payment
from codpay.services.cod.policy import CODCollections, CODPolicy

__all__ = [
    "CODAdapter",
    "CODCollections",
    "CODPolicy",
    "cod_adapter",
    "cod_adapter_client",
    "confirm_order",
    "initiate_payment",
    "mark_payment_collected",
    "reject_order",
    "update_delivery_status",
]
