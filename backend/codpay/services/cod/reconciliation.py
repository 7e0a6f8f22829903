from __future__ import annotations

from datetime import datetime

from codpay.integrations.store.base import RecordStore
from codpay.services.cod.confirm_order import confirmation_step, find_funded_order
from codpay.services.cod.policy import DEFAULT_COLLECTIONS, CODCollections
from codpay.services.cod.types import PAYMENT_METHOD_COD, ConfirmationStep, TransactionStatus, reference_id


def find_stalled_confirmations(
    store: RecordStore,
    collections: CODCollections = DEFAULT_COLLECTIONS,
) -> dict:
    """Report pending COD transactions whose confirmation stopped half way.

    Running ``confirm_order`` again for a reported ``cod_order_id`` resumes it.
    """
    pending = store.find(
        collections.transactions,
        {"payment_method": PAYMENT_METHOD_COD, "status": TransactionStatus.PENDING},
    )
    stalled_items = []
    for transaction in pending.docs:
        order = find_funded_order(store, transaction.get("id"), collections)
        if order is None:
            continue
        cart = None
        cart_id = reference_id(transaction.get("cart"))
        if cart_id is not None:
            carts = store.find(collections.carts, {"id": cart_id}, limit=1)
            cart = carts.docs[0] if carts.docs else None
        step = confirmation_step(transaction, order, cart)
        if step == ConfirmationStep.PENDING:
            continue
        stalled_items.append(
            {
                "transaction_id": transaction.get("id"),
                "cod_order_id": (transaction.get("cod") or {}).get("order_id"),
                "order_id": order.get("id"),
                "cart_purchased": step == ConfirmationStep.CART_UPDATED,
                "step": step,
            }
        )

    return {
        "ok": True,
        "scope": "cod_confirmations",
        "checked_count": len(pending.docs),
        "stalled_count": len(stalled_items),
        "stalled_items": stalled_items,
        "generated_at": datetime.utcnow().isoformat(),
    }
