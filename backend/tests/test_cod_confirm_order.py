from __future__ import annotations

import unittest
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

from codpay.integrations.common import StoreError
from codpay.integrations.store.base import FindResult
from codpay.integrations.store.memory_store import InMemoryRecordStore
from codpay.services.cod.confirm_order import confirm_order, confirmation_step
from codpay.services.cod.errors import (
    AlreadyConfirmedError,
    CODDependencyError,
    InvalidItemSnapshotError,
    MissingCartReferenceError,
    MissingOrderIDError,
    TransactionNotFoundError,
    TransactionRejectedError,
)
from codpay.services.cod.types import ConfirmationStep

COD_ID = "COD-1700000000000-AB12CD3"
NOW = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def _transaction(**overrides):
    doc = {
        "id": "txn-1",
        "customer_email": "buyer@example.com",
        "amount": 5500,
        "currency": "USD",
        "billing_address": {"line1": "1 Main St", "country": "IN"},
        "cart": "cart-1",
        "items": [{"product": "p1", "quantity": 2}],
        "payment_method": "cod",
        "status": "pending",
        "cod": {
            "order_id": COD_ID,
            "validation_status": "pending",
            "delivery_status": "preparing",
            "payment_collected": False,
        },
    }
    doc.update(overrides)
    return doc


def _store(transaction=None, orders=None):
    seed = {
        "carts": [{"id": "cart-1", "subtotal": 5000, "items": [{"product": "p1", "quantity": 2}]}],
        "transactions": [transaction or _transaction()],
        "orders": list(orders or []),
    }
    backing = InMemoryRecordStore(seed=seed)
    return MagicMock(wraps=backing), backing


class ConfirmOrderSuccessTestCase(unittest.TestCase):
    def test_creates_order_and_updates_cart_and_transaction(self):
        store, backing = _store()
        result = confirm_order(store, cod_order_id=COD_ID, now=NOW)

        self.assertEqual(store.create.call_count, 1)
        self.assertEqual(store.update.call_count, 2)
        self.assertEqual(result.message, "COD order confirmed successfully")
        self.assertEqual(result.transaction_id, "txn-1")

        orders = backing.find("orders").docs
        self.assertEqual(len(orders), 1)
        order = orders[0]
        self.assertEqual(result.order_id, order["id"])
        self.assertEqual(order["amount"], 5500)
        self.assertEqual(order["currency"], "USD")
        self.assertEqual(order["items"], [{"product": "p1", "quantity": 2}])
        self.assertEqual(order["shipping_address"], {"line1": "1 Main St", "country": "IN"})
        self.assertEqual(order["status"], "processing")
        self.assertEqual(order["transactions"], ["txn-1"])
        self.assertEqual(order["customer_email"], "buyer@example.com")

        cart = backing.find("carts", {"id": "cart-1"}).docs[0]
        self.assertEqual(cart["purchased_at"], "2026-01-02T03:04:05+00:00")

        txn = backing.find("transactions", {"id": "txn-1"}).docs[0]
        self.assertEqual(txn["status"], "succeeded")
        self.assertEqual(txn["order"], order["id"])
        self.assertEqual(
            txn["cod"],
            {
                "order_id": COD_ID,
                "validation_status": "validated",
                "delivery_status": "preparing",
                "payment_collected": False,
            },
        )
        self.assertEqual(confirmation_step(txn, order, cart), ConfirmationStep.VALIDATED)

    def test_live_cart_items_are_not_used(self):
        store, backing = _store()
        backing.update("carts", "cart-1", {"items": [{"product": "other", "quantity": 9}]})
        confirm_order(store, cod_order_id=COD_ID)
        order = backing.find("orders").docs[0]
        self.assertEqual(order["items"], [{"product": "p1", "quantity": 2}])

    def test_expanded_cart_reference(self):
        store, backing = _store(_transaction(cart={"id": "cart-1", "subtotal": 5000}))
        confirm_order(store, cod_order_id=COD_ID, now=NOW)
        cart = backing.find("carts", {"id": "cart-1"}).docs[0]
        self.assertEqual(cart["purchased_at"], NOW.isoformat())

    def test_order_owner(self):
        store, backing = _store()
        confirm_order(store, cod_order_id=COD_ID, user=SimpleNamespace(id="user-7"))
        order = backing.find("orders").docs[0]
        self.assertEqual(order["customer"], "user-7")
        self.assertNotIn("customer_email", order)

        store, backing = _store()
        confirm_order(store, cod_order_id=COD_ID, customer_email="other@example.com")
        order = backing.find("orders").docs[0]
        self.assertEqual(order["customer_email"], "other@example.com")

        store, backing = _store(_transaction(customer="user-3", customer_email=None))
        confirm_order(store, cod_order_id=COD_ID)
        order = backing.find("orders").docs[0]
        self.assertEqual(order["customer"], "user-3")

    def test_order_id_is_trimmed(self):
        store, _ = _store()
        result = confirm_order(store, cod_order_id=f"  {COD_ID} ")
        self.assertEqual(result.transaction_id, "txn-1")


class ConfirmOrderFailureTestCase(unittest.TestCase):
    def test_missing_order_id_makes_no_store_call(self):
        for value in (None, "", "   "):
            store = MagicMock()
            with self.assertRaises(MissingOrderIDError) as ctx:
                confirm_order(store, cod_order_id=value)
            self.assertEqual(ctx.exception.message, "COD Order ID is required")
            self.assertEqual(store.method_calls, [])

    def test_unknown_order_id(self):
        store = MagicMock()
        store.find.return_value = FindResult(docs=[], total_docs=0)
        with self.assertRaises(TransactionNotFoundError) as ctx:
            confirm_order(store, cod_order_id="COD-0-NOPE123")
        self.assertEqual(ctx.exception.message, "No transaction found for the provided COD Order ID")
        store.create.assert_not_called()
        store.update.assert_not_called()

    def test_numeric_order_id_is_looked_up_as_text(self):
        store = MagicMock()
        store.find.return_value = FindResult(docs=[], total_docs=0)
        with self.assertRaises(TransactionNotFoundError):
            confirm_order(store, cod_order_id=12345)
        self.assertEqual(store.find.call_args[0][1], {"cod.order_id": "12345"})

    def test_missing_cart_reference(self):
        for cart in (None, "", {"subtotal": 10}):
            store, _ = _store(_transaction(cart=cart))
            with self.assertRaises(MissingCartReferenceError) as ctx:
                confirm_order(store, cod_order_id=COD_ID)
            self.assertEqual(ctx.exception.message, "Cart ID not found in the transaction")
            store.create.assert_not_called()

    def test_invalid_item_snapshot(self):
        for items in (None, {"product": "p1"}, "p1"):
            store, _ = _store(_transaction(items=items))
            with self.assertRaises(InvalidItemSnapshotError) as ctx:
                confirm_order(store, cod_order_id=COD_ID)
            self.assertEqual(
                ctx.exception.message,
                "Cart items snapshot not found or invalid in the transaction",
            )
            store.create.assert_not_called()

    def test_second_confirmation_is_refused(self):
        store, backing = _store()
        confirm_order(store, cod_order_id=COD_ID)
        with self.assertRaises(AlreadyConfirmedError):
            confirm_order(store, cod_order_id=COD_ID)
        self.assertEqual(store.create.call_count, 1)
        self.assertEqual(len(backing.find("orders").docs), 1)

    def test_succeeded_status_alone_counts_as_confirmed(self):
        store, backing = _store(_transaction(status="succeeded"))
        with self.assertRaises(AlreadyConfirmedError):
            confirm_order(store, cod_order_id=COD_ID)
        store.create.assert_not_called()
        store.update.assert_not_called()
        self.assertEqual(backing.find("orders").docs, [])

    def test_cancelled_status_alone_counts_as_rejected(self):
        store, _ = _store(_transaction(status="cancelled"))
        with self.assertRaises(TransactionRejectedError):
            confirm_order(store, cod_order_id=COD_ID)
        store.create.assert_not_called()
        store.update.assert_not_called()

    def test_rejected_transaction_is_refused(self):
        txn = _transaction(status="cancelled")
        txn["cod"]["validation_status"] = "rejected"
        store, _ = _store(txn)
        with self.assertRaises(TransactionRejectedError):
            confirm_order(store, cod_order_id=COD_ID)
        store.create.assert_not_called()

    def test_store_failure_rolls_back_and_is_wrapped(self):
        store, backing = _store()
        store.update.side_effect = StoreError("STORE_UPDATE_FAILED:carts/cart-1")
        with self.assertLogs("codpay", level="ERROR") as logs:
            with self.assertRaises(CODDependencyError) as ctx:
                confirm_order(store, cod_order_id=COD_ID)
        self.assertEqual(ctx.exception.message, "STORE_UPDATE_FAILED:carts/cart-1")
        self.assertIn("cod_confirm_failed", logs.output[0])
        self.assertEqual(backing.find("orders").docs, [])

    def test_unexpected_failure_gets_generic_message(self):
        store = MagicMock()
        store.find.side_effect = ValueError("boom")
        with self.assertLogs("codpay", level="ERROR"):
            with self.assertRaises(CODDependencyError) as ctx:
                confirm_order(store, cod_order_id=COD_ID)
        self.assertEqual(ctx.exception.message, "Error confirming COD order")


class ConfirmOrderResumeTestCase(unittest.TestCase):
    def test_existing_funded_order_is_reused(self):
        existing = {"id": "order-1", "transactions": ["txn-1"], "status": "processing", "amount": 5500}
        store, backing = _store(orders=[existing])
        with self.assertLogs("codpay", level="INFO") as logs:
            result = confirm_order(store, cod_order_id=COD_ID)
        store.create.assert_not_called()
        self.assertEqual(store.update.call_count, 2)
        self.assertEqual(result.order_id, "order-1")
        self.assertEqual(len(backing.find("orders").docs), 1)
        self.assertTrue(any("cod_confirm_resumed" in line for line in logs.output))

    def test_confirmation_step(self):
        txn = _transaction()
        self.assertEqual(confirmation_step(txn), ConfirmationStep.PENDING)
        self.assertEqual(confirmation_step(txn, {"id": "o"}), ConfirmationStep.ORDER_CREATED)
        self.assertEqual(
            confirmation_step(txn, {"id": "o"}, {"purchased_at": NOW.isoformat()}),
            ConfirmationStep.CART_UPDATED,
        )


if __name__ == "__main__":
    unittest.main()
