from __future__ import annotations

import os
import unittest
from unittest.mock import patch

from codpay import create_app
from codpay.extensions import db
from codpay.integrations.common import StoreError, StoreMisconfiguredError
from codpay.integrations.store.sqlalchemy_store import SQLAlchemyRecordStore
from codpay.models import Cart, Order, Transaction
from codpay.runtime import get_cod_runtime
from codpay.services.cod.adapter import cod_adapter
from codpay.services.cod.errors import AlreadyConfirmedError
from codpay.services.cod.policy import CODPolicy

TEST_ENV = {
    "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
    "COD_STORE_BACKEND": "sqlalchemy",
    "SENTRY_DSN": "",
    "CODPAY_ENV": "test",
    "COD_MINIMUM_ORDER": "",
    "COD_MAXIMUM_ORDER": "",
    "COD_ALLOWED_REGIONS": "",
    "COD_SUPPORTED_CURRENCIES": "",
    "COD_SERVICE_CHARGE_PERCENTAGE": "",
    "COD_FIXED_SERVICE_CHARGE": "",
}


class SQLAlchemyRecordStoreTestCase(unittest.TestCase):
    def setUp(self):
        self._env = patch.dict(os.environ, TEST_ENV, clear=False)
        self._env.start()
        self.app = create_app()
        self.app.config.update(TESTING=True)
        self.ctx = self.app.app_context()
        self.ctx.push()
        db.create_all()
        self.runtime = get_cod_runtime(self.app)
        self.store = self.runtime.store

    def tearDown(self):
        db.session.remove()
        db.drop_all()
        self.ctx.pop()
        self._env.stop()

    def _cart(self, subtotal=5000):
        return self.store.create(
            "carts",
            {
                "currency": "USD",
                "subtotal": subtotal,
                "items": [{"product": "p1", "variant": "v1", "quantity": 2, "note": "gift"}],
            },
        )

    def test_runtime_uses_sql_store(self):
        self.assertIsInstance(self.store, SQLAlchemyRecordStore)
        self.assertEqual(self.runtime.adapter.label, "Cash on Delivery")

    def test_initiate_then_confirm(self):
        cart = self._cart()
        adapter = cod_adapter(policy=CODPolicy(service_charge_percentage=10))
        initiated = adapter.initiate_payment(
            self.store,
            cart=cart,
            currency="usd",
            customer_email="buyer@example.com",
            billing_address={"line1": "1 Main St", "country": "IN"},
        )
        self.assertEqual(initiated.service_charge, 500)

        txn = self.store.find("transactions", {"cod.order_id": initiated.order_id}).docs[0]
        self.assertEqual(txn["amount"], 5500)
        self.assertEqual(txn["cart"], str(cart["id"]))
        self.assertEqual(txn["items"], [{"product": "p1", "variant": "v1", "quantity": 2, "note": "gift"}])
        self.assertEqual(txn["cod"]["validation_status"], "pending")
        self.assertEqual(txn["cod"]["delivery_status"], "preparing")
        self.assertFalse(txn["cod"]["payment_collected"])

        confirmed = adapter.confirm_order(self.store, cod_order_id=initiated.order_id)
        self.assertEqual(confirmed.transaction_id, txn["id"])

        order = db.session.get(Order, confirmed.order_id)
        self.assertIsNotNone(order)
        self.assertEqual(order.amount, 5500)
        self.assertEqual(order.customer_email, "buyer@example.com")
        self.assertEqual(order.to_dict()["transactions"], [txn["id"]])
        self.assertEqual(order.to_dict()["shipping_address"], {"line1": "1 Main St", "country": "IN"})

        self.assertIsNotNone(db.session.get(Cart, cart["id"]).purchased_at)
        row = db.session.get(Transaction, txn["id"])
        self.assertEqual(row.status, "succeeded")
        self.assertEqual(row.order_id, str(confirmed.order_id))
        self.assertEqual(row.cod_validation_status, "validated")

    def test_second_confirmation_creates_no_second_order(self):
        cart = self._cart()
        initiated = self.runtime.adapter.initiate_payment(
            self.store, cart=cart, currency="USD", customer_email="buyer@example.com"
        )
        self.runtime.adapter.confirm_order(self.store, cod_order_id=initiated.order_id)
        with self.assertRaises(AlreadyConfirmedError):
            self.runtime.adapter.confirm_order(self.store, cod_order_id=initiated.order_id)
        self.assertEqual(Order.query.count(), 1)

    def test_confirm_resumes_after_order_was_written(self):
        cart = self._cart()
        initiated = self.runtime.adapter.initiate_payment(
            self.store, cart=cart, currency="USD", customer_email="buyer@example.com"
        )
        txn = self.store.find("transactions", {"cod.order_id": initiated.order_id}).docs[0]
        existing = self.store.create(
            "orders",
            {"amount": txn["amount"], "currency": "USD", "items": txn["items"], "transactions": [txn["id"]]},
        )
        result = self.runtime.adapter.confirm_order(self.store, cod_order_id=initiated.order_id)
        self.assertEqual(result.order_id, existing["id"])
        self.assertEqual(Order.query.count(), 1)

    def test_atomic_rolls_back_every_write(self):
        with self.assertRaises(RuntimeError):
            with self.store.atomic():
                self.store.create("orders", {"amount": 1, "currency": "USD", "transactions": ["1"]})
                with self.store.atomic():
                    self._cart()
                raise RuntimeError("stop")
        self.assertEqual(Order.query.count(), 0)
        self.assertEqual(Cart.query.count(), 0)

    def test_atomic_commits_on_success(self):
        with self.store.atomic():
            self.store.create("orders", {"amount": 1, "currency": "USD", "transactions": ["1"]})
        db.session.rollback()
        self.assertEqual(Order.query.count(), 1)

    def test_cod_order_id_is_unique(self):
        data = {"currency": "USD", "amount": 1, "cart": "1", "items": [], "cod": {"order_id": "COD-1-AAAAAAA"}}
        self.store.create("transactions", data)
        with self.assertRaises(StoreError) as ctx:
            self.store.create("transactions", data)
        self.assertEqual(str(ctx.exception), "STORE_CREATE_FAILED:transactions")
        self.assertEqual(Transaction.query.count(), 1)

    def test_unsupported_filter_and_unknown_collection(self):
        with self.assertRaises(StoreError):
            self.store.find("carts", {"items.product": "p1"})
        with self.assertRaises(StoreMisconfiguredError):
            self.store.find("wishlists")

    def test_update_unknown_record(self):
        with self.assertRaises(StoreError) as ctx:
            self.store.update("carts", 999, {"purchased_at": "2026-01-01T00:00:00+00:00"})
        self.assertEqual(str(ctx.exception), "STORE_RECORD_NOT_FOUND:carts/999")

    def test_find_limit_and_total(self):
        self._cart()
        self._cart()
        result = self.store.find("carts", limit=1)
        self.assertEqual(len(result.docs), 1)
        self.assertEqual(result.total_docs, 2)


if __name__ == "__main__":
    unittest.main()
