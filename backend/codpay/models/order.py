from datetime import datetime

from codpay.extensions import db
from codpay.models.document import DocumentMixin, dump_json, iso, load_json, ref


class Order(DocumentMixin, db.Model):
    __tablename__ = "orders"

    filterable = {
        "id": "id",
        "status": "status",
        "customer": "customer_id",
        "customer_email": "customer_email",
        # Orders are funded by one transaction here; the list mirrors it.
        "transactions": "transaction_id",
    }

    id = db.Column(db.Integer, primary_key=True)
    amount = db.Column(db.BigInteger, nullable=False, default=0)
    currency = db.Column(db.String(3), nullable=False)
    customer_id = db.Column(db.String(64), nullable=True, index=True)
    customer_email = db.Column(db.String(254), nullable=True)
    items_json = db.Column(db.Text, nullable=False, default="[]")
    shipping_address_json = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(24), nullable=False, default="processing")
    transaction_id = db.Column(db.String(64), nullable=True, index=True)
    transaction_ids_json = db.Column(db.Text, nullable=False, default="[]")

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def apply_document(self, data: dict) -> None:
        if "amount" in data:
            self.amount = int(data.get("amount") or 0)
        if "currency" in data:
            self.currency = (data.get("currency") or "").strip().upper()
        if "customer" in data:
            self.customer_id = ref(data.get("customer"))
        if "customer_email" in data:
            self.customer_email = data.get("customer_email") or None
        if "items" in data:
            self.items_json = dump_json(data.get("items") or [])
        if "shipping_address" in data:
            self.shipping_address_json = dump_json(data.get("shipping_address"))
        if "status" in data:
            self.status = (data.get("status") or "processing").strip().lower()
        if "transactions" in data:
            ids = list(data.get("transactions") or [])
            self.transaction_ids_json = dump_json(ids)
            self.transaction_id = ref(ids[0]) if ids else None

    def to_dict(self):
        return {
            "id": int(self.id),
            "amount": int(self.amount or 0),
            "currency": self.currency or "",
            "customer": self.customer_id,
            "customer_email": self.customer_email,
            "items": load_json(self.items_json, []),
            "shipping_address": load_json(self.shipping_address_json, None),
            "status": self.status or "",
            "transactions": load_json(self.transaction_ids_json, []),
            "created_at": iso(self.created_at),
        }
