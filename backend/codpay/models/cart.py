from datetime import datetime

from codpay.extensions import db
from codpay.models.document import DocumentMixin, dump_json, iso, load_json, parse_datetime, ref


class Cart(DocumentMixin, db.Model):
    __tablename__ = "carts"

    filterable = {
        "id": "id",
        "customer": "customer_id",
        "customer_email": "customer_email",
        "purchased_at": "purchased_at",
    }

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.String(64), nullable=True, index=True)
    customer_email = db.Column(db.String(254), nullable=True)
    currency = db.Column(db.String(3), nullable=True)
    subtotal = db.Column(db.BigInteger, nullable=False, default=0)
    items_json = db.Column(db.Text, nullable=True)
    purchased_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def apply_document(self, data: dict) -> None:
        if "customer" in data:
            self.customer_id = ref(data.get("customer"))
        if "customer_email" in data:
            self.customer_email = data.get("customer_email") or None
        if "currency" in data:
            self.currency = (data.get("currency") or "").strip().upper() or None
        if "subtotal" in data:
            self.subtotal = int(data.get("subtotal") or 0)
        if "items" in data:
            self.items_json = dump_json(data.get("items") or [])
        if "purchased_at" in data:
            self.purchased_at = parse_datetime(data.get("purchased_at"))

    def to_dict(self):
        return {
            "id": int(self.id),
            "customer": self.customer_id,
            "customer_email": self.customer_email,
            "currency": self.currency or "",
            "subtotal": int(self.subtotal or 0),
            "items": load_json(self.items_json, []),
            "purchased_at": iso(self.purchased_at),
            "created_at": iso(self.created_at),
        }
