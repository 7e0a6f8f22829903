from datetime import datetime

from codpay.extensions import db
from codpay.models.document import DocumentMixin, dump_json, iso, load_json, parse_date, ref


class Transaction(DocumentMixin, db.Model):
    __tablename__ = "transactions"

    filterable = {
        "id": "id",
        "status": "status",
        "payment_method": "payment_method",
        "cart": "cart_id",
        "order": "order_id",
        "customer": "customer_id",
        "customer_email": "customer_email",
        "cod.order_id": "cod_order_id",
        "cod.validation_status": "cod_validation_status",
        "cod.delivery_status": "cod_delivery_status",
        "cod.payment_collected": "cod_payment_collected",
    }

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.String(64), nullable=True, index=True)
    customer_email = db.Column(db.String(254), nullable=True)
    currency = db.Column(db.String(3), nullable=False)
    amount = db.Column(db.BigInteger, nullable=False, default=0)
    billing_address_json = db.Column(db.Text, nullable=True)
    cart_id = db.Column(db.String(64), nullable=True, index=True)
    items_json = db.Column(db.Text, nullable=True)
    payment_method = db.Column(db.String(32), nullable=False, default="cod")
    status = db.Column(db.String(24), nullable=False, default="pending", index=True)
    order_id = db.Column(db.String(64), nullable=True)

    cod_order_id = db.Column(db.String(64), nullable=True, unique=True, index=True)
    cod_validation_status = db.Column(db.String(16), nullable=True)
    cod_delivery_status = db.Column(db.String(24), nullable=True)
    cod_payment_collected = db.Column(db.Boolean, nullable=False, default=False)
    cod_collection_date = db.Column(db.Date, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def apply_document(self, data: dict) -> None:
        if "customer" in data:
            self.customer_id = ref(data.get("customer"))
        if "customer_email" in data:
            self.customer_email = data.get("customer_email") or None
        if "currency" in data:
            self.currency = (data.get("currency") or "").strip().upper()
        if "amount" in data:
            self.amount = int(data.get("amount") or 0)
        if "billing_address" in data:
            self.billing_address_json = dump_json(data.get("billing_address"))
        if "cart" in data:
            self.cart_id = ref(data.get("cart"))
        if "items" in data:
            items = data.get("items")
            self.items_json = dump_json(items) if items is not None else None
        if "payment_method" in data:
            self.payment_method = (data.get("payment_method") or "cod").strip().lower()
        if "status" in data:
            self.status = (data.get("status") or "pending").strip().lower()
        if "order" in data:
            self.order_id = ref(data.get("order"))
        if "cod" in data:
            self._apply_cod(data.get("cod") or {})

    def _apply_cod(self, cod: dict) -> None:
        # The cod group is written as a whole, as it is in the document.
        self.cod_order_id = ref(cod.get("order_id"))
        self.cod_validation_status = cod.get("validation_status") or None
        self.cod_delivery_status = cod.get("delivery_status") or None
        self.cod_payment_collected = bool(cod.get("payment_collected"))
        self.cod_collection_date = parse_date(cod.get("collection_date"))

    def cod_to_dict(self) -> dict | None:
        if not self.cod_order_id:
            return None
        out = {
            "order_id": self.cod_order_id,
            "validation_status": self.cod_validation_status or "pending",
            "delivery_status": self.cod_delivery_status or "preparing",
            "payment_collected": bool(self.cod_payment_collected),
        }
        if self.cod_collection_date:
            out["collection_date"] = self.cod_collection_date.isoformat()
        return out

    def to_dict(self):
        out = {
            "id": int(self.id),
            "customer": self.customer_id,
            "customer_email": self.customer_email,
            "currency": self.currency or "",
            "amount": int(self.amount or 0),
            "billing_address": load_json(self.billing_address_json, None),
            "cart": self.cart_id,
            "items": load_json(self.items_json, None),
            "payment_method": self.payment_method or "",
            "status": self.status or "",
            "order": self.order_id,
            "created_at": iso(self.created_at),
        }
        cod = self.cod_to_dict()
        if cod is not None:
            out["cod"] = cod
        return out
