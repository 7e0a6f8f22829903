from codpay.models.cart import Cart
from codpay.models.order import Order
from codpay.models.transaction import Transaction

__all__ = ["Cart", "Order", "Transaction"]
