from __future__ import annotations

import os
import re
import secrets
import time
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

_EMAIL_RE = re.compile(r"^[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}$", re.IGNORECASE)
_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
COD_ORDER_ID_PREFIX = "COD"
COD_ORDER_ID_SUFFIX_LEN = 7


@dataclass(frozen=True)
class CODPolicy:
    """Eligibility and pricing rules for cash on delivery.

    Every field is optional; ``None``, zero or an empty tuple disables the
    check. Amounts are in the smallest currency unit and charges must not be
    negative.
    """

    minimum_order: int | None = None
    maximum_order: int | None = None
    allowed_regions: tuple[str, ...] = ()
    supported_currencies: tuple[str, ...] = ()
    service_charge_percentage: Decimal | int | float | None = None
    fixed_service_charge: int | None = None

    def __post_init__(self):
        object.__setattr__(self, "allowed_regions", _upper_codes(self.allowed_regions))
        object.__setattr__(self, "supported_currencies", _upper_codes(self.supported_currencies))
        if self.service_charge_percentage is not None and self.service_charge_percentage < 0:
            raise ValueError("service_charge_percentage must not be negative")
        if self.fixed_service_charge is not None and self.fixed_service_charge < 0:
            raise ValueError("fixed_service_charge must not be negative")


@dataclass(frozen=True)
class CODCollections:
    carts: str = "carts"
    orders: str = "orders"
    transactions: str = "transactions"


DEFAULT_COLLECTIONS = CODCollections()


def _upper_codes(values) -> tuple[str, ...]:
    if not values:
        return ()
    if isinstance(values, str):
        values = values.split(",")
    out = []
    for value in values:
        code = str(value or "").strip().upper()
        if code and code not in out:
            out.append(code)
    return tuple(out)


def _env_optional_int(name: str) -> int | None:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except Exception:
        return None


def _env_charge(value):
    if value is None or value < 0:
        return None
    return value


def _env_optional_decimal(name: str) -> Decimal | None:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return None
    try:
        value = Decimal(raw)
    except (InvalidOperation, ValueError):
        return None
    return value if value.is_finite() else None


def policy_from_env() -> CODPolicy:
    return CODPolicy(
        minimum_order=_env_optional_int("COD_MINIMUM_ORDER"),
        maximum_order=_env_optional_int("COD_MAXIMUM_ORDER"),
        allowed_regions=_upper_codes(os.getenv("COD_ALLOWED_REGIONS") or ""),
        supported_currencies=_upper_codes(os.getenv("COD_SUPPORTED_CURRENCIES") or ""),
        service_charge_percentage=_env_charge(_env_optional_decimal("COD_SERVICE_CHARGE_PERCENTAGE")),
        fixed_service_charge=_env_charge(_env_optional_int("COD_FIXED_SERVICE_CHARGE")),
    )


def collections_from_env() -> CODCollections:
    return CODCollections(
        carts=(os.getenv("COD_CARTS_COLLECTION") or "carts").strip() or "carts",
        orders=(os.getenv("COD_ORDERS_COLLECTION") or "orders").strip() or "orders",
        transactions=(os.getenv("COD_TRANSACTIONS_COLLECTION") or "transactions").strip() or "transactions",
    )


def percentage_charge_minor(subtotal_minor: int, percentage) -> int:
    if not percentage:
        return 0
    raw = (Decimal(int(subtotal_minor)) * Decimal(str(percentage))) / Decimal("100")
    return int(raw.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def compute_service_charge(subtotal_minor: int, policy: CODPolicy) -> int:
    charge = percentage_charge_minor(subtotal_minor, policy.service_charge_percentage)
    if policy.fixed_service_charge:
        charge += int(policy.fixed_service_charge)
    return charge


def format_major(amount_minor: int) -> str:
    # 10000 -> "100", 150 -> "1.5"
    value = Decimal(int(amount_minor)) / Decimal("100")
    text = format(value.normalize(), "f")
    return text


def is_valid_email(value) -> bool:
    if not isinstance(value, str):
        return False
    return bool(_EMAIL_RE.match(value.strip()))


def generate_cod_order_id(now_ms: int | None = None) -> str:
    stamp = int(now_ms if now_ms is not None else time.time() * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(COD_ORDER_ID_SUFFIX_LEN))
    return f"{COD_ORDER_ID_PREFIX}-{stamp}-{suffix}"
