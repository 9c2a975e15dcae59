# couponstack/services/types.py
"""Snapshot types the discount engine works on.

The SQLAlchemy models convert themselves into these (``to_line()``,
``to_rule()``, ``to_ref()``, ``to_local_store()``) so the engine never
touches a session.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from ..utils.money import ZERO

LOCAL_STORE = "local"

PERCENTAGE = "percentage"
FIXED = "fixed"
DISCOUNT_TYPES = (PERCENTAGE, FIXED)


def normalize_code(code) -> str:
    return (code or "").strip().upper()


@dataclass(frozen=True)
class LineItem:
    store: str
    price: Decimal
    quantity: int
    product_url: str | None = None

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


@dataclass(frozen=True)
class LocalStore:
    domain: str
    enabled: bool = True
    name: str | None = None


@dataclass(frozen=True)
class CouponRule:
    id: int | None
    code: str
    discount_type: str
    discount_value: Decimal
    valid_until: datetime | None = None
    valid_from: datetime | None = None
    min_order_amount: Decimal = ZERO
    max_discount_amount: Decimal | None = None
    applicable_stores: tuple[str, ...] = ()
    usage_limit: int | None = None
    used_count: int = 0
    usage_limit_per_user: int | None = 1
    is_active: bool = True
    priority: int = 0
    conditions: dict = field(default_factory=dict, compare=False, hash=False)


@dataclass(frozen=True)
class AppliedRef:
    """A coupon attached to one cart, as captured when it was applied."""
    id: int | None
    code: str
    coupon_id: int | None
    discount_type: str | None = None
    applicable_stores: tuple[str, ...] = ()
    applied_at: datetime | None = None
    is_active: bool = True


def cart_total(items) -> Decimal:
    return sum((i.line_total for i in items), ZERO)
