# couponstack/services/coupon_validator.py
"""Decides whether one coupon may be applied to one cart.

Every outcome is a :class:`Verdict`; a rejected coupon is an expected result,
not an error. Nothing here reads the database.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

from ..utils.money import D, ZERO
from .store_identity import StoreResolver, first_matching_entry, store_display_names
from .types import CouponRule, LineItem, cart_total, normalize_code


class Reason(str, Enum):
    INACTIVE = "INACTIVE"
    NOT_STARTED = "NOT_STARTED"
    EXPIRED = "EXPIRED"
    GLOBAL_LIMIT_REACHED = "GLOBAL_LIMIT_REACHED"
    PER_USER_LIMIT_REACHED = "PER_USER_LIMIT_REACHED"
    NO_MATCHING_STORE = "NO_MATCHING_STORE"
    BELOW_MINIMUM = "BELOW_MINIMUM"
    ALREADY_APPLIED = "ALREADY_APPLIED"
    NOT_FOUND = "NOT_FOUND"
    EMPTY_CART = "EMPTY_CART"

    @property
    def message(self) -> str:
        return REASON_MESSAGES[self]


REASON_MESSAGES = {
    Reason.INACTIVE: "This coupon is not active",
    Reason.NOT_STARTED: "This coupon is not valid yet",
    Reason.EXPIRED: "This coupon has expired",
    Reason.GLOBAL_LIMIT_REACHED: "This coupon has been fully redeemed",
    Reason.PER_USER_LIMIT_REACHED: "You have already used this coupon",
    Reason.NO_MATCHING_STORE: "This coupon is limited to other stores",
    Reason.BELOW_MINIMUM: "Order total is below the coupon minimum",
    Reason.ALREADY_APPLIED: "This coupon is already applied",
    Reason.NOT_FOUND: "Invalid coupon code",
    Reason.EMPTY_CART: "Your cart is empty",
}


@dataclass(frozen=True)
class Verdict:
    reason: Reason | None = None
    applicable_subtotal: Decimal = ZERO
    eligible_stores: tuple[str, ...] = ()
    min_order_amount: Decimal | None = None

    @property
    def accepted(self) -> bool:
        return self.reason is None

    @property
    def message(self) -> str:
        if self.reason is None:
            return "Coupon is valid"
        if self.reason is Reason.NO_MATCHING_STORE and self.eligible_stores:
            return f"This coupon is limited to: {', '.join(self.eligible_stores)}"
        if self.reason is Reason.BELOW_MINIMUM and self.min_order_amount is not None:
            return f"Minimum order amount is {self.min_order_amount}"
        return self.reason.message

    def as_api(self) -> dict:
        out = {"accepted": self.accepted, "reason": self.reason.value if self.reason else None}
        if self.eligible_stores:
            out["applicable_stores"] = list(self.eligible_stores)
        if self.min_order_amount is not None:
            out["min_order_amount"] = float(self.min_order_amount)
        return out


ACCEPTED = Verdict()


def rejected(reason: Reason, **kwargs) -> Verdict:
    return Verdict(reason=reason, **kwargs)


# ---- building blocks (shared with the calculator) --------------------------

def check_rule(coupon: CouponRule, now: datetime, user_usage_count: int | None = None) -> Reason | None:
    """Cart-independent checks, in order; first failure wins."""
    if not coupon.is_active:
        return Reason.INACTIVE
    if coupon.valid_from and now < coupon.valid_from:
        return Reason.NOT_STARTED
    if coupon.valid_until and now > coupon.valid_until:
        return Reason.EXPIRED
    if coupon.usage_limit is not None and coupon.used_count >= coupon.usage_limit:
        return Reason.GLOBAL_LIMIT_REACHED
    if user_usage_count is not None and coupon.usage_limit_per_user:
        if user_usage_count >= coupon.usage_limit_per_user:
            return Reason.PER_USER_LIMIT_REACHED
    return None


def applicable_items(stores, items, resolver: StoreResolver) -> tuple[list[tuple[LineItem, str]], Decimal]:
    """Items a coupon scope covers, each paired with its breakdown key.

    Restricted scopes key an item by the first entry it matched; an
    unrestricted scope keys it by its resolved store id and covers the cart.
    """
    if not stores:
        return [(i, resolver(i)) for i in items], cart_total(items)
    matched = []
    subtotal = ZERO
    for item in items:
        entry = first_matching_entry(item, resolver(item), stores)
        if entry is not None:
            matched.append((item, entry))
            subtotal += item.line_total
    return matched, subtotal


def check_cart_scope(coupon: CouponRule, stores, items, resolver: StoreResolver) -> Verdict:
    matched, subtotal = applicable_items(stores, items, resolver)
    if stores and not matched:
        return rejected(
            Reason.NO_MATCHING_STORE,
            eligible_stores=tuple(store_display_names(stores, resolver.local_stores)),
        )
    minimum = D(coupon.min_order_amount)
    if minimum > 0 and subtotal < minimum:
        return rejected(Reason.BELOW_MINIMUM, applicable_subtotal=subtotal, min_order_amount=minimum)
    return Verdict(applicable_subtotal=subtotal)


def refers_to(ref, coupon: CouponRule) -> bool:
    """Whether an applied entry stands for this catalog coupon.

    The coupon id is authoritative, codes can be renamed after apply.
    """
    if ref.coupon_id is not None and coupon.id is not None:
        return ref.coupon_id == coupon.id
    return normalize_code(ref.code) == normalize_code(coupon.code)


def is_already_applied(coupon: CouponRule, applied) -> bool:
    # an entry whose catalog coupon was deleted no longer counts
    return any(
        ref.is_active and refers_to(ref, coupon) and (ref.coupon_id is not None or coupon.id is None)
        for ref in applied
    )


# ---- public entry points ----------------------------------------------------

def validate_coupon(
    coupon: CouponRule,
    items,
    applied,
    now: datetime,
    user_usage_count: int | None = None,
    local_stores=(),
    resolver: StoreResolver | None = None,
) -> Verdict:
    reason = check_rule(coupon, now, user_usage_count)
    if reason:
        return rejected(reason)

    resolver = resolver or StoreResolver(local_stores)
    verdict = check_cart_scope(coupon, coupon.applicable_stores, items, resolver)
    if not verdict.accepted:
        return verdict

    if is_already_applied(coupon, applied):
        return rejected(Reason.ALREADY_APPLIED, applicable_subtotal=verdict.applicable_subtotal)
    return verdict


def preview_coupon(coupon: CouponRule, now: datetime, user_usage_count: int | None = None) -> Verdict:
    """Validity checks that need no cart (activity, window, usage caps)."""
    reason = check_rule(coupon, now, user_usage_count)
    return rejected(reason) if reason else ACCEPTED
