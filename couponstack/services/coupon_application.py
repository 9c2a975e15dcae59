# couponstack/services/coupon_application.py
"""Apply / remove / validate entry points.

Each mutation appends or deletes an applied-coupon row and then recomputes
the cart's summary over every applied coupon. Rejections come back as a
Verdict with the cart untouched; database faults propagate.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..errors import NotFoundError
from ..model import Cart, CartCoupon, Coupon
from ..utils.dates import utcnow
from ..utils.logging import get_logger
from .cart_service import recalc_cart
from .coupon_service import find_by_code
from .coupon_validator import Reason, Verdict, preview_coupon, refers_to, rejected, validate_coupon
from .discount_summary import DiscountSummary
from .order_service import count_prior_redemptions
from .settings_service import load_local_stores
from .types import normalize_code

logger = get_logger(__name__)


@dataclass
class ApplyOutcome:
    verdict: Verdict
    summary: DiscountSummary | None = None
    coupon: Coupon | None = None

    @property
    def accepted(self) -> bool:
        return self.verdict.accepted


def apply_coupon(cart: Cart, code, *, user_id: int | None = None, now: datetime | None = None) -> ApplyOutcome:
    now = now or utcnow()
    coupon = find_by_code(code)
    if coupon is None:
        logger.info("coupon_rejected", code=normalize_code(code), cart=cart.uuid, reason=Reason.NOT_FOUND.value)
        return ApplyOutcome(rejected(Reason.NOT_FOUND))
    if not cart.items:
        return ApplyOutcome(rejected(Reason.EMPTY_CART), coupon=coupon)

    usage = count_prior_redemptions(user_id, coupon.code) if user_id is not None else None
    local_stores = load_local_stores()
    rule = coupon.to_rule()
    verdict = validate_coupon(
        rule,
        cart.lines(),
        cart.applied_refs(),
        now,
        user_usage_count=usage,
        local_stores=local_stores,
    )
    if not verdict.accepted:
        logger.info("coupon_rejected", code=coupon.code, cart=cart.uuid, reason=verdict.reason.value)
        return ApplyOutcome(verdict, coupon=coupon)

    # a switched-off entry for the same coupon is replaced by the fresh snapshot
    for stale in [c for c in cart.coupons if refers_to(c.to_ref(), rule)]:
        cart.coupons.remove(stale)
    cart.coupons.append(CartCoupon(
        coupon_id=coupon.id,
        code=coupon.code,
        applied_at=now,
        discount_type=coupon.discount_type,
        applicable_stores=list(coupon.applicable_stores or []),
        is_active=True,
    ))
    summary = recalc_cart(cart, now, local_stores=local_stores)
    logger.info("coupon_applied", code=coupon.code, cart=cart.uuid, total_discount=str(summary.total_discount))
    return ApplyOutcome(verdict, summary=summary, coupon=coupon)


def _select(cart: Cart, ref) -> list[CartCoupon]:
    """
    Applied entries a client reference points at. Entry ids and coupon ids
    are separate integer sequences, so they are tried one after the other:
    applied-entry id, then coupon id, then code.
    """
    ref = str(ref).strip()
    stages = (
        lambda link: str(link.id) == ref,
        lambda link: link.coupon_id is not None and str(link.coupon_id) == ref,
        lambda link: link.code == normalize_code(ref),
    )
    for matches in stages:
        found = [link for link in cart.coupons if matches(link)]
        if found:
            return found
    return []


def remove_coupon(cart: Cart, ref, *, now: datetime | None = None) -> DiscountSummary:
    """Drop every applied entry matching ref; unknown refs just recompute."""
    for link in _select(cart, ref):
        cart.coupons.remove(link)
    return recalc_cart(cart, now)


def set_coupon_active(cart: Cart, ref, is_active: bool, *, now: datetime | None = None) -> DiscountSummary:
    found = _select(cart, ref)
    if not found:
        raise NotFoundError("coupon not found on this cart")
    for link in found:
        link.is_active = bool(is_active)
    return recalc_cart(cart, now)


def validate_code(code, *, user_id: int | None = None, now: datetime | None = None) -> tuple[Verdict, Coupon | None]:
    coupon = find_by_code(code)
    if coupon is None:
        return rejected(Reason.NOT_FOUND), None
    usage = count_prior_redemptions(user_id, coupon.code) if user_id is not None else None
    return preview_coupon(coupon.to_rule(), now or utcnow(), usage), coupon
