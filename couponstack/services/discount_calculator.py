# couponstack/services/discount_calculator.py
"""Recomputes a cart's discount summary from its applied coupons.

Always works from scratch over the full applied list, so the result depends
only on the inputs, never on the order of earlier apply/remove calls.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation

from ..utils.logging import get_logger
from ..utils.money import D, HUNDRED, ZERO
from .coupon_validator import applicable_items, check_cart_scope, check_rule
from .discount_summary import DiscountSummary, SummaryBuilder
from .store_identity import StoreResolver
from .types import FIXED, PERCENTAGE, AppliedRef, CouponRule, normalize_code

logger = get_logger(__name__)


def stacking_order(applied, catalog) -> list[tuple[AppliedRef, CouponRule]]:
    """Active refs paired with their live rule, highest priority first.

    Ties keep application order (the index in ``applied``). A coupon
    referenced by more than one active entry counts once, for the earliest.
    """
    pairs = []
    seen: set[int] = set()
    for index, ref in enumerate(applied):
        if not ref.is_active:
            continue
        if ref.coupon_id in seen:
            logger.debug("coupon_skipped", code=ref.code, reason="duplicate_entry")
            continue
        rule = catalog.get(ref.coupon_id) if ref.coupon_id is not None else None
        if rule is None:
            logger.debug("coupon_skipped", code=ref.code, reason="missing_from_catalog")
            continue
        seen.add(ref.coupon_id)
        pairs.append((index, ref, rule))
    pairs.sort(key=lambda p: (-int(p[2].priority or 0), p[0]))
    return [(ref, rule) for _, ref, rule in pairs]


def raw_discount(rule: CouponRule, applicable_subtotal: Decimal) -> Decimal:
    value = D(rule.discount_value)
    if value <= 0:
        return ZERO
    if rule.discount_type == PERCENTAGE:
        amount = applicable_subtotal * value / HUNDRED
        if rule.max_discount_amount is not None:
            cap = D(rule.max_discount_amount)
            if cap > 0 and amount > cap:
                amount = cap
    elif rule.discount_type == FIXED:
        amount = value
    else:
        raise ValueError(f"unknown discount type {rule.discount_type!r}")
    return min(amount, applicable_subtotal)


def allocate(amount: Decimal, groups: dict[str, Decimal], applicable_subtotal: Decimal) -> dict[str, Decimal]:
    """Split amount across store groups by their share of the subtotal."""
    if amount <= 0 or applicable_subtotal <= 0:
        return {}
    return {key: amount * sub / applicable_subtotal for key, sub in groups.items() if sub > 0}


def _evaluate(ref, rule, items, cart_total, builder, resolver, now, user_usage):
    usage = None
    if user_usage is not None:
        usage = int(user_usage.get(normalize_code(rule.code), 0))
    reason = check_rule(rule, now, usage)
    if reason:
        logger.debug("coupon_skipped", code=rule.code, reason=reason.value)
        return

    # scope comes from the snapshot taken at apply time
    stores = tuple(ref.applicable_stores)
    verdict = check_cart_scope(rule, stores, items, resolver)
    if not verdict.accepted:
        logger.debug("coupon_skipped", code=rule.code, reason=verdict.reason.value)
        return

    matched, subtotal = applicable_items(stores, items, resolver)
    amount = raw_discount(rule, subtotal)
    amount = min(amount, builder.remaining(cart_total))
    if amount <= 0:
        return

    groups: dict[str, Decimal] = {}
    for item, key in matched:
        groups[key] = groups.get(key, ZERO) + item.line_total
    builder.add(
        code=rule.code,
        coupon_id=rule.id,
        discount_type=rule.discount_type,
        stores=stores,
        amount=amount,
        shares=allocate(amount, groups, subtotal),
    )


def calculate_discount(
    applied,
    cart_total,
    items,
    *,
    catalog,
    now: datetime,
    local_stores=(),
    user_usage=None,
) -> DiscountSummary:
    """
    applied:      AppliedRef list in application order
    cart_total:   undiscounted cart total
    items:        LineItem list
    catalog:      {coupon_id: CouponRule} with the live catalog state
    user_usage:   optional {code: prior redemptions} for the requester
    """
    items = list(items)
    cart_total = D(cart_total)
    if not applied or not items or cart_total <= 0:
        return DiscountSummary.empty()

    builder = SummaryBuilder()
    resolver = StoreResolver(local_stores)

    for ref, rule in stacking_order(applied, catalog):
        try:
            _evaluate(ref, rule, items, cart_total, builder, resolver, now, user_usage)
        except (ArithmeticError, InvalidOperation, TypeError, ValueError) as e:
            logger.warning("coupon_unusable", code=getattr(rule, "code", None), error=str(e))
            continue

    return builder.build(cart_total)
