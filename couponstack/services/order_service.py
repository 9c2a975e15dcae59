# couponstack/services/order_service.py
from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy import func
from ..extensions import db
from ..model import Cart, Coupon, Order, OrderCoupon, OrderItem
from ..utils.dates import utcnow
from ..utils.logging import get_logger
from ..utils.money import round_money
from .cart_service import recalc_cart
from .types import cart_total, normalize_code

logger = get_logger(__name__)

def count_prior_redemptions(user_id: int | None, code: str) -> int:
    """Orders placed by user_id that redeemed code."""
    if user_id is None:
        return 0
    return (
        db.session.query(func.count(func.distinct(Order.id)))
        .join(OrderCoupon, OrderCoupon.order_id == Order.id)
        .filter(Order.user_id == user_id, OrderCoupon.code == normalize_code(code))
        .scalar()
    ) or 0

def usage_by_code(user_id: int | None, codes) -> dict[str, int]:
    return {normalize_code(c): count_prior_redemptions(user_id, c) for c in codes}

def _gen_order_code(now: datetime) -> str:
    return "ORD-" + now.strftime("%Y%m%d-%H%M%S%f") + "-" + uuid.uuid4().hex[:4].upper()

def place_order(cart: Cart, user_id: int | None = None, now: datetime | None = None) -> Order:
    """
    Snapshot the cart into an order, record its coupon redemptions and bump
    each redeemed coupon's used_count in the same transaction, then close
    the cart. The caller commits.
    """
    if not cart.items:
        raise ValueError("cart is empty")
    now = now or utcnow()
    user_id = user_id if user_id is not None else cart.user_id

    usage = usage_by_code(user_id, [c.code for c in cart.coupons]) if user_id is not None else None
    summary = recalc_cart(cart, now, user_usage=usage)

    lines = cart.lines()
    subtotal = cart_total(lines)
    order = Order(
        code=_gen_order_code(now),
        user_id=user_id,
        status="completed",
        currency=cart.currency,
        subtotal=round_money(subtotal),
        coupon_total=summary.total_discount,
        total=round_money(max(subtotal - summary.total_discount, 0)),
        store_breakdown={k: float(round_money(v)) for k, v in summary.store_breakdown.items()},
        cart_uuid=cart.uuid,
        created_at=now,
    )
    for it in cart.items:
        order.items.append(OrderItem(
            store=it.store,
            product_url=it.product_url,
            name=it.product_name,
            unit_price=it.unit_price_dec(),
            quantity=it.quantity,
            line_total=round_money(it.line_total_dec()),
        ))
    for applied in summary.applied_coupons:
        order.coupons.append(OrderCoupon(
            coupon_id=applied.coupon_id,
            code=applied.code,
            discount_amount=round_money(applied.discount_amount),
        ))
        coupon = db.session.get(Coupon, applied.coupon_id) if applied.coupon_id is not None else None
        if coupon is not None:
            coupon.used_count = Coupon.used_count + 1
    db.session.add(order)

    # Close cart
    cart.status = "checked_out"
    cart.items.clear()
    cart.coupons.clear()
    cart.discount_summary = None
    db.session.flush()

    logger.info("order_placed", order=order.code, cart=cart.uuid, user_id=user_id,
                coupon_total=str(summary.total_discount), coupons=[c.code for c in summary.applied_coupons])
    return order
