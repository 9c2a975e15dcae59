# couponstack/services/cart_service.py
from __future__ import annotations
from datetime import datetime
from flask import current_app
from ..errors import NotFoundError
from ..extensions import db
from ..model import Cart, CartItem, Coupon
from ..utils.dates import utcnow
from ..utils.logging import get_logger
from ..utils.money import D
from .discount_calculator import calculate_discount
from .discount_summary import DiscountSummary
from .settings_service import load_local_stores
from .types import LOCAL_STORE, cart_total

logger = get_logger(__name__)

# ---- cart lookup ------------------------------------------------------------

def get_or_create_cart(cart_uuid: str | None = None, session_id: str | None = None,
                       user_id: int | None = None) -> Cart:
    """
    Resolution order: explicit cart uuid, then legacy session id, then the
    requester's own active cart. A fresh cart is created when none matches.
    """
    q = Cart.query.filter_by(status="active")
    cart = None
    if cart_uuid:
        cart = q.filter(Cart.uuid == cart_uuid).first()
    elif session_id:
        cart = q.filter(Cart.session_id == session_id).first()
    elif user_id is not None:
        cart = q.filter(Cart.user_id == user_id).first()

    if not cart:
        cart = Cart(status="active", session_id=session_id, user_id=user_id,
                    currency=current_app.config.get("DEFAULT_CURRENCY", "SAR"))
        db.session.add(cart)
        db.session.flush()
    elif user_id is not None and cart.user_id is None:
        cart.user_id = user_id
    return cart

def resolve_cart(headers, user_id: int | None = None) -> Cart:
    return get_or_create_cart(
        cart_uuid=headers.get("X-Cart-Id"),
        session_id=headers.get("X-Session-Id"),
        user_id=user_id,
    )

# ---- recompute --------------------------------------------------------------

def catalog_for(cart: Cart) -> dict:
    ids = {c.coupon_id for c in cart.coupons if c.coupon_id is not None}
    if not ids:
        return {}
    return {c.id: c.to_rule() for c in Coupon.query.filter(Coupon.id.in_(ids)).all()}

def recalc_cart(cart: Cart, now: datetime | None = None, *, local_stores=None,
                user_usage: dict | None = None) -> DiscountSummary:
    """
    Rebuild cart.discount_summary from the full applied-coupon list.
    This is the only writer of the stored summary.
    """
    lines = cart.lines()
    summary = calculate_discount(
        cart.applied_refs(),
        cart_total(lines),
        lines,
        catalog=catalog_for(cart),
        now=now or utcnow(),
        local_stores=load_local_stores() if local_stores is None else local_stores,
        user_usage=user_usage,
    )
    cart.discount_summary = summary.as_api()
    db.session.flush()
    logger.debug("cart_recalculated", cart=cart.uuid, total_discount=str(summary.total_discount),
                 coupons_used=summary.coupons_used)
    return summary

# ---- items ------------------------------------------------------------------

def _quantity(value) -> int:
    try:
        qty = int(value)
    except (TypeError, ValueError):
        raise ValueError("quantity must be an integer")
    if qty < 1:
        raise ValueError("quantity must be >= 1")
    return qty

def _price(value):
    if value is None or value == "":
        raise ValueError("price is required")
    try:
        price = D(value)
    except ArithmeticError:
        raise ValueError("price must be numeric")
    if not price.is_finite():
        raise ValueError("price must be a finite number")
    if price < 0:
        raise ValueError("price must be >= 0")
    return price

def add_item(cart: Cart, data: dict, now: datetime | None = None) -> CartItem:
    """
    data: { "store", "product_url"?, "name", "price", "quantity" }
    Lines with the same store + url are merged.
    """
    store = (data.get("store") or "").strip().lower()
    if not store:
        raise ValueError("store is required")
    product_url = (data.get("product_url") or "").strip() or None
    if store == LOCAL_STORE and not product_url:
        raise ValueError("product_url is required for local store items")
    name = (data.get("name") or data.get("product_name") or "").strip()
    if not name:
        raise ValueError("name is required")
    price = _price(data.get("price"))
    qty = _quantity(data.get("quantity") or data.get("qty") or 1)

    item = next((i for i in cart.items
                 if i.store == store and i.product_url == product_url and i.product_url), None)
    if item:
        item.quantity = int(item.quantity) + qty
        item.price = price
    else:
        item = CartItem(store=store, product_url=product_url, product_name=name, price=price, quantity=qty)
        cart.items.append(item)

    recalc_cart(cart, now)
    return item

def _find_item(cart: Cart, item_id: int) -> CartItem:
    item = next((i for i in cart.items if i.id == item_id), None)
    if not item:
        raise NotFoundError("item not found in this cart")
    return item

def update_item_quantity(cart: Cart, item_id: int, quantity, now: datetime | None = None) -> CartItem:
    item = _find_item(cart, item_id)
    item.quantity = _quantity(quantity)
    recalc_cart(cart, now)
    return item

def remove_item(cart: Cart, item_id: int, now: datetime | None = None) -> None:
    item = _find_item(cart, item_id)
    cart.items.remove(item)
    recalc_cart(cart, now)

def clear_cart(cart: Cart, now: datetime | None = None) -> None:
    # because of cascade="all, delete-orphan", clearing the lists deletes rows
    cart.items.clear()
    cart.coupons.clear()
    recalc_cart(cart, now)
