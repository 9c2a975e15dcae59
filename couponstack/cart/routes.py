# couponstack/cart/routes.py
from __future__ import annotations
from flask import request
from ..extensions import db
from ..services import cart_service
from ..services.coupon_application import set_coupon_active
from ..services.order_service import place_order
from ..utils.api import cart_ok, err, ok
from ..utils.decorators import json_body, with_requester
from . import bp

@bp.get("")
@with_requester
def get_cart(user_id=None):
    cart = cart_service.resolve_cart(request.headers, user_id)
    db.session.commit()
    return cart_ok("cart", cart)

@bp.get("/coupons")
@with_requester
def list_coupons(user_id=None):
    cart = cart_service.resolve_cart(request.headers, user_id)
    db.session.commit()
    return cart_ok("cart coupons", cart, {
        "coupons": [c.as_api() for c in cart.coupons],
        "discount_summary": cart.summary().as_api(),
    })

@bp.post("/items")
@with_requester
def add_item(user_id=None):
    """
    Body: { "store", "product_url"?, "name", "price", "quantity"? }
    """
    cart = cart_service.resolve_cart(request.headers, user_id)
    cart_service.add_item(cart, json_body())
    db.session.commit()
    return cart_ok("Item added", cart, status=201)

@bp.put("/items/<int:item_id>")
@bp.patch("/items/<int:item_id>")
@with_requester
def update_item(item_id: int, user_id=None):
    data = json_body()
    if "quantity" not in data and "qty" not in data:
        return err("quantity is required", 422)
    cart = cart_service.resolve_cart(request.headers, user_id)
    cart_service.update_item_quantity(cart, item_id, data.get("quantity", data.get("qty")))
    db.session.commit()
    return cart_ok("Item updated", cart)

@bp.delete("/items/<int:item_id>")
@with_requester
def remove_item(item_id: int, user_id=None):
    cart = cart_service.resolve_cart(request.headers, user_id)
    cart_service.remove_item(cart, item_id)
    db.session.commit()
    return cart_ok("Item removed", cart)

@bp.delete("/items")
@with_requester
def clear_items(user_id=None):
    cart = cart_service.resolve_cart(request.headers, user_id)
    cart_service.clear_cart(cart)
    db.session.commit()
    return cart_ok("Cart cleared", cart)

@bp.patch("/coupons/<ref>")
@with_requester
def toggle_coupon(ref: str, user_id=None):
    """Body: { "is_active": bool }. Switches an applied coupon on or off."""
    data = json_body()
    if "is_active" not in data:
        return err("is_active is required", 422)
    cart = cart_service.resolve_cart(request.headers, user_id)
    set_coupon_active(cart, ref, bool(data.get("is_active")))
    db.session.commit()
    return cart_ok("Coupon updated", cart)

@bp.post("/checkout")
@with_requester
def checkout(user_id=None):
    cart = cart_service.resolve_cart(request.headers, user_id)
    order = place_order(cart, user_id=user_id)
    db.session.commit()
    return ok("Order placed", order.as_api(), 201)
