# couponstack/coupon/routes.py
from __future__ import annotations
from flask import request
from ..errors import NotFoundError
from ..extensions import db
from ..services.cart_service import resolve_cart
from ..services.coupon_application import apply_coupon, remove_coupon, validate_code
from ..services.coupon_service import (
    active_coupons,
    create_coupon_from_payload,
    delete_coupon,
    find_by_id,
    list_coupons,
    toggle_coupon_status,
    update_coupon_from_payload,
)
from ..services.coupon_validator import Reason
from ..utils.api import cart_ok, err, ok
from ..utils.decorators import json_body, with_requester
from . import bp

def _get_or_404(coupon_id: int):
    c = find_by_id(coupon_id)
    if not c:
        raise NotFoundError("coupon not found")
    return c

def _rejection(verdict, coupon=None):
    status = 404 if verdict.reason is Reason.NOT_FOUND else 400
    data = verdict.as_api()
    if coupon is not None:
        data["code"] = coupon.code
    return err(verdict.message, status, data)

# ---- admin catalog ----------------------------------------------------------

@bp.post("")
def create_coupon():
    c = create_coupon_from_payload(json_body())
    db.session.commit()
    return ok("Coupon created", c.as_api(), 201)

@bp.get("")
def list_all():
    """
    Query params:
      - status=all|active|inactive|expired
      - search=text (code, name, description)
    """
    status = (request.args.get("status") or "all").lower()
    if status not in ("all", "active", "inactive", "expired"):
        return err("status must be one of all, active, inactive, expired", 422)
    rows = list_coupons(status=status, search=request.args.get("search"))
    return ok("coupons", [c.as_api() for c in rows])

@bp.get("/active")
def list_active():
    return ok("active coupons", [c.as_api() for c in active_coupons()])

@bp.get("/<int:coupon_id>")
def get_coupon(coupon_id: int):
    return ok("coupon", _get_or_404(coupon_id).as_api())

@bp.put("/<int:coupon_id>")
@bp.patch("/<int:coupon_id>")
def update_coupon(coupon_id: int):
    c = update_coupon_from_payload(_get_or_404(coupon_id), json_body())
    db.session.commit()
    return ok("Coupon updated", c.as_api())

@bp.patch("/<int:coupon_id>/toggle-status")
def toggle_status(coupon_id: int):
    c = toggle_coupon_status(_get_or_404(coupon_id))
    db.session.commit()
    return ok("Coupon activated" if c.is_active else "Coupon deactivated", c.as_api())

@bp.delete("/<int:coupon_id>")
def remove(coupon_id: int):
    delete_coupon(_get_or_404(coupon_id))
    db.session.commit()
    return ok("Coupon deleted", {"id": coupon_id})

# ---- shopper side -----------------------------------------------------------

@bp.post("/validate")
@with_requester
def validate(user_id=None):
    """Checks a code without a cart: existence, activity, window and usage caps."""
    code = json_body().get("code")
    if not code:
        return err("code is required", 422)
    verdict, coupon = validate_code(code, user_id=user_id)
    if not verdict.accepted:
        return _rejection(verdict, coupon)
    return ok(verdict.message, {**verdict.as_api(), "coupon": coupon.as_api()})

@bp.post("/apply")
@with_requester
def apply(user_id=None):
    code = json_body().get("code")
    if not code:
        return err("code is required", 422)
    cart = resolve_cart(request.headers, user_id)
    outcome = apply_coupon(cart, code, user_id=user_id)
    if not outcome.accepted:
        # the cart may have just been created; keep it
        db.session.commit()
        r = _rejection(outcome.verdict, outcome.coupon)
        r.headers["X-Cart-Id"] = cart.uuid
        return r
    db.session.commit()
    return cart_ok("Coupon applied", cart)

@bp.delete("/remove/<ref>")
@with_requester
def remove_from_cart(ref: str, user_id=None):
    cart = resolve_cart(request.headers, user_id)
    remove_coupon(cart, ref)
    db.session.commit()
    return cart_ok("Coupon removed", cart)
