# couponstack/services/coupon_service.py
from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from sqlalchemy import or_
from ..errors import ConflictError
from ..extensions import db
from ..model import CartCoupon, Coupon, OrderCoupon
from ..utils.dates import parse_iso8601, utcnow
from ..utils.money import D
from .types import DISCOUNT_TYPES, PERCENTAGE, normalize_code

# ---- catalog lookups --------------------------------------------------------

def find_by_code(code) -> Coupon | None:
    code = normalize_code(code)
    if not code:
        return None
    return Coupon.query.filter(Coupon.code == code).first()

def find_by_id(coupon_id) -> Coupon | None:
    return db.session.get(Coupon, coupon_id)

# ---- payload parsing --------------------------------------------------------

def _decimal(data, key, *, required=False, default=None) -> Decimal | None:
    raw = data.get(key)
    if raw is None or raw == "":
        if required:
            raise ValueError(f"{key} is required")
        return default
    try:
        value = D(raw)
    except ArithmeticError:
        raise ValueError(f"{key} must be numeric")
    if not value.is_finite():
        raise ValueError(f"{key} must be a finite number")
    if value < 0:
        raise ValueError(f"{key} must be >= 0")
    return value

def _int(data, key, *, default=None) -> int | None:
    raw = data.get(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValueError(f"{key} must be an integer")

def _datetime(data, key, *, required=False) -> datetime | None:
    raw = data.get(key)
    if not raw:
        if required:
            raise ValueError(f"{key} is required")
        return None
    dt = parse_iso8601(raw)
    if dt is None:
        raise ValueError(f"Invalid datetime format for {key}")
    return dt

def _stores(raw) -> list[str]:
    if not raw:
        return []
    if isinstance(raw, str):
        raw = raw.split(",")
    if not isinstance(raw, (list, tuple)):
        raise ValueError("applicable_stores must be a list")
    return [str(s).strip() for s in raw if str(s).strip()]

def _discount(discount_type, value):
    if discount_type not in DISCOUNT_TYPES:
        raise ValueError("discount_type must be 'percentage' or 'fixed'")
    if value <= 0:
        raise ValueError("discount_value must be > 0")
    if discount_type == PERCENTAGE and value > 100:
        raise ValueError("percentage discount must be <= 100")

def _check_unique(code: str, exclude_id=None):
    q = Coupon.query.filter(Coupon.code == code)
    if exclude_id is not None:
        q = q.filter(Coupon.id != exclude_id)
    if q.first():
        raise ConflictError("Coupon code already exists")

# ---- admin operations -------------------------------------------------------

def create_coupon_from_payload(data: dict, now: datetime | None = None) -> Coupon:
    code = normalize_code(data.get("code"))
    name = (data.get("name") or "").strip()
    discount_type = (data.get("discount_type") or "").lower().strip()
    value = _decimal(data, "discount_value", required=True)

    if not code:
        raise ValueError("code is required")
    if not name:
        raise ValueError("name is required")
    _discount(discount_type, value)

    valid_from = _datetime(data, "valid_from") or now or utcnow()
    valid_until = _datetime(data, "valid_until", required=True)
    if valid_until < valid_from:
        raise ValueError("valid_until must be after valid_from")

    _check_unique(code)

    c = Coupon(
        code=code,
        name=name,
        description=data.get("description"),
        discount_type=discount_type,
        discount_value=value,
        min_order_amount=_decimal(data, "min_order_amount", default=D(0)),
        max_discount_amount=_decimal(data, "max_discount_amount"),
        applicable_stores=_stores(data.get("applicable_stores")),
        valid_from=valid_from,
        valid_until=valid_until,
        # 0 means "no global cap"
        usage_limit=_int(data, "usage_limit") or None,
        used_count=0,
        usage_limit_per_user=_int(data, "usage_limit_per_user", default=1),
        is_active=bool(data.get("is_active", True)),
        priority=_int(data, "priority", default=0),
        conditions=data.get("conditions") or {},
    )
    db.session.add(c)
    db.session.flush()
    return c

_DECIMAL_FIELDS = ("discount_value", "min_order_amount", "max_discount_amount")
_INT_FIELDS = ("usage_limit", "usage_limit_per_user", "priority")

def update_coupon_from_payload(c: Coupon, data: dict) -> Coupon:
    if "code" in data:
        code = normalize_code(data.get("code"))
        if not code:
            raise ValueError("code cannot be empty")
        _check_unique(code, exclude_id=c.id)
        c.code = code
    if "name" in data:
        name = (data.get("name") or "").strip()
        if not name:
            raise ValueError("name cannot be empty")
        c.name = name
    if "description" in data:
        c.description = data.get("description")
    if "discount_type" in data:
        c.discount_type = (data.get("discount_type") or "").lower().strip()
    for key in _DECIMAL_FIELDS:
        if key in data:
            setattr(c, key, _decimal(data, key, default=D(0) if key != "max_discount_amount" else None))
    for key in _INT_FIELDS:
        if key in data:
            setattr(c, key, _int(data, key))
    if "usage_limit" in data and not c.usage_limit:
        c.usage_limit = None
    if "applicable_stores" in data:
        c.applicable_stores = _stores(data.get("applicable_stores"))
    if "valid_from" in data:
        c.valid_from = _datetime(data, "valid_from")
    if "valid_until" in data:
        c.valid_until = _datetime(data, "valid_until", required=True)
    if "is_active" in data:
        c.is_active = bool(data.get("is_active"))
    if "conditions" in data:
        c.conditions = data.get("conditions") or {}

    _discount(c.discount_type, D(c.discount_value))
    if c.valid_from and c.valid_until and c.valid_until < c.valid_from:
        raise ValueError("valid_until must be after valid_from")
    db.session.flush()
    return c

def toggle_coupon_status(c: Coupon) -> Coupon:
    c.is_active = not c.is_active
    db.session.flush()
    return c

def delete_coupon(c: Coupon) -> None:
    # unlink before deleting: SQLite neither enforces ON DELETE SET NULL nor
    # guarantees the id is not handed to the next coupon
    for model in (CartCoupon, OrderCoupon):
        model.query.filter(model.coupon_id == c.id).update(
            {model.coupon_id: None}, synchronize_session="fetch"
        )
    db.session.delete(c)
    db.session.flush()

def list_coupons(status: str | None = None, search: str | None = None, now: datetime | None = None):
    """status: all | active | inactive | expired; search matches code, name, description."""
    now = now or utcnow()
    q = Coupon.query
    if status == "active":
        q = q.filter(Coupon.is_active.is_(True), or_(Coupon.valid_until.is_(None), Coupon.valid_until >= now))
    elif status == "inactive":
        q = q.filter(Coupon.is_active.is_(False))
    elif status == "expired":
        q = q.filter(Coupon.valid_until < now)
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(or_(Coupon.code.ilike(like), Coupon.name.ilike(like), Coupon.description.ilike(like)))
    return q.order_by(Coupon.created_at.desc(), Coupon.id.desc()).all()

def active_coupons(now: datetime | None = None):
    now = now or utcnow()
    return (
        Coupon.query
        .filter(Coupon.is_active.is_(True))
        .filter(or_(Coupon.valid_from.is_(None), Coupon.valid_from <= now))
        .filter(or_(Coupon.valid_until.is_(None), Coupon.valid_until >= now))
        .order_by(Coupon.priority.desc(), Coupon.created_at.desc(), Coupon.id.desc())
        .all()
    )
