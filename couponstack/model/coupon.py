# --- couponstack/model/coupon.py ---

from sqlalchemy.orm import validates
from sqlalchemy.sql import func
from ..extensions import db
from ..services.types import AppliedRef, CouponRule, normalize_code
from ..utils.dates import isoformat
from ..utils.money import D, to_float

class Coupon(db.Model):
    __tablename__ = "coupon"

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(64), unique=True, nullable=False, index=True)  # stored upper-cased
    name = db.Column(db.String(120), nullable=False)
    description = db.Column(db.Text, nullable=True)

    # "percentage" or "fixed"
    discount_type = db.Column(db.String(16), nullable=False, default="percentage")
    discount_value = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    min_order_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    max_discount_amount = db.Column(db.Numeric(12, 2), nullable=True)    # percentage cap
    applicable_stores = db.Column(db.JSON, nullable=False, default=list)  # [] = every store

    valid_from = db.Column(db.DateTime, nullable=True)
    valid_until = db.Column(db.DateTime, nullable=True)

    usage_limit = db.Column(db.Integer, nullable=True)          # global cap
    used_count = db.Column(db.Integer, nullable=False, default=0)
    usage_limit_per_user = db.Column(db.Integer, nullable=True, default=1)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    priority = db.Column(db.Integer, nullable=False, default=0)
    conditions = db.Column(db.JSON, nullable=True)  # reserved, not evaluated

    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())

    @validates("code")
    def _canonical_code(self, key, value):
        return normalize_code(value)

    def to_rule(self) -> CouponRule:
        return CouponRule(
            id=self.id,
            code=self.code,
            discount_type=self.discount_type,
            discount_value=D(self.discount_value),
            valid_from=self.valid_from,
            valid_until=self.valid_until,
            min_order_amount=D(self.min_order_amount),
            max_discount_amount=D(self.max_discount_amount) if self.max_discount_amount is not None else None,
            applicable_stores=tuple(self.applicable_stores or ()),
            usage_limit=self.usage_limit,
            used_count=int(self.used_count or 0),
            usage_limit_per_user=self.usage_limit_per_user,
            is_active=bool(self.is_active),
            priority=int(self.priority or 0),
            conditions=dict(self.conditions or {}),
        )

    def as_api(self):
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "description": self.description,
            "discount_type": self.discount_type,
            "discount_value": to_float(self.discount_value),
            "min_order_amount": to_float(self.min_order_amount),
            "max_discount_amount": to_float(self.max_discount_amount) if self.max_discount_amount is not None else None,
            "applicable_stores": list(self.applicable_stores or []),
            "valid_from": isoformat(self.valid_from),
            "valid_until": isoformat(self.valid_until),
            "usage_limit": self.usage_limit,
            "used_count": self.used_count,
            "usage_limit_per_user": self.usage_limit_per_user,
            "is_active": self.is_active,
            "priority": self.priority,
            "conditions": self.conditions or {},
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }


class CartCoupon(db.Model):
    """A coupon applied to one cart, snapshotted at apply time."""
    __tablename__ = "cart_coupon"

    id = db.Column(db.Integer, primary_key=True)
    cart_id = db.Column(db.Integer, db.ForeignKey("cart.id", ondelete="CASCADE"), index=True, nullable=False)
    coupon_id = db.Column(db.Integer, db.ForeignKey("coupon.id", ondelete="SET NULL"), index=True, nullable=True)
    code = db.Column(db.String(64), nullable=False)
    applied_at = db.Column(db.DateTime, nullable=False)
    discount_type = db.Column(db.String(16), nullable=True)
    applicable_stores = db.Column(db.JSON, nullable=False, default=list)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    cart = db.relationship("Cart", back_populates="coupons")
    coupon = db.relationship("Coupon")

    def to_ref(self) -> AppliedRef:
        return AppliedRef(
            id=self.id,
            code=self.code,
            coupon_id=self.coupon_id,
            discount_type=self.discount_type,
            applicable_stores=tuple(self.applicable_stores or ()),
            applied_at=self.applied_at,
            is_active=bool(self.is_active),
        )

    def as_api(self):
        return {
            "id": self.id,
            "code": self.code,
            "coupon_id": self.coupon_id,
            "applied_at": isoformat(self.applied_at),
            "discount_type": self.discount_type,
            "applicable_stores": list(self.applicable_stores or []),
            "is_active": self.is_active,
        }
