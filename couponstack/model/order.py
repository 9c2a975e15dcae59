from ..extensions import db
from ..utils.dates import isoformat, utcnow

class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(32), unique=True, index=True)  # e.g., "ORD-20251022-101500123"
    user_id = db.Column(db.Integer, nullable=True, index=True)
    status = db.Column(db.String(20), default="completed", index=True)
    currency = db.Column(db.String(8), nullable=False, default="SAR")

    # Money snapshot
    subtotal = db.Column(db.Numeric(12, 2))
    coupon_total = db.Column(db.Numeric(12, 2))
    total = db.Column(db.Numeric(12, 2))
    store_breakdown = db.Column(db.JSON)

    # Link back for audit/debug (not a FK constraint)
    cart_uuid = db.Column(db.String(36), index=True)

    created_at = db.Column(db.DateTime, default=utcnow, index=True)

    items = db.relationship(
        "OrderItem",
        backref="order",
        cascade="all, delete-orphan",
        lazy="selectin"
    )
    coupons = db.relationship(
        "OrderCoupon",
        backref="order",
        cascade="all, delete-orphan",
        lazy="selectin"
    )

    def as_api(self):
        return {
            "id": self.id,
            "code": self.code,
            "user_id": self.user_id,
            "status": self.status,
            "currency": self.currency,
            "money": {
                "subtotal": float(self.subtotal or 0),
                "coupon_total": float(self.coupon_total or 0),
                "total": float(self.total or 0),
            },
            "store_breakdown": self.store_breakdown or {},
            "items": [i.as_api() for i in self.items],
            "coupons": [c.as_api() for c in self.coupons],
            "created_at": isoformat(self.created_at),
            "cart_uuid": self.cart_uuid,
        }

class OrderItem(db.Model):
    __tablename__ = "order_items"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)

    store = db.Column(db.String(64))
    product_url = db.Column(db.String(1024))
    name = db.Column(db.String(255))
    unit_price = db.Column(db.Numeric(12, 2))
    quantity = db.Column(db.Integer, nullable=False)
    line_total = db.Column(db.Numeric(12, 2))

    def as_api(self):
        return {
            "store": self.store,
            "product_url": self.product_url,
            "name": self.name,
            "unit_price": float(self.unit_price or 0),
            "quantity": self.quantity,
            "line_total": float(self.line_total or 0),
        }

class OrderCoupon(db.Model):
    """A coupon redeemed by an order; counted for per-user usage limits."""
    __tablename__ = "order_coupons"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    coupon_id = db.Column(db.Integer, nullable=True, index=True)
    code = db.Column(db.String(64), nullable=False, index=True)
    discount_amount = db.Column(db.Numeric(12, 2))

    def as_api(self):
        return {
            "code": self.code,
            "coupon_id": self.coupon_id,
            "discount_amount": float(self.discount_amount or 0),
        }
