# couponstack/model/cart.py
from __future__ import annotations
import uuid as _uuid
from decimal import Decimal
from sqlalchemy.sql import func
from ..extensions import db
from ..services.discount_summary import DiscountSummary
from ..services.types import LineItem, cart_total
from ..utils.dates import isoformat
from ..utils.money import D, to_float
from .coupon import CartCoupon

class Cart(db.Model):
    __tablename__ = "cart"

    id = db.Column(db.Integer, primary_key=True)
    uuid = db.Column(db.String(36), unique=True, index=True, default=lambda: str(_uuid.uuid4()))
    user_id = db.Column(db.Integer, nullable=True, index=True)
    session_id = db.Column(db.String(64), nullable=True, index=True)
    status = db.Column(db.String(16), default="active", index=True)
    currency = db.Column(db.String(8), nullable=False, default="SAR")
    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())

    # written only by services.cart_service.recalc_cart
    discount_summary = db.Column(db.JSON, nullable=True)

    items = db.relationship(
        "CartItem",
        backref="cart",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="CartItem.id.asc()"
    )

    # application order = row order
    coupons = db.relationship(
        CartCoupon,
        back_populates="cart",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="CartCoupon.id.asc()",
    )

    # --------- engine snapshots ----------
    def lines(self) -> list[LineItem]:
        return [i.to_line() for i in self.items]

    def applied_refs(self):
        return [c.to_ref() for c in self.coupons]

    def total_dec(self) -> Decimal:
        return cart_total(self.lines())

    def summary(self) -> DiscountSummary:
        return DiscountSummary.from_api(self.discount_summary)

    def as_api(self):
        total = self.total_dec()
        summary = self.summary()
        return {
            "id": self.id,
            "uuid": self.uuid,
            "status": self.status,
            "currency": self.currency,
            "items": [i.as_api() for i in self.items],
            "coupons": [c.as_api() for c in self.coupons],
            "discount_summary": summary.as_api(),
            "totals": {
                "subtotal": to_float(total),
                "discount": to_float(summary.total_discount),
                "total": to_float(max(total - summary.total_discount, D(0))),
            },
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }


class CartItem(db.Model):
    __tablename__ = "cart_item"

    id = db.Column(db.Integer, primary_key=True)
    cart_id = db.Column(db.Integer, db.ForeignKey("cart.id"), nullable=False, index=True)

    # merchant tag ("amazon", "noon", ...) or "local" (resolved from product_url)
    store = db.Column(db.String(64), nullable=False, index=True)
    product_url = db.Column(db.String(1024), nullable=True)
    product_name = db.Column(db.String(255), nullable=False)
    price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    quantity = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())

    def unit_price_dec(self) -> Decimal:
        return D(self.price)

    def line_total_dec(self) -> Decimal:
        return self.unit_price_dec() * int(self.quantity or 0)

    def to_line(self) -> LineItem:
        return LineItem(
            store=self.store,
            price=self.unit_price_dec(),
            quantity=int(self.quantity or 0),
            product_url=self.product_url,
        )

    def as_api(self):
        return {
            "id": self.id,
            "store": self.store,
            "product_url": self.product_url,
            "name": self.product_name,
            "price": to_float(self.unit_price_dec()),
            "quantity": self.quantity,
            "line_total": to_float(self.line_total_dec()),
        }
