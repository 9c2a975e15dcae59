# ------ couponstack/model/__init__.py ------

from .coupon import Coupon, CartCoupon
from .cart import Cart, CartItem
from .settings import LocalStoreSetting
from .order import Order, OrderItem, OrderCoupon

__all__ = [
    "Coupon",
    "CartCoupon",
    "Cart",
    "CartItem",
    "LocalStoreSetting",
    "Order",
    "OrderItem",
    "OrderCoupon",
]
