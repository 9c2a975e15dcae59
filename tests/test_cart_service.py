from datetime import datetime
from decimal import Decimal

import pytest

from couponstack.errors import NotFoundError
from couponstack.services.cart_service import (
    add_item,
    clear_cart,
    get_or_create_cart,
    remove_item,
    update_item_quantity,
)
from couponstack.services.coupon_application import apply_coupon

NOW = datetime(2025, 6, 15, 12, 0)


class TestCartLookup:
    def test_new_cart_gets_uuid_and_currency(self, ctx):
        cart = get_or_create_cart()
        assert cart.uuid
        assert cart.currency == "SAR"

    def test_found_by_uuid(self, ctx):
        cart = get_or_create_cart()
        assert get_or_create_cart(cart_uuid=cart.uuid).id == cart.id

    def test_unknown_uuid_creates_fresh_cart(self, ctx):
        cart = get_or_create_cart(cart_uuid="does-not-exist")
        assert cart.uuid != "does-not-exist"

    def test_found_by_user(self, ctx):
        cart = get_or_create_cart(user_id=3)
        assert get_or_create_cart(user_id=3).id == cart.id


class TestItems:
    def test_add_merges_same_product(self, ctx):
        cart = get_or_create_cart()
        data = {"store": "Amazon", "product_url": "https://amazon.sa/x", "name": "x", "price": "10", "quantity": 1}
        add_item(cart, data, now=NOW)
        add_item(cart, {**data, "quantity": 2}, now=NOW)
        assert len(cart.items) == 1
        assert cart.items[0].quantity == 3
        assert cart.items[0].store == "amazon"

    @pytest.mark.parametrize("data", [
        {"name": "x", "price": "1"},
        {"store": "amazon", "price": "1"},
        {"store": "amazon", "name": "x"},
        {"store": "amazon", "name": "x", "price": "-1"},
        {"store": "amazon", "name": "x", "price": "NaN"},
        {"store": "amazon", "name": "x", "price": "Infinity"},
        {"store": "amazon", "name": "x", "price": "1", "quantity": 0},
        {"store": "local", "name": "x", "price": "1"},
    ])
    def test_add_rejects_bad_lines(self, ctx, data):
        with pytest.raises(ValueError):
            add_item(get_or_create_cart(), data, now=NOW)

    def test_quantity_change_rescales_discount(self, ctx, make_coupon):
        make_coupon("TEN")
        cart = get_or_create_cart()
        item = add_item(cart, {"store": "amazon", "name": "x", "price": "50"}, now=NOW)
        apply_coupon(cart, "TEN", now=NOW)
        assert cart.summary().total_discount == Decimal("5.00")
        update_item_quantity(cart, item.id, 4, now=NOW)
        assert cart.summary().total_discount == Decimal("20.00")

    def test_missing_item(self, ctx):
        cart = get_or_create_cart()
        with pytest.raises(NotFoundError):
            remove_item(cart, 999, now=NOW)
        with pytest.raises(NotFoundError):
            update_item_quantity(cart, 999, 1, now=NOW)

    def test_clear_drops_items_and_coupons(self, ctx, make_coupon):
        make_coupon("TEN")
        cart = get_or_create_cart()
        add_item(cart, {"store": "amazon", "name": "x", "price": "50"}, now=NOW)
        apply_coupon(cart, "TEN", now=NOW)
        clear_cart(cart, now=NOW)
        assert cart.items == [] and cart.coupons == []
        assert cart.summary().total_discount == Decimal("0")
