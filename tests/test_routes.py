from datetime import datetime, timedelta, timezone

from flask_jwt_extended import create_access_token

FUTURE = (datetime.now(timezone.utc) + timedelta(days=30)).strftime("%Y-%m-%dT%H:%M:%SZ")


def _create_coupon(client, code="TEN", **kw):
    body = {"code": code, "name": code.title(), "discount_type": "percentage",
            "discount_value": 10, "valid_until": FUTURE, **kw}
    r = client.post("/coupons", json=body)
    assert r.status_code == 201, r.get_json()
    return r.get_json()["data"]


def _new_cart(client, price=100, store="amazon", url=None):
    r = client.post("/cart/items", json={"store": store, "name": "thing", "price": price, "product_url": url})
    assert r.status_code == 201, r.get_json()
    return r.headers["X-Cart-Id"]


class TestHealth:
    def test_root(self, client):
        assert client.get("/").get_json()["ok"] is True


class TestCouponAdmin:
    def test_crud(self, client):
        created = _create_coupon(client, "crud")
        assert created["code"] == "CRUD"

        r = client.patch(f"/coupons/{created['id']}", json={"priority": 4})
        assert r.get_json()["data"]["priority"] == 4

        r = client.patch(f"/coupons/{created['id']}/toggle-status")
        assert r.get_json()["data"]["is_active"] is False

        assert len(client.get("/coupons?status=inactive").get_json()["data"]) == 1
        assert client.get("/coupons/active").get_json()["data"] == []

        assert client.delete(f"/coupons/{created['id']}").status_code == 200
        assert client.get(f"/coupons/{created['id']}").status_code == 404

    def test_duplicate_is_409(self, client):
        _create_coupon(client, "DUP")
        r = client.post("/coupons", json={"code": "dup", "name": "x", "discount_type": "fixed",
                                          "discount_value": 5, "valid_until": FUTURE})
        assert r.status_code == 409

    def test_bad_payload_is_422(self, client):
        r = client.post("/coupons", json={"code": "X", "name": "x", "discount_type": "bogus",
                                          "discount_value": 5, "valid_until": FUTURE})
        assert r.status_code == 422
        assert r.get_json()["status"] is False

    def test_non_finite_value_is_422(self, client):
        r = client.post("/coupons", json={"code": "NAN", "name": "x", "discount_type": "fixed",
                                          "discount_value": "NaN", "valid_until": FUTURE})
        assert r.status_code == 422

    def test_bad_status_filter(self, client):
        assert client.get("/coupons?status=weird").status_code == 422


class TestApplyFlow:
    def test_apply_remove(self, client):
        _create_coupon(client, "TEN")
        cart_id = _new_cart(client)
        headers = {"X-Cart-Id": cart_id}

        r = client.post("/coupons/apply", json={"code": "ten"}, headers=headers)
        assert r.status_code == 200
        data = r.get_json()["data"]
        assert data["discount_summary"]["total_discount"] == 10.0
        assert data["totals"] == {"subtotal": 100.0, "discount": 10.0, "total": 90.0}

        r = client.post("/coupons/apply", json={"code": "TEN"}, headers=headers)
        assert r.status_code == 400
        assert r.get_json()["data"]["reason"] == "ALREADY_APPLIED"

        r = client.delete("/coupons/remove/TEN", headers=headers)
        assert r.get_json()["data"]["discount_summary"]["total_discount"] == 0.0

    def test_unknown_code_is_404(self, client):
        cart_id = _new_cart(client)
        r = client.post("/coupons/apply", json={"code": "NOPE"}, headers={"X-Cart-Id": cart_id})
        assert r.status_code == 404
        assert r.get_json()["data"]["reason"] == "NOT_FOUND"

    def test_store_rejection_names_stores(self, client):
        _create_coupon(client, "NOON", applicable_stores=["noon"])
        cart_id = _new_cart(client)
        r = client.post("/coupons/apply", json={"code": "NOON"}, headers={"X-Cart-Id": cart_id})
        body = r.get_json()
        assert r.status_code == 400
        assert body["data"]["reason"] == "NO_MATCHING_STORE"
        assert body["data"]["applicable_stores"] == ["Noon"]

    def test_toggle_on_cart(self, client):
        _create_coupon(client, "TEN")
        headers = {"X-Cart-Id": _new_cart(client)}
        client.post("/coupons/apply", json={"code": "TEN"}, headers=headers)
        r = client.patch("/cart/coupons/TEN", json={"is_active": False}, headers=headers)
        assert r.get_json()["data"]["totals"]["discount"] == 0.0
        assert client.patch("/cart/coupons/ZZZ", json={"is_active": True}, headers=headers).status_code == 404

    def test_validate_without_cart(self, client):
        _create_coupon(client, "TEN")
        r = client.post("/coupons/validate", json={"code": "ten"})
        assert r.status_code == 200
        assert r.get_json()["data"]["accepted"] is True
        assert client.post("/coupons/validate", json={}).status_code == 422


class TestLocalStores:
    def test_local_store_coupon(self, client):
        r = client.post("/settings/local-stores", json={"name": "Shop", "domain": "https://Shop.Example.com/"})
        assert r.status_code == 201
        assert r.get_json()["data"]["domain"] == "shop.example.com"
        assert client.post("/settings/local-stores", json={"name": "Dup", "domain": "shop.example.com"}).status_code == 422

        _create_coupon(client, "LOCAL", applicable_stores=["shop.example.com"])
        headers = {"X-Cart-Id": _new_cart(client, 200, "local", "https://shop.example.com/p/1")}
        client.post("/cart/items", json={"store": "amazon", "name": "other", "price": 100}, headers=headers)
        r = client.post("/coupons/apply", json={"code": "LOCAL"}, headers=headers)
        summary = r.get_json()["data"]["discount_summary"]
        assert summary["total_discount"] == 20.0
        assert summary["store_breakdown"] == {"shop.example.com": 20.0}


class TestCheckout:
    def test_checkout_records_redemption(self, app, client):
        _create_coupon(client, "ONCE", usage_limit_per_user=1)
        with app.app_context():
            token = create_access_token(identity="42")
        auth = {"Authorization": f"Bearer {token}"}

        headers = {**auth, "X-Cart-Id": _new_cart(client)}
        assert client.post("/coupons/apply", json={"code": "ONCE"}, headers=headers).status_code == 200
        r = client.post("/cart/checkout", headers=headers)
        assert r.status_code == 201
        order = r.get_json()["data"]
        assert order["money"] == {"subtotal": 100.0, "coupon_total": 10.0, "total": 90.0}
        assert order["user_id"] == 42

        r = client.post("/coupons/validate", json={"code": "ONCE"}, headers=auth)
        assert r.get_json()["data"]["reason"] == "PER_USER_LIMIT_REACHED"

        orders = client.get("/orders", headers=auth).get_json()["data"]
        assert orders["total"] == 1
        assert client.get(f"/orders/{order['id']}").status_code == 200

    def test_non_finite_price_is_422(self, client):
        r = client.post("/cart/items", json={"store": "amazon", "name": "x", "price": "NaN"})
        assert r.status_code == 422

    def test_checkout_empty_cart(self, client):
        assert client.post("/cart/checkout").status_code == 422
