from datetime import datetime
from decimal import Decimal

import pytest

from couponstack.errors import ConflictError
from couponstack.services.coupon_service import (
    active_coupons,
    create_coupon_from_payload,
    find_by_code,
    list_coupons,
    toggle_coupon_status,
    update_coupon_from_payload,
)

NOW = datetime(2025, 6, 15, 12, 0)

PAYLOAD = {
    "code": " summer25 ",
    "name": "Summer",
    "discount_type": "percentage",
    "discount_value": 25,
    "valid_until": "2025-12-31T23:59:59Z",
}


class TestCreateCoupon:
    def test_code_is_canonical(self, ctx):
        c = create_coupon_from_payload(dict(PAYLOAD), now=NOW)
        assert c.code == "SUMMER25"
        assert find_by_code("Summer25").id == c.id
        assert c.valid_from == NOW

    def test_duplicate_code_conflicts(self, ctx):
        create_coupon_from_payload(dict(PAYLOAD), now=NOW)
        with pytest.raises(ConflictError):
            create_coupon_from_payload({**PAYLOAD, "code": "SUMMER25"}, now=NOW)

    @pytest.mark.parametrize("overrides", [
        {"discount_type": "bogo"},
        {"discount_value": 0},
        {"discount_value": 150},
        {"discount_value": "NaN"},
        {"min_order_amount": "NaN"},
        {"valid_until": "not-a-date"},
        {"valid_until": None},
        {"name": ""},
    ])
    def test_rejects_bad_payload(self, ctx, overrides):
        with pytest.raises(ValueError):
            create_coupon_from_payload({**PAYLOAD, **overrides}, now=NOW)

    def test_zero_usage_limit_means_unlimited(self, ctx):
        c = create_coupon_from_payload({**PAYLOAD, "usage_limit": 0}, now=NOW)
        assert c.usage_limit is None

    def test_stores_from_comma_list(self, ctx):
        c = create_coupon_from_payload({**PAYLOAD, "applicable_stores": "amazon, noon"}, now=NOW)
        assert c.applicable_stores == ["amazon", "noon"]


class TestUpdateCoupon:
    def test_partial_update(self, ctx, make_coupon):
        c = make_coupon("EDIT")
        update_coupon_from_payload(c, {"discount_value": "15", "priority": 3})
        assert c.discount_value == Decimal("15")
        assert c.priority == 3

    def test_rename_to_existing_code(self, ctx, make_coupon):
        make_coupon("TAKEN")
        c = make_coupon("MINE")
        with pytest.raises(ConflictError):
            update_coupon_from_payload(c, {"code": "taken"})

    def test_toggle(self, ctx, make_coupon):
        c = make_coupon("FLIP")
        assert toggle_coupon_status(c).is_active is False


class TestListing:
    def test_status_filters(self, ctx, make_coupon):
        make_coupon("LIVE")
        make_coupon("PAUSED", is_active=False)
        make_coupon("OLD", valid_until=datetime(2025, 3, 1))
        codes = lambda rows: sorted(c.code for c in rows)
        assert codes(list_coupons("active", now=NOW)) == ["LIVE"]
        assert codes(list_coupons("inactive", now=NOW)) == ["PAUSED"]
        assert codes(list_coupons("expired", now=NOW)) == ["OLD"]
        assert codes(list_coupons(search="liv", now=NOW)) == ["LIVE"]

    def test_active_sorted_by_priority(self, ctx, make_coupon):
        make_coupon("LOW", priority=1)
        make_coupon("HIGH", priority=9)
        make_coupon("LATER", valid_from=datetime(2025, 9, 1))
        assert [c.code for c in active_coupons(NOW)] == ["HIGH", "LOW"]
