from decimal import Decimal

from couponstack.services.discount_summary import DiscountSummary, SummaryBuilder


class TestSummaryBuilder:
    def test_ignores_non_positive_amounts(self):
        b = SummaryBuilder()
        b.add("ZERO", 1, "fixed", (), Decimal("0"), {"amazon": Decimal("0")})
        assert b.build(Decimal("100")) == DiscountSummary.empty()

    def test_accumulates_breakdown(self):
        b = SummaryBuilder()
        b.add("A", 1, "fixed", (), Decimal("10"), {"amazon": Decimal("6"), "noon": Decimal("4")})
        b.add("B", 2, "percentage", ("noon",), Decimal("2"), {"noon": Decimal("2")})
        summary = b.build(Decimal("100"))
        assert summary.total_discount == Decimal("12.00")
        assert summary.coupons_used == 2
        assert summary.store_breakdown == {"amazon": Decimal("6"), "noon": Decimal("6")}
        assert b.remaining(Decimal("100")) == Decimal("88")

    def test_rounded_total_capped_at_cart_total(self):
        b = SummaryBuilder()
        b.add("A", 1, "fixed", (), Decimal("10.005"), {})
        assert b.build(Decimal("10.005")).total_discount == Decimal("10.00")


class TestSerialization:
    def test_as_api_uses_floats(self):
        b = SummaryBuilder()
        b.add("A", 1, "fixed", ("amazon",), Decimal("7.5"), {"amazon": Decimal("7.5")})
        data = b.build(Decimal("50")).as_api()
        assert data == {
            "total_discount": 7.5,
            "coupons_used": 1,
            "store_breakdown": {"amazon": 7.5},
            "applied_coupons": [{
                "code": "A",
                "coupon_id": 1,
                "discount_amount": 7.5,
                "discount_type": "fixed",
                "applicable_stores": ["amazon"],
            }],
        }

    def test_from_api_restores_stored_summary(self):
        data = {"total_discount": 7.5, "coupons_used": 1, "store_breakdown": {"amazon": 7.5},
                "applied_coupons": [{"code": "A", "coupon_id": 1, "discount_amount": 7.5,
                                     "discount_type": "fixed", "applicable_stores": []}]}
        summary = DiscountSummary.from_api(data)
        assert summary.total_discount == Decimal("7.5")
        assert summary.applied_coupons[0].code == "A"

    def test_from_api_empty(self):
        assert DiscountSummary.from_api(None) == DiscountSummary.empty()
