from decimal import Decimal

from couponstack.services.store_identity import (
    StoreResolver,
    first_matching_entry,
    normalize_domain,
    resolve_store,
    store_display_name,
    store_matches,
)
from couponstack.services.types import LineItem, LocalStore

SHOPS = (LocalStore(domain="myshop.com", name="My Shop"), LocalStore(domain="other.sa", enabled=False))


def _local(url):
    return LineItem(store="local", price=Decimal("10"), quantity=1, product_url=url)


class TestResolveStore:
    def test_merchant_tag_is_its_own_id(self):
        item = LineItem(store="amazon", price=Decimal("10"), quantity=1, product_url="https://amazon.sa/x")
        assert resolve_store(item, SHOPS) == "amazon"

    def test_local_item_resolves_to_matching_domain(self):
        assert resolve_store(_local("https://www.MyShop.com/p/1"), SHOPS) == "myshop.com"

    def test_disabled_local_store_is_ignored(self):
        assert resolve_store(_local("https://other.sa/p/1"), SHOPS) == "local"

    def test_local_item_without_url_stays_local(self):
        assert resolve_store(_local(None), SHOPS) == "local"

    def test_first_enabled_domain_wins(self):
        shops = (LocalStore(domain="shop.com"), LocalStore(domain="myshop.com"))
        assert resolve_store(_local("https://myshop.com/x"), shops) == "shop.com"


class TestStoreResolver:
    def test_caches_per_line(self):
        resolver = StoreResolver(SHOPS)
        item = _local("https://myshop.com/a")
        assert resolver(item) == "myshop.com"
        assert resolver(item) == "myshop.com"
        assert len(resolver._cache) == 1


class TestStoreMatches:
    def test_exact_tag(self):
        item = LineItem(store="noon", price=Decimal("1"), quantity=1)
        assert store_matches(item, "noon", "noon")
        assert not store_matches(item, "noon", "amazon")

    def test_domain_entry_matches_url(self):
        item = _local("https://myshop.com/p")
        assert store_matches(item, "myshop.com", "https://myshop.com/")

    def test_prefixed_local_entry(self):
        item = _local("https://myshop.com/p")
        assert store_matches(item, "myshop.com", "local_myshop.com")

    def test_first_matching_entry_keeps_list_order(self):
        item = _local("https://myshop.com/p")
        assert first_matching_entry(item, "myshop.com", ["amazon", "local", "myshop.com"]) == "local"
        assert first_matching_entry(item, "myshop.com", ["amazon"]) is None


class TestDisplayNames:
    def test_known_tag(self):
        assert store_display_name("amazon") == "Amazon"

    def test_local_store_name(self):
        assert store_display_name("myshop.com", SHOPS) == "My Shop"

    def test_unknown_domain_falls_back_to_host(self):
        assert store_display_name("https://cool.example.com/") == "cool"

    def test_normalize_domain(self):
        assert normalize_domain(" HTTPS://Shop.COM/ ") == "shop.com"
