# couponstack/services/store_identity.py
from __future__ import annotations
import re

from .types import LOCAL_STORE, LineItem, LocalStore

_SCHEME = re.compile(r"^https?://")

KNOWN_STORE_NAMES = {
    "amazon": "Amazon",
    "noon": "Noon",
    "shein": "Shein",
    "aliexpress": "AliExpress",
    "temu": "Temu",
    "iherb": "iHerb",
    "niceonesa": "Nice One",
    "namshi": "Namshi",
    "trendyol": "Trendyol",
    "other": "Other stores",
}


def normalize_domain(value: str | None) -> str:
    d = _SCHEME.sub("", (value or "").strip().lower())
    if d.endswith("/"):
        d = d[:-1]
    return d


def _looks_like_domain(entry: str) -> bool:
    return "." in entry or entry.lower().startswith("http")


def resolve_store(item: LineItem, local_stores) -> str:
    """Canonical store id for one line: the merchant tag, or a local domain."""
    if item.store != LOCAL_STORE or not item.product_url:
        return item.store
    url = item.product_url.lower()
    for ls in local_stores:
        if not ls.enabled or not ls.domain:
            continue
        domain = normalize_domain(ls.domain)
        if domain and domain in url:
            return domain
    return item.store


class StoreResolver:
    """Resolves each distinct line once per calculation pass."""

    def __init__(self, local_stores=()):
        self.local_stores: tuple[LocalStore, ...] = tuple(local_stores)
        self._cache: dict[tuple[str, str | None], str] = {}

    def __call__(self, item: LineItem) -> str:
        key = (item.store, item.product_url)
        if key not in self._cache:
            self._cache[key] = resolve_store(item, self.local_stores)
        return self._cache[key]


def store_matches(item: LineItem, resolved_id: str, entry: str) -> bool:
    if entry == resolved_id or entry == item.store:
        return True
    if item.store != LOCAL_STORE or not item.product_url:
        return False
    url = item.product_url.lower()
    if _looks_like_domain(entry):
        domain = normalize_domain(entry)
        return bool(domain) and domain in url
    if entry.startswith("local_"):
        domain = entry[len("local_"):].lower()
        return bool(domain) and domain in url
    return False


def first_matching_entry(item: LineItem, resolved_id: str, entries) -> str | None:
    for entry in entries:
        if store_matches(item, resolved_id, entry):
            return entry
    return None


def store_display_name(entry: str, local_stores=()) -> str:
    if entry in KNOWN_STORE_NAMES:
        return KNOWN_STORE_NAMES[entry]
    wanted = normalize_domain(entry)
    for ls in local_stores:
        domain = normalize_domain(ls.domain)
        if domain and wanted and (domain in wanted or wanted in domain):
            return ls.name or domain
    host = wanted.split("/")[0]
    return host.split(".")[0] or host or entry


def store_display_names(entries, local_stores=()) -> list[str]:
    return [store_display_name(e, local_stores) for e in entries]
