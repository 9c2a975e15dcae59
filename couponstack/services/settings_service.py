# couponstack/services/settings_service.py
from __future__ import annotations
from ..extensions import db
from ..model import LocalStoreSetting
from .store_identity import normalize_domain
from .types import LocalStore

def load_local_stores() -> list[LocalStore]:
    rows = LocalStoreSetting.query.order_by(LocalStoreSetting.position.asc(), LocalStoreSetting.id.asc()).all()
    return [r.to_local_store() for r in rows]

def _clean_domain(value) -> str:
    domain = normalize_domain(value)
    if not domain or "." not in domain:
        raise ValueError("domain must look like 'shop.example.com'")
    return domain

def create_local_store(data: dict) -> LocalStoreSetting:
    name = (data.get("name") or "").strip()
    if not name:
        raise ValueError("name is required")
    domain = _clean_domain(data.get("domain"))
    if LocalStoreSetting.query.filter_by(domain=domain).first():
        raise ValueError(f"local store {domain} already exists")

    position = data.get("position")
    if position is None:
        position = (db.session.query(db.func.max(LocalStoreSetting.position)).scalar() or 0) + 1

    store = LocalStoreSetting(
        name=name,
        domain=domain,
        enabled=bool(data.get("enabled", True)),
        position=int(position),
    )
    db.session.add(store)
    db.session.flush()
    return store

def update_local_store(store: LocalStoreSetting, data: dict) -> LocalStoreSetting:
    if "name" in data:
        name = (data.get("name") or "").strip()
        if not name:
            raise ValueError("name cannot be empty")
        store.name = name
    if "domain" in data:
        store.domain = _clean_domain(data.get("domain"))
    if "enabled" in data:
        store.enabled = bool(data.get("enabled"))
    if "position" in data:
        store.position = int(data.get("position") or 0)
    db.session.flush()
    return store
