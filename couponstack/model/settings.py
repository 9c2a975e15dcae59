# couponstack/model/settings.py
from sqlalchemy.sql import func
from ..extensions import db
from ..services.types import LocalStore

class LocalStoreSetting(db.Model):
    """A recognized local merchant, matched against product URLs by domain."""
    __tablename__ = "local_store"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    domain = db.Column(db.String(255), nullable=False, unique=True)
    enabled = db.Column(db.Boolean, nullable=False, default=True)
    position = db.Column(db.Integer, nullable=False, default=0)  # scan order
    created_at = db.Column(db.DateTime, server_default=func.now())

    def to_local_store(self) -> LocalStore:
        return LocalStore(domain=self.domain, enabled=bool(self.enabled), name=self.name)

    def as_api(self):
        return {
            "id": self.id,
            "name": self.name,
            "domain": self.domain,
            "enabled": self.enabled,
            "position": self.position,
        }
