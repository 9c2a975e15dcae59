# couponstack/utils/dates.py
from __future__ import annotations
from datetime import datetime, timezone

def utcnow() -> datetime:
    # naive UTC, matching what the models store
    return datetime.now(timezone.utc).replace(tzinfo=None)

def parse_iso8601(s: str | None) -> datetime | None:
    if not s or not isinstance(s, str):
        return None
    s = s.strip()
    # support trailing 'Z' (UTC)
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        return None
    if dt.tzinfo:
        return dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt

def isoformat(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None
