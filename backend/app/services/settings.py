"""Admin site settings stored as one JSON document."""
import copy
from datetime import datetime
from typing import Any, Dict
from sqlmodel import Session, select
from app.models.site_settings import SiteSettings

DEFAULT_SETTINGS: Dict[str, Any] = {
    "general": {
        "site_name": "UniQverse",
        "site_description": "Your Ultimate E-commerce Destination",
        "support_email": "support@uniqverse.com",
        "currency": "USD",
    },
    "notifications": {
        "email_notifications": True,
        "order_updates": True,
        "vendor_applications": True,
    },
    "security": {
        "allow_registration": True,
        "maintenance_mode": False,
        "session_days": 7,
    },
    "performance": {
        "cache_enabled": True,
        "auto_backup": True,
    },
}


def deep_merge(base: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return a new dict with `updates` merged into `base`.

    Nested dicts are merged key by key; any other value (scalars, lists,
    None) replaces what was there. Neither argument is mutated.
    """
    merged = copy.deepcopy(base)
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def get_settings_row(db: Session) -> SiteSettings | None:
    return db.exec(select(SiteSettings).order_by(SiteSettings.id)).first()


def load_settings(db: Session) -> Dict[str, Any]:
    row = get_settings_row(db)
    stored = row.data if row else {}
    return deep_merge(DEFAULT_SETTINGS, stored or {})


def update_settings(db: Session, updates: Dict[str, Any]) -> Dict[str, Any]:
    """Merge a partial update into the stored document, creating it on first write"""
    row = get_settings_row(db)
    if row is None:
        row = SiteSettings(data={})

    # Reassign so SQLAlchemy notices the JSON column changed
    row.data = deep_merge(row.data or {}, updates)
    row.updated_at = datetime.utcnow()
    db.add(row)
    db.commit()
    db.refresh(row)
    return deep_merge(DEFAULT_SETTINGS, row.data)
