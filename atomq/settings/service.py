"""
Settings access with a short-lived maintenance flag cache.

The login route consults the maintenance flag on every request, so the
flag is cached in process memory for MAINTENANCE_CACHE_SECONDS. Admin
updates invalidate the cache immediately in this process only.
"""
import threading
import time

from flask import current_app

from atomq import db
from atomq.settings.models import Settings


_cache_lock = threading.Lock()
_maintenance_cache: dict = {"value": None, "expires_at": 0.0}


def get_settings() -> Settings:
    """Return the settings row, creating it with defaults on first use."""
    settings = Settings.query.order_by(Settings.id).first()
    if settings is None:
        settings = Settings()
        db.session.add(settings)
        db.session.commit()
        current_app.logger.info("Created default site settings")
    return settings


def is_maintenance_mode() -> bool:
    with _cache_lock:
        if _maintenance_cache["value"] is not None and time.monotonic() < _maintenance_cache["expires_at"]:
            return _maintenance_cache["value"]

    try:
        settings = Settings.query.order_by(Settings.id).first()
        value = bool(settings and settings.maintenance_mode)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Could not read maintenance mode; assuming it is off")
        return False

    ttl = current_app.config.get("MAINTENANCE_CACHE_SECONDS", 300)
    with _cache_lock:
        _maintenance_cache["value"] = value
        _maintenance_cache["expires_at"] = time.monotonic() + ttl
    return value


def invalidate_settings_cache():
    with _cache_lock:
        _maintenance_cache["value"] = None
        _maintenance_cache["expires_at"] = 0.0
