from flask import jsonify, current_app
from flask_login import current_user

from atomq import db
from atomq.common.decorators import admin_required
from atomq.common.validators import FieldValidator, get_json_body, invalid_body_response
from atomq.settings import settings_bp
from atomq.settings.models import ACCENT_COLORS
from atomq.settings.service import get_settings, invalidate_settings_cache


@settings_bp.route("/settings", methods=["GET"])
def public_settings():
    """Branding and feature flags the client needs before login."""
    try:
        return jsonify(get_settings().to_public_dict()), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Error loading settings")
        return jsonify({"error": "Internal server error"}), 500


@settings_bp.route("/admin/settings", methods=["GET"])
@admin_required
def admin_get_settings():
    try:
        return jsonify(get_settings().to_dict()), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Error loading settings")
        return jsonify({"error": "Internal server error"}), 500


@settings_bp.route("/admin/settings", methods=["PUT"])
@admin_required
def admin_update_settings():
    data = get_json_body()
    if data is None:
        return invalid_body_response()

    v = FieldValidator(data)
    site_title = v.string("siteTitle", max_length=255)
    site_description = v.string("siteDescription", allow_empty=True)
    maintenance_mode = v.boolean("maintenanceMode")
    allow_registration = v.boolean("allowRegistration")
    enable_github_auth = v.boolean("enableGithubAuth")
    accent_color = None
    if v.has("accentColor"):
        accent_color = data["accentColor"]
        if accent_color not in ACCENT_COLORS:
            v.add_error("accentColor", f"Accent color must be one of: {', '.join(ACCENT_COLORS)}")
    if not v.valid:
        return v.error_response()

    try:
        settings = get_settings()
        if site_title is not None:
            settings.site_title = site_title
        if site_description is not None:
            settings.site_description = site_description
        if maintenance_mode is not None:
            settings.maintenance_mode = maintenance_mode
        if allow_registration is not None:
            settings.allow_registration = allow_registration
        if enable_github_auth is not None:
            settings.enable_github_auth = enable_github_auth
        if accent_color is not None:
            settings.accent_color = accent_color
        db.session.commit()
        invalidate_settings_cache()

        current_app.logger.info(
            f"Settings updated by admin {current_user.id} "
            f"(maintenance={settings.maintenance_mode}, registration={settings.allow_registration})"
        )
        return jsonify(settings.to_dict()), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Error updating settings")
        return jsonify({"error": "Internal server error"}), 500
