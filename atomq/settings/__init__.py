"""
Site-wide settings: branding, registration and maintenance flags.
"""
from flask import Blueprint
from atomq.config import config

settings_bp = Blueprint("settings", __name__, url_prefix=config.API_PREFIX)

from atomq.settings import routes  # noqa: E402,F401
