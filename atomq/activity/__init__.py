"""
Live activities: admins run timed, key-joined question sessions and
participants answer against the clock.
"""
from flask import Blueprint
from atomq.config import config

activity_bp = Blueprint("activity", __name__, url_prefix=config.API_PREFIX)

from atomq.activity import user_routes, session_routes, admin_routes  # noqa: E402,F401
