from flask import Blueprint
from atomq.config import config

admin_bp = Blueprint("admin", __name__, url_prefix=f"{config.API_PREFIX}/admin")

from atomq.admin import routes  # noqa: E402,F401
