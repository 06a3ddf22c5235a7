"""
Question bank: groups of reusable questions and user reports about them.
"""
from flask import Blueprint
from atomq.config import config

questions_bp = Blueprint("questions", __name__, url_prefix=config.API_PREFIX)

from atomq.questions import routes  # noqa: E402,F401
