"""
Quiz module for standalone quizzes.

Admins build quizzes from the question bank and enroll users; enrolled
users take timed attempts that are graded on submission.
"""
from flask import Blueprint
from atomq.config import config

quiz_bp = Blueprint('quiz', __name__, url_prefix=config.API_PREFIX)

from atomq.quiz import user_routes, admin_routes  # noqa: E402,F401
