from flask import jsonify, current_app
from flask_login import current_user

from atomq import db
from atomq.activity.models import Activity, ActivityStatus
from atomq.admin import admin_bp
from atomq.auth.models import User, UserRole
from atomq.auth.utils import normalize_email
from atomq.common.decorators import admin_required
from atomq.common.validators import get_json_body
from atomq.questions.models import ReportedQuestion, ReportStatus
from atomq.quiz.models import AttemptStatus, Quiz, QuizAttempt
from atomq.security import SecurityLogger, get_account_lockout


@admin_bp.route("/stats", methods=["GET"])
@admin_required
def admin_stats():
    """Dashboard counters."""
    try:
        return jsonify({
            "totalUsers": User.query.filter_by(role=UserRole.USER).count(),
            "totalAdmins": User.query.filter_by(role=UserRole.ADMIN).count(),
            "totalActivities": Activity.query.count(),
            "activeActivities": Activity.query.filter_by(status=ActivityStatus.ACTIVE).count(),
            "totalQuizzes": Quiz.query.count(),
            "submittedAttempts": QuizAttempt.query.filter_by(status=AttemptStatus.SUBMITTED).count(),
            "pendingReports": ReportedQuestion.query.filter_by(status=ReportStatus.PENDING).count(),
        }), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Error fetching admin stats")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.route("/clear-attempts", methods=["POST"])
@admin_required
def clear_login_attempts():
    """Unlock one email, or every tracked email when none is given."""
    data = get_json_body() or {}
    lockout = get_account_lockout()

    if "email" in data and data["email"] is not None:
        email = normalize_email(data["email"])
        if not email:
            return jsonify({"error": "Email must be a non-empty string"}), 400
        lockout.reset(email)
        SecurityLogger.log_attempts_cleared(current_user.id, email)
        return jsonify({"message": f"Login attempts cleared for {email}"}), 200

    cleared = lockout.clear()
    SecurityLogger.log_attempts_cleared(current_user.id, "all")
    return jsonify({"message": "All login attempts cleared", "cleared": cleared}), 200
