"""
Question group routes.

Admins can:
- Create and list question groups
- Add questions to a group
- Review and resolve reports on a group's questions

Logged-in users can report a question they think is wrong.
"""
from flask import jsonify, current_app
from flask_login import current_user

from atomq import db
from atomq.common.decorators import admin_required, api_login_required
from atomq.common.validators import FieldValidator, get_json_body, invalid_body_response
from atomq.questions import questions_bp
from atomq.questions.models import Question, QuestionGroup, ReportedQuestion, ReportStatus
from atomq.questions.validation import build_question, validate_question


@questions_bp.route("/admin/question-groups", methods=["GET"])
@admin_required
def list_question_groups():
    try:
        groups = QuestionGroup.query.order_by(QuestionGroup.created_at.desc(), QuestionGroup.id.desc()).all()
        return jsonify([g.to_dict() for g in groups]), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Error listing question groups")
        return jsonify({"error": "Internal server error"}), 500


@questions_bp.route("/admin/question-groups", methods=["POST"])
@admin_required
def create_question_group():
    data = get_json_body()
    if data is None:
        return invalid_body_response()

    v = FieldValidator(data)
    name = v.string("name", required=True, max_length=255)
    description = v.string("description", allow_empty=True)
    if not v.valid:
        return v.error_response()

    try:
        group = QuestionGroup(name=name, description=description or None, created_by=current_user.id)
        db.session.add(group)
        db.session.commit()
        current_app.logger.info(f"Question group {group.id} created by admin {current_user.id}")
        return jsonify(group.to_dict()), 201
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Error creating question group")
        return jsonify({"error": "Internal server error"}), 500


@questions_bp.route("/admin/question-groups/<int:group_id>/questions", methods=["GET"])
@admin_required
def list_group_questions(group_id):
    try:
        group = db.session.get(QuestionGroup, group_id)
        if not group:
            return jsonify({"error": "Question group not found"}), 404

        questions = group.questions.order_by(Question.created_at, Question.id).all()
        return jsonify([q.to_dict() for q in questions]), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception(f"Error listing questions for group {group_id}")
        return jsonify({"error": "Internal server error"}), 500


@questions_bp.route("/admin/question-groups/<int:group_id>/questions", methods=["POST"])
@admin_required
def create_group_question(group_id):
    data = get_json_body()
    if data is None:
        return invalid_body_response()

    v = FieldValidator(data)
    fields = validate_question(v)
    if not v.valid:
        return v.error_response()

    try:
        group = db.session.get(QuestionGroup, group_id)
        if not group:
            return jsonify({"error": "Question group not found"}), 404

        question = build_question(fields, group_id=group.id)
        db.session.add(question)
        db.session.commit()
        current_app.logger.info(f"Question {question.id} added to group {group.id}")
        return jsonify(question.to_dict()), 201
    except Exception:
        db.session.rollback()
        current_app.logger.exception(f"Error creating question in group {group_id}")
        return jsonify({"error": "Internal server error"}), 500


@questions_bp.route("/admin/question-groups/<int:group_id>/reported-questions", methods=["GET"])
@admin_required
def list_reported_questions(group_id):
    try:
        group = db.session.get(QuestionGroup, group_id)
        if not group:
            return jsonify({"error": "Question group not found"}), 404

        reports = (
            ReportedQuestion.query
            .join(Question, ReportedQuestion.question_id == Question.id)
            .filter(Question.group_id == group.id)
            .order_by(ReportedQuestion.created_at.desc(), ReportedQuestion.id.desc())
            .all()
        )
        return jsonify([r.to_dict() for r in reports]), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception(f"Error listing reported questions for group {group_id}")
        return jsonify({"error": "Internal server error"}), 500


@questions_bp.route("/admin/question-groups/<int:group_id>/reported-questions", methods=["PATCH"])
@admin_required
def update_reported_question(group_id):
    data = get_json_body()
    if data is None:
        return invalid_body_response()

    v = FieldValidator(data)
    report_id = v.integer("reportId", minimum=1, required=True)
    status = v.choice("status", ReportStatus.ALL, required=True)
    if not v.valid:
        return v.error_response()

    try:
        report = (
            ReportedQuestion.query
            .join(Question, ReportedQuestion.question_id == Question.id)
            .filter(ReportedQuestion.id == report_id, Question.group_id == group_id)
            .first()
        )
        if not report:
            return jsonify({"error": "Report not found"}), 404

        report.status = status
        db.session.commit()
        current_app.logger.info(f"Report {report.id} marked {status} by admin {current_user.id}")
        return jsonify(report.to_dict()), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception(f"Error updating report in group {group_id}")
        return jsonify({"error": "Internal server error"}), 500


@questions_bp.route("/user/questions/<int:question_id>/report", methods=["POST"])
@api_login_required
def report_question(question_id):
    data = get_json_body()
    if data is None:
        return invalid_body_response()

    v = FieldValidator(data)
    suggestion = v.string("suggestion", required=True)
    if not v.valid:
        return v.error_response()

    try:
        question = db.session.get(Question, question_id)
        if not question:
            return jsonify({"error": "Question not found"}), 404

        report = ReportedQuestion(question_id=question.id, user_id=current_user.id, suggestion=suggestion)
        db.session.add(report)
        db.session.commit()
        current_app.logger.info(f"User {current_user.id} reported question {question.id}")
        return jsonify(report.to_dict(include_question=False)), 201
    except Exception:
        db.session.rollback()
        current_app.logger.exception(f"Error reporting question {question_id}")
        return jsonify({"error": "Internal server error"}), 500
