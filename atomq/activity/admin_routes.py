"""
Admin routes for activities.

Admins can:
- Create, update and delete activities
- List an activity's questions and add new ones
"""
from flask import jsonify, current_app
from flask_login import current_user
from sqlalchemy import func

from atomq import db
from atomq.activity import activity_bp
from atomq.activity.models import Activity, ActivityQuestion, ActivityStatus
from atomq.common.decorators import admin_required
from atomq.common.validators import FieldValidator, get_json_body, invalid_body_response
from atomq.questions.validation import build_question, validate_question


def _read_activity_fields(data: dict, partial: bool) -> tuple[FieldValidator, dict]:
    """Validate an activity body. Only keys present in the body end up in the fields dict."""
    v = FieldValidator(data)
    fields = {}
    if not partial or v.has('title'):
        fields['title'] = v.string('title', required=True, max_length=255)
    if not partial or v.has('accessKey'):
        access_key = v.string('accessKey', required=True, max_length=64)
        fields['access_key'] = access_key.upper() if access_key else None
    if v.has('description'):
        fields['description'] = v.string('description', allow_empty=True) or None
    if v.has('status'):
        fields['status'] = v.choice('status', ActivityStatus.ALL)
    if v.has('startTime'):
        fields['start_time'] = v.timestamp('startTime')
    if v.has('endTime'):
        fields['end_time'] = v.timestamp('endTime')

    start = fields.get('start_time')
    end = fields.get('end_time')
    if start and end and end < start:
        v.add_error('endTime', 'End time must be after start time')
    return v, fields


@activity_bp.route('/admin/activities', methods=['GET'])
@admin_required
def admin_list_activities():
    try:
        activities = Activity.query.order_by(Activity.created_at.desc(), Activity.id.desc()).all()
        return jsonify([a.to_dict() for a in activities]), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Error fetching activities")
        return jsonify({'error': 'Internal server error'}), 500


@activity_bp.route('/admin/activities', methods=['POST'])
@admin_required
def admin_create_activity():
    data = get_json_body()
    if data is None:
        return invalid_body_response()

    v, fields = _read_activity_fields(data, partial=False)
    if not v.valid:
        return v.error_response()

    try:
        if Activity.query.filter_by(access_key=fields['access_key']).first():
            return jsonify({'error': 'Access key already exists'}), 400

        activity = Activity(creator_id=current_user.id, **fields)
        if not activity.status:
            activity.status = ActivityStatus.DRAFT
        db.session.add(activity)
        db.session.commit()

        current_app.logger.info(
            f"Activity {activity.id} ({activity.access_key}) created by admin {current_user.id}"
        )
        return jsonify(activity.to_dict()), 201
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Error creating activity")
        return jsonify({'error': 'Internal server error'}), 500


@activity_bp.route('/admin/activities/<int:activity_id>', methods=['GET'])
@admin_required
def admin_get_activity(activity_id):
    try:
        activity = db.session.get(Activity, activity_id)
        if not activity:
            return jsonify({'error': 'Activity not found'}), 404
        return jsonify(activity.to_dict()), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception(f"Error fetching activity {activity_id}")
        return jsonify({'error': 'Internal server error'}), 500


@activity_bp.route('/admin/activities/<int:activity_id>', methods=['PUT'])
@admin_required
def admin_update_activity(activity_id):
    data = get_json_body()
    if data is None:
        return invalid_body_response()

    v, fields = _read_activity_fields(data, partial=True)
    if not v.valid:
        return v.error_response()

    try:
        activity = db.session.get(Activity, activity_id)
        if not activity:
            return jsonify({'error': 'Activity not found'}), 404

        new_key = fields.get('access_key')
        if new_key and new_key != activity.access_key:
            if Activity.query.filter_by(access_key=new_key).first():
                return jsonify({'error': 'Access key already exists'}), 400

        start = fields.get('start_time', activity.start_time)
        end = fields.get('end_time', activity.end_time)
        if start and end and end < start:
            return jsonify({'error': 'End time must be after start time'}), 400

        for name, value in fields.items():
            setattr(activity, name, value)
        db.session.commit()

        current_app.logger.info(
            f"Activity {activity.id} updated by admin {current_user.id}: {', '.join(fields) or 'no changes'}"
        )
        return jsonify(activity.to_dict()), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception(f"Error updating activity {activity_id}")
        return jsonify({'error': 'Internal server error'}), 500


@activity_bp.route('/admin/activities/<int:activity_id>', methods=['DELETE'])
@admin_required
def admin_delete_activity(activity_id):
    try:
        activity = db.session.get(Activity, activity_id)
        if not activity:
            return jsonify({'error': 'Activity not found'}), 404

        db.session.delete(activity)
        db.session.commit()

        current_app.logger.info(f"Activity {activity_id} deleted by admin {current_user.id}")
        return jsonify({'message': 'Activity deleted successfully'}), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception(f"Error deleting activity {activity_id}")
        return jsonify({'error': 'Internal server error'}), 500


@activity_bp.route('/admin/activities/<int:activity_id>/questions', methods=['GET'])
@admin_required
def admin_list_activity_questions(activity_id):
    try:
        activity = db.session.get(Activity, activity_id)
        if not activity:
            return jsonify({'error': 'Activity not found'}), 404
        return jsonify([aq.to_dict() for aq in activity.ordered_questions()]), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception(f"Error fetching questions for activity {activity_id}")
        return jsonify({'error': 'Internal server error'}), 500


@activity_bp.route('/admin/activities/<int:activity_id>/questions', methods=['POST'])
@admin_required
def admin_create_activity_question(activity_id):
    data = get_json_body()
    if data is None:
        return invalid_body_response()

    v = FieldValidator(data)
    fields = validate_question(v)
    order = v.integer('order', minimum=1, message='Order must be a positive integer')
    points = v.number('points', minimum=0, message='Points must be non-negative')
    if not v.valid:
        return v.error_response()

    try:
        activity = db.session.get(Activity, activity_id)
        if not activity:
            return jsonify({'error': 'Activity not found'}), 404

        question = build_question(fields)
        db.session.add(question)
        db.session.flush()

        if order is None:
            highest = db.session.query(func.max(ActivityQuestion.order)).filter(
                ActivityQuestion.activity_id == activity.id
            ).scalar()
            order = (highest or 0) + 1

        activity_question = ActivityQuestion(
            activity_id=activity.id,
            question_id=question.id,
            order=order,
            points=points if points is not None else 1.0,
        )
        db.session.add(activity_question)
        db.session.commit()

        current_app.logger.info(
            f"Question {question.id} added to activity {activity.id} at position {order}"
        )
        return jsonify(activity_question.to_dict()), 201
    except Exception:
        db.session.rollback()
        current_app.logger.exception(f"Error creating question for activity {activity_id}")
        return jsonify({'error': 'Internal server error'}), 500
