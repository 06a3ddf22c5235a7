"""
User routes for activities.

Users can:
- Browse activities, optionally filtered by status
- Join an active activity with its access key
"""
from flask import jsonify, request, current_app
from flask_login import current_user
from sqlalchemy.exc import IntegrityError

from atomq import db
from atomq.activity import activity_bp
from atomq.activity.models import Activity, ActivityParticipant, ActivityStatus
from atomq.common.decorators import api_login_required
from atomq.common.validators import get_json_body, invalid_body_response


@activity_bp.route('/user/activities', methods=['GET'])
@api_login_required
def list_user_activities():
    status = (request.args.get('status') or '').strip().upper()
    if status and status not in ActivityStatus.ALL:
        return jsonify({'error': f"Status must be one of: {', '.join(ActivityStatus.ALL)}"}), 400

    try:
        query = Activity.query
        if status:
            query = query.filter_by(status=status)
        activities = query.order_by(Activity.created_at.desc(), Activity.id.desc()).all()
        return jsonify([a.to_dict() for a in activities]), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Error fetching user activities")
        return jsonify({'error': 'Internal server error'}), 500


@activity_bp.route('/user/activities', methods=['POST'])
@api_login_required
def join_activity():
    """
    Join an activity by access key.

    Joining twice is harmless: the existing participant row is kept,
    along with its score.
    """
    data = get_json_body()
    if data is None:
        return invalid_body_response()

    access_key = data.get('accessKey')
    if not isinstance(access_key, str) or not access_key.strip():
        return jsonify({'error': 'Access key is required'}), 400

    try:
        activity = Activity.find_by_key(access_key)
        if not activity:
            current_app.logger.warning(f"User {current_user.id} tried invalid access key")
            return jsonify({'error': 'Invalid access key'}), 404

        if activity.status != ActivityStatus.ACTIVE:
            return jsonify({'error': 'Activity is not currently active'}), 400

        existing = ActivityParticipant.query.filter_by(
            activity_id=activity.id,
            user_id=current_user.id
        ).first()

        if not existing:
            db.session.add(ActivityParticipant(activity_id=activity.id, user_id=current_user.id))
            try:
                db.session.commit()
                current_app.logger.info(f"User {current_user.id} joined activity {activity.id}")
            except IntegrityError:
                # A concurrent join created the row first
                db.session.rollback()

        return jsonify(activity.to_dict()), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Error joining activity")
        return jsonify({'error': 'Internal server error'}), 500
