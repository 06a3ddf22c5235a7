"""
Live session routes for activities.

The session is shared by everyone in the activity. Admins drive it with
the start, next and finish actions; participants submit one answer per
question while it is playing.
"""
from datetime import datetime

from flask import jsonify, request, current_app
from flask_login import current_user
from sqlalchemy.exc import IntegrityError

from atomq import db
from atomq.activity import activity_bp
from atomq.activity.models import (
    Activity,
    ActivityAnswer,
    ActivityParticipant,
    ActivityQuestion,
    ActivitySession,
    SessionStatus,
)
from atomq.activity.scoring import calculate_points, rank_participants
from atomq.common.decorators import api_login_required
from atomq.common.validators import FieldValidator, get_json_body, invalid_body_response
from atomq.security import SecurityLogger


def _get_or_create_session(activity: Activity) -> ActivitySession:
    session = activity.current_session()
    if session is None:
        session = ActivitySession(activity_id=activity.id, status=SessionStatus.WAITING, current_question=0)
        db.session.add(session)
        db.session.commit()
        current_app.logger.info(f"Created session {session.id} for activity {activity.id}")
    return session


def _session_payload(activity: Activity, session: ActivitySession) -> dict:
    data = session.to_dict()
    data['accessKey'] = activity.access_key
    data['answers'] = [
        a.to_dict() for a in session.answers.filter_by(user_id=current_user.id).order_by(ActivityAnswer.id)
    ]
    questions = activity.ordered_questions()
    data['totalQuestions'] = len(questions)
    # Questions stay hidden until the admin starts the session
    if session.status == SessionStatus.WAITING:
        data['questions'] = []
    else:
        data['questions'] = [q.to_dict(include_answer=False) for q in questions]
    return data


def _forbid_non_admin():
    if current_user.is_admin():
        return None
    SecurityLogger.log_unauthorized_access(request.path, current_user.id)
    return jsonify({'error': 'Forbidden'}), 403


@activity_bp.route('/activity/<key>/session', methods=['GET'])
@api_login_required
def get_activity_session(key):
    try:
        activity = Activity.find_by_key(key)
        if not activity:
            return jsonify({'error': 'Activity not found'}), 404

        session = _get_or_create_session(activity)
        return jsonify(_session_payload(activity, session)), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception(f"Error fetching session for activity {key}")
        return jsonify({'error': 'Internal server error'}), 500


@activity_bp.route('/activity/<key>/session', methods=['POST'])
@api_login_required
def update_activity_session(key):
    data = get_json_body()
    if data is None:
        return invalid_body_response()

    action = data.get('action')
    if action not in ('start', 'next', 'finish', 'answer'):
        return jsonify({'error': 'Invalid action'}), 400

    try:
        activity = Activity.find_by_key(key)
        if not activity:
            return jsonify({'error': 'Activity not found'}), 404

        session = _get_or_create_session(activity)

        if action == 'answer':
            return _submit_answer(activity, session, data)

        forbidden = _forbid_non_admin()
        if forbidden:
            return forbidden

        if action == 'start':
            if session.status != SessionStatus.WAITING:
                return jsonify({'error': 'Session has already started'}), 400
            session.status = SessionStatus.PLAYING
            session.start_time = datetime.utcnow()
            session.current_question = 0

        elif action == 'next':
            if session.status != SessionStatus.PLAYING:
                return jsonify({'error': 'Session is not in progress'}), 400
            if session.current_question + 1 >= activity.questions.count():
                return jsonify({'error': 'No more questions'}), 400
            session.current_question += 1

        else:  # finish
            if session.status != SessionStatus.PLAYING:
                return jsonify({'error': 'Session is not in progress'}), 400
            session.status = SessionStatus.FINISHED
            session.end_time = datetime.utcnow()

        db.session.commit()
        current_app.logger.info(
            f"Session {session.id} of activity {activity.id}: {action} by admin {current_user.id} "
            f"(status={session.status}, question={session.current_question})"
        )
        return jsonify(session.to_dict()), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception(f"Error handling session action {action} for activity {key}")
        return jsonify({'error': 'Internal server error'}), 500


def _submit_answer(activity: Activity, session: ActivitySession, data: dict):
    """Record a participant's answer and add its points to their score."""
    v = FieldValidator(data)
    question_id = v.integer('questionId', minimum=1, required=True)
    user_answer = data.get('userAnswer')
    if user_answer is None:
        v.add_error('userAnswer', 'User answer is required')
    elif not isinstance(user_answer, str):
        v.add_error('userAnswer', 'User answer must be a string')
    time_spent = v.number('timeSpent', minimum=0, message='Time spent must be a non-negative number')
    if not v.valid:
        return v.error_response()
    if time_spent is None:
        time_spent = 0.0

    if session.status != SessionStatus.PLAYING:
        return jsonify({'error': 'Session is not in progress'}), 400

    participant = ActivityParticipant.query.filter_by(
        activity_id=activity.id,
        user_id=current_user.id
    ).first()
    if not participant:
        return jsonify({'error': 'You have not joined this activity'}), 403

    activity_question = ActivityQuestion.query.filter_by(
        activity_id=activity.id,
        question_id=question_id
    ).first()
    if not activity_question:
        return jsonify({'error': 'Question not found in this activity'}), 404

    already_answered = ActivityAnswer.query.filter_by(
        session_id=session.id,
        question_id=question_id,
        user_id=current_user.id
    ).first()
    if already_answered:
        return jsonify({'error': 'Question already answered'}), 400

    is_correct = user_answer == activity_question.question.correct_answer
    points = calculate_points(is_correct, time_spent)

    answer = ActivityAnswer(
        session_id=session.id,
        question_id=question_id,
        user_id=current_user.id,
        user_answer=user_answer,
        is_correct=is_correct,
        points_earned=points,
        time_spent=time_spent,
    )
    db.session.add(answer)
    try:
        db.session.flush()
    except IntegrityError:
        # A concurrent request stored this answer first
        db.session.rollback()
        return jsonify({'error': 'Question already answered'}), 400

    # Increment in SQL so concurrent answers cannot overwrite each other
    ActivityParticipant.query.filter_by(id=participant.id).update(
        {ActivityParticipant.score: ActivityParticipant.score + points},
        synchronize_session=False
    )
    db.session.commit()

    current_app.logger.info(
        f"User {current_user.id} answered question {question_id} in session {session.id}: "
        f"correct={is_correct}, points={points}"
    )
    return jsonify(answer.to_dict()), 201


@activity_bp.route('/activity/<key>/leaderboard', methods=['GET'])
@api_login_required
def get_activity_leaderboard(key):
    try:
        activity = Activity.find_by_key(key)
        if not activity:
            return jsonify({'error': 'Activity not found'}), 404

        participants = activity.participants.order_by(
            ActivityParticipant.score.desc(),
            ActivityParticipant.joined_at.asc(),
            ActivityParticipant.id.asc()
        ).all()
        return jsonify(rank_participants(participants)), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception(f"Error fetching leaderboard for activity {key}")
        return jsonify({'error': 'Internal server error'}), 500


@activity_bp.route('/activity/<key>/participants', methods=['GET'])
@api_login_required
def get_activity_participants(key):
    try:
        activity = Activity.find_by_key(key)
        if not activity:
            return jsonify({'error': 'Activity not found'}), 404

        participants = activity.participants.order_by(
            ActivityParticipant.score.desc(),
            ActivityParticipant.id.asc()
        ).all()
        return jsonify([p.to_dict() for p in participants]), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception(f"Error fetching participants for activity {key}")
        return jsonify({'error': 'Internal server error'}), 500
