"""
User routes for quiz functionality.

Enrolled users can:
- List the published quizzes they are enrolled in
- Start or resume an attempt
- Submit answers and review results
"""
from datetime import datetime

from flask import jsonify, request, current_app
from flask_login import current_user

from atomq import db
from atomq.common.decorators import api_login_required
from atomq.common.validators import get_json_body, invalid_body_response
from atomq.quiz import quiz_bp
from atomq.quiz.grading import grade_attempt
from atomq.quiz.models import AttemptStatus, Quiz, QuizAnswer, QuizAttempt, QuizStatus, QuizUser


def _get_available_quiz(quiz_id: int) -> Quiz | None:
    """A published quiz the current user is enrolled in."""
    quiz = db.session.get(Quiz, quiz_id)
    if not quiz or quiz.status != QuizStatus.PUBLISHED or not quiz.is_enrolled(current_user.id):
        return None
    return quiz


def _submitted_count(quiz_id: int, user_id: int) -> int:
    return QuizAttempt.query.filter_by(
        quiz_id=quiz_id,
        user_id=user_id,
        status=AttemptStatus.SUBMITTED
    ).count()


def _parse_answers(raw) -> dict[int, str] | None:
    """
    Accept answers either as {"<questionId>": "answer"} or as a list of
    {"questionId": ..., "userAnswer": ...} objects.
    """
    if raw is None:
        return {}
    parsed = {}
    if isinstance(raw, dict):
        items = raw.items()
    elif isinstance(raw, list):
        if not all(isinstance(item, dict) for item in raw):
            return None
        items = [(item.get('questionId'), item.get('userAnswer')) for item in raw]
    else:
        return None

    for key, value in items:
        try:
            question_id = int(key)
        except (TypeError, ValueError):
            return None
        if value is not None and not isinstance(value, str):
            return None
        parsed[question_id] = value
    return parsed


@quiz_bp.route('/user/quiz', methods=['GET'])
@api_login_required
def list_user_quizzes():
    try:
        quizzes = (
            Quiz.query
            .join(QuizUser, QuizUser.quiz_id == Quiz.id)
            .filter(QuizUser.user_id == current_user.id, Quiz.status == QuizStatus.PUBLISHED)
            .order_by(Quiz.created_at.desc(), Quiz.id.desc())
            .all()
        )

        quizzes_data = []
        for quiz in quizzes:
            submitted = quiz.attempts.filter_by(
                user_id=current_user.id,
                status=AttemptStatus.SUBMITTED
            ).order_by(QuizAttempt.submitted_at.desc(), QuizAttempt.id.desc()).all()
            in_progress = quiz.attempts.filter_by(
                user_id=current_user.id,
                status=AttemptStatus.IN_PROGRESS
            ).first()

            can_attempt = in_progress is not None or not quiz.max_attempts or len(submitted) < quiz.max_attempts
            quizzes_data.append({
                'id': quiz.id,
                'title': quiz.title,
                'description': quiz.description,
                'timeLimit': quiz.time_limit,
                'difficulty': quiz.difficulty,
                'maxAttempts': quiz.max_attempts,
                'questionCount': quiz.get_question_count(),
                'attemptsUsed': len(submitted),
                'latestScore': submitted[0].score if submitted else None,
                'hasInProgressAttempt': in_progress is not None,
                'canAttempt': can_attempt,
            })

        return jsonify(quizzes_data), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Error fetching user quizzes")
        return jsonify({'error': 'Internal server error'}), 500


@quiz_bp.route('/user/quiz/<int:quiz_id>/attempt', methods=['GET'])
@api_login_required
def get_quiz_attempt(quiz_id):
    """
    Resume the user's in-progress attempt or start a new one.

    An in-progress attempt past its time limit is submitted as-is first.
    """
    try:
        quiz = _get_available_quiz(quiz_id)
        if not quiz:
            return jsonify({'error': 'Quiz not found'}), 404

        now = datetime.utcnow()
        attempt = QuizAttempt.query.filter_by(
            quiz_id=quiz.id,
            user_id=current_user.id,
            status=AttemptStatus.IN_PROGRESS
        ).order_by(QuizAttempt.id.desc()).first()

        if attempt and attempt.is_expired(now):
            grade_attempt(attempt, {}, now=now)
            db.session.commit()
            current_app.logger.info(f"Auto-submitted expired attempt {attempt.id} for quiz {quiz.id}")
            attempt = None

        if attempt is None:
            if quiz.max_attempts and _submitted_count(quiz.id, current_user.id) >= quiz.max_attempts:
                return jsonify({'error': 'Maximum attempts reached'}), 400
            if quiz.get_question_count() == 0:
                return jsonify({'error': 'This quiz has no questions'}), 400

            attempt = QuizAttempt(quiz_id=quiz.id, user_id=current_user.id, started_at=now)
            db.session.add(attempt)
            db.session.commit()
            current_app.logger.info(f"User {current_user.id} started attempt {attempt.id} on quiz {quiz.id}")

        questions = [
            qq.to_dict(include_answer=quiz.check_answer_enabled) for qq in quiz.ordered_questions()
        ]
        return jsonify({
            'attemptId': attempt.id,
            'quiz': {
                'id': quiz.id,
                'title': quiz.title,
                'description': quiz.description,
                'timeLimit': quiz.time_limit,
                'showAnswers': quiz.show_answers,
                'checkAnswerEnabled': quiz.check_answer_enabled,
                'questions': questions,
            },
            'timeRemaining': attempt.time_remaining(now),
            'answers': {str(a.question_id): a.user_answer for a in attempt.answers},
        }), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception(f"Error loading attempt for quiz {quiz_id}")
        return jsonify({'error': 'Internal server error'}), 500


@quiz_bp.route('/user/quiz/<int:quiz_id>/submit', methods=['POST'])
@api_login_required
def submit_quiz_attempt(quiz_id):
    data = get_json_body()
    if data is None:
        return invalid_body_response()

    attempt_id = data.get('attemptId')
    if not isinstance(attempt_id, int) or isinstance(attempt_id, bool):
        return jsonify({'error': 'Attempt ID is required'}), 400

    answers = _parse_answers(data.get('answers'))
    if answers is None:
        return jsonify({'error': 'Answers must map question IDs to string answers'}), 400

    try:
        attempt = db.session.get(QuizAttempt, attempt_id)
        if not attempt or attempt.user_id != current_user.id or attempt.quiz_id != quiz_id:
            return jsonify({'error': 'Attempt not found'}), 404

        if attempt.is_submitted:
            return jsonify({'error': 'Attempt already submitted'}), 400

        grade_attempt(attempt, answers)
        db.session.commit()

        current_app.logger.info(
            f"User {current_user.id} submitted attempt {attempt.id} on quiz {quiz_id}: "
            f"{attempt.total_points}/{attempt.max_points} ({attempt.score}%)"
        )
        return jsonify(_result_payload(attempt)), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception(f"Error submitting attempt for quiz {quiz_id}")
        return jsonify({'error': 'Internal server error'}), 500


@quiz_bp.route('/user/quiz/<int:quiz_id>/result', methods=['GET'])
@api_login_required
def get_quiz_result(quiz_id):
    attempt_id = request.args.get('attemptId', type=int)
    if attempt_id is None:
        return jsonify({'error': 'Attempt ID is required'}), 400

    try:
        attempt = db.session.get(QuizAttempt, attempt_id)
        if not attempt or attempt.user_id != current_user.id or attempt.quiz_id != quiz_id:
            return jsonify({'error': 'Attempt not found'}), 404

        if not attempt.is_submitted:
            return jsonify({'error': 'Attempt has not been submitted'}), 400

        return jsonify(_result_payload(attempt)), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception(f"Error loading result for quiz {quiz_id}")
        return jsonify({'error': 'Internal server error'}), 500


def _result_payload(attempt: QuizAttempt) -> dict:
    quiz = attempt.quiz
    show_answers = quiz.show_answers
    answers = attempt.answers.order_by(QuizAnswer.id).all()
    return {
        'attempt': attempt.to_dict(),
        'quiz': {
            'id': quiz.id,
            'title': quiz.title,
            'showAnswers': show_answers,
        },
        'answers': [a.to_dict(include_solution=show_answers) for a in answers],
    }
