"""
Admin routes for quiz management.

Admins can:
- Create, update and delete quizzes
- Attach questions from the question bank
- Enroll and unenroll users
"""
from flask import jsonify, request, current_app
from flask_login import current_user
from sqlalchemy import func, or_, select

from atomq import db
from atomq.auth.models import User, UserRole
from atomq.common.decorators import admin_required
from atomq.common.validators import FieldValidator, get_json_body, invalid_body_response
from atomq.questions.models import Difficulty, Question
from atomq.quiz import quiz_bp
from atomq.quiz.models import Quiz, QuizQuestion, QuizStatus, QuizUser


# Fields that may be sent as null to clear them
NULLABLE_INT_FIELDS = {'timeLimit': 'time_limit', 'maxAttempts': 'max_attempts'}


def _read_quiz_fields(data: dict, partial: bool) -> tuple[FieldValidator, dict]:
    v = FieldValidator(data)
    fields = {}
    if not partial or v.has('title'):
        fields['title'] = v.string('title', required=True, max_length=255)
    if v.has('description'):
        fields['description'] = v.string('description', allow_empty=True) or None
    if v.has('difficulty'):
        fields['difficulty'] = v.choice('difficulty', Difficulty.ALL)
    if v.has('status'):
        fields['status'] = v.choice('status', QuizStatus.ALL)
    for key in ('showAnswers', 'checkAnswerEnabled'):
        if v.has(key):
            fields['show_answers' if key == 'showAnswers' else 'check_answer_enabled'] = v.boolean(key)
    for key, column in NULLABLE_INT_FIELDS.items():
        if key in data:
            fields[column] = v.integer(key, minimum=1) if data[key] is not None else None
    return v, fields


def _user_row(user: User, enrollment: QuizUser | None = None) -> dict:
    return {
        'id': user.id,
        'name': user.name,
        'email': user.email,
        'campus': user.campus,
        'tags': user.get_tags(),
        'enrolled': enrollment is not None,
        'enrolledAt': enrollment.enrolled_at.isoformat() if enrollment else None,
    }


@quiz_bp.route('/admin/quiz', methods=['GET'])
@admin_required
def admin_list_quizzes():
    try:
        quizzes = Quiz.query.order_by(Quiz.created_at.desc(), Quiz.id.desc()).all()
        return jsonify([q.to_dict() for q in quizzes]), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Error fetching quizzes")
        return jsonify({'error': 'Internal server error'}), 500


@quiz_bp.route('/admin/quiz', methods=['POST'])
@admin_required
def admin_create_quiz():
    data = get_json_body()
    if data is None:
        return invalid_body_response()

    v, fields = _read_quiz_fields(data, partial=False)
    if not v.valid:
        return v.error_response()

    try:
        quiz = Quiz(creator_id=current_user.id, **fields)
        db.session.add(quiz)
        db.session.commit()
        current_app.logger.info(f"Quiz {quiz.id} created by admin {current_user.id}")
        return jsonify(quiz.to_dict()), 201
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Error creating quiz")
        return jsonify({'error': 'Internal server error'}), 500


@quiz_bp.route('/admin/quiz/<int:quiz_id>', methods=['GET'])
@admin_required
def admin_get_quiz(quiz_id):
    try:
        quiz = db.session.get(Quiz, quiz_id)
        if not quiz:
            return jsonify({'error': 'Quiz not found'}), 404

        data = quiz.to_dict()
        data['questions'] = [qq.to_dict() for qq in quiz.ordered_questions()]
        return jsonify(data), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception(f"Error fetching quiz {quiz_id}")
        return jsonify({'error': 'Internal server error'}), 500


@quiz_bp.route('/admin/quiz/<int:quiz_id>', methods=['PUT'])
@admin_required
def admin_update_quiz(quiz_id):
    data = get_json_body()
    if data is None:
        return invalid_body_response()

    v, fields = _read_quiz_fields(data, partial=True)
    if not v.valid:
        return v.error_response()

    try:
        quiz = db.session.get(Quiz, quiz_id)
        if not quiz:
            return jsonify({'error': 'Quiz not found'}), 404

        for name, value in fields.items():
            setattr(quiz, name, value)
        db.session.commit()
        current_app.logger.info(f"Quiz {quiz.id} updated by admin {current_user.id}")
        return jsonify(quiz.to_dict()), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception(f"Error updating quiz {quiz_id}")
        return jsonify({'error': 'Internal server error'}), 500


@quiz_bp.route('/admin/quiz/<int:quiz_id>', methods=['DELETE'])
@admin_required
def admin_delete_quiz(quiz_id):
    try:
        quiz = db.session.get(Quiz, quiz_id)
        if not quiz:
            return jsonify({'error': 'Quiz not found'}), 404

        db.session.delete(quiz)
        db.session.commit()
        current_app.logger.info(f"Quiz {quiz_id} deleted by admin {current_user.id}")
        return jsonify({'message': 'Quiz deleted successfully'}), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception(f"Error deleting quiz {quiz_id}")
        return jsonify({'error': 'Internal server error'}), 500


@quiz_bp.route('/admin/quiz/<int:quiz_id>/questions', methods=['POST'])
@admin_required
def admin_add_quiz_questions(quiz_id):
    """Append existing questions to a quiz, skipping ones already attached."""
    data = get_json_body()
    if data is None:
        return invalid_body_response()

    v = FieldValidator(data)
    question_ids = v.id_list('questionIds')
    points = v.number('points', minimum=0, message='Points must be non-negative')
    if not v.valid:
        return v.error_response()

    try:
        quiz = db.session.get(Quiz, quiz_id)
        if not quiz:
            return jsonify({'error': 'Quiz not found'}), 404

        found = {q.id for q in Question.query.filter(Question.id.in_(question_ids)).all()}
        missing = [qid for qid in question_ids if qid not in found]
        if missing:
            return jsonify({'error': f"Questions not found: {', '.join(map(str, missing))}"}), 404

        linked = {qq.question_id for qq in quiz.questions}
        next_order = (db.session.query(func.max(QuizQuestion.order)).filter(
            QuizQuestion.quiz_id == quiz.id
        ).scalar() or 0) + 1

        added = 0
        for question_id in question_ids:
            if question_id in linked:
                continue
            db.session.add(QuizQuestion(
                quiz_id=quiz.id,
                question_id=question_id,
                order=next_order,
                points=points if points is not None else 1.0,
            ))
            next_order += 1
            added += 1
        db.session.commit()

        current_app.logger.info(f"Added {added} question(s) to quiz {quiz.id}")
        return jsonify({
            'added': added,
            'questions': [qq.to_dict() for qq in quiz.ordered_questions()],
        }), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception(f"Error adding questions to quiz {quiz_id}")
        return jsonify({'error': 'Internal server error'}), 500


@quiz_bp.route('/admin/quiz/<int:quiz_id>/users', methods=['GET'])
@admin_required
def admin_list_quiz_users(quiz_id):
    try:
        quiz = db.session.get(Quiz, quiz_id)
        if not quiz:
            return jsonify({'error': 'Quiz not found'}), 404

        enrollments = quiz.enrollments.order_by(QuizUser.enrolled_at, QuizUser.id).all()
        return jsonify([_user_row(e.user, e) for e in enrollments]), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception(f"Error fetching users for quiz {quiz_id}")
        return jsonify({'error': 'Internal server error'}), 500


@quiz_bp.route('/admin/quiz/<int:quiz_id>/users', methods=['POST'])
@admin_required
def admin_enroll_quiz_users(quiz_id):
    data = get_json_body()
    if data is None:
        return invalid_body_response()

    v = FieldValidator(data)
    user_ids = v.id_list('userIds')
    if not v.valid:
        return v.error_response()

    try:
        quiz = db.session.get(Quiz, quiz_id)
        if not quiz:
            return jsonify({'error': 'Quiz not found'}), 404

        users = User.query.filter(User.id.in_(user_ids)).all()
        found = {u.id for u in users}
        missing = [uid for uid in user_ids if uid not in found]
        if missing:
            return jsonify({'error': f"Users not found: {', '.join(map(str, missing))}"}), 404

        enrolled = {e.user_id for e in quiz.enrollments}
        added = 0
        for user_id in user_ids:
            if user_id in enrolled:
                continue
            db.session.add(QuizUser(quiz_id=quiz.id, user_id=user_id))
            added += 1
        db.session.commit()

        current_app.logger.info(f"Enrolled {added} user(s) in quiz {quiz.id}")
        return jsonify({'message': f"{added} user(s) enrolled successfully", 'enrolled': added}), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception(f"Error enrolling users in quiz {quiz_id}")
        return jsonify({'error': 'Internal server error'}), 500


@quiz_bp.route('/admin/quiz/<int:quiz_id>/users/<int:user_id>', methods=['DELETE'])
@admin_required
def admin_unenroll_quiz_user(quiz_id, user_id):
    try:
        enrollment = QuizUser.query.filter_by(quiz_id=quiz_id, user_id=user_id).first()
        if not enrollment:
            return jsonify({'error': 'User is not enrolled in this quiz'}), 404

        db.session.delete(enrollment)
        db.session.commit()
        current_app.logger.info(f"User {user_id} unenrolled from quiz {quiz_id}")
        return jsonify({'message': 'User unenrolled successfully'}), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception(f"Error unenrolling user {user_id} from quiz {quiz_id}")
        return jsonify({'error': 'Internal server error'}), 500


@quiz_bp.route('/admin/students/available', methods=['GET'])
@admin_required
def admin_available_students():
    """Active users not yet enrolled in the quiz, filtered by search text, campus and tag."""
    quiz_id = request.args.get('quizId', type=int)
    if quiz_id is None:
        return jsonify({'error': 'Quiz ID is required'}), 400
    search = (request.args.get('search') or '').strip()
    campus = (request.args.get('campus') or '').strip()
    tag = (request.args.get('tags') or '').strip()

    try:
        quiz = db.session.get(Quiz, quiz_id)
        if not quiz:
            return jsonify({'error': 'Quiz not found'}), 404

        enrolled_ids = select(QuizUser.user_id).where(QuizUser.quiz_id == quiz.id)
        query = User.query.filter(
            User.role == UserRole.USER,
            User.is_active.is_(True),
            User.id.notin_(enrolled_ids)
        )
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
        if campus:
            query = query.filter(func.lower(User.campus) == campus.lower())

        users = query.order_by(User.name, User.id).all()
        if tag:
            users = [u for u in users if tag in u.get_tags()]
        return jsonify([_user_row(u) for u in users]), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Error fetching available students")
        return jsonify({'error': 'Internal server error'}), 500
