"""
Answer checking and attempt grading for quizzes.
"""
from datetime import datetime

from atomq import db
from atomq.questions.models import MULTI_SELECT_SEPARATOR, QuestionType
from atomq.quiz.models import AttemptStatus, QuizAnswer, QuizAttempt


def _split_selection(value: str) -> set[str]:
    return {part.strip() for part in value.split(MULTI_SELECT_SEPARATOR) if part.strip()}


def check_answer(question, user_answer) -> bool:
    """
    Check a user's answer against the question's correct answer.

    MULTI_SELECT compares the "|"-separated selections as sets,
    FILL_IN_BLANK ignores case and surrounding whitespace, and the
    other types compare trimmed strings exactly.
    """
    if not isinstance(user_answer, str) or not user_answer.strip():
        return False
    correct = question.correct_answer or ""

    if question.type == QuestionType.MULTI_SELECT:
        return _split_selection(user_answer) == _split_selection(correct)
    if question.type == QuestionType.FILL_IN_BLANK:
        return user_answer.strip().lower() == correct.strip().lower()
    return user_answer.strip() == correct.strip()


def grade_attempt(attempt: QuizAttempt, answers: dict, now: datetime | None = None) -> QuizAttempt:
    """
    Store answers for every question of the attempt's quiz and score it.

    Args:
        attempt: An in-progress attempt
        answers: Mapping of question id to the submitted answer; questions
            missing from it count as wrong
        now: Submission time, defaults to the current UTC time

    The caller commits the session.
    """
    now = now or datetime.utcnow()
    total_points = 0.0
    max_points = 0.0

    for quiz_question in attempt.quiz.ordered_questions():
        question = quiz_question.question
        user_answer = answers.get(question.id)
        is_correct = check_answer(question, user_answer)
        points = float(quiz_question.points) if is_correct else 0.0

        max_points += float(quiz_question.points)
        total_points += points
        db.session.add(QuizAnswer(
            attempt_id=attempt.id,
            question_id=question.id,
            user_answer=user_answer if isinstance(user_answer, str) else None,
            is_correct=is_correct,
            points_earned=points,
        ))

    attempt.total_points = total_points
    attempt.max_points = max_points
    attempt.score = round(total_points / max_points * 100, 2) if max_points > 0 else 0.0
    attempt.status = AttemptStatus.SUBMITTED
    attempt.submitted_at = now
    attempt.time_taken = max(0, int((now - attempt.started_at).total_seconds()))
    return attempt
