"""
Database models for standalone quizzes.

A quiz links questions from the question bank, is taken only by enrolled
users, and keeps one QuizAttempt per run through it.
"""
from datetime import datetime, timedelta

from atomq import db
from atomq.questions.models import Difficulty


class QuizStatus:
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"

    ALL = (DRAFT, PUBLISHED, ARCHIVED)


class AttemptStatus:
    IN_PROGRESS = "IN_PROGRESS"
    SUBMITTED = "SUBMITTED"


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


class Quiz(db.Model):
    __tablename__ = "quizzes"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    time_limit = db.Column(db.Integer, nullable=True)  # minutes; null means untimed
    difficulty = db.Column(db.String(10), nullable=False, default=Difficulty.MEDIUM)
    status = db.Column(db.String(20), nullable=False, default=QuizStatus.DRAFT, index=True)
    show_answers = db.Column(db.Boolean, nullable=False, default=False)
    check_answer_enabled = db.Column(db.Boolean, nullable=False, default=False)
    max_attempts = db.Column(db.Integer, nullable=True)  # null means unlimited
    creator_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete='SET NULL'), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    creator = db.relationship("User", foreign_keys=[creator_id])
    questions = db.relationship("QuizQuestion", backref="quiz", lazy="dynamic",
                                cascade="all, delete-orphan", order_by="QuizQuestion.order")
    enrollments = db.relationship("QuizUser", backref="quiz", lazy="dynamic", cascade="all, delete-orphan")
    attempts = db.relationship("QuizAttempt", backref="quiz", lazy="dynamic", cascade="all, delete-orphan")

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Quiz {self.id}: {self.title}>"

    def ordered_questions(self) -> list["QuizQuestion"]:
        return self.questions.order_by(QuizQuestion.order, QuizQuestion.id).all()

    def get_question_count(self) -> int:
        return self.questions.count()

    def is_enrolled(self, user_id: int) -> bool:
        return self.enrollments.filter_by(user_id=user_id).first() is not None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "timeLimit": self.time_limit,
            "difficulty": self.difficulty,
            "status": self.status,
            "showAnswers": self.show_answers,
            "checkAnswerEnabled": self.check_answer_enabled,
            "maxAttempts": self.max_attempts,
            "creatorId": self.creator_id,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
            "creator": self.creator.to_summary() if self.creator else None,
            "_count": {
                "questions": self.questions.count(),
                "users": self.enrollments.count(),
                "attempts": self.attempts.count(),
            },
        }


class QuizQuestion(db.Model):
    __tablename__ = "quiz_questions"

    id = db.Column(db.Integer, primary_key=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey("quizzes.id", ondelete='CASCADE'), nullable=False, index=True)
    question_id = db.Column(db.Integer, db.ForeignKey("questions.id", ondelete='CASCADE'), nullable=False, index=True)
    order = db.Column(db.Integer, nullable=False, default=1)
    points = db.Column(db.Float, nullable=False, default=1.0)

    question = db.relationship("Question")

    __table_args__ = (
        db.UniqueConstraint('quiz_id', 'question_id', name='uq_quiz_question'),
        db.Index('ix_quiz_questions_quiz_order', 'quiz_id', 'order'),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<QuizQuestion {self.quiz_id}#{self.order}>"

    def to_dict(self, include_answer: bool = True) -> dict:
        data = self.question.to_dict(include_answer=include_answer)
        data["quizQuestionId"] = self.id
        data["order"] = self.order
        data["points"] = self.points
        return data


class QuizUser(db.Model):
    """Enrollment of a user in a quiz."""
    __tablename__ = "quiz_users"

    id = db.Column(db.Integer, primary_key=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey("quizzes.id", ondelete='CASCADE'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete='CASCADE'), nullable=False, index=True)
    enrolled_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    user = db.relationship("User", foreign_keys=[user_id])

    __table_args__ = (
        db.UniqueConstraint('quiz_id', 'user_id', name='uq_quiz_user'),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<QuizUser {self.user_id} in {self.quiz_id}>"


class QuizAttempt(db.Model):
    __tablename__ = "quiz_attempts"

    id = db.Column(db.Integer, primary_key=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey("quizzes.id", ondelete='CASCADE'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete='CASCADE'), nullable=False, index=True)
    status = db.Column(db.String(20), nullable=False, default=AttemptStatus.IN_PROGRESS, index=True)
    started_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    submitted_at = db.Column(db.DateTime, nullable=True)
    score = db.Column(db.Float, nullable=True)  # percentage
    total_points = db.Column(db.Float, nullable=True)
    max_points = db.Column(db.Float, nullable=True)
    time_taken = db.Column(db.Integer, nullable=True)  # seconds

    user = db.relationship("User", foreign_keys=[user_id])
    answers = db.relationship("QuizAnswer", backref="attempt", lazy="dynamic", cascade="all, delete-orphan")

    __table_args__ = (
        db.Index('ix_quiz_attempts_quiz_user', 'quiz_id', 'user_id'),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<QuizAttempt {self.id}: User {self.user_id}, Quiz {self.quiz_id}>"

    @property
    def is_submitted(self) -> bool:
        return self.status == AttemptStatus.SUBMITTED

    def deadline(self) -> datetime | None:
        if not self.quiz.time_limit:
            return None
        return self.started_at + timedelta(minutes=self.quiz.time_limit)

    def time_remaining(self, now: datetime) -> int:
        """Whole seconds left, 0 for untimed quizzes."""
        deadline = self.deadline()
        if deadline is None:
            return 0
        return max(0, int((deadline - now).total_seconds()))

    def is_expired(self, now: datetime) -> bool:
        deadline = self.deadline()
        return deadline is not None and now >= deadline

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "quizId": self.quiz_id,
            "userId": self.user_id,
            "status": self.status,
            "startedAt": _iso(self.started_at),
            "submittedAt": _iso(self.submitted_at),
            "score": self.score,
            "totalPoints": self.total_points,
            "maxPoints": self.max_points,
            "timeTaken": self.time_taken,
        }


class QuizAnswer(db.Model):
    __tablename__ = "quiz_answers"

    id = db.Column(db.Integer, primary_key=True)
    attempt_id = db.Column(db.Integer, db.ForeignKey("quiz_attempts.id", ondelete='CASCADE'), nullable=False, index=True)
    question_id = db.Column(db.Integer, db.ForeignKey("questions.id", ondelete='CASCADE'), nullable=False, index=True)
    user_answer = db.Column(db.Text, nullable=True)
    is_correct = db.Column(db.Boolean, nullable=False, default=False)
    points_earned = db.Column(db.Float, nullable=False, default=0)
    answered_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    question = db.relationship("Question")

    __table_args__ = (
        db.UniqueConstraint('attempt_id', 'question_id', name='uq_attempt_question'),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<QuizAnswer {self.id}: Question {self.question_id}>"

    def to_dict(self, include_solution: bool = False) -> dict:
        data = {
            "id": self.id,
            "questionId": self.question_id,
            "userAnswer": self.user_answer,
            "isCorrect": self.is_correct,
            "pointsEarned": self.points_earned,
        }
        if include_solution:
            data["correctAnswer"] = self.question.correct_answer
            data["explanation"] = self.question.explanation
        return data
