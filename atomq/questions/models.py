"""
Database models for the question bank.

Questions are shared by activities and standalone quizzes. Supported types:
- MULTIPLE_CHOICE: one option is the correct answer
- MULTI_SELECT: the correct answer is several options joined with "|"
- TRUE_FALSE: options are "True" and "False"
- FILL_IN_BLANK: free text, compared case-insensitively
"""
import json
from datetime import datetime

from atomq import db


class QuestionType:
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    MULTI_SELECT = "MULTI_SELECT"
    TRUE_FALSE = "TRUE_FALSE"
    FILL_IN_BLANK = "FILL_IN_BLANK"

    ALL = (MULTIPLE_CHOICE, MULTI_SELECT, TRUE_FALSE, FILL_IN_BLANK)


class Difficulty:
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"

    ALL = (EASY, MEDIUM, HARD)


class ReportStatus:
    PENDING = "PENDING"
    RESOLVED = "RESOLVED"

    ALL = (PENDING, RESOLVED)


MULTI_SELECT_SEPARATOR = "|"


class QuestionGroup(db.Model):
    __tablename__ = "question_groups"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete='SET NULL'), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    creator = db.relationship("User", foreign_keys=[created_by])
    questions = db.relationship("Question", backref="group", lazy="dynamic")

    def __repr__(self) -> str:  # pragma: no cover
        return f"<QuestionGroup {self.id}: {self.name}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "creator": self.creator.to_summary() if self.creator else None,
            "_count": {"questions": self.questions.count()},
        }


class Question(db.Model):
    __tablename__ = "questions"

    id = db.Column(db.Integer, primary_key=True)
    group_id = db.Column(db.Integer, db.ForeignKey("question_groups.id", ondelete='SET NULL'), nullable=True, index=True)
    title = db.Column(db.String(255), nullable=False)
    content = db.Column(db.Text, nullable=False)
    type = db.Column(db.String(30), nullable=False, index=True)
    options = db.Column(db.Text, nullable=False, default="[]")  # JSON list of strings
    correct_answer = db.Column(db.Text, nullable=False)
    explanation = db.Column(db.Text, nullable=True)
    difficulty = db.Column(db.String(10), nullable=False, default=Difficulty.MEDIUM)
    is_active = db.Column(db.Boolean, default=True, nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    reports = db.relationship("ReportedQuestion", backref="question", lazy="dynamic", cascade="all, delete-orphan")

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Question {self.id}: {self.type}>"

    def get_options(self) -> list[str]:
        try:
            options = json.loads(self.options or "[]")
        except ValueError:
            return []
        return options if isinstance(options, list) else []

    def set_options(self, options: list[str]) -> None:
        self.options = json.dumps(options)

    def to_dict(self, include_answer: bool = True) -> dict:
        """
        Serialize the question.

        Args:
            include_answer: False hides the correct answer and explanation,
                for payloads sent to participants before they answer.
        """
        data = {
            "id": self.id,
            "groupId": self.group_id,
            "title": self.title,
            "content": self.content,
            "type": self.type,
            "options": self.get_options(),
            "difficulty": self.difficulty,
            "isActive": self.is_active,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
        if include_answer:
            data["correctAnswer"] = self.correct_answer
            data["explanation"] = self.explanation
        return data


class ReportedQuestion(db.Model):
    __tablename__ = "reported_questions"

    id = db.Column(db.Integer, primary_key=True)
    question_id = db.Column(db.Integer, db.ForeignKey("questions.id", ondelete='CASCADE'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete='CASCADE'), nullable=False, index=True)
    suggestion = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=ReportStatus.PENDING, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    user = db.relationship("User", foreign_keys=[user_id])

    def __repr__(self) -> str:  # pragma: no cover
        return f"<ReportedQuestion {self.id}: {self.status}>"

    def to_dict(self, include_question: bool = True) -> dict:
        data = {
            "id": self.id,
            "questionId": self.question_id,
            "suggestion": self.suggestion,
            "status": self.status,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
        if include_question:
            question = self.question
            question_data = question.to_dict()
            question_data["group"] = (
                {"id": question.group.id, "name": question.group.name} if question.group else None
            )
            data["question"] = question_data
            data["user"] = self.user.to_summary() if self.user else None
        return data
