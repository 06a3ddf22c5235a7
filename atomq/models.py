"""
Imports every model module so the tables are registered on db.metadata
before create_all() or a migration autogenerate runs.
"""
from atomq.auth.models import User, UserRole  # noqa: F401
from atomq.settings.models import Settings  # noqa: F401
from atomq.questions.models import Question, QuestionGroup, ReportedQuestion  # noqa: F401
from atomq.activity.models import (  # noqa: F401
    Activity,
    ActivityAnswer,
    ActivityParticipant,
    ActivityQuestion,
    ActivitySession,
)
from atomq.quiz.models import Quiz, QuizAnswer, QuizAttempt, QuizQuestion, QuizUser  # noqa: F401
