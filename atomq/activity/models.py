"""
Database models for live activities.

An activity is joined with its access key. Its session moves through
WAITING -> PLAYING -> FINISHED while the admin steps through the
questions, and each participant's score accumulates from their answers.
"""
from datetime import datetime

from atomq import db


class ActivityStatus:
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"

    ALL = (DRAFT, ACTIVE, COMPLETED)


class SessionStatus:
    WAITING = "WAITING"
    PLAYING = "PLAYING"
    FINISHED = "FINISHED"

    ALL = (WAITING, PLAYING, FINISHED)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


class Activity(db.Model):
    __tablename__ = "activities"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    access_key = db.Column(db.String(64), unique=True, nullable=False, index=True)  # stored upper-case
    status = db.Column(db.String(20), nullable=False, default=ActivityStatus.DRAFT, index=True)
    start_time = db.Column(db.DateTime, nullable=True)
    end_time = db.Column(db.DateTime, nullable=True)
    creator_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete='SET NULL'), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    creator = db.relationship("User", foreign_keys=[creator_id])
    questions = db.relationship("ActivityQuestion", backref="activity", lazy="dynamic",
                                cascade="all, delete-orphan", order_by="ActivityQuestion.order")
    participants = db.relationship("ActivityParticipant", backref="activity", lazy="dynamic",
                                   cascade="all, delete-orphan")
    sessions = db.relationship("ActivitySession", backref="activity", lazy="dynamic",
                               cascade="all, delete-orphan", order_by="ActivitySession.id")

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Activity {self.id}: {self.access_key}>"

    @staticmethod
    def find_by_key(key: str) -> "Activity | None":
        return Activity.query.filter_by(access_key=(key or "").strip().upper()).first()

    def current_session(self) -> "ActivitySession | None":
        """The first session is the activity's live session."""
        return self.sessions.first()

    def ordered_questions(self) -> list["ActivityQuestion"]:
        return self.questions.order_by(ActivityQuestion.order, ActivityQuestion.id).all()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "accessKey": self.access_key,
            "status": self.status,
            "startTime": _iso(self.start_time),
            "endTime": _iso(self.end_time),
            "creatorId": self.creator_id,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
            "creator": (
                {"id": self.creator.id, "name": self.creator.name, "email": self.creator.email}
                if self.creator else None
            ),
            "_count": {
                "questions": self.questions.count(),
                "participants": self.participants.count(),
                "sessions": self.sessions.count(),
            },
        }


class ActivityQuestion(db.Model):
    __tablename__ = "activity_questions"

    id = db.Column(db.Integer, primary_key=True)
    activity_id = db.Column(db.Integer, db.ForeignKey("activities.id", ondelete='CASCADE'), nullable=False, index=True)
    question_id = db.Column(db.Integer, db.ForeignKey("questions.id", ondelete='CASCADE'), nullable=False, index=True)
    order = db.Column(db.Integer, nullable=False, default=1)
    points = db.Column(db.Float, nullable=False, default=1.0)

    question = db.relationship("Question")

    __table_args__ = (
        db.UniqueConstraint('activity_id', 'question_id', name='uq_activity_question'),
        db.Index('ix_activity_questions_activity_order', 'activity_id', 'order'),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<ActivityQuestion {self.activity_id}#{self.order}>"

    def to_dict(self, include_answer: bool = True) -> dict:
        return {
            "id": self.id,
            "activityId": self.activity_id,
            "questionId": self.question_id,
            "order": self.order,
            "points": self.points,
            "question": self.question.to_dict(include_answer=include_answer),
        }


class ActivityParticipant(db.Model):
    __tablename__ = "activity_participants"

    id = db.Column(db.Integer, primary_key=True)
    activity_id = db.Column(db.Integer, db.ForeignKey("activities.id", ondelete='CASCADE'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete='CASCADE'), nullable=False, index=True)
    score = db.Column(db.Integer, nullable=False, default=0)
    joined_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    user = db.relationship("User", foreign_keys=[user_id])

    __table_args__ = (
        db.UniqueConstraint('activity_id', 'user_id', name='uq_activity_participant'),
        db.Index('ix_activity_participants_activity_score', 'activity_id', 'score'),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<ActivityParticipant {self.user_id} in {self.activity_id}: {self.score}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "activityId": self.activity_id,
            "userId": self.user_id,
            "score": self.score,
            "joinedAt": _iso(self.joined_at),
            "user": self.user.to_summary() if self.user else None,
        }


class ActivitySession(db.Model):
    __tablename__ = "activity_sessions"

    id = db.Column(db.Integer, primary_key=True)
    activity_id = db.Column(db.Integer, db.ForeignKey("activities.id", ondelete='CASCADE'), nullable=False, index=True)
    status = db.Column(db.String(20), nullable=False, default=SessionStatus.WAITING)
    current_question = db.Column(db.Integer, nullable=False, default=0)  # 0-based index into ordered questions
    start_time = db.Column(db.DateTime, nullable=True)
    end_time = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    answers = db.relationship("ActivityAnswer", backref="session", lazy="dynamic", cascade="all, delete-orphan")

    def __repr__(self) -> str:  # pragma: no cover
        return f"<ActivitySession {self.id}: {self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "activityId": self.activity_id,
            "status": self.status,
            "currentQuestion": self.current_question,
            "startTime": _iso(self.start_time),
            "endTime": _iso(self.end_time),
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


class ActivityAnswer(db.Model):
    __tablename__ = "activity_answers"

    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.Integer, db.ForeignKey("activity_sessions.id", ondelete='CASCADE'), nullable=False, index=True)
    question_id = db.Column(db.Integer, db.ForeignKey("questions.id", ondelete='CASCADE'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete='CASCADE'), nullable=False, index=True)
    user_answer = db.Column(db.Text, nullable=False)
    is_correct = db.Column(db.Boolean, nullable=False, default=False)
    points_earned = db.Column(db.Integer, nullable=False, default=0)
    time_spent = db.Column(db.Float, nullable=False, default=0)  # seconds
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint('session_id', 'question_id', 'user_id', name='uq_session_question_user'),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<ActivityAnswer {self.id}: Question {self.question_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sessionId": self.session_id,
            "questionId": self.question_id,
            "userId": self.user_id,
            "userAnswer": self.user_answer,
            "isCorrect": self.is_correct,
            "pointsEarned": self.points_earned,
            "timeSpent": self.time_spent,
            "createdAt": _iso(self.created_at),
        }
