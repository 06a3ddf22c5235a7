import json
from datetime import datetime
from flask_login import UserMixin

from atomq import db


class UserRole:
    USER = "USER"
    ADMIN = "ADMIN"

    ALL = (USER, ADMIN)


class User(db.Model, UserMixin):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(255), nullable=True)
    role = db.Column(db.String(20), nullable=False, default=UserRole.USER, index=True)
    phone = db.Column(db.String(20), nullable=True)
    avatar = db.Column(db.String(500), nullable=True)

    # --- Enrollment filters ---
    campus = db.Column(db.String(255), nullable=True, index=True)
    tags = db.Column(db.Text, nullable=True)  # JSON list of strings

    # Overrides UserMixin.is_active; Flask-Login refuses inactive users
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<User {self.email} ({self.role})>"

    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def get_tags(self) -> list[str]:
        if not self.tags:
            return []
        try:
            tags = json.loads(self.tags)
        except ValueError:
            return []
        return tags if isinstance(tags, list) else []

    def set_tags(self, tags: list[str]) -> None:
        self.tags = json.dumps([t.strip() for t in tags if t and t.strip()])

    def to_summary(self) -> dict:
        """Public identity embedded in other payloads."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "avatar": self.avatar,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "phone": self.phone,
            "avatar": self.avatar,
            "campus": self.campus,
            "tags": self.get_tags(),
            "isActive": self.is_active,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
