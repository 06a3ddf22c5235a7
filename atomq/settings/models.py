from datetime import datetime

from atomq import db


# Accent colour keys understood by the client theme
ACCENT_COLORS = ("blue", "green", "purple", "red", "orange", "pink")


class Settings(db.Model):
    """Single-row table holding site configuration editable by admins."""
    __tablename__ = "settings"

    id = db.Column(db.Integer, primary_key=True)
    site_title = db.Column(db.String(255), nullable=False, default="Atom Q")
    site_description = db.Column(
        db.Text, nullable=False, default="Knowledge testing portal powered by Atom Labs"
    )
    maintenance_mode = db.Column(db.Boolean, nullable=False, default=False)
    allow_registration = db.Column(db.Boolean, nullable=False, default=True)
    enable_github_auth = db.Column(db.Boolean, nullable=False, default=False)
    accent_color = db.Column(db.String(20), nullable=False, default="blue")
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Settings {self.site_title}>"

    def to_public_dict(self) -> dict:
        return {
            "siteTitle": self.site_title,
            "siteDescription": self.site_description,
            "allowRegistration": self.allow_registration,
            "enableGithubAuth": self.enable_github_auth,
            "accentColor": self.accent_color,
            "maintenanceMode": self.maintenance_mode,
        }

    def to_dict(self) -> dict:
        data = self.to_public_dict()
        data["id"] = self.id
        data["updatedAt"] = self.updated_at.isoformat() if self.updated_at else None
        return data
