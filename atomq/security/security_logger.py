"""
Security event logging.

Every event is one line on the application logger, prefixed with
"SECURITY" and carrying the client address, so auth problems can be
grepped out of ordinary request logs.
"""
import logging
from datetime import datetime

from flask import request, current_app, has_request_context


def _log_event(level: int, event: str, **fields):
    parts = [f"{name}={value}" for name, value in fields.items()]
    if has_request_context():
        parts.append(f"ip={request.remote_addr}")
    parts.append(f"at={datetime.utcnow().isoformat()}")
    current_app.logger.log(level, f"SECURITY {event}: {' '.join(parts)}")


class SecurityLogger:
    """Security event logger for login, lockout and authorization events."""

    @staticmethod
    def log_failed_login(email: str, reason: str = "Invalid credentials"):
        _log_event(logging.WARNING, "login_failed", email=email, reason=repr(reason))

    @staticmethod
    def log_successful_login(user_id: int, email: str):
        _log_event(logging.INFO, "login_succeeded", user_id=user_id, email=email)

    @staticmethod
    def log_account_locked(identifier: str, locked_until: datetime | None):
        """Log a login refused because the identifier is locked out."""
        until = locked_until.isoformat() if locked_until else "unknown"
        _log_event(logging.WARNING, "login_locked", email=identifier, locked_until=until)

    @staticmethod
    def log_unauthorized_access(resource: str, user_id: int | None = None):
        """
        Log a request refused for lack of privileges.

        Args:
            resource: Path that was requested
            user_id: Authenticated user, if any
        """
        _log_event(logging.WARNING, "forbidden", user_id=user_id or "anonymous", resource=resource)

    @staticmethod
    def log_attempts_cleared(admin_id: int, target: str):
        _log_event(logging.INFO, "login_attempts_cleared", admin_id=admin_id, target=target)
