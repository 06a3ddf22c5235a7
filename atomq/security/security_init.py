"""
Wires the security package into an application.
"""
from flask import Flask

from .account_lockout import AccountLockout, get_account_lockout
from .security_headers import SecurityHeaders


def init_security(app: Flask) -> AccountLockout:
    """
    Install response headers and apply the app's login rate limit settings
    to the shared lockout tracker, which is returned.
    """
    SecurityHeaders.init_app(app)

    lockout = get_account_lockout()
    lockout.configure(
        max_attempts=app.config["LOGIN_MAX_ATTEMPTS"],
        window_minutes=app.config["LOGIN_ATTEMPT_WINDOW_MINUTES"],
        lockout_duration_minutes=app.config["LOGIN_LOCKOUT_MINUTES"],
    )
    app.logger.info(
        f"Login lockout: {lockout.max_attempts} attempts per "
        f"{app.config['LOGIN_ATTEMPT_WINDOW_MINUTES']} min, "
        f"locked for {app.config['LOGIN_LOCKOUT_MINUTES']} min"
    )
    return lockout
