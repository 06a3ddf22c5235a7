from flask import current_app, jsonify
from flask_login import login_user, logout_user, current_user

from atomq import db
from atomq.config import config
from atomq.auth import auth_bp
from atomq.auth.models import User, UserRole
from atomq.auth.utils import (
    hash_password,
    is_valid_email,
    normalize_email,
    validate_password,
    verify_password,
)
from atomq.common.decorators import api_login_required
from atomq.common.validators import get_json_body, invalid_body_response
from atomq.security import SecurityLogger, get_account_lockout
from atomq.settings.service import get_settings, is_maintenance_mode


@auth_bp.route("/", methods=["GET"])
def auth_root():
    """Simple info endpoint for the auth API."""
    base_path = f"{config.API_PREFIX}/auth"
    return jsonify(
        {
            "status": "ok",
            "endpoints": [
                f"{base_path}/register",
                f"{base_path}/login",
                f"{base_path}/logout",
                f"{base_path}/me",
            ],
        }
    ), 200


@auth_bp.route("/register", methods=["POST"])
def register():
    data = get_json_body()
    if data is None:
        return invalid_body_response()

    email = normalize_email(data.get("email"))
    password = data.get("password") or ""
    name = data.get("name")
    name = name.strip() if isinstance(name, str) else ""
    phone = data.get("phone")
    phone = phone.strip() or None if isinstance(phone, str) else None

    if not email or not password or not name:
        return jsonify({"error": "Name, email and password are required"}), 400

    if not isinstance(password, str):
        return jsonify({"error": "Password must be a string"}), 400

    if not is_valid_email(email):
        return jsonify({"error": "Please provide a valid email address"}), 400

    ok, error = validate_password(password)
    if not ok:
        return jsonify({"error": error}), 400

    try:
        if User.query.filter_by(email=email).first():
            return jsonify({"error": "User with this email already exists"}), 400

        settings = get_settings()
        if not settings.allow_registration:
            current_app.logger.warning(f"Registration rejected while disabled: {email}")
            return jsonify({"error": "Registration is currently disabled"}), 403

        user = User(
            name=name,
            email=email,
            password_hash=hash_password(password),
            phone=phone,
            role=UserRole.USER,
        )
        db.session.add(user)
        db.session.commit()

        current_app.logger.info(f"New user registered: {email} (id={user.id})")
        return jsonify({
            "message": "User created successfully",
            "user": {
                "id": user.id,
                "name": user.name,
                "email": user.email,
                "role": user.role,
            },
        }), 201
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Registration error")
        return jsonify({"error": "An error occurred during registration. Please try again."}), 500


@auth_bp.route("/login", methods=["POST"])
def login():
    data = get_json_body()
    if data is None:
        return invalid_body_response()

    email = normalize_email(data.get("email"))
    password = data.get("password") or ""
    remember = data.get("remember") is True

    if not email or not password or not isinstance(password, str):
        return jsonify({"error": "Email and password are required"}), 400

    lockout = get_account_lockout()
    status = lockout.check(email)
    if not status.allowed:
        SecurityLogger.log_account_locked(email, status.locked_until)
        minutes = status.minutes_remaining(lockout.clock())
        return jsonify({
            "error": f"Too many login attempts. Account locked for {minutes} minutes."
        }), 429

    try:
        user = User.query.filter_by(email=email).first()

        if is_maintenance_mode() and not (user and user.is_admin() and user.is_active):
            current_app.logger.warning(f"Login rejected during maintenance: {email}")
            return jsonify({
                "error": "Site is under maintenance. Only administrators can login."
            }), 403

        if not user or not user.is_active or not verify_password(password, user.password_hash):
            reason = "Inactive account" if user and not user.is_active else "Invalid credentials"
            SecurityLogger.log_failed_login(email, reason)
            lockout.record_failed_attempt(email)
            return jsonify({"error": "Invalid email or password"}), 401

        lockout.record_successful_attempt(email)
        login_user(user, remember=remember)
        SecurityLogger.log_successful_login(user.id, user.email)

        return jsonify({
            "message": "Login successful",
            "user": user.to_dict(),
        }), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Login error")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.route("/logout", methods=["POST"])
@api_login_required
def logout_route():
    """End the current session."""
    user_id = current_user.id
    logout_user()
    current_app.logger.info(f"User {user_id} logged out")
    return jsonify({"message": "Logged out"}), 200


@auth_bp.route("/me", methods=["GET"])
@api_login_required
def me():
    return jsonify({"user": current_user.to_dict()}), 200
