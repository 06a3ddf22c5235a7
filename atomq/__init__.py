from datetime import timedelta
import logging

import click
from flask import Flask, jsonify, request
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from dotenv import load_dotenv
from flask_migrate import Migrate
from flask_compress import Compress
from sqlalchemy import text

# Load environment variables early so config is available for blueprint creation
load_dotenv()

from atomq.config import config

db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()
compress = Compress()


def _is_api_path(path: str) -> bool:
    return path.startswith(config.API_PREFIX + "/")


def create_app(test_config: dict | None = None) -> Flask:
    """
    Application factory for the Flask app.
    Loads environment variables, configures the database,
    and registers blueprints.
    """
    # Re-initialize config to ensure latest .env values are loaded
    from atomq.config import Config
    app_config = Config()
    app_config.validate()

    app = Flask(__name__)

    app.config["SECRET_KEY"] = app_config.SECRET_KEY
    app.config["SQLALCHEMY_DATABASE_URI"] = app_config.SQLALCHEMY_DATABASE_URI
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = app_config.SQLALCHEMY_TRACK_MODIFICATIONS
    app.config["SQLALCHEMY_ECHO"] = app_config.SQLALCHEMY_ECHO
    app.config["SESSION_COOKIE_SECURE"] = app_config.SESSION_COOKIE_SECURE
    app.config["SESSION_COOKIE_HTTPONLY"] = app_config.SESSION_COOKIE_HTTPONLY
    app.config["SESSION_COOKIE_SAMESITE"] = app_config.SESSION_COOKIE_SAMESITE
    app.config["REMEMBER_COOKIE_DURATION"] = timedelta(days=app_config.REMEMBER_COOKIE_DAYS)
    app.config["MIN_PASSWORD_LENGTH"] = app_config.MIN_PASSWORD_LENGTH
    app.config["BCRYPT_ROUNDS"] = app_config.BCRYPT_ROUNDS
    app.config["LOGIN_MAX_ATTEMPTS"] = app_config.LOGIN_MAX_ATTEMPTS
    app.config["LOGIN_ATTEMPT_WINDOW_MINUTES"] = app_config.LOGIN_ATTEMPT_WINDOW_MINUTES
    app.config["LOGIN_LOCKOUT_MINUTES"] = app_config.LOGIN_LOCKOUT_MINUTES
    app.config["MAINTENANCE_CACHE_SECONDS"] = app_config.MAINTENANCE_CACHE_SECONDS

    # Response compression settings
    app.config["COMPRESS_MIMETYPES"] = ["application/json"]
    app.config["COMPRESS_LEVEL"] = 6
    app.config["COMPRESS_MIN_SIZE"] = 500

    if test_config:
        app.config.update(test_config)

    # Connection pooling only applies to the MySQL driver
    if app.config["SQLALCHEMY_DATABASE_URI"].startswith("mysql"):
        app.config["SQLALCHEMY_ENGINE_OPTIONS"] = {
            "pool_size": 10,
            "pool_recycle": 3600,
            "pool_pre_ping": True,
            "max_overflow": 20,
            "connect_args": {
                "connect_timeout": 5,
                "charset": "utf8mb4",
            }
        }

    app.logger.setLevel(getattr(logging, app_config.LOG_LEVEL, logging.INFO))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    compress.init_app(app)

    from atomq.security import init_security
    init_security(app)

    @login_manager.user_loader
    def load_user(user_id):
        from atomq.auth.models import User
        try:
            return db.session.get(User, int(user_id))
        except (ValueError, TypeError):
            return None

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"error": "Unauthorized"}), 401

    @app.route("/")
    def index():
        return jsonify({
            "name": "Atom Q",
            "api": config.API_PREFIX,
        }), 200

    @app.route(f"{config.API_PREFIX}/health")
    def health():
        """Database connectivity check."""
        try:
            db.session.execute(text("SELECT 1"))
            return jsonify({"status": "ok", "database": "connected"}), 200
        except Exception:
            db.session.rollback()
            app.logger.exception("Health check failed")
            return jsonify({"status": "error", "database": "unavailable"}), 500

    # Register blueprints
    from atomq.auth import auth_bp
    app.register_blueprint(auth_bp)

    from atomq.activity import activity_bp
    app.register_blueprint(activity_bp)

    from atomq.quiz import quiz_bp
    app.register_blueprint(quiz_bp)

    from atomq.questions import questions_bp
    app.register_blueprint(questions_bp)

    from atomq.settings import settings_bp
    app.register_blueprint(settings_bp)

    from atomq.admin import admin_bp
    app.register_blueprint(admin_bp)

    # JSON error bodies for API routes, plain text elsewhere
    @app.errorhandler(404)
    def handle_404(e):
        app.logger.warning(f"404 error: {request.method} {request.path}")
        if _is_api_path(request.path):
            return jsonify({"error": f"Route not found: {request.method} {request.path}"}), 404
        return f"Page not found: {request.path}", 404

    @app.errorhandler(405)
    def handle_405(e):
        app.logger.warning(f"405 error: {request.method} {request.path}")
        if _is_api_path(request.path):
            return jsonify({"error": f"Method not allowed: {request.method} {request.path}"}), 405
        return e

    @app.errorhandler(500)
    def handle_500(e):
        app.logger.error(f"500 error: {request.method} {request.path}")
        if _is_api_path(request.path):
            return jsonify({"error": "Internal server error"}), 500
        return "Internal server error", 500

    @app.cli.command("create-admin")
    @click.argument("email")
    @click.option("--name", default="Administrator", help="Display name for a new account.")
    @click.password_option(help="Password for a new account.")
    def create_admin_command(email, name, password):
        """Create an administrator, or promote an existing user."""
        from atomq.auth.models import User, UserRole
        from atomq.auth.utils import hash_password

        email = email.strip().lower()
        user = User.query.filter_by(email=email).first()
        if user:
            user.role = UserRole.ADMIN
            click.echo(f"Promoted {email} to administrator")
        else:
            user = User(
                email=email,
                name=name,
                password_hash=hash_password(password),
                role=UserRole.ADMIN,
            )
            db.session.add(user)
            click.echo(f"Created administrator {email}")
        db.session.commit()

    # Create tables if they do not exist
    with app.app_context():
        from atomq import models  # noqa: F401
        db.create_all()

    return app
