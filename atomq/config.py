"""
Configuration module for the application.
All configuration values are read from environment variables.
"""
import os
import secrets
import warnings


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name, "")
    return int(value) if value else default


def _bool_env(name: str, default: bool = False) -> bool:
    value = os.getenv(name, "")
    return value.lower() == "true" if value else default


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self):
        """Initialize configuration from environment variables."""
        # Flask Configuration
        self.SECRET_KEY: str = os.getenv("SECRET_KEY", "")
        self.FLASK_ENV: str = os.getenv("FLASK_ENV", "")
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

        # Generate a development SECRET_KEY if not set and in development mode
        if not self.SECRET_KEY and self.FLASK_ENV != "production":
            self.SECRET_KEY = secrets.token_urlsafe(32)
            warnings.warn(
                "SECRET_KEY not set. Generated a temporary key for development. "
                "Set SECRET_KEY in your .env file for production!",
                UserWarning
            )

        # Database Configuration
        self.DATABASE_URL: str = os.getenv("DATABASE_URL", "")
        self.DB_USER: str = os.getenv("DB_USER", "")
        self.DB_PASSWORD: str = os.getenv("DB_PASSWORD", "")
        self.DB_HOST: str = os.getenv("DB_HOST", "localhost")
        self.DB_PORT: str = os.getenv("DB_PORT", "3306")
        self.DB_NAME: str = os.getenv("DB_NAME", "atomq")

        # API Configuration
        self.API_PREFIX: str = os.getenv("API_PREFIX", "/api")

        # Password rules
        self.MIN_PASSWORD_LENGTH: int = _int_env("MIN_PASSWORD_LENGTH", 6)
        self.BCRYPT_ROUNDS: int = _int_env("BCRYPT_ROUNDS", 12)

        # Login rate limiting (in-process)
        self.LOGIN_MAX_ATTEMPTS: int = _int_env("LOGIN_MAX_ATTEMPTS", 5)
        self.LOGIN_ATTEMPT_WINDOW_MINUTES: int = _int_env("LOGIN_ATTEMPT_WINDOW_MINUTES", 5)
        self.LOGIN_LOCKOUT_MINUTES: int = _int_env("LOGIN_LOCKOUT_MINUTES", 15)

        # Site settings
        self.MAINTENANCE_CACHE_SECONDS: int = _int_env("MAINTENANCE_CACHE_SECONDS", 300)

        # Session Configuration
        self.SESSION_COOKIE_SECURE: bool = _bool_env("SESSION_COOKIE_SECURE")
        self.SESSION_COOKIE_HTTPONLY: bool = _bool_env("SESSION_COOKIE_HTTPONLY", True)
        self.SESSION_COOKIE_SAMESITE: str = os.getenv("SESSION_COOKIE_SAMESITE", "Lax")
        self.REMEMBER_COOKIE_DAYS: int = _int_env("REMEMBER_COOKIE_DAYS", 1)

        # SQLAlchemy Configuration
        self.SQLALCHEMY_TRACK_MODIFICATIONS: bool = False
        self.SQLALCHEMY_ECHO: bool = _bool_env("SQLALCHEMY_ECHO")

    @property
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        """DATABASE_URL wins; otherwise build a MySQL URI from the DB_* variables."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"mysql+pymysql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    def validate(self) -> None:
        """
        Validate required configuration values.
        Only enforces SECRET_KEY in production environment.
        """
        if not self.SECRET_KEY and self.FLASK_ENV == "production":
            raise ValueError(
                "SECRET_KEY environment variable is required in production. "
                "Set it in your .env file or environment variables."
            )


# Global config instance - re-initialized by create_app() after load_dotenv()
config = Config()
