import os


def _database_url():
    """DATABASE_URL with the legacy "postgres://" scheme normalized.

    SQLAlchemy only accepts "postgresql://", but some hosts still hand out
    the short form.
    """
    url = os.environ.get("DATABASE_URL", "")
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    return url or None


class Config:
    """Settings shared by every environment. Read from os.environ at import."""

    SECRET_KEY = os.environ.get("SECRET_KEY")
    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 300,
    }

    # --- Planning board ---
    # Upper bound on the onboarding custom-column builder. Appending columns
    # later from the board is not limited.
    PLANNING_MAX_CUSTOM_COLUMNS = int(
        os.environ.get("PLANNING_MAX_CUSTOM_COLUMNS", 7)
    )
    # Flask-Limiter string applied to every write route.
    PLANNING_WRITE_RATE_LIMIT = os.environ.get(
        "PLANNING_WRITE_RATE_LIMIT", "60 per minute"
    )

    # --- Session cookie (browser clients of the board) ---
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"

    # --- CSRF ---
    # Checked per request in create_app(): cookie-authenticated writes need a
    # token, Bearer clients are exempt.
    WTF_CSRF_ENABLED = True
    WTF_CSRF_CHECK_DEFAULT = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    REQUIRED_ENV = ("SECRET_KEY", "DATABASE_URL")

    @classmethod
    def validate(cls):
        """Raise RuntimeError naming every missing required env var."""
        missing = [name for name in cls.REQUIRED_ENV if not os.environ.get(name)]
        if missing:
            raise RuntimeError(
                f"Missing required environment variables: {', '.join(missing)}"
            )


class DevConfig(Config):
    """Local development. Falls back to a SQLite file."""

    DEBUG = True
    SQLALCHEMY_DATABASE_URI = Config.SQLALCHEMY_DATABASE_URI or "sqlite:///planboard.db"
    SESSION_COOKIE_SECURE = False
    REQUIRED_ENV = ("SECRET_KEY",)


class TestConfig(Config):
    """pytest: in-memory SQLite, no CSRF, no rate limits."""

    TESTING = True
    DEBUG = True
    SECRET_KEY = "planboard-test-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    WTF_CSRF_ENABLED = False
    RATELIMIT_ENABLED = False
    SESSION_COOKIE_SECURE = False
    SERVER_NAME = "localhost"
    REQUIRED_ENV = ()


class ProdConfig(Config):
    DEBUG = False
    SESSION_COOKIE_SECURE = True


config_by_name = {
    "development": DevConfig,
    "production": ProdConfig,
    "testing": TestConfig,
}
