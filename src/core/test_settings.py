"""Settings used by the test suite: in-memory SQLite and fixed secrets."""

from .settings import *  # noqa: F401,F403

DEBUG = False
SECRET_KEY = "test-secret-key-not-for-production-use-0123456789"
JWT_SECRET_KEY = "test-jwt-secret-key-not-for-production-use-0123456789"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

ADMIN_ACCOUNT = {
    "EMAIL": "admin@news.test",
    "PASSWORD": "admin-password",
    "NAME": "Test Admin",
}

NEWS_HIDE_INACTIVE_FROM_ANONYMOUS = False
DEBUG_AUTH_ERRORS = False
REDIS_URL = "redis://localhost:6379/15"

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {"null": {"class": "logging.NullHandler"}},
    "root": {"handlers": ["null"], "level": "WARNING"},
}
