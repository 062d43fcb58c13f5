"""Test settings - uses SQLite for fast local testing."""
import os

os.environ.setdefault("DEBUG", "True")
os.environ.setdefault(
    "SECRET_KEY",
    "test-only-secret-key-9f3b2c7a1e6d4058b7c2a9e1f0d3c6b8a5e2f7d4c1b0a9e8",
)

from .base import *  # noqa: E402,F401,F403

DEBUG = True

# Use SQLite for tests (no PostgreSQL dependency)
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

# Faster password hashing in tests
PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
]

# Disable Redis cache in tests
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}

# Disable Celery in tests
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_RESULT_BACKEND = "cache+memory://"

# Disable API throttling in tests for deterministic runs
REST_FRAMEWORK["DEFAULT_THROTTLE_CLASSES"] = []  # noqa: F405
REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"] = {}  # noqa: F405

# News providers never reached from tests
NEWS_API_KEY = ""
GNEWS_API_KEY = ""
CURRENTS_API_KEY = ""

# Disable logging noise during tests
LOGGING["root"]["level"] = "WARNING"  # noqa: F405
LOGGING["loggers"]["simulator"]["handlers"] = ["console"]  # noqa: F405
LOGGING["loggers"]["simulator"]["level"] = "WARNING"  # noqa: F405
