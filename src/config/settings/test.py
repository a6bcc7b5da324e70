"""Test settings - uses SQLite for fast local testing."""
import os

os.environ.setdefault("SECRET_KEY", "test-only-7f3b9c2e1d8a4f6b0e5c9a7d3b1f8e2c6a4d0b9f7e3c5a1d")
os.environ.setdefault("DEBUG", "True")

from .base import *  # noqa: E402,F401,F403

DEBUG = True

# Use SQLite for tests (no PostgreSQL dependency)
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}
DATABASES["default"]["ATOMIC_REQUESTS"] = False

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

# Run Celery tasks inline
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"

# Disable API throttling in tests for deterministic runs
REST_FRAMEWORK["DEFAULT_THROTTLE_CLASSES"] = []  # noqa: F405
REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"] = {}  # noqa: F405

# No pause between import batches
OFFER_IMPORT_BATCH_DELAY = 0

# Disable logging noise during tests; let caplog see the pipeline logger
LOGGING["handlers"].pop("file")  # noqa: F405
LOGGING["root"]["level"] = "WARNING"  # noqa: F405
LOGGING["handlers"]["console"]["level"] = "WARNING"  # noqa: F405
LOGGING["loggers"]["offerfunnel"]["handlers"] = []  # noqa: F405
LOGGING["loggers"]["offerfunnel"]["propagate"] = True  # noqa: F405
LOGGING["loggers"]["offerfunnel"]["level"] = "WARNING"  # noqa: F405
LOGGING["loggers"]["offerfunnel.imports"]["handlers"] = []  # noqa: F405
LOGGING["loggers"]["offerfunnel.imports"]["propagate"] = True  # noqa: F405
