"""
Test settings for the Manufacturer URL Matching service.

Uses in-memory SQLite and eager Celery for fast test execution.
"""

from .base import *

# Test mode
DEBUG = False

ALLOWED_HOSTS = ["localhost", "127.0.0.1", "testserver"]

# Test database - in-memory SQLite for speed
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

# Test Cache - use local memory cache
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "unique-snowflake",
    }
}

# Test Celery - run tasks synchronously
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True

# Test logging - minimal output
LOGGING["loggers"]["django"]["level"] = "WARNING"
LOGGING["loggers"]["matching"]["level"] = "WARNING"

AUTH_PASSWORD_VALIDATORS = []

# Use faster password hasher for tests
PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
]

# No external services in tests
SENTRY_DSN = ""
SERPAPI_KEY = ""

# Test matching settings - fail fast
MATCH_REQUEST_TIMEOUT = 2
MATCH_SEARCH_MAX_RESULTS = 5
MATCH_VALIDATION_THRESHOLD = 0.65
MATCH_DOMAIN_THRESHOLD_RELAXATION = 0.1
MATCH_ALLOW_RESELLERS = False
