"""Settings for the pytest run.

SQLite, local-memory cache, relaxed throttles and eager Celery so the
suite needs no external services.  ``DATABASE_URL`` still wins when set,
which is how the row-locking tests run against PostgreSQL.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")

from config.settings import *  # noqa: E402,F401,F403
from config.settings import REST_FRAMEWORK, config, db_url  # noqa: E402

DEBUG = False

DATABASES = {
    "default": config("DATABASE_URL", default="sqlite:///:memory:", cast=db_url)
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    "DEFAULT_THROTTLE_RATES": {
        "anon": "10000/minute",
        "user": "10000/minute",
        "order_creation": "10000/minute",
        "order_listing": "10000/minute",
    },
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"
