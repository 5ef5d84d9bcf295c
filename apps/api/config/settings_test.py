"""
Test settings: in-memory SQLite, a fast password hasher and eager Celery,
so no Postgres, Redis, MinIO or legacy MySQL is needed.
"""
from .settings import *  # noqa: F401,F403
from .settings import LEGACY_MYSQL

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True

# Legacy booking database is never reachable from tests
LEGACY_MYSQL = dict(LEGACY_MYSQL, HOST='', DATABASE='')
