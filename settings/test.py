"""Settings for the test suite (pytest-django: DJANGO_SETTINGS_MODULE=settings.test)."""

from .main import *

ENVIRONMENT = TESTING_ENVIRONMENT
DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

# Use in-memory cache for tests
CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'test-cache',
    }
}

CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'
CELERY_BROKER_TRANSPORT_OPTIONS = {}

WEBHOOK_SECRET = 'test-webhook-secret'
DB_RETRY_BACKOFF_MS = 1
