import sys
from datetime import timedelta

from .base import *

INSTALLED_APPS += [
    'django_extensions',
    'corsheaders',
    'rest_framework',
    'rest_framework_simplejwt',
    'drf_spectacular',
    'apps.shared',
    'apps.accounts',
    'apps.events',
    'apps.tickets',
    'apps.scans',
]

REST_FRAMEWORK = {
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAuthenticated',
    ],
    'DEFAULT_SCHEMA_CLASS': 'drf_spectacular.openapi.AutoSchema',
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'rest_framework_simplejwt.authentication.JWTAuthentication',
    ],
    'EXCEPTION_HANDLER': 'apps.shared.exceptions.api_handler.custom_exception_handler',
}

AUTH_USER_MODEL = 'accounts.CustomUser'

MIDDLEWARE = [
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

# Environment
TESTING_ENVIRONMENT = 'testing'
PRODUCTION_ENVIRONMENT = 'production'
STAGING_ENVIRONMENT = 'staging'
DEVELOPMENT_ENVIRONMENT = 'development'

if 'test' in sys.argv:  # noqa: SIM108
    ENVIRONMENT = TESTING_ENVIRONMENT
else:
    ENVIRONMENT = env.str('ENVIRONMENT', default=DEVELOPMENT_ENVIRONMENT)

# CORS
CORS_ALLOW_CREDENTIALS = True
CORS_ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    env('FRONTEND_URL', default='http://localhost:3000'),
]

# Allow all origins in development (can be restrictive in production)
if DEBUG:
    CORS_ALLOW_ALL_ORIGINS = True

CORS_ALLOW_HEADERS = [
    'accept',
    'accept-encoding',
    'authorization',
    'content-type',
    'dnt',
    'origin',
    'user-agent',
    'x-csrftoken',
    'x-requested-with',
]

# Swagger
SPECTACULAR_SETTINGS = {
    'TITLE': 'EventFlow API',
    'DESCRIPTION': 'Ticket generation pipeline and scan validation',
    'VERSION': 'v1',
    'SERVE_INCLUDE_SCHEMA': False,
}

# Simple JWT Authentication Configuration
SIMPLE_JWT = {
    'ACCESS_TOKEN_LIFETIME': timedelta(minutes=60),  # 1 hour
    'REFRESH_TOKEN_LIFETIME': timedelta(days=7),  # 1 week
    'ROTATE_REFRESH_TOKENS': True,
    'UPDATE_LAST_LOGIN': True,

    'ALGORITHM': 'HS256',
    'SIGNING_KEY': SECRET_KEY,
    'VERIFYING_KEY': None,
    'AUDIENCE': None,
    'ISSUER': env.str('JWT_ISSUER', default=None),

    'AUTH_HEADER_TYPES': ('Bearer',),
    'AUTH_HEADER_NAME': 'HTTP_AUTHORIZATION',
    'USER_ID_FIELD': 'id',
    'USER_ID_CLAIM': 'user_id',
    'USER_AUTHENTICATION_RULE': 'rest_framework_simplejwt.authentication.default_user_authentication_rule',

    'AUTH_TOKEN_CLASSES': ('rest_framework_simplejwt.tokens.AccessToken',),
    'TOKEN_TYPE_CLAIM': 'token_type',
    'JTI_CLAIM': 'jti',
}

# Celery Configuration
CELERY_BROKER_URL = env.str('QUEUE_URL', default='redis://localhost:6379/0')
CELERY_RESULT_BACKEND = env.str('CELERY_RESULT_BACKEND', default='redis://localhost:6379/1')

# Celery security and performance settings
CELERY_TASK_SERIALIZER = 'json'
CELERY_ACCEPT_CONTENT = ['json']
CELERY_RESULT_SERIALIZER = 'json'
CELERY_TIMEZONE = TIME_ZONE
CELERY_ENABLE_UTC = True

# Celery task execution settings
CELERY_TASK_ALWAYS_EAGER = False
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_TASK_IGNORE_RESULT = False

# Celery worker settings
CELERY_WORKER_PREFETCH_MULTIPLIER = 1
CELERY_WORKER_MAX_TASKS_PER_CHILD = 1000

# Celery task time limits (in seconds)
CELERY_TASK_SOFT_TIME_LIMIT = 60
CELERY_TASK_TIME_LIMIT = 120
CELERY_TASK_ACKS_LATE = True
CELERY_TASK_REJECT_ON_WORKER_LOST = True

# Generation queues: requests are consumed by the external renderer,
# results by this project's worker
CELERY_TASK_QUEUE_MAX_PRIORITY = 10
CELERY_TASK_DEFAULT_PRIORITY = 5
CELERY_BROKER_TRANSPORT_OPTIONS = {
    'priority_steps': list(range(11)),
    'queue_order_strategy': 'priority',
}
CELERY_TASK_ROUTES = {
    'tickets.generate': {'queue': 'generation_requests'},
    'tickets.generation_result': {'queue': 'generation_results'},
}

# Celery result backend settings
CELERY_RESULT_EXPIRES = 3600  # 1 hour

# Redis Cache Configuration (separate from Celery)
CACHES = {
    'default': {
        'BACKEND': 'django_redis.cache.RedisCache',
        'LOCATION': env.str('REDIS_URL', default='redis://localhost:6379/2'),
        'OPTIONS': {
            'CLIENT_CLASS': 'django_redis.client.DefaultClient',
        },
        'TIMEOUT': 3600,  # 1 hour default timeout
        'KEY_PREFIX': 'event_flow',
        'VERSION': 1,
    }
}

# Ticket generation pipeline
GENERATION_ATTEMPTS = env.int('GENERATION_ATTEMPTS', default=5)
GENERATION_BACKOFF_MS = env.int('GENERATION_BACKOFF_MS', default=2000)
GENERATION_PRIORITY = env.int('GENERATION_PRIORITY', default=1)
MAX_ENQUEUED_COMPLETE = env.int('MAX_ENQUEUED_COMPLETE', default=100)
MAX_ENQUEUED_FAIL = env.int('MAX_ENQUEUED_FAIL', default=50)
GENERATION_IDEMPOTENCY_TTL = env.int('GENERATION_IDEMPOTENCY_TTL', default=86400)
GENERATION_MAX_TICKETS = env.int('GENERATION_MAX_TICKETS', default=500)
DEFAULT_TICKET_TEMPLATE_PATH = env.str('DEFAULT_TICKET_TEMPLATE_PATH', default='/templates/default/')
WEBHOOK_SECRET = env.str('WEBHOOK_SECRET', default='')

# Scan validation
SCAN_TIMEOUT_MS = env.int('SCAN_TIMEOUT_MS', default=2000)

FRAUD_THRESHOLDS = {
    'rapid_scan_seconds': env.float('FRAUD_RAPID_SCAN_SECONDS', default=10),
    'frequent_scan_seconds': env.float('FRAUD_FREQUENT_SCAN_SECONDS', default=30),
    'recent_window': env.int('FRAUD_RECENT_WINDOW', default=5),
    'unusual_hour_start': env.int('FRAUD_UNUSUAL_HOUR_START', default=6),
    'unusual_hour_end': env.int('FRAUD_UNUSUAL_HOUR_END', default=22),
    'high_frequency_seconds': env.float('FRAUD_HIGH_FREQUENCY_SECONDS', default=60),
    'impossible_frequency_seconds': env.float('FRAUD_IMPOSSIBLE_FREQUENCY_SECONDS', default=5),
    'impossible_distance_km': env.float('FRAUD_IMPOSSIBLE_DISTANCE_KM', default=10),
    'weight_rapid_scans': env.int('FRAUD_WEIGHT_RAPID_SCANS', default=30),
    'weight_frequent_scans': env.int('FRAUD_WEIGHT_FREQUENT_SCANS', default=15),
    'weight_multiple_locations': env.int('FRAUD_WEIGHT_MULTIPLE_LOCATIONS', default=25),
    'weight_multiple_devices': env.int('FRAUD_WEIGHT_MULTIPLE_DEVICES', default=20),
    'weight_unusual_hours': env.int('FRAUD_WEIGHT_UNUSUAL_HOURS', default=10),
    'weight_high_frequency': env.int('FRAUD_WEIGHT_HIGH_FREQUENCY', default=25),
    'weight_impossible_frequency': env.int('FRAUD_WEIGHT_IMPOSSIBLE_FREQUENCY', default=50),
    'weight_impossible_distance': env.int('FRAUD_WEIGHT_IMPOSSIBLE_DISTANCE', default=40),
}
