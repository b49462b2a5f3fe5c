from pathlib import Path

from celery.schedules import crontab
from decouple import config, Csv
from kombu import Queue
import dj_database_url

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = config('SECRET_KEY', default='django-insecure-cphub-dev-key')

DEBUG = config('DEBUG', default=False, cast=bool)

ALLOWED_HOSTS = config('ALLOWED_HOSTS', default='localhost,127.0.0.1', cast=Csv())

# Application definition
INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',

    # Local
    'core',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'cphub_project.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'cphub_project.wsgi.application'

# Database
# Uses DATABASE_URL from .env
DATABASES = {
    'default': dj_database_url.config(
        default=config('DATABASE_URL', default='sqlite:///db.sqlite3')
    )
}

# Internationalization
LANGUAGE_CODE = 'en-us'
TIME_ZONE = config('TIME_ZONE', default='Asia/Kolkata')
USE_I18N = True
USE_TZ = True

STATIC_URL = 'static/'

# Default primary key field type
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# Logging
LOG_LEVEL = config('LOG_LEVEL', default='INFO')
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '%(asctime)s %(levelname)s %(name)s: %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'loggers': {
        'core': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': False,
        },
        'celery': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
        },
    },
}

# Celery Configuration
CELERY_BROKER_URL = config('CELERY_BROKER_URL', default='redis://localhost:6379/0')
CELERY_RESULT_BACKEND = config('CELERY_RESULT_BACKEND', default='redis://localhost:6379/0')
CELERY_ACCEPT_CONTENT = ['json']
CELERY_TASK_SERIALIZER = 'json'
CELERY_RESULT_SERIALIZER = 'json'
CELERY_TIMEZONE = TIME_ZONE
CELERY_TASK_DEFAULT_QUEUE = 'celery'
CELERY_TASK_QUEUES = (
    Queue('celery'),
    Queue('sync_fast'),
    Queue('sync_slow'),
)
CELERY_TASK_ROUTES = {
    'core.tasks.update_ratings': {'queue': 'sync_slow'},
    'core.tasks.update_activity': {'queue': 'sync_slow'},
    'core.tasks.update_contests': {'queue': 'sync_fast'},
}
CELERY_BEAT_SCHEDULE = {
    'update-ratings-hourly': {
        'task': 'core.tasks.update_ratings',
        'schedule': crontab(minute=0),
        'args': ('cron',),
    },
    'update-contests-hourly': {
        'task': 'core.tasks.update_contests',
        'schedule': crontab(minute=0),
        'args': ('cron',),
    },
    'update-activity-hourly': {
        'task': 'core.tasks.update_activity',
        'schedule': crontab(minute=0),
        'args': ('cron',),
    },
}

# Sync triggers
CRON_SECRET_TOKEN = config('CRON_SECRET_TOKEN', default='default-secret')
SYNC_RUN_ON_STARTUP = config('SYNC_RUN_ON_STARTUP', default=True, cast=bool)
SYNC_TRIGGER_INLINE = config('SYNC_TRIGGER_INLINE', default=True, cast=bool)
SYNC_USE_REDIS = config('SYNC_USE_REDIS', default=True, cast=bool)
SYNC_REDIS_URL = config('SYNC_REDIS_URL', default=CELERY_BROKER_URL)
SYNC_GUARD_TTL_SECONDS = config('SYNC_GUARD_TTL_SECONDS', default=3 * 60 * 60, cast=int)

# External sources
SOURCE_TIMEOUT_SECONDS = config('SOURCE_TIMEOUT_SECONDS', default=10, cast=int)
SOURCE_HTML_TIMEOUT_SECONDS = config('SOURCE_HTML_TIMEOUT_SECONDS', default=15, cast=int)
SOURCE_RETRY_ATTEMPTS = config('SOURCE_RETRY_ATTEMPTS', default=3, cast=int)
SOURCE_RETRY_BASE_DELAY_SECONDS = config('SOURCE_RETRY_BASE_DELAY_SECONDS', default=1.0, cast=float)
CF_SUBMISSIONS_PAGE_SIZE = config('CF_SUBMISSIONS_PAGE_SIZE', default=500, cast=int)
CF_SUBMISSIONS_MAX_PAGES = config('CF_SUBMISSIONS_MAX_PAGES', default=10, cast=int)
YOUTUBE_API_URL = config('YOUTUBE_API_URL', default='https://www.googleapis.com/youtube/v3')
YOUTUBE_API_KEY = config('YOUTUBE_API_KEY', default='')

# Contest calendar
CONTEST_PAST_RETENTION = config('CONTEST_PAST_RETENTION', default=20, cast=int)
CONTEST_SOLUTIONS_RETRY_PER_RUN = config('CONTEST_SOLUTIONS_RETRY_PER_RUN', default=3, cast=int)
