"""
Django settings for trimcast project.

All deployment-specific values come from the environment. Missing storage
credentials do not stop the process; they are reported by the system check
framework (see clips/checks.py) and by the /trim endpoint.
"""

import os
from pathlib import Path


def _env_int(name, default=None):
    value = os.environ.get(name, '')
    if not value.strip():
        return default
    return int(value)


def _env_float(name, default=None):
    value = os.environ.get(name, '')
    if not value.strip():
        return default
    return float(value)


def _env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'trimcast-insecure-development-key')

DEBUG = _env_bool('DJANGO_DEBUG', False)

ALLOWED_HOSTS = [h.strip() for h in os.environ.get('DJANGO_ALLOWED_HOSTS', '*').split(',') if h.strip()]

INSTALLED_APPS = [
    'clips',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'trimcast.urls'

WSGI_APPLICATION = 'trimcast.wsgi.application'

# No models: the service keeps no database state
DATABASES = {}

USE_TZ = True
TIME_ZONE = 'UTC'

# Request bodies are tiny JSON documents
DATA_UPLOAD_MAX_MEMORY_SIZE = 64 * 1024

SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = 'DENY'

# Authentication: exact value expected in the Authorization header
TRIMCAST_API_KEY = os.environ.get('SERVER_AUTH', '')

# BunnyCDN storage zone
TRIMCAST_STORAGE_HOST = os.environ.get('BUNNY_HOSTNAME', '')
TRIMCAST_STORAGE_ZONE = os.environ.get('BUNNY_STORAGENAME', '')
TRIMCAST_STORAGE_ACCESS_KEY = os.environ.get('BUNNY_AUTH', '')

# Public pull zone serving uploaded clips
TRIMCAST_CDN_HOST = os.environ.get('BUNNY_CDN_ENDPOINT', '')

# Token authentication for the pull zone (empty disables signing)
TRIMCAST_SIGNING_SECRET = os.environ.get('BUNNY_CDN_TOKEN_AUTH', '')
TRIMCAST_SIGNING_EXPIRY_HOURS = _env_float('TRIMCAST_SIGNING_EXPIRY_HOURS', 3.0)

# Optional cap on clip length in seconds (None disables the cap)
TRIMCAST_MAX_DURATION = _env_int('TRIMCAST_MAX_DURATION')

# ffmpeg executable, overridable for hosts without ffmpeg on PATH
TRIMCAST_FFMPEG_BINARY = os.environ.get('FFMPEG_PATH', 'ffmpeg')

# Source cache
TRIMCAST_CACHE_DIR = Path(os.environ.get('TRIMCAST_CACHE_DIR', BASE_DIR / 'cache'))
TRIMCAST_CACHE_TTL = _env_int('TRIMCAST_CACHE_TTL', 60 * 60)
TRIMCAST_CACHE_RECONCILE = _env_bool('TRIMCAST_CACHE_RECONCILE', True)

# Timeouts in seconds for each network or child-process stage
TRIMCAST_DOWNLOAD_TIMEOUT = _env_int('TRIMCAST_DOWNLOAD_TIMEOUT', 30)
TRIMCAST_TRIM_TIMEOUT = _env_int('TRIMCAST_TRIM_TIMEOUT', 600)
TRIMCAST_UPLOAD_TIMEOUT = _env_int('TRIMCAST_UPLOAD_TIMEOUT', 120)

# yt-dlp: cookie header for age-restricted videos, proxy for blocked hosts
TRIMCAST_YTDLP_COOKIE = os.environ.get('COOKIE_BYPASS', '')
TRIMCAST_YTDLP_PROXY = os.environ.get('TRIMCAST_YTDLP_PROXY', '')

# Default port for `manage.py runserver`
TRIMCAST_PORT = os.environ.get('PORT', '') or '3000'

TRIMCAST_LOG_LEVEL = os.environ.get('TRIMCAST_LOG_LEVEL', 'INFO')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '[{asctime}] {levelname} {name}: {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'loggers': {
        'clips': {
            'handlers': ['console'],
            'level': TRIMCAST_LOG_LEVEL,
            'propagate': False,
        },
        'trimcast': {
            'handlers': ['console'],
            'level': TRIMCAST_LOG_LEVEL,
            'propagate': False,
        },
    },
}
