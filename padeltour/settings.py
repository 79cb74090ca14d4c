"""
Django settings for padeltour.

The engine keeps no database state, so no DATABASES are configured beyond
an in-memory sqlite for Django's own test runner.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get('PADELTOUR_SECRET_KEY', 'padeltour-development-key')

DEBUG = os.environ.get('PADELTOUR_DEBUG', 'true').lower() == 'true'

ALLOWED_HOSTS = []

INSTALLED_APPS = [
    'padeltour.tournament_core',
    'padeltour.tournament',
]

MIDDLEWARE = []

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

USE_TZ = True
TIME_ZONE = 'UTC'

# Ranking points by final position, per category. Positions left out fall
# back to the built-in tables, e.g.
#   PADELTOUR_POINT_TABLES = {'OPEN_250': {1: 10, 2: 6}}
PADELTOUR_POINT_TABLES = {}

LOG_LEVEL = os.environ.get('PADELTOUR_LOG_LEVEL', 'INFO')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '%(asctime)s %(levelname)s %(name)s: %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'loggers': {
        'padeltour': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': False,
        },
    },
}
