# services/reservation-service/src/config/settings/test.py
"""
Test settings for Reservation Service
"""

from .base import *

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

JWT_SETTINGS = {
    **JWT_SETTINGS,
    'SECRET': 'test-jwt-secret-with-enough-length-for-hs256',
}

EVENT_BACKEND = 'log'

LOGGING['root']['level'] = 'WARNING'
LOGGING['loggers']['apps']['level'] = 'WARNING'
