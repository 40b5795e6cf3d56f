# services/reservation-service/src/config/settings/development.py
"""
Development settings for Reservation Service
"""

from .base import *

DEBUG = True

ALLOWED_HOSTS = ['*']

CORS_ALLOW_ALL_ORIGINS = True

LOGGING['loggers']['apps']['level'] = 'DEBUG'
