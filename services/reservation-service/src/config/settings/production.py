# services/reservation-service/src/config/settings/production.py
"""
Production settings for Reservation Service
"""

from .base import *

DEBUG = False

SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True

EVENT_BACKEND = os.environ.get('EVENT_BACKEND', 'webhook')
