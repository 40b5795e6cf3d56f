"""Base settings for Reservation Service."""
import os
import sys
from datetime import timedelta
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(BASE_DIR.parent.parent.parent))

SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-key')
DEBUG = os.environ.get('DEBUG', 'True').lower() == 'true'
ALLOWED_HOSTS = os.environ.get('ALLOWED_HOSTS', '*').split(',')

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'rest_framework',
    'corsheaders',
    'django_filters',
    'drf_spectacular',
    'apps.core',
    'apps.api',
]

MIDDLEWARE = [
    'shared.common.middleware.RequestIDMiddleware',
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
    'shared.common.middleware.LoggingMiddleware',
]

ROOT_URLCONF = 'config.urls'
TEMPLATES = [{'BACKEND': 'django.template.backends.django.DjangoTemplates', 'DIRS': [], 'APP_DIRS': True, 'OPTIONS': {'context_processors': ['django.template.context_processors.debug', 'django.template.context_processors.request', 'django.contrib.auth.context_processors.auth', 'django.contrib.messages.context_processors.messages']}}]
WSGI_APPLICATION = 'config.wsgi.application'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.postgresql',
        'NAME': os.environ.get('DB_NAME', 'reservation_service_db'),
        'USER': os.environ.get('DB_USER', 'reservation_service_user'),
        'PASSWORD': os.environ.get('DB_PASSWORD', 'reservation_service_password'),
        'HOST': os.environ.get('DB_HOST', 'localhost'),
        'PORT': os.environ.get('DB_PORT', '5432'),
        'ATOMIC_REQUESTS': False,
    }
}

AUTH_PASSWORD_VALIDATORS = [{'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'}]
LANGUAGE_CODE = 'es-uy'
TIME_ZONE = 'America/Montevideo'
USE_I18N = True
USE_TZ = True
STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': ['shared.common.authentication.JWTAuthentication'],
    'DEFAULT_PERMISSION_CLASSES': ['shared.common.permissions.IsAuthenticated'],
    'DEFAULT_PAGINATION_CLASS': 'shared.common.pagination.StandardPagination',
    'PAGE_SIZE': 20,
    'DEFAULT_FILTER_BACKENDS': ['django_filters.rest_framework.DjangoFilterBackend', 'rest_framework.filters.OrderingFilter'],
    'DEFAULT_SCHEMA_CLASS': 'drf_spectacular.openapi.AutoSchema',
    'EXCEPTION_HANDLER': 'shared.common.exceptions.custom_exception_handler',
    'UNAUTHENTICATED_USER': None,
}

SPECTACULAR_SETTINGS = {
    'TITLE': 'Reservation Service API',
    'DESCRIPTION': 'Consultorio bookings, cancellations, renewals, billing preview and access-log import.',
    'VERSION': '1.0.0',
}

CORS_ALLOW_ALL_ORIGINS = DEBUG
CORS_ALLOWED_ORIGINS = [o for o in os.environ.get('CORS_ALLOWED_ORIGINS', '').split(',') if o]

# Auth provider tokens (HS256, shared secret)
JWT_SETTINGS = {
    'SECRET': os.environ.get('JWT_SECRET', SECRET_KEY),
    'ALGORITHM': 'HS256',
    'AUDIENCE': os.environ.get('JWT_AUDIENCE', 'authenticated'),
    'ACCESS_TOKEN_LIFETIME': timedelta(hours=1),
}

# Events / notifications
EVENT_PUBLISHING_ENABLED = os.environ.get('EVENT_PUBLISHING_ENABLED', 'True').lower() == 'true'
EVENT_BACKEND = os.environ.get('EVENT_BACKEND', 'log')
EVENT_WEBHOOK_URL = os.environ.get('EVENT_WEBHOOK_URL')
EVENT_WEBHOOK_TIMEOUT = int(os.environ.get('EVENT_WEBHOOK_TIMEOUT', '5'))

# Booking policy
RESERVATION_POLICY = {
    'PENALTY_WINDOW_HOURS': 24,
    'RESCHEDULE_GRACE_DAYS': 6,
    'DEFAULT_HORIZON_MONTHS': 4,
    'RENEWAL_WINDOW_DAYS': 45,
    'MIN_DURATION_MINUTES': 60,
    'ACCESS_TOLERANCE_MINUTES': 50,
}

# Billing preview
BILLING_DISCOUNT_POLICY = os.environ.get(
    'BILLING_DISCOUNT_POLICY', 'apps.core.services.billing_service.VolumeDiscountPolicy'
)
# (min_bookings, percent) pairs; the highest reached tier applies
BILLING_VOLUME_DISCOUNT_TIERS = []

SERVICE_NAME = 'reservation-service'
SERVICE_PORT = 8010

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'filters': {'request_id': {'()': 'shared.common.middleware.RequestIDLogFilter'}},
    'formatters': {'json': {'()': 'pythonjsonlogger.json.JsonFormatter', 'fmt': '%(asctime)s %(levelname)s %(name)s %(message)s %(request_id)s'}},
    'handlers': {'console': {'class': 'logging.StreamHandler', 'formatter': 'json', 'filters': ['request_id']}},
    'root': {'handlers': ['console'], 'level': 'INFO'},
    'loggers': {'apps': {'handlers': ['console'], 'level': 'INFO', 'propagate': False}},
}
