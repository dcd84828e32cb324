"""
Django settings for the call-order backend.

Everything deployment-specific is read from the environment.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.getenv('DJANGO_SECRET_KEY', 'django-insecure-dev-only-change-me')
DEBUG = os.getenv('DJANGO_DEBUG', 'False').lower() in ('true', '1', 'yes')
ALLOWED_HOSTS = [h.strip() for h in os.getenv('DJANGO_ALLOWED_HOSTS', 'localhost,127.0.0.1,testserver').split(',') if h.strip()]

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'rest_framework',
    'restaurant',
    'Intake_Module',
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

ROOT_URLCONF = 'Server.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'Server.wsgi.application'

# The connection is opened and closed by Django per request; nothing holds a module-level client.
DATABASES = {
    'default': {
        'ENGINE': os.getenv('DB_ENGINE', 'django.db.backends.sqlite3'),
        'NAME': os.getenv('DB_NAME', str(BASE_DIR / 'db.sqlite3')),
        'USER': os.getenv('DB_USER', ''),
        'PASSWORD': os.getenv('DB_PASSWORD', ''),
        'HOST': os.getenv('DB_HOST', ''),
        'PORT': os.getenv('DB_PORT', ''),
        'CONN_MAX_AGE': int(os.getenv('DB_CONN_MAX_AGE', '60')),
    }
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'callorder-config',
    }
}

LANGUAGE_CODE = 'en-gb'
TIME_ZONE = os.getenv('TIME_ZONE', 'Europe/London')
USE_I18N = True
USE_TZ = True

STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'static'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'shared.authentication.BearerTokenAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'shared.authentication.IsOwnerOrOperator',
    ],
    'DEFAULT_PARSER_CLASSES': [
        'rest_framework.parsers.JSONParser',
    ],
    'EXCEPTION_HANDLER': 'shared.exception_handler.intake_exception_handler',
    'UNAUTHENTICATED_USER': 'django.contrib.auth.models.AnonymousUser',
}

# Side-effect integrations (dotted paths)
INTAKE_NOTIFICATION_ADAPTER = os.getenv(
    'INTAKE_NOTIFICATION_ADAPTER', 'restaurant.adapters.MockNotificationAdapter'
)
INTAKE_PAYMENT_ADAPTER = os.getenv('INTAKE_PAYMENT_ADAPTER', 'restaurant.adapters.MockPaymentLinkAdapter')
INTAKE_PRINT_ADAPTER = os.getenv('INTAKE_PRINT_ADAPTER', 'restaurant.adapters.MockPrintAdapter')
INTAKE_WEBHOOK_SECRET = os.getenv('INTAKE_WEBHOOK_SECRET', '')

# Call routing and voice agent
VOICE_FALLBACK_RESTAURANT_ID = os.getenv('VOICE_FALLBACK_RESTAURANT_ID') or None
STAFF_RING_TIMEOUT_SECONDS = int(os.getenv('STAFF_RING_TIMEOUT_SECONDS', '20'))
VOICE_AI_ASSISTANT_ID = os.getenv('VOICE_AI_ASSISTANT_ID', '')
VOICE_NOT_CONFIGURED_MESSAGE = os.getenv(
    'VOICE_NOT_CONFIGURED_MESSAGE', 'Sorry, this number is not configured to take orders.'
)

CURRENCY_SYMBOL = os.getenv('CURRENCY_SYMBOL', '£')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{asctime} {levelname} {name} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': os.getenv('DJANGO_LOG_LEVEL', 'INFO'),
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': os.getenv('DJANGO_LOG_LEVEL', 'INFO'),
            'propagate': False,
        },
    },
}
