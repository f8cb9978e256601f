"""
Django E-commerce + Jilt - Base Settings
Seguridad y configuración base siguiendo mejores prácticas
"""
import os
from decimal import Decimal
from pathlib import Path

os.environ.setdefault('DJANGO_ENV', 'development')

import environ

env = environ.Env(
    DEBUG=(bool, False),
    ALLOWED_HOSTS=(list, []),
    SECRET_KEY=(str, ''),
    DATABASE_URL=(str, 'sqlite:///db.sqlite3'),
    SITE_URL=(str, 'http://localhost:8000'),
    # Tienda
    STORE_CURRENCY=(str, 'USD'),
    CART_TAX_RATE=(str, '0'),
    ENABLED_PAYMENT_GATEWAYS=(list, ['manual', 'paypal']),
    DEFAULT_PAYMENT_GATEWAY=(str, 'manual'),
    PAYMENT_NOTIFICATION_SECRET=(str, ''),
    # Jilt
    JILT_HOSTNAME=(str, 'jilt.com'),
    JILT_API_TIMEOUT=(int, 30),
    JILT_SECRET_KEY=(str, ''),
    JILT_LOG_LEVEL=(str, 'INFO'),
)

# Build paths
BASE_DIR = Path(__file__).resolve().parent.parent.parent
APPS_DIR = BASE_DIR / 'apps'

# Read .env file
environ.Env.read_env(BASE_DIR / '.env')

# SECURITY
SECRET_KEY = env('SECRET_KEY') or 'django-insecure-CHANGE-THIS-IN-PRODUCTION-use-env'
DEBUG = env('DEBUG')
ALLOWED_HOSTS = env.list('ALLOWED_HOSTS', default=['localhost', '127.0.0.1'])

# URL pública de la tienda (su host es el dominio de la tienda para Jilt)
SITE_URL = env('SITE_URL').rstrip('/')

# Application definition
DJANGO_APPS = [
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
]

LOCAL_APPS = [
    'apps.accounts',
    'apps.products',
    'apps.cart',
    'apps.orders',
    'apps.coupons',
    'apps.integrations',
]

INSTALLED_APPS = DJANGO_APPS + LOCAL_APPS

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'whitenoise.middleware.WhiteNoiseMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
    'config.middleware.JiltMiddleware',
]

ROOT_URLCONF = 'config.urls'
WSGI_APPLICATION = 'config.wsgi.application'

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

# Database
DATABASES = {
    'default': env.db('DATABASE_URL')
}

# Password validation - Security
AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator', 'OPTIONS': {'min_length': 10}},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]

# Internationalization
LANGUAGE_CODE = 'es'
TIME_ZONE = 'America/Bogota'
USE_I18N = True
USE_TZ = True

# Static files
STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'
STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
    'staticfiles': {'BACKEND': 'whitenoise.storage.CompressedManifestStaticFilesStorage'},
}

# Media
MEDIA_URL = 'media/'
MEDIA_ROOT = BASE_DIR / 'media'

# Default primary key
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# Custom User
AUTH_USER_MODEL = 'accounts.User'
AUTHENTICATION_BACKENDS = [
    'django.contrib.auth.backends.ModelBackend',
]
LOGIN_REDIRECT_URL = '/'
LOGOUT_REDIRECT_URL = '/'

# Security Settings (Production)
if not DEBUG:
    SECURE_CONTENT_TYPE_NOSNIFF = True
    X_FRAME_OPTIONS = 'DENY'
    SESSION_COOKIE_SECURE = True
    CSRF_COOKIE_SECURE = True

# Cart session key
CART_SESSION_ID = 'cart'
CART_DISCOUNTS_SESSION_ID = 'cart_discounts'
CART_TAX_RATE = Decimal(env('CART_TAX_RATE'))
STORE_CURRENCY = env('STORE_CURRENCY')

# Pasarelas de pago. offsite=True: el pago se completa fuera de la tienda
# (redirect) y el pedido queda pendiente hasta la confirmación.
PAYMENT_GATEWAYS = {
    'manual': {'label': 'Pago manual', 'offsite': False},
    'paypal': {'label': 'PayPal', 'offsite': True},
    'stripe': {'label': 'Tarjeta de crédito', 'offsite': False},
}
ENABLED_PAYMENT_GATEWAYS = env('ENABLED_PAYMENT_GATEWAYS')
DEFAULT_PAYMENT_GATEWAY = env('DEFAULT_PAYMENT_GATEWAY')
# Secreto compartido con las pasarelas externas para firmar sus notificaciones
PAYMENT_NOTIFICATION_SECRET = env('PAYMENT_NOTIFICATION_SECRET')

# Jilt (recuperación de carritos abandonados)
# Obtén tu llave secreta en: https://app.jilt.com/
JILT_VERSION       = '1.1.1'
JILT_HOSTNAME      = env('JILT_HOSTNAME')       # api.<hostname>/v1
JILT_API_TIMEOUT   = env('JILT_API_TIMEOUT')    # segundos por petición
JILT_SECRET_KEY    = env('JILT_SECRET_KEY')     # valor inicial; luego vive en IntegrationSettings

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '[{asctime}] {levelname} {name} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'stderr': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['stderr'],
        'level': 'WARNING',
    },
    'loggers': {
        'django': {
            'handlers': ['stderr'],
            'level': 'WARNING',
            'propagate': False,
        },
        'django.request': {
            'handlers': ['stderr'],
            'level': 'ERROR',
            'propagate': False,
        },
        # El umbral guardado en IntegrationSettings.log_threshold lo ajusta en caliente.
        'apps.integrations': {
            'handlers': ['stderr'],
            'level': env('JILT_LOG_LEVEL'),
            'propagate': False,
        },
    },
}
