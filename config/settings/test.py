"""Settings para la suite de tests (pytest-django)."""
from .base import *

DEBUG = False
SECRET_KEY = 'django-insecure-test-only'
ALLOWED_HOSTS = ['testserver', 'tienda.test']
SITE_URL = 'https://tienda.test'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']
SESSION_COOKIE_SECURE = False
CSRF_COOKIE_SECURE = False

STORE_CURRENCY = 'USD'
CART_TAX_RATE = Decimal('0')
ENABLED_PAYMENT_GATEWAYS = ['manual', 'paypal']
DEFAULT_PAYMENT_GATEWAY = 'manual'
PAYMENT_NOTIFICATION_SECRET = 'whsec_test_notificaciones'

JILT_HOSTNAME = 'jilt.test'
JILT_SECRET_KEY = ''

STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
    'staticfiles': {'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage'},
}
