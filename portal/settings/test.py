from .base import *

DEBUG = False

SECRET_KEY = 'test-secret-key'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

ALLOWED_HOSTS = ['testserver']

EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'
DEFAULT_FROM_EMAIL = 'portal@example.com'

ADMIN_USERNAME = 'keeper'
ADMIN_PASSWORD = 'open-sesame'
ADMIN_EMAIL = 'council@example.com'

PUBLIC_BASE_URL = 'https://portal.example.com'

STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.InMemoryStorage'},
    'staticfiles': {'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage'},
}
UPLOAD_STORAGE_BACKEND = 'registrations.storage.DjangoMediaStorage'

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']
