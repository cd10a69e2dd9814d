from .base import *

DEBUG = False

SECRET_KEY = 'test-secret-key'
JWT_SECRET = 'test-jwt-secret'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

ALLOWED_HOSTS = ['testserver']

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

PAYU = {
    'MERCHANT_KEY': 'testkey',
    'MERCHANT_SALT': 'testsalt',
    'BASE_URL': 'https://test.payu.in',
    'VERIFY_URL': 'https://test.payu.in/merchant/postservice.php?form=2',
    'CALLBACK_BASE_URL': 'https://api.example.com',
    'FRONTEND_URL': 'https://shop.example.com',
    'TIMEOUT': 5,
}
