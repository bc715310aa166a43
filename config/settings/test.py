"""
With these settings, tests run faster.
"""

from .base import *  # noqa: F403
from .base import env

# GENERAL
# ------------------------------------------------------------------------------
# https://docs.djangoproject.com/en/dev/ref/settings/#secret-key
SECRET_KEY = env(
    "DJANGO_SECRET_KEY",
    default="dRq3BVa0nYk7Pf1w8xGtLcUz6HmEoJ2sKi9TbNy4QvXpWdZgAe5FhMrCu3jSlO1P",
)
# https://docs.djangoproject.com/en/dev/ref/settings/#test-runner
TEST_RUNNER = "django.test.runner.DiscoverRunner"
# https://docs.djangoproject.com/en/dev/ref/settings/#databases
DATABASES = {"default": env.db("DATABASE_URL", default="sqlite:///:memory:")}
DATABASES["default"]["ATOMIC_REQUESTS"] = True

# PASSWORDS
# ------------------------------------------------------------------------------
# https://docs.djangoproject.com/en/dev/ref/settings/#password-hashers
PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

# REALTIME
# ------------------------------------------------------------------------------
# Tests install their own hub with a recording delivery.
REALTIME_ENABLED = False
PUSHER_APP_ID = "1000"
PUSHER_KEY = "test-key"
PUSHER_SECRET = "test-secret"  # noqa: S105
