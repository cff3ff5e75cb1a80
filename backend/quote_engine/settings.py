"""
Django settings for the quote engine service.

Values are read from the environment so the same module serves local
development, tests and deployment.
"""
import json
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "dev-only-insecure-key")
DEBUG = os.environ.get("DJANGO_DEBUG", "false").lower() in ("1", "true", "yes")
ALLOWED_HOSTS = [h.strip() for h in os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "rest_framework.authtoken",
    "accounts",
    "quotes",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
]

ROOT_URLCONF = "quote_engine.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("SQLITE_PATH", str(BASE_DIR / "db.sqlite3")),
    }
}

AUTH_USER_MODEL = "accounts.CustomUser"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

USE_TZ = True
TIME_ZONE = "UTC"
STATIC_URL = "static/"

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework.authentication.TokenAuthentication",
        "rest_framework.authentication.SessionAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
    ],
}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "plain"},
    },
    "root": {
        "handlers": ["console"],
        "level": os.environ.get("DJANGO_LOG_LEVEL", "INFO"),
    },
}

# ---- Quote engine ----
QUOTE_BASE_CURRENCY = os.environ.get("QUOTE_BASE_CURRENCY", "MAD").upper()
QUOTE_DEFAULT_TARGET_CURRENCY = os.environ.get("QUOTE_DEFAULT_TARGET_CURRENCY", QUOTE_BASE_CURRENCY).upper()

# Seed rate snapshot for new quotes, base currency units per 1 unit of the key.
# Example: QUOTE_DEFAULT_RATES='{"USD": 9.80, "EUR": 10.75}'
_DEFAULT_RATES = {"MAD": 1, "USD": 9.80, "EUR": 10.75}
try:
    QUOTE_DEFAULT_RATES = json.loads(os.environ["QUOTE_DEFAULT_RATES"]) if "QUOTE_DEFAULT_RATES" in os.environ else _DEFAULT_RATES
    if not isinstance(QUOTE_DEFAULT_RATES, dict):
        raise ValueError("QUOTE_DEFAULT_RATES must be a JSON object")
except ValueError:
    logger.exception("Invalid QUOTE_DEFAULT_RATES JSON; falling back to base currency only")
    QUOTE_DEFAULT_RATES = {QUOTE_BASE_CURRENCY: 1}
