"""Django settings for the notification delivery engine.

Every value can be overridden through environment variables.
"""

import os
from pathlib import Path


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "dev-insecure-secret-key")
DEBUG = _env_bool("DEBUG")
ALLOWED_HOSTS = [
    host.strip()
    for host in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1").split(",")
    if host.strip()
]

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "rest_framework",
    "django_rq",
    "delivery",
]

MIDDLEWARE = [
    "delivery.middleware.RequestIDMiddleware",
    "delivery.middleware.ProcessTimeMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "notification_engine.urls"
WSGI_APPLICATION = "notification_engine.wsgi.application"
ASGI_APPLICATION = "notification_engine.asgi.application"

DATABASES = {
    "default": {
        "ENGINE": os.getenv("DATABASE_ENGINE", "django.db.backends.postgresql"),
        "NAME": os.getenv("POSTGRES_DB", "notification_engine"),
        "USER": os.getenv("POSTGRES_USER", "notification_engine"),
        "PASSWORD": os.getenv("POSTGRES_PASSWORD", ""),
        "HOST": os.getenv("POSTGRES_HOST", "localhost"),
        "PORT": os.getenv("POSTGRES_PORT", "5432"),
        "CONN_MAX_AGE": int(os.getenv("POSTGRES_CONN_MAX_AGE", "60")),
    }
}

REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", "6379"))
REDIS_DB = int(os.getenv("REDIS_DB", "0"))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD") or None

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.redis.RedisCache",
        "LOCATION": f"redis://{REDIS_HOST}:{REDIS_PORT}/{REDIS_DB}",
    }
}

RQ_QUEUES = {
    "default": {
        "HOST": REDIS_HOST,
        "PORT": REDIS_PORT,
        "DB": REDIS_DB,
        "PASSWORD": REDIS_PASSWORD,
        "DEFAULT_TIMEOUT": int(os.getenv("RQ_DEFAULT_TIMEOUT", "300")),
    },
}

REST_FRAMEWORK = {
    "DEFAULT_RENDERER_CLASSES": ("rest_framework.renderers.JSONRenderer",),
    "DEFAULT_PARSER_CLASSES": ("rest_framework.parsers.JSONParser",),
    "DEFAULT_AUTHENTICATION_CLASSES": ("delivery.auth.oauth2.OAuth2Authentication",),
    "DEFAULT_PERMISSION_CLASSES": ("delivery.auth.permissions.HasClientScope",),
    "UNAUTHENTICATED_USER": None,
    "EXCEPTION_HANDLER": "delivery.exceptions.handlers.custom_exception_handler",
}

# OAuth2 bearer tokens, validated locally against the shared secret
OAUTH2_SERVICE_ENABLED = _env_bool("OAUTH2_SERVICE_ENABLED", "true")
JWT_SECRET = os.getenv("JWT_SECRET", "")

DELIVERY_ENGINE = {
    "webhook_url": os.getenv("DELIVERY_WEBHOOK_URL") or None,
    "retry_ceiling_seconds": int(os.getenv("RETRY_CEILING_SECONDS", "600")),
    "retry_tick_interval_seconds": int(
        os.getenv("RETRY_TICK_INTERVAL_SECONDS", "30")
    ),
    "retry_batch_size": int(os.getenv("RETRY_BATCH_SIZE", "100")),
    "retry_claim_timeout_seconds": int(
        os.getenv("RETRY_CLAIM_TIMEOUT_SECONDS", "300")
    ),
    "max_parallel_sends": int(os.getenv("MAX_PARALLEL_SENDS", "8")),
    "gateway_url": os.getenv(
        "EXPO_PUSH_URL", "https://exp.host/--/api/v2/push/send"
    ),
    "gateway_access_token": os.getenv("EXPO_ACCESS_TOKEN") or None,
    "gateway_timeout_seconds": int(os.getenv("GATEWAY_TIMEOUT_SECONDS", "10")),
    "webhook_timeout_seconds": int(os.getenv("WEBHOOK_TIMEOUT_SECONDS", "5")),
    "attempt_retention_days": int(os.getenv("ATTEMPT_RETENTION_DAYS", "30")),
    "analytics_retention_days": int(os.getenv("ANALYTICS_RETENTION_DAYS", "90")),
    "queue_name": os.getenv("DELIVERY_QUEUE_NAME", "default"),
}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = False
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Logging is configured by delivery.logging.setup_logging() when the app loads
LOGGING_CONFIG = None

TEST_MODE = False
