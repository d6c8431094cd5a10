"""
Django settings for Tabletop.

Secrets come from the environment (or a .env file) - never hardcode
credentials.
Run with: uv run python apps/web/manage.py runserver
"""

from pathlib import Path

import environ  # type: ignore[import-untyped]

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

# Initialize environ
env = environ.Env(
    DEBUG=(bool, False),
    ALLOWED_HOSTS=(list, []),
    LOG_LEVEL=(str, "INFO"),
    CLOVER_SANDBOX=(bool, True),
    CLOVER_MERCHANT_ID=(str, ""),
    CLOVER_API_TOKEN=(str, ""),
    CLOVER_WEBHOOK_SECRET=(str, ""),
    CLOVER_LOCATION_ID=(str, ""),
    CLOVER_SYNC_ENABLED=(bool, False),
    CLOVER_REQUEST_TIMEOUT=(float, 10.0),
    CLOVER_POLL_WINDOW_MINUTES=(int, 15),
    CLOVER_PUSH_MAX_ATTEMPTS=(int, 5),
    CLOVER_PUSH_BACKOFF_SECONDS=(float, 1.0),
    CLOVER_PUSH_KEEP_COMPLETED=(int, 100),
    CLOVER_PUSH_KEEP_FAILED=(int, 100),
    CLOVER_PUSH_STALL_SECONDS=(int, 300),
    CLOVER_ORDER_SOURCE_TEXT=(str, "Online Order"),
    CLOVER_DISPLAY_TIME_ZONE=(str, "America/New_York"),
)
environ.Env.read_env(BASE_DIR.parent.parent / ".env")

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = env("SECRET_KEY")

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = env("DEBUG")

ALLOWED_HOSTS = env("ALLOWED_HOSTS")

# Application definition
INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    # Local apps
    "apps.web.core",
    "apps.web.orders",
    "apps.web.pos",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "apps.web.config.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [BASE_DIR / "templates"],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "apps.web.config.wsgi.application"

# Database
# https://docs.djangoproject.com/en/5.1/ref/settings/#databases
DATABASES = {
    "default": env.db("DATABASE_URL"),
}

# Custom user model
AUTH_USER_MODEL = "core.User"

# Password validation
_V = "django.contrib.auth.password_validation"
AUTH_PASSWORD_VALIDATORS = [
    {"NAME": f"{_V}.UserAttributeSimilarityValidator"},
    {"NAME": f"{_V}.MinimumLengthValidator"},
    {"NAME": f"{_V}.CommonPasswordValidator"},
    {"NAME": f"{_V}.NumericPasswordValidator"},
]

# Internationalization
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# Static files (CSS, JavaScript, Images)
STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR.parent.parent / "staticfiles"  # /app/staticfiles in production

# Default primary key field type
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Logging
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
    "loggers": {
        "apps": {
            "handlers": ["console"],
            "level": env("LOG_LEVEL"),
            "propagate": False,
        },
    },
}

# Clover POS
# Sandbox vs production API host
CLOVER_SANDBOX = env("CLOVER_SANDBOX")
CLOVER_MERCHANT_ID = env("CLOVER_MERCHANT_ID")
CLOVER_API_TOKEN = env("CLOVER_API_TOKEN")
CLOVER_WEBHOOK_SECRET = env("CLOVER_WEBHOOK_SECRET")
# Bootstrap value only; discovered ids are stored in SystemSetting
CLOVER_LOCATION_ID = env("CLOVER_LOCATION_ID")
# Master switch for pushing local orders to Clover
CLOVER_SYNC_ENABLED = env("CLOVER_SYNC_ENABLED")
CLOVER_REQUEST_TIMEOUT = env("CLOVER_REQUEST_TIMEOUT")
CLOVER_POLL_WINDOW_MINUTES = env("CLOVER_POLL_WINDOW_MINUTES")
CLOVER_PUSH_MAX_ATTEMPTS = env("CLOVER_PUSH_MAX_ATTEMPTS")
CLOVER_PUSH_BACKOFF_SECONDS = env("CLOVER_PUSH_BACKOFF_SECONDS")
CLOVER_PUSH_KEEP_COMPLETED = env("CLOVER_PUSH_KEEP_COMPLETED")
CLOVER_PUSH_KEEP_FAILED = env("CLOVER_PUSH_KEEP_FAILED")
CLOVER_PUSH_STALL_SECONDS = env("CLOVER_PUSH_STALL_SECONDS")
CLOVER_ORDER_SOURCE_TEXT = env("CLOVER_ORDER_SOURCE_TEXT")
CLOVER_DISPLAY_TIME_ZONE = env("CLOVER_DISPLAY_TIME_ZONE")
