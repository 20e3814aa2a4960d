"""
Base Django settings for Taskboard.

Layout
------
- Split settings: `base.py` (shared), `dev.py` (developer overrides), `prod.py` (hardened).
- `environ` is used to source configuration; a local `.env` is optional in dev.

API stack
---------
- Django 5.x + DRF + django-filter + drf-spectacular.
- SessionAuthentication with CSRF (kept enabled) for users, plus
  `projects.authentication.LinkShareAuthentication` for bearers of a share hash.

Authorization
-------------
- Every decision is taken by `projects.access` (permission engine + guards).
  `PERMISSIONS_MAX_HIERARCHY_DEPTH` bounds the ancestor walk so a corrupted
  parent chain cannot loop forever.

Observability
-------------
- `core.middleware.RequestIDLogMiddleware` logs a single structured line per request
  (with request id, user id, duration) on the `taskboard.request` logger.
"""

from pathlib import Path
import environ

# ---------------------------------------------------------------------
# Paths & Env
# ---------------------------------------------------------------------
BASE_DIR = Path(__file__).resolve().parent.parent.parent
env = environ.Env(DEBUG=(bool, False))
env_file = BASE_DIR / ".env"
if env_file.exists():
    environ.Env.read_env(str(env_file))

# ---------------------------------------------------------------------
# Core
# ---------------------------------------------------------------------
SECRET_KEY = env("SECRET_KEY", default="dev-insecure-change-me")
DEBUG = env.bool("DEBUG", False)

ALLOWED_HOSTS = env.list("ALLOWED_HOSTS", default=["127.0.0.1", "localhost", "testserver"])
CSRF_TRUSTED_ORIGINS = env.list(
    "CSRF_TRUSTED_ORIGINS",
    default=["http://127.0.0.1:8000", "http://localhost:8000"],
)

# ---------------------------------------------------------------------
# Applications
# ---------------------------------------------------------------------
INSTALLED_APPS = [
    # Django apps
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",

    # Third-party
    "rest_framework",
    "django_filters",
    "drf_spectacular",

    # Local apps
    "accounts",
    "core",
    "projects",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    # Observability: request-id + structured request log (one line per request)
    "core.middleware.RequestIDLogMiddleware",
]

ROOT_URLCONF = "taskboard.urls"

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

WSGI_APPLICATION = "taskboard.wsgi.application"

# ---------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------
DATABASES = {
    "default": env.db(
        "DATABASE_URL",
        default=f"sqlite:///{BASE_DIR / 'db.sqlite3'}",
    )
}

# ---------------------------------------------------------------------
# Password validation
# ---------------------------------------------------------------------
AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

# ---------------------------------------------------------------------
# Internationalization
# ---------------------------------------------------------------------
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# ---------------------------------------------------------------------
# Static
# ---------------------------------------------------------------------
STATIC_URL = "static/"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ---------------------------------------------------------------------
# DRF & API Schema
# ---------------------------------------------------------------------
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework.authentication.SessionAuthentication",
        "projects.authentication.LinkShareAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
    ],
    "DEFAULT_FILTER_BACKENDS": [
        "django_filters.rest_framework.DjangoFilterBackend",
        "rest_framework.filters.OrderingFilter",
        "rest_framework.filters.SearchFilter",
    ],
    "DEFAULT_PAGINATION_CLASS": "rest_framework.pagination.PageNumberPagination",
    "PAGE_SIZE": 25,
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
}

SPECTACULAR_SETTINGS = {
    "TITLE": "Taskboard API",
    "DESCRIPTION": "Projects, tasks and sharing for multi-tenant teams.",
    "VERSION": "0.1.0",
    "SERVERS": [
        {"url": "http://127.0.0.1:8000", "description": "Local Dev"},
    ],
    "OPERATION_ID_DUPLICATE_MODE": "suffix",
    "CONTACT": {"name": "Taskboard", "email": "dev@example.com"},
    "LICENSE": {"name": "MIT"},
    "SWAGGER_UI_SETTINGS": {"persistAuthorization": True},
    "ENUM_NAME_OVERRIDES": {
        "PermissionEnum": "projects.access.levels.Permission",
        "SharingTypeEnum": "projects.models.SharingType",
        "ReactionKindEnum": "projects.models.ReactionKind",
    },
}

# --- Permissions ---------------------------------------------------------------
# Upper bound on parent hops when resolving inherited grants.
PERMISSIONS_MAX_HIERARCHY_DEPTH = env.int("PERMISSIONS_MAX_HIERARCHY_DEPTH", default=100)
# Length of generated link-share and project hashes (capped at 40, the column width).
LINK_SHARE_HASH_LENGTH = env.int("LINK_SHARE_HASH_LENGTH", default=40)

# ---------------------------------------------------------------------
# Security defaults (safe baseline; prod hardening in prod.py)
# ---------------------------------------------------------------------
SESSION_COOKIE_SAMESITE = "Lax"
CSRF_COOKIE_SAMESITE = "Lax"
X_FRAME_OPTIONS = "DENY"

# ---------------------------------------------------------------------
# Auth model
# ---------------------------------------------------------------------
AUTH_USER_MODEL = "accounts.User"

# ---------------------------------------------------------------------
# Logging (observability)
# ---------------------------------------------------------------------
# The RequestIDFilter injects `request_id` even for logs outside HTTP contexts.
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "request_id": {"()": "core.logging.RequestIDFilter"},
    },
    "formatters": {
        "structured": {
            "format": "level=%(levelname)s logger=%(name)s request_id=%(request_id)s "
                      "method=%(method)s path=%(path)s status=%(status)s user_id=%(user_id)s duration_ms=%(duration_ms)s "
                      "message=%(message)s"
        },
        "app": {
            "format": "level=%(levelname)s logger=%(name)s request_id=%(request_id)s message=%(message)s"
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "filters": ["request_id"],
            "formatter": "structured",
        },
        "app_console": {
            "class": "logging.StreamHandler",
            "filters": ["request_id"],
            "formatter": "app",
        },
    },
    "loggers": {
        # The middleware logs one line per request to this logger.
        "taskboard.request": {
            "handlers": ["console"],
            "level": "INFO",
            "propagate": False,
        },
        # Grant mutations and permission resolution.
        "projects": {
            "handlers": ["app_console"],
            "level": env("PROJECTS_LOG_LEVEL", default="INFO"),
            "propagate": False,
        },
    },
}
