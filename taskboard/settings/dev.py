"""
Developer settings (extends base).

Defaults
--------
- DEBUG defaults True (overridable via env).
- Console email backend (no outbound mail).
- SQLite by default unless `DATABASE_URL` is provided.

Security
--------
- Do not use these settings in production; cookies and HTTPS flags are not forced
  here. Use `prod.py` for hardened defaults.
"""

from .base import *  # noqa

DEBUG = env.bool("DEBUG", True)

EMAIL_BACKEND = "django.core.mail.backends.console.EmailBackend"

CSRF_TRUSTED_ORIGINS = env.list(
    "CSRF_TRUSTED_ORIGINS",
    default=[
        "http://127.0.0.1:8000",
        "http://localhost:8000",
        "http://127.0.0.1:5173",
        "http://localhost:5173",
    ],
)

# SPA reads csrftoken to attach X-CSRFToken on unsafe methods.
CSRF_COOKIE_HTTPONLY = False

# Verbose permission resolution traces while developing.
LOGGING["loggers"]["projects"]["level"] = env("PROJECTS_LOG_LEVEL", default="DEBUG")  # type: ignore[name-defined]

LOGGING["loggers"]["django.security.csrf"] = {  # type: ignore[name-defined]
    "handlers": ["app_console"],
    "level": "DEBUG",
    "propagate": False,
}
