"""
AppConfig for the `projects` domain app.

Startup responsibilities
------------------------
- Import **signals** at startup (required): sharing and membership services send
  them and the log receivers must be connected before the first request.
- Import **schema** (optional): drf-spectacular extensions for the link-share
  authentication scheme. In DEBUG import errors are surfaced.

Django's autoreloader may call `ready()` more than once; receivers use
`dispatch_uid`, so repeated imports are harmless.
"""

from __future__ import annotations

import logging
from importlib import import_module

from django.apps import AppConfig
from django.conf import settings

logger = logging.getLogger(__name__)


class ProjectsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "projects"

    def ready(self) -> None:  # pragma: no cover
        self._import_startup_module("projects.signals", required=True)
        self._import_startup_module("projects.schema", required=False)

    @staticmethod
    def _import_startup_module(dotted_path: str, *, required: bool) -> None:
        """Import a startup module; required ones (and any in DEBUG) fail loudly."""
        try:
            import_module(dotted_path)
        except Exception:
            if required or settings.DEBUG:
                logger.exception("Failed to import startup module: %s", dotted_path)
                raise
            logger.warning("Optional startup module failed to import and was skipped: %s", dotted_path)
