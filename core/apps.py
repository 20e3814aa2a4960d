"""AppConfig for the `core` app.

Scope
-----
Holds shared infrastructure pieces used across the project:
- request-id middleware and logging filter,
- the `TimestampedModel` abstract base,
- the `/health/` probe.
"""

from django.apps import AppConfig


class CoreConfig(AppConfig):
    """Standard Django AppConfig; keep defaults lightweight."""
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'core'
