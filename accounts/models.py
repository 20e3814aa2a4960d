"""Custom user model for Taskboard.

Users are the only principals that can own projects, hold direct grants, or be
members of teams. Link-share bearers never map to a row here.

Behavior
--------
- Keeps Django's default authentication behavior via `AbstractUser`.
- `display_name` is optional and falls back to the username in APIs.
"""

from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Project's custom user model."""

    display_name = models.CharField(max_length=150, blank=True, default="")

    def get_display_name(self) -> str:
        return self.display_name or self.get_username()
