"""
Permission levels shared by every grant table and every guard.

`Read < Write < Admin` are the only values ever persisted. `UNKNOWN` is the
"no grant found" sentinel: it sorts below `READ`, so `max()` over a set of
levels that contains only sentinels stays `UNKNOWN`.
"""

from __future__ import annotations

from django.db import models

from .errors import InvalidPermission


class Permission(models.IntegerChoices):
    UNKNOWN = -1, "Unknown"
    READ = 0, "Read"
    WRITE = 1, "Write"
    ADMIN = 2, "Admin"

    def is_valid(self) -> bool:
        return self in (Permission.READ, Permission.WRITE, Permission.ADMIN)

    def satisfies(self, required: "Permission") -> bool:
        """True when this level is a real grant at least as strong as `required`."""
        return self.is_valid() and self >= required

    @classmethod
    def validate(cls, value) -> "Permission":
        """Coerce `value` to a persistable level or raise `InvalidPermission`."""
        if isinstance(value, bool):
            raise InvalidPermission(value)
        if isinstance(value, float):
            if not value.is_integer():
                raise InvalidPermission(value)
            value = int(value)
        elif isinstance(value, str):
            try:
                value = int(value.strip())
            except ValueError:
                raise InvalidPermission(value)
        elif not isinstance(value, int):
            raise InvalidPermission(value)
        try:
            level = cls(value)
        except ValueError:
            raise InvalidPermission(value)
        if not level.is_valid():
            raise InvalidPermission(value)
        return level

    @classmethod
    def grant_choices(cls) -> list[tuple[int, str]]:
        return [(level.value, level.label) for level in cls if level.is_valid()]


def highest(levels) -> Permission:
    """Max over `levels`, `UNKNOWN` for an empty iterable."""
    return max((Permission(level) for level in levels), default=Permission.UNKNOWN)
