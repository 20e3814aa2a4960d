"""
Core data models shared across the project.

`TimestampedModel` is the abstract base for every persisted row in the domain
app: grant tables, projects, teams and task content all carry `created_at` and
`updated_at`. Grant rows are only ever updated in their `permission` column, so
`updated_at` doubles as "last time this grant changed level".
"""

from __future__ import annotations

from django.db import models


class TimestampedModel(models.Model):
    """
    Abstract base with audit timestamps.

    Fields:
        created_at / updated_at: standard audit timestamps.

    Invariants:
        - Default ordering is newest-first by `created_at`.
    """

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ("-created_at",)

    def touch(self) -> None:
        """Bump `updated_at` without rewriting any other column."""
        self.save(update_fields=["updated_at"])

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} id={getattr(self, 'id', None)}>"
