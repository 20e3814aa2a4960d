"""
Read-side queries over the grant store and the content tables.

`GrantStore` answers the engine's questions: project nodes (id, parent, owner,
archived flag), direct user grants and team grants per project. `ContentLookup`
answers the guards' questions: which task/comment/label/... is this, and which
project does it hang off. Both are plain classes so tests and callers can pass
their own instances into `PermissionEngine` and the guards.

All methods issue fresh queries; nothing is cached between calls.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from django.db.models import Max

from projects.models import (
    Label,
    Project,
    ProjectUser,
    SavedFilter,
    Task,
    TaskComment,
    Team,
    TeamMember,
    TeamProject,
)

from .errors import (
    LabelDoesNotExist,
    ProjectDoesNotExist,
    TaskCommentDoesNotExist,
    TaskDoesNotExist,
    TeamDoesNotExist,
)
from .levels import Permission


@dataclass(frozen=True)
class ProjectNode:
    """The columns of a project the engine needs."""
    id: int
    parent_id: int | None
    owner_id: int
    is_archived: bool


_NODE_FIELDS = ("id", "parent_id", "owner_id", "is_archived")


class GrantStore:
    """Grant and hierarchy queries used by `PermissionEngine`."""

    def find_project(self, project_id: int) -> ProjectNode | None:
        row = Project.objects.filter(pk=project_id).values(*_NODE_FIELDS).first()
        return ProjectNode(**row) if row else None

    def get_project(self, project_id: int) -> ProjectNode:
        node = self.find_project(project_id)
        if node is None:
            raise ProjectDoesNotExist(project_id)
        return node

    def projects(self, project_ids: Iterable[int]) -> dict[int, ProjectNode]:
        rows = Project.objects.filter(pk__in=list(project_ids)).values(*_NODE_FIELDS)
        return {row["id"]: ProjectNode(**row) for row in rows}

    def children_of(self, project_ids: Iterable[int]) -> list[int]:
        return list(Project.objects.filter(parent_id__in=list(project_ids)).values_list("id", flat=True))

    def user_grants(self, user_id: int, project_ids: Iterable[int]) -> dict[int, Permission]:
        rows = ProjectUser.objects.filter(user_id=user_id, project_id__in=list(project_ids))
        return {pid: Permission(level) for pid, level in rows.values_list("project_id", "permission")}

    def team_grants(self, user_id: int, project_ids: Iterable[int]) -> dict[int, Permission]:
        """Highest team grant per project across every team `user_id` belongs to."""
        rows = (
            TeamProject.objects.filter(project_id__in=list(project_ids), team__members__user_id=user_id)
            .values("project_id")
            .annotate(level=Max("permission"))
        )
        return {row["project_id"]: Permission(row["level"]) for row in rows}

    def granted_project_ids(self, user_id: int) -> set[int]:
        """Projects where `user_id` is owner or holds any direct or team grant."""
        owned = Project.objects.filter(owner_id=user_id).values_list("id", flat=True)
        direct = ProjectUser.objects.filter(user_id=user_id).values_list("project_id", flat=True)
        via_team = TeamProject.objects.filter(team__members__user_id=user_id).values_list("project_id", flat=True)
        return set(owned) | set(direct) | set(via_team)


class ContentLookup:
    """Entity lookups the per-entity guards use to find the owning project."""

    def get_task(self, task_id: int) -> Task:
        try:
            return Task.objects.only("id", "project").get(pk=task_id)
        except Task.DoesNotExist:
            raise TaskDoesNotExist()

    def get_comment(self, comment_id: int) -> TaskComment:
        try:
            return TaskComment.objects.only("id", "task", "author", "link_share").get(pk=comment_id)
        except TaskComment.DoesNotExist:
            raise TaskCommentDoesNotExist()

    def get_label(self, label_id: int) -> Label:
        try:
            return Label.objects.only("id", "created_by").get(pk=label_id)
        except Label.DoesNotExist:
            raise LabelDoesNotExist()

    def project_ids_for_label(self, label_id: int) -> set[int]:
        """Projects holding at least one task that carries `label_id`."""
        return set(Task.objects.filter(label_links__label_id=label_id).values_list("project_id", flat=True))

    def find_saved_filter(self, filter_id: int) -> SavedFilter | None:
        return SavedFilter.objects.filter(pk=filter_id).only("id", "owner").first()

    def get_team(self, team_id: int) -> Team:
        try:
            return Team.objects.get(pk=team_id)
        except Team.DoesNotExist:
            raise TeamDoesNotExist()

    def membership(self, team_id: int, user_id: int) -> TeamMember | None:
        return TeamMember.objects.filter(team_id=team_id, user_id=user_id).first()
