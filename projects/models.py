"""
Domain models: projects and the grant store around them, plus task content.

Grant store
-----------
- `Project.owner` is the implicit ownership grant (Admin on the project and every
  descendant). It is set at creation and never rewritten by the API.
- `ProjectUser` / `TeamProject` are the explicit grants; `TeamMember` links users
  to teams (with an admin flag governing team management only).
- `LinkSharing` is a bearer token scoped to exactly one project and one level.

Every `permission` column is constrained to 0..2 in the database; services also
call `Permission.validate()` before writing so callers get `InvalidPermission`
instead of an IntegrityError.

Content
-------
`Task`, `TaskComment`, `Label`/`LabelTask`, `Reaction` and `Webhook` carry no
permission data of their own; guards resolve them to their owning project.
"""

from __future__ import annotations

from django.conf import settings
from django.contrib.auth.hashers import check_password, make_password
from django.db import models
from django.db.models import F, Q
from django.utils import timezone
from django.utils.crypto import get_random_string

from core.models import TimestampedModel

from .access.levels import Permission


HASH_MAX_LENGTH = 40


def make_share_hash() -> str:
    """Random public id for projects and link shares, capped at `HASH_MAX_LENGTH`."""
    length = getattr(settings, "LINK_SHARE_HASH_LENGTH", HASH_MAX_LENGTH)
    return get_random_string(min(length, HASH_MAX_LENGTH))


def _permission_field():
    return models.SmallIntegerField(choices=Permission.grant_choices(), default=Permission.READ)


def _permission_in_range(name: str) -> models.CheckConstraint:
    return models.CheckConstraint(
        condition=Q(permission__gte=Permission.READ) & Q(permission__lte=Permission.ADMIN),
        name=name,
    )


# ---------------------------------------------------------------------------
# Projects & grants
# ---------------------------------------------------------------------------

class Project(TimestampedModel):
    title = models.CharField(max_length=250)
    description = models.TextField(blank=True, default="")
    identifier = models.CharField(max_length=10, blank=True, default="")
    hex_color = models.CharField(max_length=6, blank=True, default="")
    hash = models.CharField(max_length=HASH_MAX_LENGTH, unique=True, editable=False)
    parent = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name="children",
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="owned_projects",
    )
    is_archived = models.BooleanField(default=False)
    position = models.FloatField(default=0)

    class Meta(TimestampedModel.Meta):
        indexes = [
            models.Index(fields=["owner"], name="project_owner_idx"),
            models.Index(fields=["parent"], name="project_parent_idx"),
        ]
        constraints = [
            models.CheckConstraint(condition=~Q(parent=F("id")), name="project_not_own_parent"),
        ]

    def save(self, *args, **kwargs):
        if not self.hash:
            self.hash = make_share_hash()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return self.title


class ProjectUser(TimestampedModel):
    """Direct user grant on a project."""
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name="user_grants")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="project_grants")
    permission = _permission_field()

    class Meta(TimestampedModel.Meta):
        db_table = "users_projects"
        constraints = [
            models.UniqueConstraint(fields=["project", "user"], name="uniq_project_user_grant"),
            _permission_in_range("project_user_permission_range"),
        ]
        indexes = [models.Index(fields=["user", "project"], name="project_user_lookup_idx")]

    def __str__(self) -> str:
        return f"user {self.user_id} -> project {self.project_id} ({Permission(self.permission).label})"


class Team(TimestampedModel):
    name = models.CharField(max_length=250)
    description = models.TextField(blank=True, default="")
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        on_delete=models.SET_NULL,
        related_name="created_teams",
    )

    def __str__(self) -> str:
        return self.name


class TeamMember(TimestampedModel):
    team = models.ForeignKey(Team, on_delete=models.CASCADE, related_name="members")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="team_memberships")
    admin = models.BooleanField(default=False)

    class Meta(TimestampedModel.Meta):
        db_table = "team_members"
        constraints = [
            models.UniqueConstraint(fields=["team", "user"], name="uniq_team_member"),
        ]
        indexes = [models.Index(fields=["user", "team"], name="team_member_lookup_idx")]

    def __str__(self) -> str:
        return f"user {self.user_id} in team {self.team_id}{' (admin)' if self.admin else ''}"


class TeamProject(TimestampedModel):
    """Team grant on a project; every member inherits `permission`."""
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name="team_grants")
    team = models.ForeignKey(Team, on_delete=models.CASCADE, related_name="project_grants")
    permission = _permission_field()

    class Meta(TimestampedModel.Meta):
        db_table = "team_projects"
        constraints = [
            models.UniqueConstraint(fields=["project", "team"], name="uniq_team_project_grant"),
            _permission_in_range("team_project_permission_range"),
        ]

    def __str__(self) -> str:
        return f"team {self.team_id} -> project {self.project_id} ({Permission(self.permission).label})"


class SharingType(models.IntegerChoices):
    UNKNOWN = 0, "Unknown"
    WITHOUT_PASSWORD = 1, "Without password"
    WITH_PASSWORD = 2, "With password"


class LinkSharing(TimestampedModel):
    """
    Anonymous bearer access to one project at one fixed level.

    `password` holds a Django password hash (never the raw value) when
    `sharing_type` is WITH_PASSWORD.
    """
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name="link_shares")
    hash = models.CharField(max_length=HASH_MAX_LENGTH, unique=True, editable=False)
    name = models.CharField(max_length=250, blank=True, default="")
    permission = _permission_field()
    sharing_type = models.SmallIntegerField(choices=SharingType.choices, default=SharingType.WITHOUT_PASSWORD)
    password = models.CharField(max_length=128, blank=True, default="")
    shared_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        on_delete=models.SET_NULL,
        related_name="link_shares",
    )
    expires_at = models.DateTimeField(null=True, blank=True)

    class Meta(TimestampedModel.Meta):
        db_table = "link_shares"
        constraints = [
            _permission_in_range("link_share_permission_range"),
        ]

    def save(self, *args, **kwargs):
        if not self.hash:
            self.hash = make_share_hash()
        super().save(*args, **kwargs)

    def set_password(self, raw_password: str | None) -> None:
        if raw_password:
            self.password = make_password(raw_password)
            self.sharing_type = SharingType.WITH_PASSWORD
        else:
            self.password = ""
            self.sharing_type = SharingType.WITHOUT_PASSWORD

    def check_password(self, raw_password: str | None) -> bool:
        if self.sharing_type != SharingType.WITH_PASSWORD:
            return True
        return bool(raw_password) and check_password(raw_password, self.password)

    def is_expired(self, now=None) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at <= (now or timezone.now())

    def __str__(self) -> str:
        return f"share {self.id} on project {self.project_id}"


class SavedFilter(TimestampedModel):
    """A stored task query, exposed to clients as a virtual project."""
    title = models.CharField(max_length=250)
    description = models.TextField(blank=True, default="")
    filters = models.JSONField(default=dict, blank=True)
    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="saved_filters")
    is_favorite = models.BooleanField(default=False)

    @property
    def project_id(self) -> int:
        from .access.hierarchy import project_id_for_saved_filter

        return project_id_for_saved_filter(self.id)

    def __str__(self) -> str:
        return self.title


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------

class Task(TimestampedModel):
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name="tasks")
    title = models.CharField(max_length=250)
    description = models.TextField(blank=True, default="")
    done = models.BooleanField(default=False)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="created_tasks",
    )
    labels = models.ManyToManyField("Label", through="LabelTask", related_name="tasks", blank=True)

    class Meta(TimestampedModel.Meta):
        indexes = [models.Index(fields=["project", "done"], name="task_project_done_idx")]

    def __str__(self) -> str:
        return self.title


class TaskComment(TimestampedModel):
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name="comments")
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name="task_comments",
    )
    link_share = models.ForeignKey(
        LinkSharing,
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name="comments",
    )
    comment = models.TextField()

    class Meta(TimestampedModel.Meta):
        ordering = ("created_at",)
        constraints = [
            models.CheckConstraint(
                condition=~Q(author__isnull=False, link_share__isnull=False),
                name="comment_single_author",
            ),
        ]


class Label(TimestampedModel):
    title = models.CharField(max_length=250)
    description = models.TextField(blank=True, default="")
    hex_color = models.CharField(max_length=6, blank=True, default="")
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="labels")

    def __str__(self) -> str:
        return self.title


class LabelTask(TimestampedModel):
    label = models.ForeignKey(Label, on_delete=models.CASCADE, related_name="task_links")
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name="label_links")

    class Meta(TimestampedModel.Meta):
        db_table = "label_tasks"
        constraints = [
            models.UniqueConstraint(fields=["label", "task"], name="uniq_label_task"),
        ]


class ReactionKind(models.TextChoices):
    TASK = "task", "Task"
    COMMENT = "comment", "Comment"


class Reaction(TimestampedModel):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name="reactions",
    )
    link_share = models.ForeignKey(
        LinkSharing,
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name="reactions",
    )
    kind = models.CharField(max_length=10, choices=ReactionKind.choices)
    entity_id = models.PositiveBigIntegerField()
    value = models.CharField(max_length=20)

    class Meta(TimestampedModel.Meta):
        indexes = [models.Index(fields=["kind", "entity_id"], name="reaction_target_idx")]
        constraints = [
            models.UniqueConstraint(
                fields=["user", "kind", "entity_id", "value"],
                condition=Q(user__isnull=False),
                name="uniq_user_reaction",
            ),
            models.UniqueConstraint(
                fields=["link_share", "kind", "entity_id", "value"],
                condition=Q(link_share__isnull=False),
                name="uniq_share_reaction",
            ),
        ]


class WebhookEvent(models.TextChoices):
    TASK_CREATED = "task.created", "Task created"
    TASK_UPDATED = "task.updated", "Task updated"
    TASK_DELETED = "task.deleted", "Task deleted"
    TASK_COMMENT_CREATED = "task.comment.created", "Task comment created"
    PROJECT_UPDATED = "project.updated", "Project updated"
    PROJECT_SHARED_USER = "project.shared.user", "Project shared with user"
    PROJECT_SHARED_TEAM = "project.shared.team", "Project shared with team"


class Webhook(TimestampedModel):
    """Project-scoped webhook target; only project admins can manage it."""
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name="webhooks")
    target_url = models.URLField(max_length=500)
    events = models.JSONField(default=list)
    secret = models.CharField(max_length=128, blank=True, default="")
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        on_delete=models.SET_NULL,
        related_name="webhooks",
    )

    def __str__(self) -> str:
        return f"Webhook<{self.id}> -> {self.target_url}"
