"""
Grant services: the only code paths that write sharing rows.

Overview
--------
- User grants (`ProjectUser`), team grants (`TeamProject`), link shares,
  label-task links and reactions.
- Each service runs inside `transaction.atomic()`. Inserts run in a nested
  savepoint so a unique-key `IntegrityError` maps to the matching conflict
  error and leaves the outer transaction usable.
- Levels pass through `Permission.validate()` before any write.

Authorization
-------------
Services do NOT check who is calling. Views ask the guard in
`projects.access.guards` first, then call the service.
"""

from __future__ import annotations

import logging

from django.db import IntegrityError, transaction

from .access.errors import (
    LabelIsAlreadyOnTask,
    ProjectDoesNotExist,
    TeamAlreadyHasAccess,
    TeamDoesNotExist,
    TeamDoesNotHaveAccessToProject,
    UserAlreadyHasAccess,
    UserDoesNotExist,
    UserDoesNotHaveAccessToProject,
)
from .access.levels import Permission
from .access.principal import LinkSharePrincipal, Principal, UserPrincipal, unsupported
from .models import (
    Label,
    LabelTask,
    LinkSharing,
    Project,
    ProjectUser,
    Reaction,
    Task,
    Team,
    TeamProject,
)
from .signals import project_shared_with_team, project_shared_with_user

logger = logging.getLogger(__name__)

# Marks an optional keyword that was not passed, where None is a real value.
UNSET = object()


def _require_saved(obj, error):
    if obj is None or obj.pk is None:
        raise error()
    return obj


def _require_project(project: Project) -> Project:
    if project is None or project.pk is None or not Project.objects.filter(pk=project.pk).exists():
        raise ProjectDoesNotExist(getattr(project, "pk", None))
    return project


# ---------------------------------------------------------------------------
# User grants
# ---------------------------------------------------------------------------

def share_with_user(project: Project, user, permission, *, shared_by=None) -> ProjectUser:
    """Grant `user` a direct level on `project`."""
    level = Permission.validate(permission)
    _require_project(project)
    _require_saved(user, UserDoesNotExist)

    with transaction.atomic():
        if project.owner_id == user.pk:
            raise UserAlreadyHasAccess()
        if ProjectUser.objects.filter(project=project, user=user).exists():
            raise UserAlreadyHasAccess()
        try:
            with transaction.atomic():
                grant = ProjectUser.objects.create(project=project, user=user, permission=level)
        except IntegrityError:
            raise UserAlreadyHasAccess()
        project.touch()
        project_shared_with_user.send(
            sender=ProjectUser, project=project, user=user, permission=level, shared_by=shared_by,
        )

    logger.info("user grant created project=%s user=%s permission=%s", project.pk, user.pk, level.label)
    return grant


def update_user_grant(project: Project, user, permission) -> ProjectUser:
    """Change the level of an existing direct grant; nothing else is rewritten."""
    level = Permission.validate(permission)
    with transaction.atomic():
        grant = (
            ProjectUser.objects.select_for_update()
            .filter(project_id=project.pk, user_id=user.pk)
            .first()
        )
        if grant is None:
            raise UserDoesNotHaveAccessToProject()
        grant.permission = level
        grant.save(update_fields=["permission", "updated_at"])

    logger.info("user grant updated project=%s user=%s permission=%s", project.pk, user.pk, level.label)
    return grant


def revoke_user_grant(project: Project, user) -> None:
    with transaction.atomic():
        deleted, _ = ProjectUser.objects.filter(project_id=project.pk, user_id=user.pk).delete()
        if not deleted:
            raise UserDoesNotHaveAccessToProject()
    logger.info("user grant revoked project=%s user=%s", project.pk, user.pk)


# ---------------------------------------------------------------------------
# Team grants
# ---------------------------------------------------------------------------

def share_with_team(project: Project, team: Team, permission, *, shared_by=None) -> TeamProject:
    """Grant every member of `team` a level on `project`."""
    level = Permission.validate(permission)
    if team is None or team.pk is None or not Team.objects.filter(pk=team.pk).exists():
        raise TeamDoesNotExist()
    _require_project(project)

    with transaction.atomic():
        if TeamProject.objects.filter(project=project, team=team).exists():
            raise TeamAlreadyHasAccess()
        try:
            with transaction.atomic():
                grant = TeamProject.objects.create(project=project, team=team, permission=level)
        except IntegrityError:
            raise TeamAlreadyHasAccess()
        project.touch()
        project_shared_with_team.send(
            sender=TeamProject, project=project, team=team, permission=level, shared_by=shared_by,
        )

    logger.info("team grant created project=%s team=%s permission=%s", project.pk, team.pk, level.label)
    return grant


def update_team_grant(project: Project, team: Team, permission) -> TeamProject:
    level = Permission.validate(permission)
    with transaction.atomic():
        grant = (
            TeamProject.objects.select_for_update()
            .filter(project_id=project.pk, team_id=team.pk)
            .first()
        )
        if grant is None:
            raise TeamDoesNotHaveAccessToProject()
        grant.permission = level
        grant.save(update_fields=["permission", "updated_at"])

    logger.info("team grant updated project=%s team=%s permission=%s", project.pk, team.pk, level.label)
    return grant


def revoke_team_grant(project: Project, team: Team) -> None:
    with transaction.atomic():
        deleted, _ = TeamProject.objects.filter(project_id=project.pk, team_id=team.pk).delete()
        if not deleted:
            raise TeamDoesNotHaveAccessToProject()
    logger.info("team grant revoked project=%s team=%s", project.pk, team.pk)


# ---------------------------------------------------------------------------
# Link shares
# ---------------------------------------------------------------------------

def create_link_share(
    project: Project,
    shared_by,
    permission,
    password: str | None = None,
    name: str = "",
    expires_at=None,
) -> LinkSharing:
    """
    Create a link share; the raw password is hashed and never stored.

    The returned instance carries the generated `hash`, which is the bearer
    secret handed to clients.
    """
    level = Permission.validate(permission)
    _require_project(project)

    with transaction.atomic():
        share = LinkSharing(
            project=project,
            shared_by=shared_by,
            permission=level,
            name=name or "",
            expires_at=expires_at,
        )
        share.set_password(password)
        share.save()

    logger.info(
        "link share created project=%s share=%s permission=%s protected=%s",
        project.pk, share.pk, level.label, bool(password),
    )
    return share


def update_link_share(share: LinkSharing, *, permission=None, name=None, expires_at=UNSET) -> LinkSharing:
    """`expires_at=None` clears the expiry; leave it out to keep the current one."""
    fields = ["updated_at"]
    if permission is not None:
        share.permission = Permission.validate(permission)
        fields.append("permission")
    if name is not None:
        share.name = name
        fields.append("name")
    if expires_at is not UNSET:
        share.expires_at = expires_at
        fields.append("expires_at")
    share.save(update_fields=fields)
    logger.info("link share updated share=%s fields=%s", share.pk, ",".join(fields[1:]) or "-")
    return share


# ---------------------------------------------------------------------------
# Label-task links
# ---------------------------------------------------------------------------

def add_label_to_task(label: Label, task: Task) -> LabelTask:
    with transaction.atomic():
        if LabelTask.objects.filter(label=label, task=task).exists():
            raise LabelIsAlreadyOnTask()
        try:
            with transaction.atomic():
                link = LabelTask.objects.create(label=label, task=task)
        except IntegrityError:
            raise LabelIsAlreadyOnTask()
    logger.info("label added label=%s task=%s", label.pk, task.pk)
    return link


def remove_label_from_task(label: Label, task: Task) -> bool:
    """Returns False when the label was not on the task."""
    deleted, _ = LabelTask.objects.filter(label=label, task=task).delete()
    if deleted:
        logger.info("label removed label=%s task=%s", label.pk, task.pk)
    return bool(deleted)


# ---------------------------------------------------------------------------
# Reactions
# ---------------------------------------------------------------------------

def _reaction_owner(principal: Principal) -> dict:
    if isinstance(principal, UserPrincipal):
        return {"user_id": principal.id, "link_share": None}
    if isinstance(principal, LinkSharePrincipal):
        return {"user": None, "link_share_id": principal.id}
    raise unsupported(principal)


def add_reaction(principal: Principal, kind: str, entity_id: int, value: str) -> tuple[Reaction, bool]:
    """Idempotent: reacting twice with the same value returns the first row."""
    owner = _reaction_owner(principal)
    with transaction.atomic():
        try:
            with transaction.atomic():
                reaction, created = Reaction.objects.get_or_create(
                    kind=kind, entity_id=entity_id, value=value, **owner,
                )
        except IntegrityError:
            reaction, created = Reaction.objects.get(kind=kind, entity_id=entity_id, value=value, **owner), False
    if created:
        logger.info("reaction added kind=%s entity=%s value=%s", kind, entity_id, value)
    return reaction, created


def remove_reaction(principal: Principal, kind: str, entity_id: int, value: str) -> bool:
    owner = _reaction_owner(principal)
    deleted, _ = Reaction.objects.filter(kind=kind, entity_id=entity_id, value=value, **owner).delete()
    return bool(deleted)
