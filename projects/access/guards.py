"""
Per-entity guards.

Each guard answers `can_read` / `can_write` / `can_create` / `can_update` /
`can_delete` for one kind of entity. Non-project entities are first resolved to
their owning project, then the decision is delegated to `ProjectGuard`, which in
turn asks `PermissionEngine` for the effective level.

Conventions
-----------
- A denied check returns False; it never raises. `can_read` returns a
  `(allowed, level)` pair so callers can surface the caller's max level.
- A dangling reference (missing task, comment, team, ...) raises the matching
  `*DoesNotExist` error so callers can tell "not found" from "forbidden".
- Link-share principals are turned away before any lookup from every operation
  that would change sharing topology (user/team grants, link shares, teams,
  saved filters, labels).
- Guards receive their collaborators through `__init__`; `build_guards()` wires
  the default set for one request.
"""

from __future__ import annotations

from dataclasses import dataclass

from projects.models import ReactionKind

from .engine import PermissionEngine
from .errors import GenericForbidden, ProjectIsArchived
from .hierarchy import Hierarchy, is_favorites, saved_filter_id_for_project
from .levels import Permission
from .principal import LinkSharePrincipal, Principal, UserPrincipal, unsupported
from .store import ContentLookup, GrantStore

DENIED = (False, Permission.UNKNOWN)


class SavedFilterGuard:
    """Saved filters belong to exactly one user; there is no sharing."""

    def __init__(self, lookup: ContentLookup):
        self.lookup = lookup

    def _is_owner(self, principal: Principal, filter_id: int) -> bool:
        if isinstance(principal, LinkSharePrincipal):
            return False
        if isinstance(principal, UserPrincipal):
            saved = self.lookup.find_saved_filter(filter_id)
            return saved is not None and saved.owner_id == principal.id
        raise unsupported(principal)

    def can_read(self, principal: Principal, filter_id: int) -> tuple[bool, Permission]:
        if self._is_owner(principal, filter_id):
            return True, Permission.ADMIN
        return DENIED

    def can_update(self, principal: Principal, filter_id: int) -> bool:
        return self._is_owner(principal, filter_id)

    def can_delete(self, principal: Principal, filter_id: int) -> bool:
        return self._is_owner(principal, filter_id)

    def can_create(self, principal: Principal) -> bool:
        if isinstance(principal, LinkSharePrincipal):
            return False
        if isinstance(principal, UserPrincipal):
            return True
        raise unsupported(principal)


class ProjectGuard:
    def __init__(self, engine: PermissionEngine, filters: SavedFilterGuard):
        self.engine = engine
        self.store = engine.store
        self.hierarchy = engine.hierarchy
        self.filters = filters

    def can_read(self, principal: Principal, project_id: int) -> tuple[bool, Permission]:
        if is_favorites(project_id):
            if isinstance(principal, LinkSharePrincipal):
                return DENIED
            if isinstance(principal, UserPrincipal):
                return True, Permission.READ
            raise unsupported(principal)

        filter_id = saved_filter_id_for_project(project_id)
        if filter_id:
            return self.filters.can_read(principal, filter_id)

        self.store.get_project(project_id)
        if isinstance(principal, LinkSharePrincipal):
            return principal.project_id == project_id, principal.permission
        resolution = self.engine.resolve(principal, project_id)
        if resolution.allows(Permission.READ):
            return True, resolution.permission
        return DENIED

    def can_write(self, principal: Principal, project_id: int) -> bool:
        """
        Write access; raises `ProjectIsArchived` when write would otherwise be
        granted but the project or one of its ancestors is archived.
        """
        if project_id < 0:
            return False
        allowed, archived_id = self._write_decision(principal, project_id)
        if allowed and archived_id is not None:
            raise ProjectIsArchived(archived_id)
        return allowed

    def can_update(
        self,
        principal: Principal,
        project_id: int,
        *,
        parent_id: int | None = None,
        is_archived: bool | None = None,
    ) -> bool:
        """
        Update access, including moves and archiving.

        - Moving under a different parent requires write on that parent, else
          `GenericForbidden`.
        - `ProjectIsArchived` is swallowed only when this very project is the
          archived one and the update sets `is_archived=False`.
        """
        if is_favorites(project_id):
            return False
        filter_id = saved_filter_id_for_project(project_id)
        if filter_id:
            return self.filters.can_update(principal, filter_id)

        current = self.store.get_project(project_id)
        if parent_id and parent_id != current.parent_id:
            if not self.can_write(principal, parent_id):
                raise GenericForbidden("You are not allowed to move the project there.")

        allowed, archived_id = self._write_decision(principal, project_id)
        if allowed and archived_id is not None:
            unarchiving = is_archived is False and archived_id == project_id
            if not unarchiving:
                raise ProjectIsArchived(archived_id)
        return allowed

    def is_admin(self, principal: Principal, project_id: int) -> bool:
        if is_favorites(project_id):
            return False
        filter_id = saved_filter_id_for_project(project_id)
        if filter_id:
            return self.filters.can_delete(principal, filter_id)

        node = self.store.get_project(project_id)
        if isinstance(principal, UserPrincipal) and node.owner_id == principal.id:
            return True
        return self.engine.allows(principal, project_id, Permission.ADMIN)

    def can_delete(self, principal: Principal, project_id: int) -> bool:
        return self.is_admin(principal, project_id)

    def can_create(self, principal: Principal, parent_id: int | None = None) -> bool:
        if parent_id:
            return self.can_write(principal, parent_id)
        if isinstance(principal, LinkSharePrincipal):
            return False
        if isinstance(principal, UserPrincipal):
            return True
        raise unsupported(principal)

    def can_duplicate(self, principal: Principal, source_id: int, parent_id: int | None = None) -> bool:
        readable, _ = self.can_read(principal, source_id)
        return readable and self.can_create(principal, parent_id)

    def _write_decision(self, principal: Principal, project_id: int) -> tuple[bool, int | None]:
        node = self.store.get_project(project_id)
        if isinstance(principal, LinkSharePrincipal):
            allowed = self.engine.allows(principal, project_id, Permission.WRITE)
        elif isinstance(principal, UserPrincipal):
            allowed = node.owner_id == principal.id or self.engine.allows(principal, project_id, Permission.WRITE)
        else:
            raise unsupported(principal)
        archived_id = self.hierarchy.archived_project_id(project_id) if allowed else None
        return allowed, archived_id


# ---------------------------------------------------------------------------
# Sharing topology
# ---------------------------------------------------------------------------

class _ProjectGrantGuard:
    """User and team grants: managed by project admins, never by link shares."""

    def __init__(self, projects: ProjectGuard):
        self.projects = projects

    def _is_project_admin(self, principal: Principal, project_id: int) -> bool:
        if isinstance(principal, LinkSharePrincipal):
            return False
        if isinstance(principal, UserPrincipal):
            return self.projects.is_admin(principal, project_id)
        raise unsupported(principal)

    def can_create(self, principal: Principal, project_id: int) -> bool:
        return self._is_project_admin(principal, project_id)

    def can_update(self, principal: Principal, project_id: int) -> bool:
        return self._is_project_admin(principal, project_id)

    def can_delete(self, principal: Principal, project_id: int) -> bool:
        return self._is_project_admin(principal, project_id)

    def can_read(self, principal: Principal, project_id: int) -> tuple[bool, Permission]:
        return self.projects.can_read(principal, project_id)


class ProjectUserGuard(_ProjectGrantGuard):
    pass


class TeamProjectGuard(_ProjectGrantGuard):
    pass


class LinkShareGuard:
    """
    Link shares: admin shares need project admin, lower shares need project
    write. A link share can never manage link shares, not even read the list.
    """

    def __init__(self, projects: ProjectGuard):
        self.projects = projects

    def _can_manage(self, principal: Principal, project_id: int, permission: Permission) -> bool:
        if isinstance(principal, LinkSharePrincipal):
            return False
        if isinstance(principal, UserPrincipal):
            if permission == Permission.ADMIN:
                return self.projects.is_admin(principal, project_id)
            return self.projects.can_write(principal, project_id)
        raise unsupported(principal)

    def can_create(self, principal: Principal, project_id: int, permission: Permission) -> bool:
        return self._can_manage(principal, project_id, permission)

    def can_update(self, principal: Principal, share, permission: Permission | None = None) -> bool:
        strongest = max(Permission(share.permission), permission if permission is not None else Permission.UNKNOWN)
        return self._can_manage(principal, share.project_id, strongest)

    def can_delete(self, principal: Principal, share) -> bool:
        return self._can_manage(principal, share.project_id, Permission(share.permission))

    def can_read(self, principal: Principal, project_id: int) -> bool:
        if isinstance(principal, LinkSharePrincipal):
            return False
        if isinstance(principal, UserPrincipal):
            readable, _ = self.projects.can_read(principal, project_id)
            return readable
        raise unsupported(principal)


class TeamGuard:
    """Team management rights come from the member admin flag only."""

    def __init__(self, lookup: ContentLookup):
        self.lookup = lookup

    def is_admin(self, principal: Principal, team_id: int) -> bool:
        if isinstance(principal, LinkSharePrincipal):
            return False
        if isinstance(principal, UserPrincipal):
            self.lookup.get_team(team_id)
            member = self.lookup.membership(team_id, principal.id)
            return bool(member and member.admin)
        raise unsupported(principal)

    def can_read(self, principal: Principal, team_id: int) -> tuple[bool, Permission]:
        if isinstance(principal, LinkSharePrincipal):
            return DENIED
        if isinstance(principal, UserPrincipal):
            self.lookup.get_team(team_id)
            member = self.lookup.membership(team_id, principal.id)
            if member is None:
                return DENIED
            return True, Permission.ADMIN if member.admin else Permission.READ
        raise unsupported(principal)

    def can_create(self, principal: Principal) -> bool:
        if isinstance(principal, LinkSharePrincipal):
            return False
        if isinstance(principal, UserPrincipal):
            return True
        raise unsupported(principal)

    def can_update(self, principal: Principal, team_id: int) -> bool:
        return self.is_admin(principal, team_id)

    def can_delete(self, principal: Principal, team_id: int) -> bool:
        return self.is_admin(principal, team_id)


class TeamMemberGuard:
    def __init__(self, teams: TeamGuard):
        self.teams = teams

    def can_create(self, principal: Principal, team_id: int) -> bool:
        return self.teams.is_admin(principal, team_id)

    def can_update(self, principal: Principal, team_id: int) -> bool:
        return self.teams.is_admin(principal, team_id)

    def can_delete(self, principal: Principal, team_id: int, user_id: int) -> bool:
        """Team admins can remove anyone; every member can remove themselves."""
        if isinstance(principal, UserPrincipal) and principal.id == user_id:
            self.teams.lookup.get_team(team_id)
            return True
        return self.teams.is_admin(principal, team_id)


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------

class TaskGuard:
    def __init__(self, projects: ProjectGuard, lookup: ContentLookup):
        self.projects = projects
        self.lookup = lookup

    def can_read(self, principal: Principal, task_id: int) -> tuple[bool, Permission]:
        task = self.lookup.get_task(task_id)
        return self.projects.can_read(principal, task.project_id)

    def can_write(self, principal: Principal, task_id: int) -> bool:
        task = self.lookup.get_task(task_id)
        return self.projects.can_write(principal, task.project_id)

    def can_create(self, principal: Principal, project_id: int) -> bool:
        return self.projects.can_write(principal, project_id)

    def can_update(self, principal: Principal, task_id: int, *, project_id: int | None = None) -> bool:
        """Moving a task needs write on both the current and the target project."""
        task = self.lookup.get_task(task_id)
        if project_id and project_id != task.project_id:
            if not self.projects.can_write(principal, project_id):
                return False
        return self.projects.can_write(principal, task.project_id)

    def can_delete(self, principal: Principal, task_id: int) -> bool:
        return self.can_write(principal, task_id)


class CommentGuard:
    def __init__(self, tasks: TaskGuard, lookup: ContentLookup):
        self.tasks = tasks
        self.lookup = lookup

    def can_read(self, principal: Principal, task_id: int) -> tuple[bool, Permission]:
        return self.tasks.can_read(principal, task_id)

    def can_create(self, principal: Principal, task_id: int) -> bool:
        return self.tasks.can_write(principal, task_id)

    def can_update(self, principal: Principal, comment_id: int) -> bool:
        return self._can_modify(principal, comment_id)

    def can_delete(self, principal: Principal, comment_id: int) -> bool:
        return self._can_modify(principal, comment_id)

    def _can_modify(self, principal: Principal, comment_id: int) -> bool:
        comment = self.lookup.get_comment(comment_id)
        if not self.tasks.can_write(principal, comment.task_id):
            return False
        if isinstance(principal, UserPrincipal):
            return comment.author_id == principal.id
        if isinstance(principal, LinkSharePrincipal):
            return comment.link_share_id == principal.id
        raise unsupported(principal)


class LabelGuard:
    """
    Labels are personal: only their creator edits them. Anyone who can read a
    task carrying the label can read the label, at that task's level.
    """

    def __init__(self, engine: PermissionEngine, lookup: ContentLookup):
        self.engine = engine
        self.lookup = lookup

    def can_read(self, principal: Principal, label_id: int) -> tuple[bool, Permission]:
        label = self.lookup.get_label(label_id)
        if isinstance(principal, UserPrincipal) and label.created_by_id == principal.id:
            return True, Permission.ADMIN
        if not isinstance(principal, (UserPrincipal, LinkSharePrincipal)):
            raise unsupported(principal)

        project_ids = self.lookup.project_ids_for_label(label_id)
        resolutions = self.engine.resolve_many(principal, project_ids)
        levels = [r.permission for r in resolutions.values() if r.allows(Permission.READ)]
        if not levels:
            return DENIED
        return True, max(levels)

    def can_create(self, principal: Principal) -> bool:
        if isinstance(principal, LinkSharePrincipal):
            return False
        if isinstance(principal, UserPrincipal):
            return True
        raise unsupported(principal)

    def can_update(self, principal: Principal, label_id: int) -> bool:
        return self._is_creator(principal, label_id)

    def can_delete(self, principal: Principal, label_id: int) -> bool:
        return self._is_creator(principal, label_id)

    def _is_creator(self, principal: Principal, label_id: int) -> bool:
        if isinstance(principal, LinkSharePrincipal):
            return False
        if isinstance(principal, UserPrincipal):
            return self.lookup.get_label(label_id).created_by_id == principal.id
        raise unsupported(principal)


class LabelTaskGuard:
    def __init__(self, labels: LabelGuard, tasks: TaskGuard):
        self.labels = labels
        self.tasks = tasks

    def can_read(self, principal: Principal, task_id: int) -> tuple[bool, Permission]:
        return self.tasks.can_read(principal, task_id)

    def can_create(self, principal: Principal, task_id: int, label_id: int) -> bool:
        if isinstance(principal, LinkSharePrincipal):
            return False
        if not isinstance(principal, UserPrincipal):
            raise unsupported(principal)
        if not self.tasks.can_write(principal, task_id):
            return False
        readable, _ = self.labels.can_read(principal, label_id)
        return readable

    def can_delete(self, principal: Principal, task_id: int) -> bool:
        return self.tasks.can_write(principal, task_id)


class ReactionGuard:
    def __init__(self, tasks: TaskGuard, lookup: ContentLookup):
        self.tasks = tasks
        self.lookup = lookup

    def task_id_for(self, kind: str, entity_id: int) -> int:
        if kind == ReactionKind.TASK:
            return entity_id
        if kind == ReactionKind.COMMENT:
            return self.lookup.get_comment(entity_id).task_id
        raise ValueError(f"Unknown reaction kind: {kind!r}")

    def can_read(self, principal: Principal, kind: str, entity_id: int) -> tuple[bool, Permission]:
        return self.tasks.can_read(principal, self.task_id_for(kind, entity_id))

    def can_create(self, principal: Principal, kind: str, entity_id: int) -> bool:
        return self.tasks.can_write(principal, self.task_id_for(kind, entity_id))

    def can_delete(self, principal: Principal, kind: str, entity_id: int) -> bool:
        return self.tasks.can_write(principal, self.task_id_for(kind, entity_id))


class WebhookGuard:
    def __init__(self, projects: ProjectGuard):
        self.projects = projects

    def can_read(self, principal: Principal, project_id: int) -> bool:
        return self.projects.is_admin(principal, project_id)

    def can_create(self, principal: Principal, project_id: int) -> bool:
        return self.projects.is_admin(principal, project_id)

    def can_update(self, principal: Principal, project_id: int) -> bool:
        return self.projects.is_admin(principal, project_id)

    def can_delete(self, principal: Principal, project_id: int) -> bool:
        return self.projects.is_admin(principal, project_id)


@dataclass(frozen=True)
class Guards:
    engine: PermissionEngine
    projects: ProjectGuard
    saved_filters: SavedFilterGuard
    project_users: ProjectUserGuard
    team_projects: TeamProjectGuard
    link_shares: LinkShareGuard
    teams: TeamGuard
    team_members: TeamMemberGuard
    tasks: TaskGuard
    comments: CommentGuard
    labels: LabelGuard
    label_tasks: LabelTaskGuard
    reactions: ReactionGuard
    webhooks: WebhookGuard


def build_guards(
    store: GrantStore | None = None,
    lookup: ContentLookup | None = None,
    max_depth: int | None = None,
) -> Guards:
    """Wire one engine and the full guard set around it."""
    store = store or GrantStore()
    lookup = lookup or ContentLookup()
    engine = PermissionEngine(store, Hierarchy(store, max_depth))
    saved_filters = SavedFilterGuard(lookup)
    projects = ProjectGuard(engine, saved_filters)
    teams = TeamGuard(lookup)
    tasks = TaskGuard(projects, lookup)
    labels = LabelGuard(engine, lookup)
    return Guards(
        engine=engine,
        projects=projects,
        saved_filters=saved_filters,
        project_users=ProjectUserGuard(projects),
        team_projects=TeamProjectGuard(projects),
        link_shares=LinkShareGuard(projects),
        teams=teams,
        team_members=TeamMemberGuard(teams),
        tasks=tasks,
        comments=CommentGuard(tasks, lookup),
        labels=labels,
        label_tasks=LabelTaskGuard(labels, tasks),
        reactions=ReactionGuard(tasks, lookup),
        webhooks=WebhookGuard(projects),
    )
