"""
Mixins shared by the project API viewsets.

- `GuardedViewSetMixin`: resolves the request principal once and wires one
  guard set per request (`build_guards()`), so every check in a request sees
  the same engine.
- `ProjectScopedMixin`: for routes nested under `projects/{project_pk}/`;
  resolves the parent project and requires read on it before any guard call,
  so a project the caller cannot see answers 404 whether it exists or not.
- `TaskScopedMixin`: same for `tasks/{task_pk}/`.
"""

from __future__ import annotations

from functools import cached_property

from rest_framework.exceptions import NotAuthenticated
from rest_framework.permissions import IsAuthenticated

from projects.access.guards import Guards, build_guards
from projects.access.principal import Principal, principal_from_request, user_id_of
from projects.models import Project, Task

from .permissions import HasPrincipal, enforce


class GuardedViewSetMixin:
    permission_classes = [IsAuthenticated, HasPrincipal]

    @cached_property
    def principal(self) -> Principal:
        principal = principal_from_request(self.request)
        if principal is None:
            raise NotAuthenticated()
        return principal

    @cached_property
    def guards(self) -> Guards:
        return build_guards()

    @property
    def principal_user_id(self) -> int | None:
        return user_id_of(self.principal)

    def check_readable(self, result) -> None:
        """`result` is the `(allowed, level)` pair of a guard's `can_read`."""
        readable, _ = result
        enforce(readable, readable=False)


class ProjectScopedMixin(GuardedViewSetMixin):
    def initial(self, request, *args, **kwargs):
        super().initial(request, *args, **kwargs)
        # Missing and unreadable projects both answer 404.
        self.check_project_readable()

    @cached_property
    def project(self) -> Project:
        project_id = int(self.kwargs["project_pk"])
        self.guards.engine.store.get_project(project_id)
        return Project.objects.get(pk=project_id)

    def check_project_readable(self) -> None:
        self.check_readable(self.guards.projects.can_read(self.principal, self.project.pk))


class TaskScopedMixin(GuardedViewSetMixin):
    @cached_property
    def task(self) -> Task:
        task_id = int(self.kwargs["task_pk"])
        self.guards.tasks.lookup.get_task(task_id)
        return Task.objects.select_related("project").get(pk=task_id)
