"""
Project endpoints.

- list: every project the principal can read (owned, shared directly or via a
  team, and all their descendants). Each row carries `max_permission`.
- create: root projects need a user account; sub-projects need write on the
  parent. The creator becomes the owner.
- update: moves need write on the new parent; archived projects only accept
  the request that un-archives them.
- destroy: project admins only.
- duplicate: copy a readable project (and its grants) under a parent the
  caller can create in.
"""

from __future__ import annotations

import logging

from django.db import transaction
from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from projects.access.errors import ProjectDoesNotExist
from projects.access.principal import UserPrincipal
from projects.models import Project, ProjectUser, TeamProject
from projects.schema import ERROR_RESPONSE
from projects.serializers import ProjectDuplicateSerializer, ProjectSerializer

from .mixins import GuardedViewSetMixin
from .permissions import enforce

logger = logging.getLogger(__name__)


def _bool_or_none(value):
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    return str(value).lower() in ("1", "true", "yes", "on")


@extend_schema_view(
    list=extend_schema(tags=["Projects"], description="List readable projects."),
    retrieve=extend_schema(tags=["Projects"], description="Retrieve a project.", responses={200: ProjectSerializer, 404: ERROR_RESPONSE}),
    create=extend_schema(tags=["Projects"], description="Create a project (optionally below a parent)."),
    update=extend_schema(tags=["Projects"], description="Update a project.", responses={200: ProjectSerializer, 412: ERROR_RESPONSE}),
    partial_update=extend_schema(tags=["Projects"], description="Partial update a project.", responses={200: ProjectSerializer, 412: ERROR_RESPONSE}),
    destroy=extend_schema(tags=["Projects"], description="Delete a project and its sub-projects."),
)
class ProjectViewSet(GuardedViewSetMixin, viewsets.ModelViewSet):
    lookup_value_regex = r"\d+"
    serializer_class = ProjectSerializer
    filterset_fields = ["parent", "is_archived"]
    search_fields = ["title", "description", "identifier"]
    ordering_fields = ["position", "title", "created_at", "updated_at"]
    ordering = ["position", "id"]

    def get_queryset(self):
        ids = self.guards.engine.readable_project_ids(self.principal)
        return Project.objects.filter(pk__in=ids)

    def get_object(self):
        project_id = int(self.kwargs[self.lookup_field])
        readable, level = self.guards.projects.can_read(self.principal, project_id)
        enforce(readable, readable=False)
        obj = Project.objects.get(pk=project_id)
        self._levels = {obj.pk: level}
        return obj

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context["levels"] = getattr(self, "_levels", {})
        return context

    def list(self, request, *args, **kwargs):
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        rows = page if page is not None else list(queryset)
        resolved = self.guards.engine.resolve_many(self.principal, [p.pk for p in rows])
        self._levels = {pid: r.permission for pid, r in resolved.items()}
        serializer = self.get_serializer(rows, many=True)
        if page is not None:
            return self.get_paginated_response(serializer.data)
        return Response(serializer.data)

    def perform_create(self, serializer):
        parent = serializer.validated_data.get("parent")
        enforce(self.guards.projects.can_create(self.principal, parent.pk if parent else None))
        if isinstance(self.principal, UserPrincipal):
            owner_id = self.principal.id
        else:
            owner_id = parent.owner_id
        project = serializer.save(owner_id=owner_id)
        # The response reuses this serializer, whose context was built before the save.
        serializer.context["levels"] = {project.pk: self.guards.engine.resolve(self.principal, project.pk).permission}
        logger.info("project created project=%s parent=%s", project.pk, project.parent_id)

    def perform_update(self, serializer):
        project = serializer.instance
        parent = serializer.validated_data.get("parent", project.parent)
        parent_id = parent.pk if parent else None
        allowed = self.guards.projects.can_update(
            self.principal,
            project.pk,
            parent_id=parent_id,
            is_archived=_bool_or_none(self.request.data.get("is_archived")),
        )
        enforce(allowed)
        if parent_id and parent_id != project.parent_id:
            chain = self.guards.engine.hierarchy.ancestor_chain(parent_id)
            if any(node.id == project.pk for node in chain):
                raise ValidationError({"parent": "A project cannot be moved below itself."})
        serializer.save()

    def perform_destroy(self, instance):
        enforce(self.guards.projects.can_delete(self.principal, instance.pk))
        logger.info("project deleted project=%s", instance.pk)
        instance.delete()

    @extend_schema(
        tags=["Projects"],
        request=ProjectDuplicateSerializer,
        responses={201: ProjectSerializer, 404: ERROR_RESPONSE},
        description="Duplicate a project, with its user and team grants, below an optional parent.",
    )
    @action(detail=True, methods=["post"])
    def duplicate(self, request, pk=None):
        source_id = int(pk)
        payload = ProjectDuplicateSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        parent = payload.validated_data.get("parent")
        parent_id = parent.pk if parent else None

        readable, _ = self.guards.projects.can_read(self.principal, source_id)
        enforce(readable, readable=False)
        enforce(self.guards.projects.can_duplicate(self.principal, source_id, parent_id))

        source = Project.objects.filter(pk=source_id).first()
        if source is None:
            raise ProjectDoesNotExist(source_id)
        owner_id = self.principal.id if isinstance(self.principal, UserPrincipal) else parent.owner_id
        with transaction.atomic():
            copy = Project.objects.create(
                title=f"{source.title} - duplicate",
                description=source.description,
                identifier="",
                hex_color=source.hex_color,
                parent_id=parent_id,
                owner_id=owner_id,
                position=source.position,
            )
            ProjectUser.objects.bulk_create(
                ProjectUser(project=copy, user_id=g.user_id, permission=g.permission)
                for g in source.user_grants.exclude(user_id=owner_id)
            )
            TeamProject.objects.bulk_create(
                TeamProject(project=copy, team_id=g.team_id, permission=g.permission)
                for g in source.team_grants.all()
            )
        logger.info("project duplicated source=%s copy=%s", source.pk, copy.pk)

        self._levels = {copy.pk: self.guards.engine.resolve(self.principal, copy.pk).permission}
        data = self.get_serializer(copy).data
        return Response(data, status=status.HTTP_201_CREATED)
