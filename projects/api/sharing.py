"""
Sharing endpoints nested under `projects/{project_pk}/`.

- `users/`   direct user grants (lookup: user id)
- `teams/`   team grants (lookup: team id)
- `shares/`  link shares (lookup: share id)

Every route needs project read first (404 otherwise). The rest is decided by
the sharing guards, which never let a link share change sharing.
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework import mixins, status, viewsets
from rest_framework.response import Response

from projects import grants
from projects.access.errors import (
    ShareDoesNotExist,
    TeamDoesNotExist,
    UserDoesNotExist,
    UserDoesNotHaveAccessToProject,
)
from projects.access.levels import Permission
from projects.models import LinkSharing, ProjectUser, Team, TeamProject
from projects.schema import ERROR_RESPONSE
from projects.serializers import LinkShareSerializer, ProjectUserSerializer, TeamProjectSerializer

from .mixins import ProjectScopedMixin
from .permissions import enforce


def _user_by_username(username):
    user = get_user_model().objects.filter(username=username).first() if username else None
    if user is None:
        raise UserDoesNotExist()
    return user


@extend_schema_view(
    list=extend_schema(tags=["Sharing"], description="List users with direct access to the project."),
    create=extend_schema(tags=["Sharing"], description="Share the project with a user.", responses={201: ProjectUserSerializer, 409: ERROR_RESPONSE}),
    partial_update=extend_schema(tags=["Sharing"], description="Change a user's level."),
    update=extend_schema(tags=["Sharing"], description="Change a user's level."),
    destroy=extend_schema(tags=["Sharing"], description="Revoke a user's access."),
)
class ProjectUserViewSet(
    ProjectScopedMixin,
    mixins.ListModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = ProjectUserSerializer
    lookup_field = "user_id"
    lookup_value_regex = r"\d+"

    def get_queryset(self):
        return ProjectUser.objects.filter(project=self.project).select_related("user")

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        enforce(self.guards.project_users.can_create(self.principal, self.project.pk))
        user = _user_by_username(serializer.validated_data.get("username"))
        grant = grants.share_with_user(
            self.project, user, serializer.validated_data["permission"], shared_by=request.user,
        )
        return Response(self.get_serializer(grant).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        enforce(self.guards.project_users.can_update(self.principal, self.project.pk))
        user = get_user_model().objects.filter(pk=self.kwargs["user_id"]).first()
        if user is None:
            raise UserDoesNotHaveAccessToProject()
        grant = grants.update_user_grant(self.project, user, request.data.get("permission"))
        return Response(self.get_serializer(grant).data)

    def partial_update(self, request, *args, **kwargs):
        return self.update(request, *args, **kwargs)

    def destroy(self, request, *args, **kwargs):
        enforce(self.guards.project_users.can_delete(self.principal, self.project.pk))
        user = get_user_model().objects.filter(pk=self.kwargs["user_id"]).first()
        if user is None:
            raise UserDoesNotHaveAccessToProject()
        grants.revoke_user_grant(self.project, user)
        return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema_view(
    list=extend_schema(tags=["Sharing"], description="List teams with access to the project."),
    create=extend_schema(tags=["Sharing"], description="Share the project with a team.", responses={201: TeamProjectSerializer, 409: ERROR_RESPONSE}),
    partial_update=extend_schema(tags=["Sharing"], description="Change a team's level."),
    update=extend_schema(tags=["Sharing"], description="Change a team's level."),
    destroy=extend_schema(tags=["Sharing"], description="Revoke a team's access."),
)
class TeamProjectViewSet(
    ProjectScopedMixin,
    mixins.ListModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = TeamProjectSerializer
    lookup_field = "team_id"
    lookup_value_regex = r"\d+"

    def get_queryset(self):
        return TeamProject.objects.filter(project=self.project).select_related("team")

    def _team(self, team_id) -> Team:
        team = Team.objects.filter(pk=team_id).first()
        if team is None:
            raise TeamDoesNotExist()
        return team

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        enforce(self.guards.team_projects.can_create(self.principal, self.project.pk))
        team = self._team(serializer.validated_data["team_id"])
        grant = grants.share_with_team(
            self.project, team, serializer.validated_data["permission"], shared_by=request.user,
        )
        return Response(self.get_serializer(grant).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        enforce(self.guards.team_projects.can_update(self.principal, self.project.pk))
        grant = grants.update_team_grant(self.project, self._team(self.kwargs["team_id"]), request.data.get("permission"))
        return Response(self.get_serializer(grant).data)

    def partial_update(self, request, *args, **kwargs):
        return self.update(request, *args, **kwargs)

    def destroy(self, request, *args, **kwargs):
        enforce(self.guards.team_projects.can_delete(self.principal, self.project.pk))
        grants.revoke_team_grant(self.project, self._team(self.kwargs["team_id"]))
        return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema_view(
    list=extend_schema(tags=["Sharing"], description="List link shares of the project."),
    retrieve=extend_schema(tags=["Sharing"], description="Retrieve a link share."),
    create=extend_schema(tags=["Sharing"], description="Create a link share; the response carries its hash."),
    partial_update=extend_schema(tags=["Sharing"], description="Change a link share's name, level or expiry."),
    update=extend_schema(tags=["Sharing"], description="Change a link share's name, level or expiry."),
    destroy=extend_schema(tags=["Sharing"], description="Delete a link share."),
)
class LinkShareViewSet(
    ProjectScopedMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = LinkShareSerializer
    lookup_value_regex = r"\d+"

    def get_queryset(self):
        return LinkSharing.objects.filter(project=self.project)

    def get_object(self):
        enforce(self.guards.link_shares.can_read(self.principal, self.project.pk))
        share = self.get_queryset().filter(pk=self.kwargs["pk"]).first()
        if share is None:
            raise ShareDoesNotExist()
        return share

    def list(self, request, *args, **kwargs):
        enforce(self.guards.link_shares.can_read(self.principal, self.project.pk))
        return super().list(request, *args, **kwargs)

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        level = Permission.validate(serializer.validated_data.get("permission", Permission.READ))
        enforce(self.guards.link_shares.can_create(self.principal, self.project.pk, level))
        share = grants.create_link_share(
            self.project,
            request.user if getattr(request.user, "pk", None) else None,
            level,
            password=serializer.validated_data.get("password") or None,
            name=serializer.validated_data.get("name", ""),
            expires_at=serializer.validated_data.get("expires_at"),
        )
        return Response(self.get_serializer(share).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        share = self.get_object()
        serializer = self.get_serializer(share, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        new_level = serializer.validated_data.get("permission")
        if new_level is not None:
            new_level = Permission.validate(new_level)
        enforce(self.guards.link_shares.can_update(self.principal, share, new_level))
        share = grants.update_link_share(
            share,
            permission=new_level,
            name=serializer.validated_data.get("name"),
            expires_at=serializer.validated_data.get("expires_at", grants.UNSET),
        )
        return Response(self.get_serializer(share).data)

    def partial_update(self, request, *args, **kwargs):
        return self.update(request, *args, **kwargs)

    def destroy(self, request, *args, **kwargs):
        share = self.get_object()
        enforce(self.guards.link_shares.can_delete(self.principal, share))
        share.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)
