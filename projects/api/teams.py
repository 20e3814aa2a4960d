"""
Team endpoints.

- `teams/`                     teams the caller belongs to; create makes the
                               caller an admin member.
- `teams/{team_pk}/members/`   membership, managed by team admins; every member
                               may remove themselves.

Teams belong to accounts, so link shares are turned away at the door.
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.db import transaction
from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework import mixins, status, viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from projects import memberships
from projects.access.errors import TeamNameCannotBeEmpty, UserDoesNotExist
from projects.models import Team, TeamMember
from projects.schema import ERROR_RESPONSE
from projects.serializers import TeamMemberSerializer, TeamSerializer

from .mixins import GuardedViewSetMixin
from .permissions import HasPrincipal, UserAccountRequired, enforce


@extend_schema_view(
    list=extend_schema(tags=["Teams"], description="List the caller's teams."),
    retrieve=extend_schema(tags=["Teams"], description="Retrieve a team the caller belongs to."),
    create=extend_schema(tags=["Teams"], description="Create a team.", responses={201: TeamSerializer, 400: ERROR_RESPONSE}),
    update=extend_schema(tags=["Teams"], description="Update a team (team admins)."),
    partial_update=extend_schema(tags=["Teams"], description="Partial update a team (team admins)."),
    destroy=extend_schema(tags=["Teams"], description="Delete a team (team admins)."),
)
class TeamViewSet(GuardedViewSetMixin, viewsets.ModelViewSet):
    permission_classes = [IsAuthenticated, HasPrincipal, UserAccountRequired]
    serializer_class = TeamSerializer
    lookup_value_regex = r"\d+"
    search_fields = ["name"]
    ordering_fields = ["name", "created_at"]
    ordering = ["name"]

    def get_queryset(self):
        return Team.objects.filter(members__user_id=self.principal_user_id).distinct()

    def get_object(self):
        team_id = int(self.kwargs["pk"])
        self.check_readable(self.guards.teams.can_read(self.principal, team_id))
        return Team.objects.get(pk=team_id)

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        enforce(self.guards.teams.can_create(self.principal))
        team = memberships.create_team(
            request.user,
            serializer.validated_data.get("name", ""),
            serializer.validated_data.get("description", ""),
        )
        return Response(self.get_serializer(team).data, status=status.HTTP_201_CREATED)

    def perform_update(self, serializer):
        enforce(self.guards.teams.can_update(self.principal, serializer.instance.pk))
        name = serializer.validated_data.get("name")
        if name is not None and not name.strip():
            raise TeamNameCannotBeEmpty()
        serializer.save()

    def perform_destroy(self, instance):
        enforce(self.guards.teams.can_delete(self.principal, instance.pk))
        with transaction.atomic():
            instance.delete()


@extend_schema_view(
    list=extend_schema(tags=["Teams"], description="List team members."),
    create=extend_schema(tags=["Teams"], description="Add a member by username.", responses={201: TeamMemberSerializer, 409: ERROR_RESPONSE}),
    partial_update=extend_schema(tags=["Teams"], description="Toggle a member's admin flag."),
    update=extend_schema(tags=["Teams"], description="Toggle a member's admin flag."),
    destroy=extend_schema(tags=["Teams"], description="Remove a member."),
)
class TeamMemberViewSet(GuardedViewSetMixin, mixins.ListModelMixin, viewsets.GenericViewSet):
    permission_classes = [IsAuthenticated, HasPrincipal, UserAccountRequired]
    serializer_class = TeamMemberSerializer
    lookup_field = "user_id"
    lookup_value_regex = r"\d+"

    @property
    def team(self) -> Team:
        return self.guards.teams.lookup.get_team(int(self.kwargs["team_pk"]))

    def get_queryset(self):
        return TeamMember.objects.filter(team_id=self.kwargs["team_pk"]).select_related("user")

    def _user(self, **lookup):
        user = get_user_model().objects.filter(**lookup).first()
        if user is None:
            raise UserDoesNotExist()
        return user

    def list(self, request, *args, **kwargs):
        self.check_readable(self.guards.teams.can_read(self.principal, int(self.kwargs["team_pk"])))
        return super().list(request, *args, **kwargs)

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        team = self.team
        enforce(self.guards.team_members.can_create(self.principal, team.pk))
        user = self._user(username=serializer.validated_data.get("username") or "")
        member = memberships.add_member(team, user, admin=serializer.validated_data.get("admin", False))
        return Response(self.get_serializer(member).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        team = self.team
        enforce(self.guards.team_members.can_update(self.principal, team.pk))
        user = self._user(pk=self.kwargs["user_id"])
        serializer = self.get_serializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        member = memberships.set_member_admin(team, user, serializer.validated_data.get("admin", False))
        return Response(self.get_serializer(member).data)

    def partial_update(self, request, *args, **kwargs):
        return self.update(request, *args, **kwargs)

    def destroy(self, request, *args, **kwargs):
        team = self.team
        user = self._user(pk=self.kwargs["user_id"])
        enforce(self.guards.team_members.can_delete(self.principal, team.pk, user.pk))
        memberships.remove_member(team, user)
        return Response(status=status.HTTP_204_NO_CONTENT)
