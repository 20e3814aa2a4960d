"""
Reaction endpoints.

A reaction targets a task or a comment; both resolve to a task, and the task
decides: read to list, write to add or remove. Adding the same reaction twice
returns the existing row with 200 instead of 201.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import serializers, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from projects import grants
from projects.models import Reaction, ReactionKind
from projects.serializers import ReactionSerializer

from .mixins import GuardedViewSetMixin
from .permissions import enforce


class ReactionTargetSerializer(serializers.Serializer):
    kind = serializers.ChoiceField(choices=ReactionKind.choices)
    entity_id = serializers.IntegerField(min_value=1)


class ReactionViewSet(GuardedViewSetMixin, viewsets.GenericViewSet):
    serializer_class = ReactionSerializer
    pagination_class = None

    @extend_schema(
        tags=["Reactions"],
        parameters=[
            OpenApiParameter("kind", str, enum=ReactionKind.values, required=True),
            OpenApiParameter("entity_id", int, required=True),
        ],
        description="List reactions on a task or comment.",
    )
    def list(self, request):
        target = ReactionTargetSerializer(data=request.query_params)
        target.is_valid(raise_exception=True)
        kind, entity_id = target.validated_data["kind"], target.validated_data["entity_id"]
        self.check_readable(self.guards.reactions.can_read(self.principal, kind, entity_id))
        rows = Reaction.objects.filter(kind=kind, entity_id=entity_id).order_by("created_at")
        return Response(self.get_serializer(rows, many=True).data)

    @extend_schema(tags=["Reactions"], description="React to a task or comment.")
    def create(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        enforce(self.guards.reactions.can_create(self.principal, data["kind"], data["entity_id"]))
        reaction, created = grants.add_reaction(self.principal, data["kind"], data["entity_id"], data["value"])
        return Response(
            self.get_serializer(reaction).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    @extend_schema(tags=["Reactions"], request=ReactionSerializer, responses={204: None}, description="Remove your reaction.")
    @action(detail=False, methods=["post"])
    def remove(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        enforce(self.guards.reactions.can_delete(self.principal, data["kind"], data["entity_id"]))
        grants.remove_reaction(self.principal, data["kind"], data["entity_id"], data["value"])
        return Response(status=status.HTTP_204_NO_CONTENT)
