"""
Label endpoints.

Labels are personal: the creator edits and deletes them. Everyone who can read
a task carrying a label sees it in this list, at that task's level.
"""

from __future__ import annotations

from django.db.models import Q
from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework import viewsets

from projects.models import Label
from projects.serializers import LabelSerializer

from .mixins import GuardedViewSetMixin
from .permissions import enforce


@extend_schema_view(
    list=extend_schema(tags=["Labels"], description="Own labels plus labels on readable tasks."),
    retrieve=extend_schema(tags=["Labels"], description="Retrieve a label."),
    create=extend_schema(tags=["Labels"], description="Create a label."),
    update=extend_schema(tags=["Labels"], description="Update a label (creator only)."),
    partial_update=extend_schema(tags=["Labels"], description="Partial update a label (creator only)."),
    destroy=extend_schema(tags=["Labels"], description="Delete a label (creator only)."),
)
class LabelViewSet(GuardedViewSetMixin, viewsets.ModelViewSet):
    serializer_class = LabelSerializer
    lookup_value_regex = r"\d+"
    search_fields = ["title"]
    ordering_fields = ["title", "created_at"]
    ordering = ["title"]

    def get_queryset(self):
        project_ids = self.guards.engine.readable_project_ids(self.principal)
        visible = Q(task_links__task__project_id__in=project_ids)
        if self.principal_user_id is not None:
            visible |= Q(created_by_id=self.principal_user_id)
        return Label.objects.filter(visible).distinct()

    def get_object(self):
        label_id = int(self.kwargs["pk"])
        self.check_readable(self.guards.labels.can_read(self.principal, label_id))
        return Label.objects.get(pk=label_id)

    def perform_create(self, serializer):
        enforce(self.guards.labels.can_create(self.principal))
        serializer.save(created_by_id=self.principal_user_id)

    def perform_update(self, serializer):
        enforce(self.guards.labels.can_update(self.principal, serializer.instance.pk))
        serializer.save()

    def perform_destroy(self, instance):
        enforce(self.guards.labels.can_delete(self.principal, instance.pk))
        instance.delete()
