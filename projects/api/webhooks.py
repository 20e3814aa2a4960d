"""
Project webhook endpoints (configuration only; nothing is delivered from here).

Webhooks can leak every change in a project, so all operations require project
admin, including listing.
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework import viewsets

from projects.models import Webhook
from projects.serializers import WebhookSerializer

from .mixins import ProjectScopedMixin
from .permissions import enforce


@extend_schema_view(
    list=extend_schema(tags=["Webhooks"], description="List project webhooks (project admins)."),
    retrieve=extend_schema(tags=["Webhooks"], description="Retrieve a webhook."),
    create=extend_schema(tags=["Webhooks"], description="Register a webhook target."),
    update=extend_schema(tags=["Webhooks"], description="Update a webhook."),
    partial_update=extend_schema(tags=["Webhooks"], description="Partial update a webhook."),
    destroy=extend_schema(tags=["Webhooks"], description="Delete a webhook."),
)
class WebhookViewSet(ProjectScopedMixin, viewsets.ModelViewSet):
    serializer_class = WebhookSerializer
    lookup_value_regex = r"\d+"

    def get_queryset(self):
        return Webhook.objects.filter(project=self.project)

    def initial(self, request, *args, **kwargs):
        super().initial(request, *args, **kwargs)
        if self.action in ("list", "retrieve"):
            enforce(self.guards.webhooks.can_read(self.principal, self.project.pk))

    def perform_create(self, serializer):
        enforce(self.guards.webhooks.can_create(self.principal, self.project.pk))
        serializer.save(project=self.project, created_by_id=self.principal_user_id)

    def perform_update(self, serializer):
        enforce(self.guards.webhooks.can_update(self.principal, self.project.pk))
        serializer.save()

    def perform_destroy(self, instance):
        enforce(self.guards.webhooks.can_delete(self.principal, instance.project_id))
        instance.delete()
