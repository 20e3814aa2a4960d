"""
Saved filter endpoints. Filters are private to their owner; each one also
exists as the virtual project `-(id) - 1` for clients that list it next to
real projects.
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework import viewsets
from rest_framework.permissions import IsAuthenticated

from projects.access.errors import SavedFilterDoesNotExist
from projects.models import SavedFilter
from projects.serializers import SavedFilterSerializer

from .mixins import GuardedViewSetMixin
from .permissions import HasPrincipal, UserAccountRequired, enforce


@extend_schema_view(
    list=extend_schema(tags=["Filters"], description="List the caller's saved filters."),
    retrieve=extend_schema(tags=["Filters"], description="Retrieve a saved filter."),
    create=extend_schema(tags=["Filters"], description="Create a saved filter."),
    update=extend_schema(tags=["Filters"], description="Update a saved filter."),
    partial_update=extend_schema(tags=["Filters"], description="Partial update a saved filter."),
    destroy=extend_schema(tags=["Filters"], description="Delete a saved filter."),
)
class SavedFilterViewSet(GuardedViewSetMixin, viewsets.ModelViewSet):
    permission_classes = [IsAuthenticated, HasPrincipal, UserAccountRequired]
    serializer_class = SavedFilterSerializer
    lookup_value_regex = r"\d+"
    ordering = ["title"]

    def get_queryset(self):
        return SavedFilter.objects.filter(owner_id=self.principal_user_id)

    def get_object(self):
        filter_id = int(self.kwargs["pk"])
        readable, _ = self.guards.saved_filters.can_read(self.principal, filter_id)
        if not readable:
            raise SavedFilterDoesNotExist()
        return SavedFilter.objects.get(pk=filter_id)

    def perform_create(self, serializer):
        enforce(self.guards.saved_filters.can_create(self.principal))
        serializer.save(owner_id=self.principal_user_id)

    def perform_update(self, serializer):
        enforce(self.guards.saved_filters.can_update(self.principal, serializer.instance.pk))
        serializer.save()

    def perform_destroy(self, instance):
        enforce(self.guards.saved_filters.can_delete(self.principal, instance.pk))
        instance.delete()
