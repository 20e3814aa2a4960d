"""
Task endpoints: tasks, their comments and their labels.

Tasks inherit everything from their project: read needs project read, any
change needs project write (and write on the target project when moving).
Comments may be written by users and link shares alike; only the principal
that wrote a comment can edit or delete it.
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework import mixins, status, viewsets
from rest_framework.response import Response

from projects import grants
from projects.access.errors import LabelDoesNotExist, TaskCommentDoesNotExist
from projects.access.principal import LinkSharePrincipal
from projects.models import Label, Task, TaskComment
from projects.schema import ERROR_RESPONSE
from projects.serializers import LabelSerializer, LabelTaskSerializer, TaskCommentSerializer, TaskSerializer

from .mixins import GuardedViewSetMixin, TaskScopedMixin
from .permissions import enforce

logger = logging.getLogger(__name__)


@extend_schema_view(
    list=extend_schema(tags=["Tasks"], description="List tasks in readable projects."),
    retrieve=extend_schema(tags=["Tasks"], description="Retrieve a task."),
    create=extend_schema(tags=["Tasks"], description="Create a task.", responses={201: TaskSerializer, 412: ERROR_RESPONSE}),
    update=extend_schema(tags=["Tasks"], description="Update or move a task."),
    partial_update=extend_schema(tags=["Tasks"], description="Partial update a task."),
    destroy=extend_schema(tags=["Tasks"], description="Delete a task."),
)
class TaskViewSet(GuardedViewSetMixin, viewsets.ModelViewSet):
    serializer_class = TaskSerializer
    lookup_value_regex = r"\d+"
    filterset_fields = ["project", "done"]
    search_fields = ["title", "description"]
    ordering_fields = ["created_at", "updated_at", "title"]
    ordering = ["-created_at"]

    def get_queryset(self):
        ids = self.guards.engine.readable_project_ids(self.principal)
        return Task.objects.filter(project_id__in=ids).prefetch_related("labels")

    def get_object(self):
        task_id = int(self.kwargs["pk"])
        self.check_readable(self.guards.tasks.can_read(self.principal, task_id))
        return Task.objects.prefetch_related("labels").get(pk=task_id)

    def perform_create(self, serializer):
        project = serializer.validated_data["project"]
        enforce(self.guards.tasks.can_create(self.principal, project.pk))
        task = serializer.save(created_by_id=self.principal_user_id)
        logger.info("task created task=%s project=%s", task.pk, project.pk)

    def perform_update(self, serializer):
        task = serializer.instance
        target = serializer.validated_data.get("project")
        enforce(self.guards.tasks.can_update(self.principal, task.pk, project_id=target.pk if target else None))
        serializer.save()

    def perform_destroy(self, instance):
        enforce(self.guards.tasks.can_delete(self.principal, instance.pk))
        instance.delete()


@extend_schema_view(
    list=extend_schema(tags=["Tasks"], description="List comments of a task."),
    retrieve=extend_schema(tags=["Tasks"], description="Retrieve a comment."),
    create=extend_schema(tags=["Tasks"], description="Comment on a task."),
    update=extend_schema(tags=["Tasks"], description="Edit your own comment."),
    partial_update=extend_schema(tags=["Tasks"], description="Edit your own comment."),
    destroy=extend_schema(tags=["Tasks"], description="Delete your own comment."),
)
class TaskCommentViewSet(TaskScopedMixin, viewsets.ModelViewSet):
    serializer_class = TaskCommentSerializer
    lookup_value_regex = r"\d+"
    ordering = ["created_at"]

    def get_queryset(self):
        return TaskComment.objects.filter(task=self.task)

    def list(self, request, *args, **kwargs):
        self.check_readable(self.guards.comments.can_read(self.principal, self.task.pk))
        return super().list(request, *args, **kwargs)

    def get_object(self):
        self.check_readable(self.guards.comments.can_read(self.principal, self.task.pk))
        comment = self.get_queryset().filter(pk=int(self.kwargs["pk"])).first()
        if comment is None:
            raise TaskCommentDoesNotExist()
        return comment

    def perform_create(self, serializer):
        enforce(self.guards.comments.can_create(self.principal, self.task.pk))
        if isinstance(self.principal, LinkSharePrincipal):
            serializer.save(task=self.task, link_share_id=self.principal.id)
        else:
            serializer.save(task=self.task, author_id=self.principal_user_id)

    def perform_update(self, serializer):
        enforce(self.guards.comments.can_update(self.principal, serializer.instance.pk))
        serializer.save()

    def perform_destroy(self, instance):
        enforce(self.guards.comments.can_delete(self.principal, instance.pk))
        instance.delete()


@extend_schema_view(
    list=extend_schema(tags=["Labels"], description="Labels on a task."),
    create=extend_schema(tags=["Labels"], description="Put a label on a task.", request=LabelTaskSerializer, responses={201: LabelSerializer, 409: ERROR_RESPONSE}),
    destroy=extend_schema(tags=["Labels"], description="Take a label off a task.", responses={204: None, 404: ERROR_RESPONSE}),
)
class TaskLabelViewSet(TaskScopedMixin, mixins.ListModelMixin, viewsets.GenericViewSet):
    serializer_class = LabelSerializer
    lookup_field = "label_id"
    lookup_value_regex = r"\d+"

    def get_queryset(self):
        return Label.objects.filter(task_links__task=self.task)

    def list(self, request, *args, **kwargs):
        self.check_readable(self.guards.label_tasks.can_read(self.principal, self.task.pk))
        return super().list(request, *args, **kwargs)

    def create(self, request, *args, **kwargs):
        payload = LabelTaskSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        label_id = payload.validated_data["label_id"]
        enforce(self.guards.label_tasks.can_create(self.principal, self.task.pk, label_id))
        label = Label.objects.get(pk=label_id)
        grants.add_label_to_task(label, self.task)
        return Response(self.get_serializer(label).data, status=status.HTTP_201_CREATED)

    def destroy(self, request, *args, **kwargs):
        enforce(self.guards.label_tasks.can_delete(self.principal, self.task.pk))
        label = self.guards.labels.lookup.get_label(int(self.kwargs["label_id"]))
        if not grants.remove_label_from_task(label, self.task):
            raise LabelDoesNotExist("The label is not on this task.")
        return Response(status=status.HTTP_204_NO_CONTENT)
