"""
DRF serializers for projects, grants, teams and task content.

Goals
-----
- Thin, explicit serializers over `projects.models`. Authorization is not done
  here; views ask the guards before calling `save()`.
- `permission` inputs are plain integers so `Permission.validate()` in the grant
  services answers bad values with `InvalidPermission` (code 9001), not a
  generic choice error.

Security
--------
- Owner / creator / author columns are read-only; views set them from the
  request principal.
- Link-share passwords and webhook secrets are write-only.
"""

from __future__ import annotations

from rest_framework import serializers

from .access.levels import Permission
from .models import (
    Label,
    LinkSharing,
    Project,
    ProjectUser,
    Reaction,
    ReactionKind,
    SavedFilter,
    Task,
    TaskComment,
    Team,
    TeamMember,
    TeamProject,
    Webhook,
    WebhookEvent,
)


# ----------------------------
# Projects
# ----------------------------
class ProjectSerializer(serializers.ModelSerializer):
    """
    Project with the caller's effective level.

    `max_permission` comes from `context["levels"]` (project id -> Permission),
    which the view fills from one batched engine call.
    """
    parent = serializers.PrimaryKeyRelatedField(queryset=Project.objects.all(), allow_null=True, required=False)
    max_permission = serializers.SerializerMethodField()

    class Meta:
        model = Project
        fields = [
            "id",
            "title",
            "description",
            "identifier",
            "hex_color",
            "hash",
            "parent",
            "owner",
            "is_archived",
            "position",
            "max_permission",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "hash", "owner", "max_permission", "created_at", "updated_at"]

    def get_max_permission(self, obj) -> int:
        level = self.context.get("levels", {}).get(obj.pk, Permission.UNKNOWN)
        return int(level)


class ProjectDuplicateSerializer(serializers.Serializer):
    parent = serializers.PrimaryKeyRelatedField(queryset=Project.objects.all(), allow_null=True, required=False)


# ----------------------------
# Sharing
# ----------------------------
class ProjectUserSerializer(serializers.ModelSerializer):
    """Direct grant. Create with `username`; update only touches `permission`."""
    username = serializers.CharField(write_only=True, required=False)
    user_id = serializers.IntegerField(read_only=True)
    user_display = serializers.CharField(source="user.get_display_name", read_only=True)
    permission = serializers.IntegerField()

    class Meta:
        model = ProjectUser
        fields = ["id", "username", "user_id", "user_display", "permission", "created_at", "updated_at"]
        read_only_fields = ["id", "user_id", "user_display", "created_at", "updated_at"]


class TeamProjectSerializer(serializers.ModelSerializer):
    team_id = serializers.IntegerField()
    team_name = serializers.CharField(source="team.name", read_only=True)
    permission = serializers.IntegerField()

    class Meta:
        model = TeamProject
        fields = ["id", "team_id", "team_name", "permission", "created_at", "updated_at"]
        read_only_fields = ["id", "team_name", "created_at", "updated_at"]


class LinkShareSerializer(serializers.ModelSerializer):
    permission = serializers.IntegerField(required=False, default=int(Permission.READ))
    password = serializers.CharField(write_only=True, required=False, allow_blank=True)

    class Meta:
        model = LinkSharing
        fields = [
            "id",
            "hash",
            "name",
            "permission",
            "sharing_type",
            "password",
            "expires_at",
            "shared_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "hash", "sharing_type", "shared_by", "created_at", "updated_at"]


class WebhookSerializer(serializers.ModelSerializer):
    events = serializers.ListField(child=serializers.ChoiceField(choices=WebhookEvent.choices), allow_empty=False)
    secret = serializers.CharField(write_only=True, required=False, allow_blank=True)

    class Meta:
        model = Webhook
        fields = ["id", "project", "target_url", "events", "secret", "created_by", "created_at", "updated_at"]
        read_only_fields = ["id", "project", "created_by", "created_at", "updated_at"]


# ----------------------------
# Teams
# ----------------------------
class TeamSerializer(serializers.ModelSerializer):
    name = serializers.CharField(allow_blank=True, max_length=250)

    class Meta:
        model = Team
        fields = ["id", "name", "description", "created_by", "created_at", "updated_at"]
        read_only_fields = ["id", "created_by", "created_at", "updated_at"]


class TeamMemberSerializer(serializers.ModelSerializer):
    username = serializers.CharField(write_only=True, required=False)
    user_id = serializers.IntegerField(read_only=True)
    user_display = serializers.CharField(source="user.get_display_name", read_only=True)

    class Meta:
        model = TeamMember
        fields = ["id", "username", "user_id", "user_display", "admin", "created_at"]
        read_only_fields = ["id", "user_id", "user_display", "created_at"]


# ----------------------------
# Task content
# ----------------------------
class TaskSerializer(serializers.ModelSerializer):
    project = serializers.PrimaryKeyRelatedField(queryset=Project.objects.all())
    labels = serializers.PrimaryKeyRelatedField(many=True, read_only=True)

    class Meta:
        model = Task
        fields = [
            "id",
            "project",
            "title",
            "description",
            "done",
            "labels",
            "created_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "labels", "created_by", "created_at", "updated_at"]


class TaskCommentSerializer(serializers.ModelSerializer):
    class Meta:
        model = TaskComment
        fields = ["id", "task", "author", "link_share", "comment", "created_at", "updated_at"]
        read_only_fields = ["id", "task", "author", "link_share", "created_at", "updated_at"]


class LabelSerializer(serializers.ModelSerializer):
    class Meta:
        model = Label
        fields = ["id", "title", "description", "hex_color", "created_by", "created_at", "updated_at"]
        read_only_fields = ["id", "created_by", "created_at", "updated_at"]


class LabelTaskSerializer(serializers.Serializer):
    label_id = serializers.IntegerField(min_value=1)


class SavedFilterSerializer(serializers.ModelSerializer):
    project_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = SavedFilter
        fields = [
            "id",
            "title",
            "description",
            "filters",
            "is_favorite",
            "project_id",
            "owner",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "project_id", "owner", "created_at", "updated_at"]


class ReactionSerializer(serializers.ModelSerializer):
    kind = serializers.ChoiceField(choices=ReactionKind.choices)
    entity_id = serializers.IntegerField(min_value=1)
    value = serializers.CharField(max_length=20)

    class Meta:
        model = Reaction
        fields = ["id", "kind", "entity_id", "value", "user", "link_share", "created_at"]
        read_only_fields = ["id", "user", "link_share", "created_at"]
