"""
Django admin registrations for projects, grants and task content.

Back-office only. Link-share password hashes and webhook secrets are never
listed; grant rows are shown with their level label for quick auditing.
"""

from __future__ import annotations

from django.contrib import admin

from .models import (
    Label,
    LinkSharing,
    Project,
    ProjectUser,
    SavedFilter,
    Task,
    TaskComment,
    Team,
    TeamMember,
    TeamProject,
    Webhook,
)


class ProjectUserInline(admin.TabularInline):
    model = ProjectUser
    extra = 0
    raw_id_fields = ("user",)


class TeamProjectInline(admin.TabularInline):
    model = TeamProject
    extra = 0


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    """Projects with their direct and team grants inline."""
    list_display = ("id", "title", "parent", "owner", "is_archived", "created_at")
    list_filter = ("is_archived",)
    search_fields = ("title", "identifier", "owner__username")
    raw_id_fields = ("parent", "owner")
    inlines = (ProjectUserInline, TeamProjectInline)


class TeamMemberInline(admin.TabularInline):
    model = TeamMember
    extra = 0
    raw_id_fields = ("user",)


@admin.register(Team)
class TeamAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "created_by", "created_at")
    search_fields = ("name",)
    inlines = (TeamMemberInline,)


@admin.register(LinkSharing)
class LinkSharingAdmin(admin.ModelAdmin):
    list_display = ("id", "project", "name", "permission", "sharing_type", "expires_at", "shared_by")
    list_filter = ("permission", "sharing_type")
    exclude = ("password",)
    readonly_fields = ("hash",)


@admin.register(SavedFilter)
class SavedFilterAdmin(admin.ModelAdmin):
    list_display = ("id", "title", "owner", "is_favorite")


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ("id", "title", "project", "done", "created_by")
    list_filter = ("done",)
    search_fields = ("title", "project__title")


@admin.register(TaskComment)
class TaskCommentAdmin(admin.ModelAdmin):
    list_display = ("id", "task", "author", "link_share", "created_at")


@admin.register(Label)
class LabelAdmin(admin.ModelAdmin):
    list_display = ("id", "title", "created_by")
    search_fields = ("title",)


@admin.register(Webhook)
class WebhookAdmin(admin.ModelAdmin):
    list_display = ("id", "project", "target_url", "created_by")
    exclude = ("secret",)
