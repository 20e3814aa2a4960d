"""
Project URL configuration.

Surfaces
--------
- `/admin/`: Django admin (back-office only).
- `/api/`: router-driven ViewSets. Nested resources use regex prefixes
  (`projects/<project_pk>/users/`, `tasks/<task_pk>/comments/`, ...).
- `/api/auth/`: session auth endpoints.
- `/api/schema/`, `/api/docs/`, `/api/redoc/`: OpenAPI schema & UIs.
- `/health/`: unauthenticated probe.
"""

from __future__ import annotations

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import (
    SpectacularAPIView,
    SpectacularRedocView,
    SpectacularSwaggerView,
)
from rest_framework.routers import DefaultRouter

from accounts.views import CsrfView, LoginView, LogoutView, MeView
from core.views import health
from projects.api import (
    LabelViewSet,
    LinkShareViewSet,
    ProjectUserViewSet,
    ProjectViewSet,
    ReactionViewSet,
    SavedFilterViewSet,
    TaskCommentViewSet,
    TaskLabelViewSet,
    TaskViewSet,
    TeamMemberViewSet,
    TeamProjectViewSet,
    TeamViewSet,
    WebhookViewSet,
)

router = DefaultRouter()
router.register(r"projects", ProjectViewSet, basename="project")
router.register(r"projects/(?P<project_pk>\d+)/users", ProjectUserViewSet, basename="project-user")
router.register(r"projects/(?P<project_pk>\d+)/teams", TeamProjectViewSet, basename="project-team")
router.register(r"projects/(?P<project_pk>\d+)/shares", LinkShareViewSet, basename="project-share")
router.register(r"projects/(?P<project_pk>\d+)/webhooks", WebhookViewSet, basename="project-webhook")
router.register(r"teams", TeamViewSet, basename="team")
router.register(r"teams/(?P<team_pk>\d+)/members", TeamMemberViewSet, basename="team-member")
router.register(r"tasks", TaskViewSet, basename="task")
router.register(r"tasks/(?P<task_pk>\d+)/comments", TaskCommentViewSet, basename="task-comment")
router.register(r"tasks/(?P<task_pk>\d+)/labels", TaskLabelViewSet, basename="task-label")
router.register(r"labels", LabelViewSet, basename="label")
router.register(r"filters", SavedFilterViewSet, basename="filter")
router.register(r"reactions", ReactionViewSet, basename="reaction")

urlpatterns = [
    path("admin/", admin.site.urls),
    path("health/", health, name="health"),

    # OpenAPI / Docs
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    path("api/redoc/", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),

    # Auth
    path("api/auth/csrf/", CsrfView.as_view(), name="auth-csrf"),
    path("api/auth/login/", LoginView.as_view(), name="auth-login"),
    path("api/auth/logout/", LogoutView.as_view(), name="auth-logout"),
    path("api/auth/me/", MeView.as_view(), name="auth-me"),

    path("api/", include(router.urls)),
]
