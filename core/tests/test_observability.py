"""
Request observability middleware.

What these tests verify
-----------------------
- Every response carries `X-Request-ID`: a safe client value is echoed, an
  unsafe one is replaced by a uuid4 hex.
- One INFO line per request on `taskboard.request`, labelled with the acting
  principal (`share:<id>` for link-share bearers).
"""

from __future__ import annotations

from django.test import override_settings
from django.urls import reverse
from rest_framework.test import APIClient, APITestCase

from accounts.models import User
from projects import grants
from projects.access.levels import Permission
from projects.models import Project

MW_PATH = "core.middleware.RequestIDLogMiddleware"


@override_settings(
    MIDDLEWARE=(
        "django.middleware.security.SecurityMiddleware",
        "django.contrib.sessions.middleware.SessionMiddleware",
        "django.middleware.common.CommonMiddleware",
        "django.middleware.csrf.CsrfViewMiddleware",
        "django.contrib.auth.middleware.AuthenticationMiddleware",
        "django.contrib.messages.middleware.MessageMiddleware",
        "django.middleware.clickjacking.XFrameOptionsMiddleware",
        MW_PATH,
    )
)
class ObservabilityMiddlewareTests(APITestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="alice", password="pass12345")
        self.client = APIClient()
        self.client.login(username="alice", password="pass12345")

    def test_response_includes_request_id_and_logs_once(self):
        with self.assertLogs("taskboard.request", level="INFO") as cap:
            r = self.client.get("/api/projects/")
        self.assertEqual(r.status_code, 200, r.content)
        self.assertRegex(r.headers.get("X-Request-ID") or "", r"^[A-Za-z0-9._\-]{1,200}$")
        self.assertEqual(len(cap.records), 1)
        self.assertEqual(cap.records[0].user_id, str(self.user.id))

    def test_client_provided_request_id_is_respected(self):
        r = self.client.get("/api/projects/", HTTP_X_REQUEST_ID="custom-123_OK")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.headers.get("X-Request-ID"), "custom-123_OK")

    def test_bad_client_request_id_is_replaced(self):
        r = self.client.get("/api/projects/", HTTP_X_REQUEST_ID="BAD ID")
        self.assertEqual(r.status_code, 200)
        self.assertRegex(r.headers.get("X-Request-ID") or "", r"^[a-f0-9]{32}$")

    def test_link_share_requests_are_labelled(self):
        project = Project.objects.create(title="P", owner=self.user)
        share = grants.create_link_share(project, self.user, Permission.READ)
        client = APIClient()
        with self.assertLogs("taskboard.request", level="INFO") as cap:
            r = client.get(
                reverse("project-detail", args=[project.pk]),
                HTTP_AUTHORIZATION=f"LinkShare {share.hash}",
            )
        self.assertEqual(r.status_code, 200)
        self.assertEqual(cap.records[0].user_id, f"share:{share.pk}")
