"""
drf-spectacular helpers for OpenAPI schema generation.

- Security scheme for `projects.authentication.LinkShareAuthentication`.
- Shared error envelope `{"detail", "code"}` used by every domain error.

Imported at startup by `projects.apps.ProjectsConfig.ready()`; keep it free of
side effects beyond the extension registration.
"""

from __future__ import annotations

from drf_spectacular.extensions import OpenApiAuthenticationExtension
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, inline_serializer
from rest_framework import serializers

LINK_SHARE_PASSWORD_HEADER = OpenApiParameter(
    name="X-Link-Share-Password",
    type=OpenApiTypes.STR,
    location=OpenApiParameter.HEADER,
    required=False,
    description="Password of a password-protected link share.",
)

ERROR_RESPONSE = OpenApiResponse(
    response=inline_serializer(
        name="AccessErrorResponse",
        fields={
            "detail": serializers.CharField(),
            "code": serializers.IntegerField(required=False),
        },
    ),
    description="Domain error with a stable numeric code",
)


class LinkShareAuthenticationScheme(OpenApiAuthenticationExtension):
    target_class = "projects.authentication.LinkShareAuthentication"
    name = "linkShare"

    def get_security_definition(self, auto_schema):
        return {
            "type": "apiKey",
            "in": "header",
            "name": "Authorization",
            "description": 'Link share hash, sent as "LinkShare <hash>".',
        }
