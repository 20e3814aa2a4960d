from __future__ import annotations

from django.contrib.auth import authenticate, login as dj_login, logout as dj_logout
from django.middleware.csrf import get_token
from django.utils.translation import gettext_lazy as _
from rest_framework import permissions, serializers, status
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema, OpenApiResponse

from projects.access.principal import LinkSharePrincipal, principal_from_request


class _UserPublicSerializer(serializers.Serializer):
    """Minimal public shape for the authenticated principal."""
    id = serializers.IntegerField(allow_null=True)
    username = serializers.CharField()
    email = serializers.EmailField(allow_blank=True)
    link_share = serializers.DictField(required=False)


class _LoginSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField(write_only=True, trim_whitespace=False)


def _user_payload(user) -> dict:
    return {"id": user.id, "username": user.get_username(), "email": user.email or ""}


class CsrfView(APIView):
    """
    GET only: prime a CSRF cookie and expose the token via header.
    Returns 204 with no body.
    """
    permission_classes = [permissions.AllowAny]

    @extend_schema(
        operation_id="auth_csrf",
        summary="Prime CSRF cookie",
        responses={204: OpenApiResponse(description="CSRF cookie set")},
    )
    def get(self, request, *args, **kwargs):
        token = get_token(request)
        resp = Response(status=status.HTTP_204_NO_CONTENT)
        resp["X-CSRFToken"] = token
        return resp


class LoginView(APIView):
    """Session login using Django auth."""
    permission_classes = [permissions.AllowAny]

    @extend_schema(
        operation_id="auth_login",
        summary="Log in (session-based)",
        request=_LoginSerializer,
        responses={
            200: _UserPublicSerializer,
            400: OpenApiResponse(
                description='{"detail":"Invalid username or password.","code":"invalid_credentials"}'
            ),
        },
    )
    def post(self, request, *args, **kwargs):
        ser = _LoginSerializer(data=request.data)
        if not ser.is_valid():
            return Response(
                {"detail": _("Invalid username or password."), "code": "invalid_credentials"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        user = authenticate(
            request,
            username=ser.validated_data["username"],
            password=ser.validated_data["password"],
        )
        if user is None or not user.is_active:
            return Response(
                {"detail": _("Invalid username or password."), "code": "invalid_credentials"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        dj_login(request, user)
        return Response(_user_payload(user), status=status.HTTP_200_OK)


class LogoutView(APIView):
    """Session logout (idempotent). CSRF enforced by middleware."""
    permission_classes = [permissions.AllowAny]

    @extend_schema(
        operation_id="auth_logout",
        summary="Log out",
        responses={204: OpenApiResponse(description="Logged out")},
    )
    def post(self, request, *args, **kwargs):
        dj_logout(request)
        return Response(status=status.HTTP_204_NO_CONTENT)


class MeView(APIView):
    """
    Return the current principal.

    Link-share bearers get a synthetic identity describing the share scope
    (project and permission level) instead of a user record.
    """
    permission_classes = [permissions.AllowAny]

    @extend_schema(
        operation_id="auth_me",
        summary="Current principal",
        responses={200: _UserPublicSerializer, 401: OpenApiResponse(description="Not authenticated")},
    )
    def get(self, request, *args, **kwargs):
        principal = principal_from_request(request)
        if principal is None:
            return Response({"detail": _("Not authenticated.")}, status=status.HTTP_401_UNAUTHORIZED)
        if isinstance(principal, LinkSharePrincipal):
            payload = {
                "id": None,
                "username": f"link-share-{principal.id}",
                "email": "",
                "link_share": {
                    "id": principal.id,
                    "project_id": principal.project_id,
                    "permission": int(principal.permission),
                },
            }
            return Response(payload, status=status.HTTP_200_OK)
        return Response(_user_payload(request.user), status=status.HTTP_200_OK)
