"""
DRF permission bridge.

Guards answer with booleans; this module turns them into HTTP outcomes:

- `HasPrincipal`: the request carries a session user or a valid link share.
- `UserAccountRequired`: the endpoint manages account-owned data (teams, saved
  filters) and link shares get 403.
- `enforce(allowed, readable=True)`: raise 403 when the caller can see the
  object but may not do this, 404 when the object is not readable at all.
"""

from __future__ import annotations

from rest_framework.exceptions import NotFound, PermissionDenied
from rest_framework.permissions import BasePermission

from projects.access.principal import UserPrincipal, principal_from_request


class HasPrincipal(BasePermission):
    message = "Authentication credentials were not provided."

    def has_permission(self, request, view):
        return principal_from_request(request) is not None


class UserAccountRequired(BasePermission):
    message = "This endpoint is not available to link shares."

    def has_permission(self, request, view):
        return isinstance(principal_from_request(request), UserPrincipal)


def enforce(allowed: bool, readable: bool = True) -> None:
    if allowed:
        return
    if not readable:
        raise NotFound()
    raise PermissionDenied()
