"""
Principals: who a permission check is about.

A principal is a closed union of two frozen dataclasses:

- `UserPrincipal(id)`: an authenticated account.
- `LinkSharePrincipal(id, project_id, permission)`: a bearer of a share hash,
  scoped to one project at one fixed level, with no user identity.

Teams never act as principals; their grants reach users through membership.
Checks branch on the variant once, at their entry point, and any other object
is rejected with `TypeError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from django.contrib.auth import get_user_model

from .levels import Permission


@dataclass(frozen=True)
class UserPrincipal:
    id: int


@dataclass(frozen=True)
class LinkSharePrincipal:
    id: int
    project_id: int
    permission: Permission


Principal = Union[UserPrincipal, LinkSharePrincipal]


def unsupported(principal) -> TypeError:
    return TypeError(f"Unsupported principal: {principal!r}")


def principal_for_user(user) -> UserPrincipal | None:
    if user is None or not getattr(user, "is_authenticated", False) or user.pk is None:
        return None
    return UserPrincipal(id=user.pk)


def principal_for_share(share) -> LinkSharePrincipal:
    return LinkSharePrincipal(
        id=share.pk,
        project_id=share.project_id,
        permission=Permission(share.permission),
    )


def principal_from_request(request) -> Principal | None:
    """
    Build the principal for a DRF request.

    `projects.authentication.LinkShareAuthentication` puts the `LinkSharing` row
    on `request.auth`; session users arrive as real `User` instances.
    """
    from projects.models import LinkSharing

    auth = getattr(request, "auth", None)
    if isinstance(auth, LinkSharing):
        return principal_for_share(auth)
    user = getattr(request, "user", None)
    if isinstance(user, get_user_model()):
        return principal_for_user(user)
    return None


def user_id_of(principal: Principal) -> int | None:
    """The account id behind `principal`, or None for link shares."""
    if isinstance(principal, UserPrincipal):
        return principal.id
    if isinstance(principal, LinkSharePrincipal):
        return None
    raise unsupported(principal)
