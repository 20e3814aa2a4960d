"""
Link-share authentication for DRF.

Clients holding a share hash authenticate with:

    Authorization: LinkShare <hash>
    X-Link-Share-Password: <password>     (only for password-protected shares)

On success `request.user` is a `ShareBearer` (authenticated, no account) and
`request.auth` is the `LinkSharing` row; `principal_from_request()` turns the
latter into a `LinkSharePrincipal`.

Security
--------
- Expired shares and wrong passwords are rejected with 401, same message for
  both unknown and expired hashes.
- The raw password never reaches the database; `LinkSharing.check_password`
  compares against the stored hash.
"""

from __future__ import annotations

import logging

from django.utils.translation import gettext_lazy as _
from rest_framework import exceptions
from rest_framework.authentication import BaseAuthentication, get_authorization_header

from .models import LinkSharing

logger = logging.getLogger(__name__)

PASSWORD_HEADER = "HTTP_X_LINK_SHARE_PASSWORD"


class ShareBearer:
    """Stand-in for `request.user` when a link share authenticated the request."""

    is_authenticated = True
    is_anonymous = False
    is_staff = False
    is_superuser = False
    id = None
    pk = None

    def __init__(self, share: LinkSharing):
        self.share_id = share.pk
        self.project_id = share.project_id
        self.username = f"link-share-{share.pk}"

    def __str__(self) -> str:
        return self.username


class LinkShareAuthentication(BaseAuthentication):
    keyword = "LinkShare"

    def authenticate(self, request):
        auth = get_authorization_header(request).split()
        if not auth or auth[0].lower() != self.keyword.lower().encode():
            return None
        if len(auth) != 2:
            raise exceptions.AuthenticationFailed(_("Invalid link share header."))
        try:
            share_hash = auth[1].decode()
        except UnicodeError:
            raise exceptions.AuthenticationFailed(_("Invalid link share header."))

        share = LinkSharing.objects.filter(hash=share_hash).first()
        if share is None or share.is_expired():
            raise exceptions.AuthenticationFailed(_("Invalid or expired link share."))
        if not share.check_password(request.META.get(PASSWORD_HEADER)):
            logger.info("link share password rejected share=%s", share.pk)
            raise exceptions.AuthenticationFailed(_("Invalid link share password."))

        # Picked up by the request logging middleware.
        request._request.link_share_id = share.pk
        return ShareBearer(share), share

    def authenticate_header(self, request):
        return self.keyword
