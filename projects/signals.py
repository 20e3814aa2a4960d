"""Domain signals for sharing and team membership changes.

Signals
-------
- `project_shared_with_user(project, user, permission, shared_by)`
- `project_shared_with_team(project, team, permission, shared_by)`
- `team_member_added(team, user, admin)`

All are sent from `projects.grants` / `projects.memberships` after the row is
written, inside the same transaction. Receivers must not raise; delivery to
webhook targets is not done here.

Receivers
---------
The receivers below only note which project webhooks subscribe to the event so
operators can see fan-out in the logs. They use stable `dispatch_uid`s, so a
repeated `AppConfig.ready()` does not register them twice.
"""

from __future__ import annotations

import logging

from django.dispatch import Signal, receiver

from .models import Webhook, WebhookEvent

logger = logging.getLogger(__name__)

project_shared_with_user = Signal()
project_shared_with_team = Signal()
team_member_added = Signal()


def _subscribed_webhooks(project_id: int, event: str) -> int:
    hooks = Webhook.objects.filter(project_id=project_id).values_list("events", flat=True)
    return sum(1 for events in hooks if event in (events or []))


@receiver(project_shared_with_user, dispatch_uid="projects.signals.note_user_share")
def note_user_share(sender, project, user, permission, **kwargs):
    subscribed = _subscribed_webhooks(project.pk, WebhookEvent.PROJECT_SHARED_USER)
    logger.info(
        "event=%s project=%s user=%s permission=%s webhooks=%s",
        WebhookEvent.PROJECT_SHARED_USER.value, project.pk, user.pk, int(permission), subscribed,
    )


@receiver(project_shared_with_team, dispatch_uid="projects.signals.note_team_share")
def note_team_share(sender, project, team, permission, **kwargs):
    subscribed = _subscribed_webhooks(project.pk, WebhookEvent.PROJECT_SHARED_TEAM)
    logger.info(
        "event=%s project=%s team=%s permission=%s webhooks=%s",
        WebhookEvent.PROJECT_SHARED_TEAM.value, project.pk, team.pk, int(permission), subscribed,
    )


@receiver(team_member_added, dispatch_uid="projects.signals.note_member_added")
def note_member_added(sender, team, user, admin, **kwargs):
    logger.info("event=team.member.added team=%s user=%s admin=%s", team.pk, user.pk, admin)
