"""
Team services: creation and membership changes.

Teams are managed by their admin members; `TeamGuard` / `TeamMemberGuard`
decide who may call these. A team always keeps at least one member.
"""

from __future__ import annotations

import logging

from django.db import IntegrityError, transaction

from .access.errors import (
    CannotDeleteLastTeamMember,
    TeamNameCannotBeEmpty,
    UserDoesNotExist,
    UserIsMemberOfTeam,
)
from .models import Team, TeamMember
from .signals import team_member_added

logger = logging.getLogger(__name__)


def create_team(user, name: str, description: str = "") -> Team:
    """Create a team; the creator becomes its first (admin) member."""
    if not name or not name.strip():
        raise TeamNameCannotBeEmpty()
    with transaction.atomic():
        team = Team.objects.create(name=name.strip(), description=description or "", created_by=user)
        TeamMember.objects.create(team=team, user=user, admin=True)
    logger.info("team created team=%s by=%s", team.pk, user.pk)
    return team


def add_member(team: Team, user, admin: bool = False) -> TeamMember:
    if user is None or user.pk is None:
        raise UserDoesNotExist()
    with transaction.atomic():
        if TeamMember.objects.filter(team=team, user=user).exists():
            raise UserIsMemberOfTeam()
        try:
            with transaction.atomic():
                member = TeamMember.objects.create(team=team, user=user, admin=admin)
        except IntegrityError:
            raise UserIsMemberOfTeam()
        team_member_added.send(sender=TeamMember, team=team, user=user, admin=admin)
    logger.info("team member added team=%s user=%s admin=%s", team.pk, user.pk, admin)
    return member


def set_member_admin(team: Team, user, admin: bool) -> TeamMember:
    with transaction.atomic():
        member = TeamMember.objects.select_for_update().filter(team=team, user=user).first()
        if member is None:
            raise UserDoesNotExist("The user is not a member of the team.")
        member.admin = bool(admin)
        member.save(update_fields=["admin", "updated_at"])
    logger.info("team member updated team=%s user=%s admin=%s", team.pk, user.pk, member.admin)
    return member


def remove_member(team: Team, user) -> None:
    with transaction.atomic():
        members = list(TeamMember.objects.select_for_update().filter(team=team).values_list("user_id", flat=True))
        if user.pk not in members:
            raise UserDoesNotExist("The user is not a member of the team.")
        if len(members) == 1:
            raise CannotDeleteLastTeamMember()
        TeamMember.objects.filter(team=team, user=user).delete()
    logger.info("team member removed team=%s user=%s", team.pk, user.pk)
