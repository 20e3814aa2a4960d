"""
Grant and membership services.

What these tests cover
----------------------
- User/team grants: invalid levels rejected before any write, duplicates and
  owners rejected with "already has access", updates touch only `permission`,
  missing grants raise "does not have access"; signals and INFO logs fire.
- Link shares: generated hash capped at the column width, hashed password,
  sharing type, clearing an expiry.
- Label-task links and idempotent reactions.
- Teams: blank names, creator as admin, duplicate members, last member guard.
"""

from __future__ import annotations

from datetime import timedelta

from django.test import TestCase, override_settings
from django.utils import timezone

from projects import grants, memberships
from projects.access.errors import (
    CannotDeleteLastTeamMember,
    InvalidPermission,
    LabelIsAlreadyOnTask,
    TeamDoesNotHaveAccessToProject,
    TeamNameCannotBeEmpty,
    UserAlreadyHasAccess,
    UserDoesNotHaveAccessToProject,
    UserIsMemberOfTeam,
)
from projects.access.levels import Permission
from projects.models import (
    HASH_MAX_LENGTH,
    Label,
    LabelTask,
    ProjectUser,
    Reaction,
    ReactionKind,
    SharingType,
    TeamMember,
    TeamProject,
)
from projects.signals import project_shared_with_user, team_member_added

from .base import AccessFixtures


class UserGrantServiceTests(AccessFixtures, TestCase):
    def setUp(self):
        self.owner = self.make_user("owner")
        self.user = self.make_user("user")
        self.project = self.make_project(self.owner)

    def test_share_creates_grant_and_sends_signal(self):
        received = []

        def _capture(sender, **kwargs):
            received.append(kwargs)

        project_shared_with_user.connect(_capture, dispatch_uid="test-capture-user-share")
        try:
            with self.assertLogs("projects.grants", level="INFO"):
                grant = grants.share_with_user(self.project, self.user, 1)
        finally:
            project_shared_with_user.disconnect(dispatch_uid="test-capture-user-share")

        self.assertEqual(grant.permission, Permission.WRITE)
        self.assertEqual(len(received), 1)
        self.assertEqual(received[0]["user"], self.user)

    def test_invalid_permission_writes_nothing(self):
        for bad in (-1, 3, "x"):
            with self.subTest(value=bad):
                with self.assertRaises(InvalidPermission):
                    grants.share_with_user(self.project, self.user, bad)
        self.assertFalse(ProjectUser.objects.exists())

    def test_duplicate_and_owner_rejected(self):
        grants.share_with_user(self.project, self.user, Permission.READ)
        with self.assertRaises(UserAlreadyHasAccess) as ctx:
            grants.share_with_user(self.project, self.user, Permission.ADMIN)
        self.assertEqual(ctx.exception.error_code, 7002)
        self.assertEqual(ctx.exception.status_code, 409)
        with self.assertRaises(UserAlreadyHasAccess):
            grants.share_with_user(self.project, self.owner, Permission.READ)
        self.assertEqual(ProjectUser.objects.get(project=self.project, user=self.user).permission, Permission.READ)

    def test_update_and_revoke(self):
        grants.share_with_user(self.project, self.user, Permission.READ)
        updated = grants.update_user_grant(self.project, self.user, Permission.ADMIN)
        self.assertEqual(updated.permission, Permission.ADMIN)
        with self.assertRaises(InvalidPermission):
            grants.update_user_grant(self.project, self.user, -1)
        grants.revoke_user_grant(self.project, self.user)
        with self.assertRaises(UserDoesNotHaveAccessToProject):
            grants.revoke_user_grant(self.project, self.user)
        with self.assertRaises(UserDoesNotHaveAccessToProject):
            grants.update_user_grant(self.project, self.user, Permission.READ)


class TeamGrantServiceTests(AccessFixtures, TestCase):
    def setUp(self):
        self.owner = self.make_user("owner")
        self.project = self.make_project(self.owner)
        self.team = self.make_team(self.owner)

    def test_update_and_revoke(self):
        grants.share_with_team(self.project, self.team, Permission.READ)
        grants.update_team_grant(self.project, self.team, Permission.WRITE)
        self.assertEqual(TeamProject.objects.get().permission, Permission.WRITE)
        grants.revoke_team_grant(self.project, self.team)
        with self.assertRaises(TeamDoesNotHaveAccessToProject) as ctx:
            grants.revoke_team_grant(self.project, self.team)
        self.assertEqual(ctx.exception.error_code, 6007)

    def test_invalid_team_permission(self):
        with self.assertRaises(InvalidPermission):
            grants.share_with_team(self.project, self.team, 5)
        self.assertFalse(TeamProject.objects.exists())


class LinkShareServiceTests(AccessFixtures, TestCase):
    def setUp(self):
        self.owner = self.make_user("owner")
        self.project = self.make_project(self.owner)

    def test_plain_share(self):
        share = grants.create_link_share(self.project, self.owner, Permission.READ, name="public")
        self.assertEqual(len(share.hash), 40)
        self.assertEqual(share.sharing_type, SharingType.WITHOUT_PASSWORD)
        self.assertTrue(share.check_password(None))

    def test_password_is_hashed(self):
        share = grants.create_link_share(self.project, self.owner, Permission.WRITE, password="s3cret")
        self.assertEqual(share.sharing_type, SharingType.WITH_PASSWORD)
        self.assertNotEqual(share.password, "s3cret")
        self.assertTrue(share.check_password("s3cret"))
        self.assertFalse(share.check_password("nope"))
        self.assertFalse(share.check_password(None))

    def test_invalid_level(self):
        with self.assertRaises(InvalidPermission):
            grants.create_link_share(self.project, self.owner, Permission.UNKNOWN)

    @override_settings(LINK_SHARE_HASH_LENGTH=64)
    def test_hash_never_exceeds_the_column(self):
        share = grants.create_link_share(self.project, self.owner, Permission.READ)
        self.assertEqual(len(share.hash), HASH_MAX_LENGTH)

    def test_expiry_can_be_cleared(self):
        expires = timezone.now() + timedelta(days=1)
        share = grants.create_link_share(self.project, self.owner, Permission.READ, expires_at=expires)
        grants.update_link_share(share, name="renamed")
        share.refresh_from_db()
        self.assertEqual(share.expires_at, expires)
        grants.update_link_share(share, expires_at=None)
        share.refresh_from_db()
        self.assertIsNone(share.expires_at)
        self.assertEqual(share.name, "renamed")


class ContentServiceTests(AccessFixtures, TestCase):
    def setUp(self):
        self.owner = self.make_user("owner")
        self.project = self.make_project(self.owner)
        self.task = self.make_task(self.project)

    def test_label_twice_conflicts(self):
        label = Label.objects.create(title="l", created_by=self.owner)
        grants.add_label_to_task(label, self.task)
        with self.assertRaises(LabelIsAlreadyOnTask):
            grants.add_label_to_task(label, self.task)
        self.assertEqual(LabelTask.objects.count(), 1)
        self.assertTrue(grants.remove_label_from_task(label, self.task))
        self.assertFalse(grants.remove_label_from_task(label, self.task))

    def test_reactions_are_idempotent_per_principal(self):
        user = self.as_user(self.owner)
        share = self.as_share(self.make_share(self.project, Permission.WRITE))
        first, created = grants.add_reaction(user, ReactionKind.TASK, self.task.pk, "+1")
        again, created_again = grants.add_reaction(user, ReactionKind.TASK, self.task.pk, "+1")
        self.assertTrue(created)
        self.assertFalse(created_again)
        self.assertEqual(first.pk, again.pk)
        grants.add_reaction(share, ReactionKind.TASK, self.task.pk, "+1")
        self.assertEqual(Reaction.objects.count(), 2)
        self.assertTrue(grants.remove_reaction(user, ReactionKind.TASK, self.task.pk, "+1"))
        self.assertEqual(Reaction.objects.get().link_share_id, share.id)


class MembershipServiceTests(AccessFixtures, TestCase):
    def setUp(self):
        self.creator = self.make_user("creator")
        self.other = self.make_user("other")

    def test_blank_name_rejected(self):
        for name in ("", "   "):
            with self.subTest(name=name):
                with self.assertRaises(TeamNameCannotBeEmpty):
                    memberships.create_team(self.creator, name)

    def test_creator_becomes_admin(self):
        team = memberships.create_team(self.creator, "Core")
        member = TeamMember.objects.get(team=team)
        self.assertEqual(member.user, self.creator)
        self.assertTrue(member.admin)

    def test_add_member_once_and_signal(self):
        team = memberships.create_team(self.creator, "Core")
        received = []

        def _capture(sender, **kwargs):
            received.append(kwargs["user"])

        team_member_added.connect(_capture, dispatch_uid="test-capture-member")
        try:
            memberships.add_member(team, self.other)
        finally:
            team_member_added.disconnect(dispatch_uid="test-capture-member")
        self.assertEqual(received, [self.other])
        with self.assertRaises(UserIsMemberOfTeam):
            memberships.add_member(team, self.other)

    def test_toggle_admin_and_last_member(self):
        team = memberships.create_team(self.creator, "Core")
        memberships.add_member(team, self.other)
        self.assertTrue(memberships.set_member_admin(team, self.other, True).admin)
        memberships.remove_member(team, self.creator)
        with self.assertRaises(CannotDeleteLastTeamMember) as ctx:
            memberships.remove_member(team, self.other)
        self.assertEqual(ctx.exception.error_code, 6006)
        self.assertEqual(TeamMember.objects.filter(team=team).count(), 1)
