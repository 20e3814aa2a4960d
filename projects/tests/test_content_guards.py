"""
Team, task, comment, label, reaction and webhook guards.

What these tests cover
----------------------
- Team admin guard: admin flag only, link shares always denied, missing teams
  raise `TeamDoesNotExist`; members may remove themselves.
- Tasks resolve to their project; moves need write on both sides; dangling
  ids raise `TaskDoesNotExist`.
- Comments: link shares may comment within their project; only the same
  principal may edit or delete a comment.
- Labels: creator-only edits; reading through a task the caller can read.
- Label-task links need a user, task write and label read.
- Reactions resolve through comments to tasks.
- Webhooks require project admin.
"""

from __future__ import annotations

from django.test import TestCase

from projects.access.errors import TaskCommentDoesNotExist, TaskDoesNotExist, TeamDoesNotExist
from projects.access.levels import Permission
from projects.models import Label, LabelTask, ReactionKind, TaskComment

from .base import AccessFixtures


class TeamGuardTests(AccessFixtures, TestCase):
    def setUp(self):
        self.admin = self.make_user("admin")
        self.member = self.make_user("member")
        self.outsider = self.make_user("outsider")
        self.team = self.make_team(self.admin, self.member, admins=(self.admin,))
        project = self.make_project(self.admin)
        self.share = self.as_share(self.make_share(project, Permission.ADMIN))
        self.g = self.guards()

    def test_admin_flag_governs_management(self):
        self.assertTrue(self.g.teams.is_admin(self.as_user(self.admin), self.team.pk))
        self.assertFalse(self.g.teams.is_admin(self.as_user(self.member), self.team.pk))
        self.assertFalse(self.g.teams.is_admin(self.share, self.team.pk))
        self.assertTrue(self.g.teams.can_update(self.as_user(self.admin), self.team.pk))
        self.assertFalse(self.g.teams.can_delete(self.as_user(self.member), self.team.pk))

    def test_read_levels(self):
        self.assertEqual(self.g.teams.can_read(self.as_user(self.admin), self.team.pk), (True, Permission.ADMIN))
        self.assertEqual(self.g.teams.can_read(self.as_user(self.member), self.team.pk), (True, Permission.READ))
        self.assertEqual(self.g.teams.can_read(self.as_user(self.outsider), self.team.pk), (False, Permission.UNKNOWN))
        self.assertEqual(self.g.teams.can_read(self.share, self.team.pk), (False, Permission.UNKNOWN))

    def test_missing_team(self):
        with self.assertRaises(TeamDoesNotExist) as ctx:
            self.g.teams.is_admin(self.as_user(self.admin), 999999)
        self.assertEqual(ctx.exception.error_code, 6002)

    def test_create(self):
        self.assertTrue(self.g.teams.can_create(self.as_user(self.outsider)))
        self.assertFalse(self.g.teams.can_create(self.share))

    def test_member_guard(self):
        admin, member = self.as_user(self.admin), self.as_user(self.member)
        self.assertTrue(self.g.team_members.can_create(admin, self.team.pk))
        self.assertFalse(self.g.team_members.can_create(member, self.team.pk))
        self.assertFalse(self.g.team_members.can_update(member, self.team.pk))
        self.assertTrue(self.g.team_members.can_delete(member, self.team.pk, self.member.pk))
        self.assertFalse(self.g.team_members.can_delete(member, self.team.pk, self.admin.pk))
        self.assertTrue(self.g.team_members.can_delete(admin, self.team.pk, self.member.pk))
        self.assertFalse(self.g.team_members.can_create(self.share, self.team.pk))


class TaskGuardTests(AccessFixtures, TestCase):
    def setUp(self):
        self.owner = self.make_user("owner")
        self.writer = self.make_user("writer")
        self.reader = self.make_user("reader")
        self.project = self.make_project(self.owner, title="Source")
        self.target = self.make_project(self.owner, title="Target")
        self.grant_user(self.project, self.writer, Permission.WRITE)
        self.grant_user(self.project, self.reader, Permission.READ)
        self.task = self.make_task(self.project)
        self.g = self.guards()

    def test_delegates_to_project(self):
        self.assertEqual(self.g.tasks.can_read(self.as_user(self.reader), self.task.pk), (True, Permission.READ))
        self.assertFalse(self.g.tasks.can_write(self.as_user(self.reader), self.task.pk))
        self.assertTrue(self.g.tasks.can_delete(self.as_user(self.writer), self.task.pk))
        self.assertTrue(self.g.tasks.can_create(self.as_user(self.writer), self.project.pk))
        self.assertFalse(self.g.tasks.can_create(self.as_user(self.writer), self.target.pk))

    def test_move_needs_write_on_target(self):
        writer = self.as_user(self.writer)
        self.assertFalse(self.g.tasks.can_update(writer, self.task.pk, project_id=self.target.pk))
        self.grant_user(self.target, self.writer, Permission.WRITE)
        self.assertTrue(self.g.tasks.can_update(writer, self.task.pk, project_id=self.target.pk))

    def test_link_share_writes_tasks_in_its_project(self):
        share = self.as_share(self.make_share(self.project, Permission.WRITE))
        self.assertTrue(self.g.tasks.can_write(share, self.task.pk))
        other = self.make_task(self.target)
        self.assertFalse(self.g.tasks.can_write(share, other.pk))

    def test_missing_task(self):
        with self.assertRaises(TaskDoesNotExist) as ctx:
            self.g.tasks.can_read(self.as_user(self.owner), 999999)
        self.assertEqual(ctx.exception.error_code, 4002)


class CommentGuardTests(AccessFixtures, TestCase):
    def setUp(self):
        self.owner = self.make_user("owner")
        self.writer = self.make_user("writer")
        self.project = self.make_project(self.owner)
        self.grant_user(self.project, self.writer, Permission.WRITE)
        self.task = self.make_task(self.project)
        self.share_row = self.make_share(self.project, Permission.WRITE)
        self.g = self.guards()

    def test_authorship_decides_edits(self):
        comment = TaskComment.objects.create(task=self.task, author=self.writer, comment="hi")
        self.assertTrue(self.g.comments.can_update(self.as_user(self.writer), comment.pk))
        self.assertFalse(self.g.comments.can_update(self.as_user(self.owner), comment.pk))
        self.assertFalse(self.g.comments.can_delete(self.as_share(self.share_row), comment.pk))

    def test_link_share_comments_are_its_own(self):
        share = self.as_share(self.share_row)
        self.assertTrue(self.g.comments.can_create(share, self.task.pk))
        comment = TaskComment.objects.create(task=self.task, link_share=self.share_row, comment="from share")
        self.assertTrue(self.g.comments.can_delete(share, comment.pk))
        other_share = self.as_share(self.make_share(self.project, Permission.WRITE))
        self.assertFalse(self.g.comments.can_delete(other_share, comment.pk))
        self.assertFalse(self.g.comments.can_update(self.as_user(self.writer), comment.pk))

    def test_read_share_cannot_comment(self):
        reader = self.as_share(self.make_share(self.project, Permission.READ))
        self.assertFalse(self.g.comments.can_create(reader, self.task.pk))
        readable, _ = self.g.comments.can_read(reader, self.task.pk)
        self.assertTrue(readable)

    def test_missing_comment(self):
        with self.assertRaises(TaskCommentDoesNotExist):
            self.g.comments.can_update(self.as_user(self.writer), 999999)


class LabelGuardTests(AccessFixtures, TestCase):
    def setUp(self):
        self.owner = self.make_user("owner")
        self.reader = self.make_user("reader")
        self.stranger = self.make_user("stranger")
        self.project = self.make_project(self.owner)
        self.grant_user(self.project, self.reader, Permission.READ)
        self.task = self.make_task(self.project)
        self.label = Label.objects.create(title="urgent", created_by=self.owner)
        self.g = self.guards()

    def test_creator_and_readers_of_labelled_tasks(self):
        self.assertEqual(self.g.labels.can_read(self.as_user(self.owner), self.label.pk), (True, Permission.ADMIN))
        self.assertEqual(self.g.labels.can_read(self.as_user(self.reader), self.label.pk), (False, Permission.UNKNOWN))
        LabelTask.objects.create(label=self.label, task=self.task)
        self.assertEqual(self.g.labels.can_read(self.as_user(self.reader), self.label.pk), (True, Permission.READ))
        self.assertEqual(self.g.labels.can_read(self.as_user(self.stranger), self.label.pk), (False, Permission.UNKNOWN))

    def test_only_creator_edits(self):
        LabelTask.objects.create(label=self.label, task=self.task)
        share = self.as_share(self.make_share(self.project, Permission.ADMIN))
        self.assertTrue(self.g.labels.can_update(self.as_user(self.owner), self.label.pk))
        self.assertFalse(self.g.labels.can_update(self.as_user(self.reader), self.label.pk))
        self.assertFalse(self.g.labels.can_delete(share, self.label.pk))
        self.assertFalse(self.g.labels.can_create(share))
        self.assertTrue(self.g.labels.can_create(self.as_user(self.stranger)))

    def test_label_task_links(self):
        writer = self.make_user("writer")
        self.grant_user(self.project, writer, Permission.WRITE)
        own_label = Label.objects.create(title="mine", created_by=writer)
        share = self.as_share(self.make_share(self.project, Permission.WRITE))

        self.assertTrue(self.g.label_tasks.can_create(self.as_user(writer), self.task.pk, own_label.pk))
        self.assertFalse(self.g.label_tasks.can_create(self.as_user(writer), self.task.pk, self.label.pk))
        self.assertFalse(self.g.label_tasks.can_create(self.as_user(self.reader), self.task.pk, self.label.pk))
        self.assertFalse(self.g.label_tasks.can_create(share, self.task.pk, own_label.pk))
        self.assertTrue(self.g.label_tasks.can_delete(share, self.task.pk))


class ReactionAndWebhookGuardTests(AccessFixtures, TestCase):
    def setUp(self):
        self.owner = self.make_user("owner")
        self.reader = self.make_user("reader")
        self.project = self.make_project(self.owner)
        self.grant_user(self.project, self.reader, Permission.READ)
        self.task = self.make_task(self.project)
        self.comment = TaskComment.objects.create(task=self.task, author=self.owner, comment="c")
        self.g = self.guards()

    def test_reactions_follow_the_task(self):
        reader = self.as_user(self.reader)
        for kind, entity_id in ((ReactionKind.TASK, self.task.pk), (ReactionKind.COMMENT, self.comment.pk)):
            with self.subTest(kind=kind):
                readable, _ = self.g.reactions.can_read(reader, kind, entity_id)
                self.assertTrue(readable)
                self.assertFalse(self.g.reactions.can_create(reader, kind, entity_id))
                self.assertTrue(self.g.reactions.can_create(self.as_user(self.owner), kind, entity_id))

    def test_reaction_on_missing_comment(self):
        with self.assertRaises(TaskCommentDoesNotExist):
            self.g.reactions.can_read(self.as_user(self.owner), ReactionKind.COMMENT, 999999)

    def test_webhooks_need_project_admin(self):
        writer = self.make_user("writer")
        self.grant_user(self.project, writer, Permission.WRITE)
        admin_share = self.as_share(self.make_share(self.project, Permission.ADMIN))
        self.assertTrue(self.g.webhooks.can_create(self.as_user(self.owner), self.project.pk))
        self.assertTrue(self.g.webhooks.can_read(admin_share, self.project.pk))
        self.assertFalse(self.g.webhooks.can_read(self.as_user(writer), self.project.pk))
        self.assertFalse(self.g.webhooks.can_delete(self.as_user(self.reader), self.project.pk))
