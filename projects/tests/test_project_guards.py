"""
Project, saved-filter and sharing guards.

What these tests cover
----------------------
- Favorites: readable by users only, never writable/updatable/admin.
- Saved filters: owner-only, link shares and strangers denied, missing filter
  gives False without an error; virtual ids route through the filter guard.
- Archived projects: write raises `ProjectIsArchived` for the project and its
  descendants; the un-archive request is swallowed only on the archived project
  itself; denied principals get False, not an error.
- Create / duplicate / admin / delete rules, including link shares.
- User and team grant guards and the link-share guard (admin shares need
  project admin, lower shares need write; a link share can never manage shares).
"""

from __future__ import annotations

from django.test import TestCase

from projects.access.errors import GenericForbidden, ProjectDoesNotExist, ProjectIsArchived
from projects.access.hierarchy import FAVORITES_PROJECT_ID, project_id_for_saved_filter
from projects.access.levels import Permission
from projects.models import SavedFilter

from .base import AccessFixtures


class FavoritesAndFilterTests(AccessFixtures, TestCase):
    def setUp(self):
        self.owner = self.make_user("owner")
        self.stranger = self.make_user("stranger")
        self.project = self.make_project(self.owner)
        self.share = self.as_share(self.make_share(self.project, Permission.ADMIN))
        self.g = self.guards()

    def test_favorites_read_only_for_users(self):
        user = self.as_user(self.owner)
        self.assertEqual(self.g.projects.can_read(user, FAVORITES_PROJECT_ID), (True, Permission.READ))
        self.assertEqual(self.g.projects.can_read(self.share, FAVORITES_PROJECT_ID), (False, Permission.UNKNOWN))
        self.assertFalse(self.g.projects.can_write(user, FAVORITES_PROJECT_ID))
        self.assertFalse(self.g.projects.can_update(user, FAVORITES_PROJECT_ID))
        self.assertFalse(self.g.projects.is_admin(user, FAVORITES_PROJECT_ID))
        self.assertFalse(self.g.projects.can_delete(user, FAVORITES_PROJECT_ID))

    def test_saved_filter_belongs_to_owner(self):
        saved = SavedFilter.objects.create(title="Mine", owner=self.owner)
        virtual_id = project_id_for_saved_filter(saved.pk)
        owner, stranger = self.as_user(self.owner), self.as_user(self.stranger)

        self.assertEqual(self.g.projects.can_read(owner, virtual_id), (True, Permission.ADMIN))
        self.assertTrue(self.g.projects.can_update(owner, virtual_id))
        self.assertTrue(self.g.projects.is_admin(owner, virtual_id))
        self.assertFalse(self.g.projects.can_write(owner, virtual_id))

        self.assertEqual(self.g.projects.can_read(stranger, virtual_id), (False, Permission.UNKNOWN))
        self.assertFalse(self.g.projects.can_update(stranger, virtual_id))
        self.assertFalse(self.g.saved_filters.can_delete(self.share, saved.pk))

    def test_saved_filter_create_and_missing(self):
        self.assertTrue(self.g.saved_filters.can_create(self.as_user(self.stranger)))
        self.assertFalse(self.g.saved_filters.can_create(self.share))
        self.assertEqual(self.g.saved_filters.can_read(self.as_user(self.owner), 424242), (False, Permission.UNKNOWN))


class ArchivedProjectTests(AccessFixtures, TestCase):
    def setUp(self):
        self.owner = self.make_user("owner")
        self.writer = self.make_user("writer")
        self.reader = self.make_user("reader")
        self.archived = self.make_project(self.owner, title="Archived", archived=True)
        self.child = self.make_project(self.owner, parent=self.archived, title="Child")
        self.grant_user(self.archived, self.writer, Permission.WRITE)
        self.grant_user(self.archived, self.reader, Permission.READ)
        self.g = self.guards()

    def test_write_on_archived_project_and_descendants_raises(self):
        for project in (self.archived, self.child):
            with self.subTest(project=project.title):
                with self.assertRaises(ProjectIsArchived) as ctx:
                    self.g.projects.can_write(self.as_user(self.writer), project.pk)
                self.assertEqual(ctx.exception.project_id, self.archived.pk)
                self.assertEqual(ctx.exception.status_code, 412)
                self.assertEqual(ctx.exception.error_code, 3008)

    def test_denied_principal_gets_false_not_archived_error(self):
        self.assertFalse(self.g.projects.can_write(self.as_user(self.reader), self.child.pk))

    def test_unarchive_is_allowed_on_the_archived_project(self):
        self.assertTrue(self.g.projects.can_update(self.as_user(self.writer), self.archived.pk, is_archived=False))

    def test_other_updates_on_archived_project_raise(self):
        with self.assertRaises(ProjectIsArchived):
            self.g.projects.can_update(self.as_user(self.writer), self.archived.pk)
        with self.assertRaises(ProjectIsArchived):
            self.g.projects.can_update(self.as_user(self.writer), self.archived.pk, is_archived=True)

    def test_unarchive_of_child_does_not_swallow_ancestor(self):
        with self.assertRaises(ProjectIsArchived) as ctx:
            self.g.projects.can_update(self.as_user(self.writer), self.child.pk, is_archived=False)
        self.assertEqual(ctx.exception.project_id, self.archived.pk)

    def test_reads_are_unaffected(self):
        self.assertEqual(self.g.projects.can_read(self.as_user(self.reader), self.child.pk), (True, Permission.READ))


class ProjectGuardTests(AccessFixtures, TestCase):
    def setUp(self):
        self.owner = self.make_user("owner")
        self.user = self.make_user("user")
        self.project = self.make_project(self.owner)
        self.g = self.guards()

    def test_missing_project_raises_not_found(self):
        with self.assertRaises(ProjectDoesNotExist):
            self.g.projects.can_read(self.as_user(self.user), 999999)
        with self.assertRaises(ProjectDoesNotExist):
            self.g.projects.is_admin(self.as_user(self.user), 999999)

    def test_stranger_is_denied_without_error(self):
        user = self.as_user(self.user)
        self.assertEqual(self.g.projects.can_read(user, self.project.pk), (False, Permission.UNKNOWN))
        self.assertFalse(self.g.projects.can_write(user, self.project.pk))
        self.assertFalse(self.g.projects.can_update(user, self.project.pk))
        self.assertFalse(self.g.projects.can_delete(user, self.project.pk))

    def test_write_grant_is_not_admin(self):
        self.grant_user(self.project, self.user, Permission.WRITE)
        user = self.as_user(self.user)
        self.assertTrue(self.g.projects.can_write(user, self.project.pk))
        self.assertTrue(self.g.projects.can_update(user, self.project.pk))
        self.assertFalse(self.g.projects.is_admin(user, self.project.pk))
        self.assertFalse(self.g.projects.can_delete(user, self.project.pk))

    def test_link_share_levels(self):
        for level, write, admin in (
            (Permission.READ, False, False),
            (Permission.WRITE, True, False),
            (Permission.ADMIN, True, True),
        ):
            with self.subTest(level=level):
                share = self.as_share(self.make_share(self.project, level))
                self.assertEqual(self.g.projects.can_read(share, self.project.pk), (True, level))
                self.assertEqual(self.g.projects.can_write(share, self.project.pk), write)
                self.assertEqual(self.g.projects.is_admin(share, self.project.pk), admin)

    def test_create_rules(self):
        user = self.as_user(self.user)
        share = self.as_share(self.make_share(self.project, Permission.WRITE))
        self.assertTrue(self.g.projects.can_create(user))
        self.assertFalse(self.g.projects.can_create(share))
        self.assertFalse(self.g.projects.can_create(user, parent_id=self.project.pk))
        self.assertTrue(self.g.projects.can_create(share, parent_id=self.project.pk))
        self.grant_user(self.project, self.user, Permission.WRITE)
        self.assertTrue(self.g.projects.can_create(user, parent_id=self.project.pk))

    def test_move_needs_write_on_destination(self):
        own = self.make_project(self.user, title="Own")
        with self.assertRaises(GenericForbidden):
            self.g.projects.can_update(self.as_user(self.user), own.pk, parent_id=self.project.pk)
        self.grant_user(self.project, self.user, Permission.WRITE)
        self.assertTrue(self.g.projects.can_update(self.as_user(self.user), own.pk, parent_id=self.project.pk))

    def test_duplicate_needs_read_on_source(self):
        user = self.as_user(self.user)
        self.assertFalse(self.g.projects.can_duplicate(user, self.project.pk))
        self.grant_user(self.project, self.user, Permission.READ)
        self.assertTrue(self.g.projects.can_duplicate(user, self.project.pk))
        self.assertFalse(self.g.projects.can_duplicate(user, self.project.pk, parent_id=self.project.pk))


class SharingGuardTests(AccessFixtures, TestCase):
    def setUp(self):
        self.owner = self.make_user("owner")
        self.admin = self.make_user("admin")
        self.writer = self.make_user("writer")
        self.project = self.make_project(self.owner)
        self.grant_user(self.project, self.admin, Permission.ADMIN)
        self.grant_user(self.project, self.writer, Permission.WRITE)
        self.admin_share = self.as_share(self.make_share(self.project, Permission.ADMIN))
        self.g = self.guards()

    def test_user_and_team_grants_need_project_admin(self):
        for guard in (self.g.project_users, self.g.team_projects):
            with self.subTest(guard=type(guard).__name__):
                for allowed, principal in (
                    (True, self.as_user(self.owner)),
                    (True, self.as_user(self.admin)),
                    (False, self.as_user(self.writer)),
                    (False, self.admin_share),
                ):
                    self.assertEqual(guard.can_create(principal, self.project.pk), allowed)
                    self.assertEqual(guard.can_update(principal, self.project.pk), allowed)
                    self.assertEqual(guard.can_delete(principal, self.project.pk), allowed)
                readable, _ = guard.can_read(self.as_user(self.writer), self.project.pk)
                self.assertTrue(readable)

    def test_link_share_management(self):
        writer, admin = self.as_user(self.writer), self.as_user(self.admin)
        self.assertTrue(self.g.link_shares.can_create(writer, self.project.pk, Permission.WRITE))
        self.assertFalse(self.g.link_shares.can_create(writer, self.project.pk, Permission.ADMIN))
        self.assertTrue(self.g.link_shares.can_create(admin, self.project.pk, Permission.ADMIN))
        self.assertFalse(self.g.link_shares.can_create(self.admin_share, self.project.pk, Permission.READ))
        self.assertTrue(self.g.link_shares.can_read(writer, self.project.pk))
        self.assertFalse(self.g.link_shares.can_read(self.admin_share, self.project.pk))

    def test_link_share_update_checks_the_stronger_level(self):
        row = self.make_share(self.project, Permission.READ)
        writer = self.as_user(self.writer)
        self.assertTrue(self.g.link_shares.can_update(writer, row, Permission.WRITE))
        self.assertFalse(self.g.link_shares.can_update(writer, row, Permission.ADMIN))
        admin_row = self.make_share(self.project, Permission.ADMIN)
        self.assertFalse(self.g.link_shares.can_update(writer, admin_row, Permission.READ))
        self.assertFalse(self.g.link_shares.can_delete(writer, admin_row))
        self.assertTrue(self.g.link_shares.can_delete(self.as_user(self.admin), admin_row))
