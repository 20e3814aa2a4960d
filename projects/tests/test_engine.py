"""
Permission resolution engine.

What these tests cover
----------------------
- The six reference scenarios (team max-wins with and without ownership,
  inheritance to a child, link-share scoping, duplicate team grant, forbidden
  move).
- Properties: monotonicity, order independence, owner supremacy, inheritance,
  link-share scoping, idempotent re-check.
- Hierarchy walking: `exists=False` without grants, missing projects, cycles
  truncated with a WARNING, batch resolution and readable-project listing.
"""

from __future__ import annotations

from django.test import TestCase

from projects import grants
from projects.access.engine import PermissionEngine
from projects.access.errors import GenericForbidden, ProjectDoesNotExist, TeamAlreadyHasAccess
from projects.access.hierarchy import Hierarchy
from projects.access.levels import Permission
from projects.access.store import GrantStore
from projects.models import Project, TeamProject

from .base import AccessFixtures


class EngineScenarioTests(AccessFixtures, TestCase):
    def setUp(self):
        self.owner = self.make_user("owner")
        self.project = self.make_project(self.owner, title="P")
        self.g = self.guards()

    def test_owner_in_admin_and_read_teams_stays_admin(self):
        for first, second in ((Permission.ADMIN, Permission.READ), (Permission.READ, Permission.ADMIN)):
            with self.subTest(first=first, second=second):
                a = self.make_user(f"a-{first}-{second}")
                project = self.make_project(a)
                self.grant_team(project, self.make_team(a, name="Y"), first)
                self.grant_team(project, self.make_team(a, name="Z"), second)
                self.assertTrue(self.g.projects.is_admin(self.as_user(a), project.pk))

    def test_team_admin_then_team_read_resolves_admin(self):
        b = self.make_user("b")
        self.grant_team(self.project, self.make_team(b, name="Y"), Permission.ADMIN)
        self.grant_team(self.project, self.make_team(b, name="Z"), Permission.READ)
        resolution = self.g.engine.resolve(self.as_user(b), self.project.pk)
        self.assertTrue(resolution.exists)
        self.assertEqual(resolution.permission, Permission.ADMIN)

    def test_write_on_parent_grants_write_on_child(self):
        c = self.make_user("c")
        child = self.make_project(self.owner, parent=self.project, title="Child")
        self.grant_user(self.project, c, Permission.WRITE)
        self.assertTrue(self.g.projects.can_write(self.as_user(c), child.pk))

    def test_read_share_cannot_write_or_read_elsewhere(self):
        parent = self.make_project(self.owner, title="Parent")
        self.project.parent = parent
        self.project.save()
        share = self.as_share(self.make_share(self.project, Permission.READ))

        self.assertFalse(self.g.projects.can_write(share, self.project.pk))
        readable, _ = self.g.projects.can_read(share, parent.pk)
        self.assertFalse(readable)
        readable, level = self.g.projects.can_read(share, self.project.pk)
        self.assertTrue(readable)
        self.assertEqual(level, Permission.READ)

    def test_duplicate_team_grant_keeps_original(self):
        team = self.make_team(self.owner)
        grants.share_with_team(self.project, team, Permission.WRITE)
        with self.assertRaises(TeamAlreadyHasAccess):
            grants.share_with_team(self.project, team, Permission.ADMIN)
        self.assertEqual(TeamProject.objects.get(project=self.project, team=team).permission, Permission.WRITE)

    def test_move_below_read_only_project_is_forbidden(self):
        mover = self.make_user("mover")
        x = self.make_project(mover, title="X")
        target = self.make_project(self.owner, title="Target")
        self.grant_user(target, mover, Permission.READ)

        with self.assertRaises(GenericForbidden):
            self.g.projects.can_update(self.as_user(mover), x.pk, parent_id=target.pk)
        x.refresh_from_db()
        self.assertIsNone(x.parent_id)


class EnginePropertyTests(AccessFixtures, TestCase):
    def setUp(self):
        self.owner = self.make_user("owner")
        self.user = self.make_user("user")
        self.root = self.make_project(self.owner, title="Root")
        self.mid = self.make_project(self.owner, parent=self.root, title="Mid")
        self.leaf = self.make_project(self.owner, parent=self.mid, title="Leaf")
        self.engine = PermissionEngine(GrantStore())

    def level(self, user, project):
        return self.engine.resolve(self.as_user(user), project.pk).permission

    def test_no_grant_means_not_exists(self):
        resolution = self.engine.resolve(self.as_user(self.user), self.leaf.pk)
        self.assertFalse(resolution.exists)
        self.assertEqual(resolution.permission, Permission.UNKNOWN)
        self.assertFalse(resolution.allows(Permission.READ))

    def test_monotonic_under_added_grants(self):
        seen = [self.level(self.user, self.leaf)]
        self.grant_user(self.leaf, self.user, Permission.READ)
        seen.append(self.level(self.user, self.leaf))
        self.grant_team(self.mid, self.make_team(self.user), Permission.WRITE)
        seen.append(self.level(self.user, self.leaf))
        self.grant_user(self.root, self.user, Permission.READ)
        seen.append(self.level(self.user, self.leaf))
        self.assertEqual(seen, sorted(seen))
        self.assertEqual(seen[-1], Permission.WRITE)

    def test_deeper_lower_grant_never_shadows_ancestor(self):
        self.grant_user(self.root, self.user, Permission.ADMIN)
        self.grant_user(self.leaf, self.user, Permission.READ)
        self.assertEqual(self.level(self.user, self.leaf), Permission.ADMIN)

    def test_order_independence_across_teams(self):
        other = self.make_user("other")
        self.grant_team(self.leaf, self.make_team(self.user, name="A1"), Permission.ADMIN)
        self.grant_team(self.leaf, self.make_team(self.user, name="R1"), Permission.READ)
        self.grant_team(self.leaf, self.make_team(other, name="R2"), Permission.READ)
        self.grant_team(self.leaf, self.make_team(other, name="A2"), Permission.ADMIN)
        self.assertEqual(self.level(self.user, self.leaf), Permission.ADMIN)
        self.assertEqual(self.level(other, self.leaf), Permission.ADMIN)

    def test_owner_supremacy(self):
        self.grant_team(self.leaf, self.make_team(self.owner), Permission.READ)
        self.assertEqual(self.level(self.owner, self.leaf), Permission.ADMIN)
        sub_owner = self.make_user("sub")
        owned = self.make_project(sub_owner, parent=self.leaf, title="Owned")
        self.grant_user(self.root, sub_owner, Permission.READ)
        self.assertEqual(self.level(sub_owner, owned), Permission.ADMIN)

    def test_inheritance_from_ancestor(self):
        self.grant_user(self.root, self.user, Permission.WRITE)
        self.assertGreaterEqual(self.level(self.user, self.leaf), Permission.WRITE)
        self.assertEqual(self.level(self.user, self.mid), Permission.WRITE)

    def test_link_share_scoped_to_its_project(self):
        share = self.as_share(self.make_share(self.mid, Permission.ADMIN))
        self.assertEqual(self.engine.resolve(share, self.mid.pk).permission, Permission.ADMIN)
        for other in (self.root, self.leaf):
            with self.subTest(project=other.title):
                self.assertFalse(self.engine.resolve(share, other.pk).exists)

    def test_recheck_is_idempotent(self):
        self.grant_user(self.mid, self.user, Permission.WRITE)
        g = self.guards()
        first = g.projects.can_read(self.as_user(self.user), self.leaf.pk)
        second = g.projects.can_read(self.as_user(self.user), self.leaf.pk)
        self.assertEqual(first, second)
        self.assertEqual(first, (True, Permission.WRITE))


class HierarchyWalkTests(AccessFixtures, TestCase):
    def setUp(self):
        self.owner = self.make_user("owner")
        self.user = self.make_user("user")
        self.store = GrantStore()

    def test_missing_project_raises(self):
        engine = PermissionEngine(self.store)
        with self.assertRaises(ProjectDoesNotExist) as ctx:
            engine.resolve(self.as_user(self.user), 999999)
        self.assertEqual(ctx.exception.error_code, 3001)

    def test_cycle_is_truncated_and_logged(self):
        a = self.make_project(self.owner, title="A")
        b = self.make_project(self.owner, parent=a, title="B")
        Project.objects.filter(pk=a.pk).update(parent=b)
        self.grant_user(b, self.user, Permission.WRITE)

        engine = PermissionEngine(self.store, Hierarchy(self.store, max_depth=10))
        with self.assertLogs("projects.access.hierarchy", level="WARNING"):
            resolution = engine.resolve(self.as_user(self.user), a.pk)
        self.assertEqual(resolution.permission, Permission.WRITE)

    def test_depth_guard_limits_walk(self):
        parent = None
        chain = []
        for i in range(6):
            parent = self.make_project(self.owner, parent=parent, title=f"L{i}")
            chain.append(parent)
        hierarchy = Hierarchy(self.store, max_depth=2)
        with self.assertLogs("projects.access.hierarchy", level="WARNING"):
            nodes = hierarchy.ancestor_chain(chain[-1].pk)
        self.assertEqual(len(nodes), 3)

    def test_resolve_many_matches_single_resolution(self):
        root = self.make_project(self.owner, title="Root")
        child = self.make_project(self.owner, parent=root, title="Child")
        other = self.make_project(self.owner, title="Other")
        self.grant_team(root, self.make_team(self.user), Permission.WRITE)
        engine = PermissionEngine(self.store)

        many = engine.resolve_many(self.as_user(self.user), [root.pk, child.pk, other.pk, 999999])
        self.assertNotIn(999999, many)
        for project in (root, child, other):
            with self.subTest(project=project.title):
                self.assertEqual(many[project.pk], engine.resolve(self.as_user(self.user), project.pk))

    def test_readable_ids_include_descendants_only_of_granted_roots(self):
        root = self.make_project(self.owner, title="Root")
        child = self.make_project(self.owner, parent=root, title="Child")
        grandchild = self.make_project(self.owner, parent=child, title="Grandchild")
        unrelated = self.make_project(self.owner, title="Unrelated")
        own = self.make_project(self.user, title="Own")
        self.grant_user(child, self.user, Permission.READ)

        engine = PermissionEngine(self.store)
        ids = engine.readable_project_ids(self.as_user(self.user))
        self.assertEqual(ids, {child.pk, grandchild.pk, own.pk})
        self.assertNotIn(root.pk, ids)
        self.assertNotIn(unrelated.pk, ids)

        share = self.as_share(self.make_share(root, Permission.READ))
        self.assertEqual(engine.readable_project_ids(share), {root.pk})
