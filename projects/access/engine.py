"""
Permission resolution engine.

Overview
--------
`PermissionEngine.resolve(principal, project_id)` computes the effective level a
principal holds on a persisted project:

- Link share: its fixed level on its own project, nothing anywhere else
  (ancestors and descendants included). No hierarchy walk.
- User: walk the ancestor chain of the project (itself first). At every level
  take the max of ownership (Admin), the direct `ProjectUser` grant and the best
  `TeamProject` grant across the user's teams. The result is the max over all
  levels. A grant deeper in the tree never shadows a stronger inherited one,
  and the order grants were created in is irrelevant.

`exists=False` means nothing applied anywhere in the chain.

Notes
-----
- The engine holds no state besides its collaborators; every call hits the
  store fresh, so results reflect the latest committed grants.
- Pseudo project ids (Favorites, saved filters) are handled by the guards and
  never reach the engine.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from .hierarchy import Hierarchy
from .levels import Permission, highest
from .principal import LinkSharePrincipal, Principal, UserPrincipal, unsupported
from .store import GrantStore, ProjectNode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolution:
    permission: Permission
    exists: bool

    def allows(self, required: Permission) -> bool:
        return self.exists and self.permission.satisfies(required)


NO_ACCESS = Resolution(Permission.UNKNOWN, False)


class PermissionEngine:
    def __init__(self, store: GrantStore, hierarchy: Hierarchy | None = None):
        self.store = store
        self.hierarchy = hierarchy or Hierarchy(store)

    # -- resolution -------------------------------------------------------------

    def resolve(self, principal: Principal, project_id: int) -> Resolution:
        """Effective permission of `principal` on `project_id`.

        Raises `ProjectDoesNotExist` for user principals when the project is missing.
        """
        if isinstance(principal, LinkSharePrincipal):
            return self._resolve_share(principal, project_id)
        if isinstance(principal, UserPrincipal):
            chain = self.hierarchy.ancestor_chain(project_id)
            return self._resolve_chains(principal.id, {project_id: chain})[project_id]
        raise unsupported(principal)

    def resolve_many(self, principal: Principal, project_ids: Iterable[int]) -> dict[int, Resolution]:
        """Resolve several projects with a bounded number of queries.

        Missing projects are left out of the result.
        """
        ids = list(dict.fromkeys(project_ids))
        if isinstance(principal, LinkSharePrincipal):
            return {pid: self._resolve_share(principal, pid) for pid in ids}
        if isinstance(principal, UserPrincipal):
            return self._resolve_chains(principal.id, self.hierarchy.ancestor_chains(ids))
        raise unsupported(principal)

    def allows(self, principal: Principal, project_id: int, required: Permission) -> bool:
        return self.resolve(principal, project_id).allows(required)

    def readable_project_ids(self, principal: Principal) -> set[int]:
        """Every persisted project `principal` can at least read."""
        if isinstance(principal, LinkSharePrincipal):
            return {principal.project_id}
        if isinstance(principal, UserPrincipal):
            roots = self.store.granted_project_ids(principal.id)
            return roots | self.hierarchy.descendant_ids(roots)
        raise unsupported(principal)

    # -- internals --------------------------------------------------------------

    @staticmethod
    def _resolve_share(share: LinkSharePrincipal, project_id: int) -> Resolution:
        if project_id != share.project_id or not share.permission.is_valid():
            return NO_ACCESS
        return Resolution(share.permission, True)

    def _resolve_chains(self, user_id: int, chains: dict[int, list[ProjectNode]]) -> dict[int, Resolution]:
        level_ids = {node.id for chain in chains.values() for node in chain}
        direct = self.store.user_grants(user_id, level_ids) if level_ids else {}
        via_team = self.store.team_grants(user_id, level_ids) if level_ids else {}

        result: dict[int, Resolution] = {}
        for project_id, chain in chains.items():
            found = [self._level_permission(user_id, node, direct, via_team) for node in chain]
            best = highest(level for level in found if level is not None)
            resolution = Resolution(best, best.is_valid())
            logger.debug(
                "resolved user=%s project=%s chain=%s -> %s",
                user_id, project_id, [n.id for n in chain], best.label,
            )
            result[project_id] = resolution
        return result

    @staticmethod
    def _level_permission(user_id, node: ProjectNode, direct, via_team) -> Permission | None:
        if node.owner_id == user_id:
            return Permission.ADMIN
        grants = [g for g in (direct.get(node.id), via_team.get(node.id)) if g is not None]
        if not grants:
            return None
        return highest(grants)
