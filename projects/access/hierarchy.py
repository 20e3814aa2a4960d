"""
Project hierarchy: pseudo-project ids and ancestor/descendant walks.

Pseudo projects
---------------
Persisted projects always have ids >= 1. Negative ids are virtual:

- `-1` is the Favorites pseudo project (never writable).
- `-(filter_id) - 1` is the virtual project backing a saved filter, so filter 1
  is project -2, filter 2 is project -3, and so on.

Walks
-----
Ancestor chains are loaded iteratively, one parent per query (or one level per
query for batches), and stop at `PERMISSIONS_MAX_HIERARCHY_DEPTH` hops or when a
project id repeats. Parent references are assumed to form a forest; a chain that
trips the guard is logged and truncated, which can only lower the resolved level.
"""

from __future__ import annotations

import logging

from django.conf import settings

from .store import GrantStore, ProjectNode

logger = logging.getLogger(__name__)

FAVORITES_PROJECT_ID = -1


def is_favorites(project_id: int) -> bool:
    return project_id == FAVORITES_PROJECT_ID


def project_id_for_saved_filter(filter_id: int) -> int:
    return -filter_id - 1


def saved_filter_id_for_project(project_id: int) -> int:
    """The saved filter behind a virtual project id, or 0 if there is none."""
    filter_id = -project_id - 1
    return filter_id if filter_id > 0 else 0


class Hierarchy:
    def __init__(self, store: GrantStore, max_depth: int | None = None):
        self.store = store
        if max_depth is None:
            max_depth = getattr(settings, "PERMISSIONS_MAX_HIERARCHY_DEPTH", 100)
        self.max_depth = max_depth

    def ancestor_chain(self, project_id: int) -> list[ProjectNode]:
        """
        `project_id` followed by its ancestors up to the root.

        Raises `ProjectDoesNotExist` when `project_id` itself is missing. A
        dangling parent reference ends the chain.
        """
        node = self.store.get_project(project_id)
        chain = [node]
        seen = {node.id}
        while node.parent_id is not None:
            if len(chain) > self.max_depth or node.parent_id in seen:
                logger.warning(
                    "project hierarchy walk stopped at %s (start=%s depth=%s)",
                    node.id, project_id, len(chain),
                )
                break
            parent = self.store.find_project(node.parent_id)
            if parent is None:
                break
            chain.append(parent)
            seen.add(parent.id)
            node = parent
        return chain

    def ancestor_chains(self, project_ids) -> dict[int, list[ProjectNode]]:
        """Batch version of `ancestor_chain`; missing projects are omitted."""
        wanted = [pid for pid in dict.fromkeys(project_ids) if pid > 0]
        nodes: dict[int, ProjectNode] = dict(self.store.projects(wanted))
        frontier = {n.parent_id for n in nodes.values() if n.parent_id is not None} - nodes.keys()
        depth = 0
        while frontier and depth < self.max_depth:
            loaded = self.store.projects(frontier)
            nodes.update(loaded)
            frontier = {n.parent_id for n in loaded.values() if n.parent_id is not None} - nodes.keys()
            depth += 1
        if frontier:
            logger.warning("project hierarchy batch walk stopped after %s levels", depth)

        chains: dict[int, list[ProjectNode]] = {}
        for pid in wanted:
            node = nodes.get(pid)
            if node is None:
                continue
            chain = [node]
            seen = {node.id}
            while node.parent_id is not None and node.parent_id in nodes and node.parent_id not in seen:
                if len(chain) > self.max_depth:
                    break
                node = nodes[node.parent_id]
                chain.append(node)
                seen.add(node.id)
            chains[pid] = chain
        return chains

    def descendant_ids(self, root_ids) -> set[int]:
        """Every project below `root_ids` (the roots themselves excluded)."""
        found: set[int] = set()
        frontier = set(root_ids)
        depth = 0
        while frontier and depth < self.max_depth:
            children = set(self.store.children_of(frontier)) - found - set(root_ids)
            found |= children
            frontier = children
            depth += 1
        return found

    def archived_project_id(self, project_id: int) -> int | None:
        """Closest archived project in the chain starting at `project_id`, if any."""
        for node in self.ancestor_chain(project_id):
            if node.is_archived:
                return node.id
        return None
