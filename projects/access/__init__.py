"""
Permission core: levels, principals, the grant store queries, the resolution
engine and the per-entity guards built on top of it.

Import from the submodules directly; this package does not re-export models.
"""
