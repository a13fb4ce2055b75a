"""Plan-tree model: node types, grouping, and visible-row flattening.

``build_forest`` turns ingested change records into grouped ``TreeNode``
forests; ``visible_nodes`` projects a forest onto on-screen rows.
"""

from __future__ import annotations

from .build import (
    LocateFn,
    build_diagnostic_forest,
    build_forest,
    flatten_leaves,
    index_matches,
    is_replacement_pair,
)
from .navigation import set_all_expanded, visible_nodes, walk_nodes
from .types import GROUP_KINDS, NodeKind, TreeNode

__all__ = [
    "TreeNode",
    "NodeKind",
    "GROUP_KINDS",
    "LocateFn",
    "build_forest",
    "build_diagnostic_forest",
    "flatten_leaves",
    "index_matches",
    "is_replacement_pair",
    "visible_nodes",
    "walk_nodes",
    "set_all_expanded",
]
