"""Forest flattening and walking helpers."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from .types import TreeNode


def visible_nodes(forest: Iterable[TreeNode]) -> list[TreeNode]:
    """Depth-first flattening that descends only into expanded nodes.

    Children of a collapsed node are absent from the result, so indexes into
    it address exactly the rows on screen.
    """
    visible: list[TreeNode] = []
    for node in forest:
        visible.append(node)
        if node.expanded and node.children:
            visible.extend(visible_nodes(node.children))
    return visible


def walk_nodes(forest: Iterable[TreeNode]) -> Iterator[TreeNode]:
    """Yield every node of ``forest`` depth-first, regardless of expansion."""
    for node in forest:
        yield node
        yield from walk_nodes(node.children)


def set_all_expanded(forest: Iterable[TreeNode], expanded: bool) -> int:
    """Set the expansion flag on every expandable node; return how many changed."""
    changed = 0
    for node in walk_nodes(forest):
        if not node.is_expandable or node.expanded == expanded:
            continue
        node.expanded = expanded
        changed += 1
    return changed
