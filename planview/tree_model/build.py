"""Forest construction from a flat list of change records.

Records are grouped by module first. Root-module records are then grouped by
the source file reported by an optional ``locate`` callback; deletions with
no known file follow their replacement create into its file group. Output
ordering depends only on record content, never on input order.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace

from ..models import Action, ChangeRecord, Diagnostic, Location, ValueKind, value_kind
from .types import NodeKind, TreeNode

logger = logging.getLogger(__name__)

LocateFn = Callable[[ChangeRecord], Location | None]


def _record_sort_key(record: ChangeRecord) -> tuple[str, str]:
    return (record.address or "", record.action.value)


def _index_text(index: object) -> str:
    kind = value_kind(index)
    if kind is ValueKind.BOOL:
        return "true" if index else "false"
    if kind is ValueKind.NUMBER and isinstance(index, float) and index.is_integer():
        return str(int(index))
    return str(index)


def index_matches(left: object, right: object) -> bool:
    """Compare count/for_each keys; ``0`` and ``"0"`` match, ``None`` only matches ``None``."""
    if left is None and right is None:
        return True
    if left is None or right is None:
        return False
    try:
        return _index_text(left) == _index_text(right)
    except Exception:
        return False


def is_replacement_pair(deleted: ChangeRecord, candidate: ChangeRecord) -> bool:
    """Return whether ``candidate`` looks like the create half of ``deleted``'s replacement.

    Heuristic: a delete and a create of the same non-empty resource type with
    matching index keys usually mean the resource was renamed or moved.
    """
    if deleted.action is not Action.DELETE or candidate.action is not Action.CREATE:
        return False
    if not deleted.type or deleted.type != candidate.type:
        return False
    return index_matches(deleted.index, candidate.index)


def _safe_locate(locate: LocateFn | None, record: ChangeRecord) -> Location | None:
    if locate is None:
        return None
    try:
        location = locate(record)
    except Exception:
        logger.warning("location lookup failed for %r", record.address, exc_info=True)
        return None
    if not isinstance(location, Location) or not location.file_path:
        return None
    return location


def _with_location(record: ChangeRecord, locate: LocateFn | None) -> ChangeRecord:
    """Attach the looked-up source location; without a locator keep what the record has."""
    if locate is None:
        return record
    location = _safe_locate(locate, record)
    if location is None:
        return record
    return replace(record, location=location)


def _leaf(record: ChangeRecord, depth: int) -> TreeNode:
    return TreeNode(record=record, kind=NodeKind.RECORD, depth=depth)


def _group_node(key: str, kind: NodeKind, records: list[ChangeRecord]) -> TreeNode:
    records = sorted(records, key=_record_sort_key)
    header = ChangeRecord(
        address=key,
        action=Action.NO_OP,
        module=key if kind is NodeKind.MODULE else None,
        type=kind.value,
        name=key,
        mode=kind.value,
        provider_name=records[0].provider_name if records else "",
    )
    node = TreeNode(record=header, kind=kind, depth=0)
    node.children = [_leaf(record, 1) for record in records]
    return node


@dataclass
class _RootPartition:
    """File groups and unplaced leftovers of the root (module-less) partition."""

    file_groups: dict[str, list[ChangeRecord]]
    unplaced: list[ChangeRecord]


def _partition_root(records: list[ChangeRecord]) -> _RootPartition:
    ordered = sorted(records, key=_record_sort_key)
    file_groups: dict[str, list[ChangeRecord]] = {}
    file_by_position: dict[int, str] = {}
    unplaced: list[ChangeRecord] = []

    for position, record in enumerate(ordered):
        location = record.location
        if location is None or not location.file_path:
            unplaced.append(record)
            continue
        file_groups.setdefault(location.file_name, []).append(record)
        file_by_position[position] = location.file_name

    # First match in address order wins when several creates qualify.
    leftovers: list[ChangeRecord] = []
    for record in unplaced:
        target: str | None = None
        if record.action is Action.DELETE:
            for position, candidate in enumerate(ordered):
                if position in file_by_position and is_replacement_pair(record, candidate):
                    target = file_by_position[position]
                    break
        if target is None:
            leftovers.append(record)
        else:
            file_groups[target].append(record)

    return _RootPartition(file_groups=file_groups, unplaced=leftovers)


def build_forest(records: Iterable[ChangeRecord], locate: LocateFn | None = None) -> list[TreeNode]:
    """Build the ordered change forest.

    No-op records are dropped. Module groups come first (sorted), then root
    file groups (sorted), then root records without a file. A root partition
    that resolves to a single file and nothing else is emitted flat.
    """
    modules: dict[str, list[ChangeRecord]] = {}
    root_records: list[ChangeRecord] = []
    for record in records:
        if record.action is Action.NO_OP:
            continue
        record = _with_location(record, locate)
        module = record.module if isinstance(record.module, str) else None
        if module:
            modules.setdefault(module, []).append(record)
        else:
            root_records.append(record)

    forest: list[TreeNode] = []
    for module_name in sorted(modules):
        forest.append(_group_node(module_name, NodeKind.MODULE, modules[module_name]))

    root = _partition_root(root_records)
    if len(root.file_groups) == 1 and not root.unplaced:
        (only_file,) = root.file_groups.values()
        forest.extend(_leaf(record, 0) for record in sorted(only_file, key=_record_sort_key))
    else:
        for file_name in sorted(root.file_groups):
            forest.append(_group_node(file_name, NodeKind.FILE, root.file_groups[file_name]))
    forest.extend(_leaf(record, 0) for record in sorted(root.unplaced, key=_record_sort_key))

    logger.debug(
        "built forest: %d top-level nodes from %d module groups and %d root records",
        len(forest),
        len(modules),
        len(root_records),
    )
    return forest


def flatten_leaves(forest: Iterable[TreeNode]) -> list[ChangeRecord]:
    """Return the real (non-group) records of ``forest`` in depth-first order."""
    leaves: list[ChangeRecord] = []
    for node in forest:
        if node.is_group:
            leaves.extend(flatten_leaves(node.children))
        elif node.kind is NodeKind.RECORD:
            leaves.append(node.record)
    return leaves


def build_diagnostic_forest(diagnostics: Iterable[Diagnostic]) -> list[TreeNode]:
    """Wrap planner diagnostics as flat, non-expandable nodes in input order."""
    forest: list[TreeNode] = []
    for diagnostic in diagnostics:
        record = ChangeRecord(address=diagnostic.resource or "", action=Action.NO_OP)
        forest.append(TreeNode(record=record, kind=NodeKind.DIAGNOSTIC, diagnostic=diagnostic))
    return forest
