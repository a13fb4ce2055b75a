"""Tree node datatypes used by the builder, navigation, and renderers."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from ..models import ChangeRecord, Diagnostic


class NodeKind(enum.Enum):
    RECORD = "record"
    MODULE = "module"
    FILE = "file"
    DIAGNOSTIC = "diagnostic"


GROUP_KINDS = frozenset({NodeKind.MODULE, NodeKind.FILE})


@dataclass(eq=False)
class TreeNode:
    """One row of the plan tree plus its (owned) children.

    Group headers wrap a synthetic no-op record whose address is the group
    key. Nodes compare by identity so cursor lookups survive re-flattening.
    """

    record: ChangeRecord
    kind: NodeKind = NodeKind.RECORD
    depth: int = 0
    expanded: bool = False
    children: list[TreeNode] = field(default_factory=list)
    diagnostic: Diagnostic | None = None

    @property
    def is_group(self) -> bool:
        return self.kind in GROUP_KINDS

    @property
    def is_expandable(self) -> bool:
        """Whether toggling this node changes what is displayed."""
        if self.kind is NodeKind.DIAGNOSTIC:
            return False
        if self.is_group:
            return bool(self.children)
        return True

    @property
    def address(self) -> str:
        return self.record.address
