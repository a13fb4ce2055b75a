"""Structural diff of before/after resource values.

Compares two JSON-shaped values and yields ``DiffEntry`` trees keyed by map
key or list index. Map keys are ordered lexicographically so that equal
content always diffs identically, whatever the source iteration order.

Recursion stops past ``max_depth``: the entry is kept but flagged
``too_deep`` and rendered as an opaque marker. This also bounds work on
self-referencing input.
"""

from __future__ import annotations

import enum
import json
from collections.abc import Iterator
from dataclasses import dataclass

from .models import ValueKind, value_kind

DEFAULT_MAX_DEPTH = 5
MAX_SCALAR_WIDTH = 100
TRUNCATION_MARKER = "..."
DEEPLY_NESTED_MARKER = "<deeply nested>"
WRAP_BREAK_CHARS = " ,;"
WRAP_LOOKBACK = 20

# Budget for equality checks once structural recursion has been cut off.
_EQUALITY_DEPTH_LIMIT = 64

_COMPOSITE_KINDS = (ValueKind.OBJECT, ValueKind.ARRAY)


class DiffKind(enum.Enum):
    ADDED = "added"
    REMOVED = "removed"
    CHANGED = "changed"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class DiffEntry:
    """One key-level comparison result.

    ``before`` is meaningful for removed/changed/unchanged entries and
    ``after`` for added/changed/unchanged ones. Composite values carry their
    nested comparison in ``children``.
    """

    key: str
    kind: DiffKind
    before: object = None
    after: object = None
    depth: int = 0
    children: tuple[DiffEntry, ...] = ()
    too_deep: bool = False

    @property
    def value(self) -> object:
        """Value shown for single-sided entries (the surviving side)."""
        return self.before if self.kind is DiffKind.REMOVED else self.after

    @property
    def is_composite(self) -> bool:
        """Whether this entry renders as an opening/closing bracket pair."""
        if self.too_deep:
            return False
        if self.kind is DiffKind.CHANGED:
            return bool(self.children)
        shown = self.value
        return value_kind(shown) in _COMPOSITE_KINDS and bool(shown)


def _members(value: object) -> list[tuple[str, object]]:
    """Return ``(label, member)`` pairs in display order."""
    kind = value_kind(value)
    if kind is ValueKind.OBJECT:
        items = [(str(key), member) for key, member in value.items()]  # type: ignore[union-attr]
        items.sort(key=lambda item: item[0])
        return items
    if kind is ValueKind.ARRAY:
        return [(f"[{idx}]", member) for idx, member in enumerate(value)]  # type: ignore[arg-type]
    return []


def _labels_in_order(kind: ValueKind, before: dict[str, object], after: dict[str, object]) -> list[str]:
    if kind is ValueKind.ARRAY:
        count = max(len(before), len(after))
        return [f"[{idx}]" for idx in range(count)]
    return sorted(set(before) | set(after))


def _as_text(value: object) -> str:
    return value if isinstance(value, str) else str(value)


def nesting_exceeds(value: object, limit: int) -> bool:
    """Return whether ``value`` nests composites more than ``limit`` levels deep.

    Walks with an explicit stack, so arbitrarily deep (or cyclic) input is
    safe to measure.
    """
    stack = [(value, 0)]
    while stack:
        current, level = stack.pop()
        kind = value_kind(current)
        if kind not in _COMPOSITE_KINDS:
            continue
        if level >= limit:
            return True
        members = current.values() if kind is ValueKind.OBJECT else current  # type: ignore[union-attr]
        stack.extend((member, level + 1) for member in members)  # type: ignore[union-attr]
    return False


def values_equal(before: object, after: object, budget: int = _EQUALITY_DEPTH_LIMIT) -> bool:
    """Type-aware deep equality by value.

    ``True`` and ``1`` differ; ``1`` and ``1.0`` match. Once ``budget`` levels
    are exhausted only identity counts as equal.
    """
    if before is after:
        return True
    if budget <= 0:
        return False
    kind = value_kind(before)
    if kind is not value_kind(after):
        return False
    if kind is ValueKind.NULL:
        return True
    if kind in (ValueKind.BOOL, ValueKind.NUMBER):
        return before == after
    if kind is ValueKind.STRING:
        return _as_text(before) == _as_text(after)
    before_members = _members(before)
    after_members = _members(after)
    if len(before_members) != len(after_members):
        return False
    if kind is ValueKind.OBJECT:
        after_lookup = dict(after_members)
        for label, member in before_members:
            if label not in after_lookup:
                return False
            if not values_equal(member, after_lookup[label], budget - 1):
                return False
        return True
    return all(
        values_equal(left, right, budget - 1)
        for (_, left), (_, right) in zip(before_members, after_members)
    )


class _Differ:
    def __init__(self, max_depth: int) -> None:
        self.max_depth = max(0, int(max_depth))

    def single_sided(self, key: str, value: object, kind: DiffKind, depth: int) -> DiffEntry:
        before = value if kind is not DiffKind.ADDED else None
        after = value if kind is not DiffKind.REMOVED else None
        if depth > self.max_depth:
            return DiffEntry(key, kind, before, after, depth, too_deep=True)
        children = tuple(self.single_sided(label, member, kind, depth + 1) for label, member in _members(value))
        return DiffEntry(key, kind, before, after, depth, children)

    def compare(self, key: str, before: object, after: object, depth: int) -> DiffEntry:
        if depth > self.max_depth:
            kind = DiffKind.UNCHANGED if values_equal(before, after) else DiffKind.CHANGED
            return DiffEntry(key, kind, before, after, depth, too_deep=True)

        before_kind = value_kind(before)
        if before_kind in _COMPOSITE_KINDS and before_kind is value_kind(after):
            children = tuple(self.members(before_kind, before, after, depth + 1))
            changed = any(child.kind is not DiffKind.UNCHANGED for child in children)
            kind = DiffKind.CHANGED if changed else DiffKind.UNCHANGED
            return DiffEntry(key, kind, before, after, depth, children)

        kind = DiffKind.UNCHANGED if values_equal(before, after) else DiffKind.CHANGED
        remaining = self.max_depth - depth + 1
        if nesting_exceeds(before, remaining) or nesting_exceeds(after, remaining):
            return DiffEntry(key, kind, before, after, depth, too_deep=True)
        return DiffEntry(key, kind, before, after, depth)

    def members(self, kind: ValueKind, before: object, after: object, depth: int) -> Iterator[DiffEntry]:
        before_members = dict(_members(before))
        after_members = dict(_members(after))
        for label in _labels_in_order(kind, before_members, after_members):
            in_before = label in before_members
            in_after = label in after_members
            if in_before and in_after:
                yield self.compare(label, before_members[label], after_members[label], depth)
            elif in_after:
                yield self.single_sided(label, after_members[label], DiffKind.ADDED, depth)
            else:
                yield self.single_sided(label, before_members[label], DiffKind.REMOVED, depth)


def _prune_unchanged(entries: tuple[DiffEntry, ...] | list[DiffEntry]) -> list[DiffEntry]:
    pruned: list[DiffEntry] = []
    for entry in entries:
        if entry.kind is DiffKind.UNCHANGED:
            continue
        if entry.kind is DiffKind.CHANGED and entry.children:
            entry = DiffEntry(
                entry.key,
                entry.kind,
                entry.before,
                entry.after,
                entry.depth,
                tuple(_prune_unchanged(entry.children)),
                entry.too_deep,
            )
        pruned.append(entry)
    return pruned


def diff(
    before: object,
    after: object,
    max_depth: int = DEFAULT_MAX_DEPTH,
    include_unchanged: bool = False,
) -> list[DiffEntry]:
    """Compare ``before`` and ``after`` and return top-level entries.

    Two maps (or two lists) are compared member-wise. A missing side
    (``None``) facing a composite counts as an empty composite of the same
    shape, so a created resource diffs as all-added. Any other pair is
    compared as a single value under the empty key. Unchanged entries are
    elided unless ``include_unchanged`` is set.
    """
    differ = _Differ(max_depth)
    before_kind = value_kind(before)
    after_kind = value_kind(after)
    if before_kind is ValueKind.NULL and after_kind in _COMPOSITE_KINDS:
        before, before_kind = type(after)(), after_kind
    elif after_kind is ValueKind.NULL and before_kind in _COMPOSITE_KINDS:
        after, after_kind = type(before)(), before_kind

    if before_kind is ValueKind.NULL and after_kind is ValueKind.NULL:
        entries: list[DiffEntry] = []
    elif before_kind in _COMPOSITE_KINDS and before_kind is after_kind:
        entries = list(differ.members(before_kind, before, after, 0))
    else:
        entries = [differ.compare("", before, after, 0)]

    if include_unchanged:
        return entries
    return _prune_unchanged(entries)


def truncate(text: str, width: int = MAX_SCALAR_WIDTH) -> str:
    """Elide ``text`` beyond ``width`` characters with a trailing marker."""
    if len(text) <= width:
        return text
    keep = max(0, width - len(TRUNCATION_MARKER))
    return text[:keep] + TRUNCATION_MARKER


def format_scalar(value: object, width: int = MAX_SCALAR_WIDTH) -> str:
    """Render a scalar as a literal: quoted strings, ``true``, ``null``, ``3``."""
    kind = value_kind(value)
    if kind is ValueKind.NULL:
        text = "null"
    elif kind is ValueKind.BOOL:
        text = "true" if value else "false"
    elif kind is ValueKind.NUMBER:
        if isinstance(value, float):
            if value.is_integer():
                text = str(int(value))
            else:
                text = repr(value)
        else:
            text = str(value)
    elif kind is ValueKind.STRING:
        text = json.dumps(_as_text(value), ensure_ascii=False)
    else:
        return format_inline(value, width)
    return truncate(text, width)


def format_inline(value: object, width: int = MAX_SCALAR_WIDTH) -> str:
    """Render any value on one line; composites as compact sorted JSON."""
    kind = value_kind(value)
    if kind is ValueKind.OBJECT:
        if not value:
            return "{}"
    elif kind is ValueKind.ARRAY:
        if not value:
            return "[]"
    else:
        return format_scalar(value, width)
    if nesting_exceeds(value, _EQUALITY_DEPTH_LIMIT):
        return DEEPLY_NESTED_MARKER
    try:
        text = json.dumps(value, sort_keys=True, ensure_ascii=False, default=str)
    except (TypeError, ValueError, RecursionError):
        # Circular references or mixed-type keys.
        text = DEEPLY_NESTED_MARKER
    return truncate(text, width)


def wrap_text(text: str, width: int = MAX_SCALAR_WIDTH) -> list[str]:
    """Hard-wrap ``text`` at ``width``, preferring breaks after ``WRAP_BREAK_CHARS``."""
    width = max(1, width)
    lines: list[str] = []
    remaining = text
    while len(remaining) > width:
        break_point = width
        for idx in range(width - 1, max(0, width - 1 - WRAP_LOOKBACK), -1):
            if remaining[idx] in WRAP_BREAK_CHARS:
                break_point = idx + 1
                break
        lines.append(remaining[:break_point])
        remaining = remaining[break_point:]
    lines.append(remaining)
    return lines


def pretty_json_lines(text: str, width: int = MAX_SCALAR_WIDTH) -> list[str]:
    """Split a long string value into display lines.

    JSON documents (policies, encoded maps) are pretty-printed with two-space
    indentation; anything else is wrapped with ``wrap_text``.
    """
    try:
        parsed = json.loads(text)
    except ValueError:
        return wrap_text(text, width)
    if not isinstance(parsed, (dict, list)):
        return wrap_text(text, width)
    return json.dumps(parsed, indent=2, ensure_ascii=False).splitlines()
