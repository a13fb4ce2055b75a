"""Attribute listings and before/after diff lines for record details.

Everything here is built from ``planview.diff`` entries so that the detail
panel and the line-count arithmetic of the viewport agree by construction.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence

from ..ansi import display_width, pad_ansi_line
from ..diff import (
    DEEPLY_NESTED_MARKER,
    DEFAULT_MAX_DEPTH,
    DiffEntry,
    DiffKind,
    diff,
    format_inline,
    pretty_json_lines,
)
from ..models import ValueKind, value_kind
from ..ui_theme import UITheme

INLINE_CHANGE_WIDTH = 60
SIDE_BY_SIDE_SEPARATOR = " │ "
NESTED_INDENT = "  "
SCALAR_LABEL = "(value)"


def paint(color: str, text: str, theme: UITheme) -> str:
    """Wrap ``text`` in ``color`` unless the theme has no color for it."""
    if not color or not text:
        return text
    return f"{color}{text}{theme.reset}"


def _label(entry: DiffEntry) -> str:
    return entry.key or SCALAR_LABEL


def _brackets(value: object) -> tuple[str, str]:
    if value_kind(value) is ValueKind.ARRAY:
        return "[", "]"
    return "{", "}"


def _listing(entries: Sequence[DiffEntry], indent: str) -> Iterator[str]:
    for entry in entries:
        label = _label(entry)
        if entry.too_deep:
            yield f"{indent}{label} = {DEEPLY_NESTED_MARKER}"
        elif entry.is_composite:
            opener, closer = _brackets(entry.value)
            yield f"{indent}{label} = {opener}"
            yield from _listing(entry.children, indent + NESTED_INDENT)
            yield f"{indent}{closer}"
        else:
            yield f"{indent}{label} = {format_inline(entry.value)}"


def attribute_listing_lines(
    value: object,
    indent: str,
    color: str,
    theme: UITheme,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> list[str]:
    """Render one side of a record (``key = value`` lines) in ``color``.

    Used for records that only have a meaningful before or after value:
    creations list their after value, deletions their before value.
    """
    if value is None:
        return []
    entries = diff(None, value, max_depth=max_depth)
    return [paint(color, line, theme) for line in _listing(entries, indent)]


def _side_by_side_lines(entry: DiffEntry, indent: str, theme: UITheme) -> Iterator[str]:
    left = pretty_json_lines(str(entry.before))
    right = pretty_json_lines(str(entry.after))
    left_width = max(display_width(line) for line in left)
    body_indent = indent + NESTED_INDENT * 2
    for row in range(max(len(left), len(right))):
        before = left[row] if row < len(left) else ""
        after = right[row] if row < len(right) else ""
        yield (
            body_indent
            + paint(theme.value_removed, pad_ansi_line(before, left_width), theme)
            + paint(theme.tree_line, SIDE_BY_SIDE_SEPARATOR, theme)
            + paint(theme.value_added, after, theme)
        )


def _is_long_text_change(entry: DiffEntry) -> bool:
    if value_kind(entry.before) is not ValueKind.STRING or value_kind(entry.after) is not ValueKind.STRING:
        return False
    return len(str(entry.before)) > INLINE_CHANGE_WIDTH or len(str(entry.after)) > INLINE_CHANGE_WIDTH


def _changed_lines(entry: DiffEntry, indent: str, theme: UITheme) -> Iterator[str]:
    label = _label(entry)
    marker = paint(theme.action_update, f"~ {label}", theme)
    if entry.too_deep:
        yield f"{indent}{marker} = {DEEPLY_NESTED_MARKER}"
        return
    if entry.children:
        opener, closer = _brackets(entry.after)
        yield f"{indent}{marker} = {opener}"
        yield from diff_entry_lines(entry.children, indent + NESTED_INDENT, theme)
        yield f"{indent}  {closer}"
        return
    if _is_long_text_change(entry):
        yield f"{indent}{marker}:"
        yield from _side_by_side_lines(entry, indent, theme)
        return
    before = paint(theme.value_removed, format_inline(entry.before, INLINE_CHANGE_WIDTH), theme)
    after = paint(theme.value_added, format_inline(entry.after, INLINE_CHANGE_WIDTH), theme)
    yield f"{indent}{marker}: {before} → {after}"


def diff_entry_lines(entries: Sequence[DiffEntry], indent: str, theme: UITheme) -> Iterator[str]:
    """Yield display lines for diff ``entries``, recursing into composites.

    Added entries are prefixed ``+``, removed ``-``, changed ``~``; unchanged
    entries (only present when requested from ``diff``) carry no marker.
    """
    for entry in entries:
        if entry.kind is DiffKind.CHANGED:
            yield from _changed_lines(entry, indent, theme)
            continue

        label = _label(entry)
        if entry.kind is DiffKind.ADDED:
            sign, color = "+", theme.value_added
        elif entry.kind is DiffKind.REMOVED:
            sign, color = "-", theme.value_removed
        else:
            sign, color = " ", theme.attribute

        if entry.too_deep:
            yield paint(color, f"{indent}{sign} {label} = {DEEPLY_NESTED_MARKER}", theme)
        elif entry.is_composite:
            opener, closer = _brackets(entry.value)
            yield paint(color, f"{indent}{sign} {label} = {opener}", theme)
            yield from diff_entry_lines(entry.children, indent + NESTED_INDENT, theme)
            yield paint(color, f"{indent}{sign} {closer}", theme)
        else:
            yield paint(color, f"{indent}{sign} {label} = {format_inline(entry.value)}", theme)


def attribute_diff_lines(
    before: object,
    after: object,
    indent: str,
    theme: UITheme,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> list[str]:
    """Render the changed attributes between ``before`` and ``after``."""
    return list(diff_entry_lines(diff(before, after, max_depth=max_depth), indent, theme))
