"""Per-node line rendering: header rows and expanded detail panels.

``NodeRenderer`` is the single source of truth for how many rows a node
occupies. The viewport asks it for line counts and the frame builder asks it
for the lines themselves, so the two can never disagree.
"""

from __future__ import annotations

from ..diff import DEFAULT_MAX_DEPTH, format_scalar
from ..models import Action, ChangeRecord, Diagnostic, Location
from ..tree_model import NodeKind, TreeNode
from ..ui_theme import UITheme
from .attributes import attribute_diff_lines, attribute_listing_lines, paint

ACTION_ICONS: dict[Action, str] = {
    Action.CREATE: "✚",
    Action.UPDATE: "~",
    Action.DELETE: "✖",
    Action.REPLACE: "⟳",
}
DEFAULT_ICON = "•"
EXPANDED_ICON = "▾"
COLLAPSED_ICON = "▸"
SELECTOR = "❯ "
MODULE_ICON = "📦"
FILE_ICON = "📄"
ERROR_ICON = "✖"
WARNING_ICON = "⚠"
DETAIL_INDENT = "    "
FIELD_LABEL_WIDTH = 9


def action_icon(action: Action) -> str:
    return ACTION_ICONS.get(action, DEFAULT_ICON)


def selected_with_ansi(text: str, theme: UITheme) -> str:
    """Apply selection styling without discarding existing ANSI colors."""
    if not text or not theme.selected:
        return text

    # Keep the selection background active across internal resets.
    return theme.selected + text.replace(theme.reset, theme.reset + theme.selected) + theme.reset


def _resource_count(count: int) -> str:
    noun = "resource" if count == 1 else "resources"
    return f"[{count} {noun}]"


def diagnostic_text(diagnostic: Diagnostic, theme: UITheme) -> str:
    """Return ``✖ [resource] message`` (or ``⚠`` for warnings)."""
    if diagnostic.severity == "warning":
        icon, color = WARNING_ICON, theme.action_update
    else:
        icon, color = ERROR_ICON, theme.action_delete
    scope = f" [{diagnostic.resource}]" if diagnostic.resource else ""
    return paint(color, f"{icon}{scope}", theme) + f" {diagnostic.message}"


def node_header_line(node: TreeNode, theme: UITheme, selected: bool = False) -> str:
    """Render the single header row of ``node``."""
    selector = SELECTOR if selected else "  "
    indent = "  " * node.depth

    if node.kind is NodeKind.DIAGNOSTIC and node.diagnostic is not None:
        line = f"{selector}{indent}{diagnostic_text(node.diagnostic, theme)}"
        return selected_with_ansi(line, theme) if selected else line

    if node.is_expandable:
        toggle = EXPANDED_ICON if node.expanded else COLLAPSED_ICON
    else:
        toggle = " "

    if node.kind is NodeKind.MODULE:
        body = paint(theme.module_header, f"{MODULE_ICON} {node.address}", theme)
        body += " " + paint(theme.tree_line, _resource_count(len(node.children)), theme)
    elif node.kind is NodeKind.FILE:
        body = paint(theme.file_header, f"{FILE_ICON} {node.address}", theme)
        body += " " + paint(theme.tree_line, _resource_count(len(node.children)), theme)
    else:
        record = node.record
        color = theme.action_color(record.action)
        body = paint(color, f"{action_icon(record.action)} {record.address}", theme)
        if record.deposed:
            body += " " + paint(theme.tree_line, f"(deposed {record.deposed})", theme)

    line = f"{selector}{indent}{paint(theme.tree_line, toggle, theme)} {body}"
    return selected_with_ansi(line, theme) if selected else line


def _field(label: str, value: str, theme: UITheme, color: str = "") -> str:
    styled_label = paint(theme.attribute, f"{label + ':':<{FIELD_LABEL_WIDTH}}", theme)
    return f"{DETAIL_INDENT}{styled_label} {paint(color, value, theme)}"


def location_lines(location: Location, theme: UITheme, show_git: bool = False) -> list[str]:
    """Render the ``File Information`` block of a detail panel."""
    lines = [f"{DETAIL_INDENT}{paint(theme.attribute, 'File Information:', theme)}"]
    lines.append(_field("  File", location.file_path, theme))
    if not show_git:
        return lines

    if location.is_valid:
        if location.commit_id:
            lines.append(_field("  Commit", location.short_commit_id, theme))
        if location.branch:
            lines.append(_field("  Branch", location.branch, theme))
        if location.author_name:
            author = location.author_name
            if location.author_email:
                author += f" <{location.author_email}>"
            lines.append(_field("  Author", author, theme))
        if location.commit_date is not None:
            lines.append(_field("  Date", location.commit_date.strftime("%Y-%m-%d %H:%M"), theme))
        if location.commit_message:
            lines.append(_field("  Message", location.commit_message, theme))

    status_color = "" if location.is_valid and not location.has_uncommitted_changes else theme.status_warning
    lines.append(_field("  Status", location.status_summary(), theme, status_color))
    return lines


def record_detail_lines(
    record: ChangeRecord,
    theme: UITheme,
    max_depth: int = DEFAULT_MAX_DEPTH,
    show_git: bool = False,
) -> list[str]:
    """Render the expanded detail panel of a change record.

    Metadata first, then the source location block when known, then the
    attributes: creations and reads list their after value, deletions their
    before value, updates and replacements show a structural diff. The panel
    always ends with a blank separator line.
    """
    color = theme.action_color(record.action)
    lines = [
        _field("Type", record.type or "-", theme, color),
        _field("Provider", record.provider_name or "-", theme, color),
        _field("Mode", record.mode or "-", theme, color),
    ]
    if record.index is not None:
        lines.append(_field("Index", format_scalar(record.index), theme))
    if record.deposed:
        lines.append(_field("Deposed", record.deposed, theme))
    if record.action_reason:
        lines.append(_field("Reason", record.action_reason.replace("_", " "), theme, theme.status_warning))
    if record.dependencies:
        lines.append(f"{DETAIL_INDENT}{paint(theme.attribute, 'Depends on:', theme)}")
        lines.extend(f"{DETAIL_INDENT}  - {address}" for address in record.dependencies)
    if record.location is not None:
        lines.append("")
        lines.extend(location_lines(record.location, theme, show_git))

    lines.append("")
    attribute_indent = DETAIL_INDENT + "  "
    if record.action in (Action.CREATE, Action.READ):
        attributes = attribute_listing_lines(record.after, attribute_indent, color, theme, max_depth)
    elif record.action is Action.DELETE:
        attributes = attribute_listing_lines(record.before, attribute_indent, color, theme, max_depth)
    else:
        attributes = attribute_diff_lines(record.before, record.after, attribute_indent, theme, max_depth)
    if not attributes:
        attributes = [f"{attribute_indent}{paint(theme.help_text, '(no attribute changes)', theme)}"]
    lines.extend(attributes)
    lines.append("")
    return lines


class NodeRenderer:
    """Renders nodes with one theme and diff depth, caching detail panels.

    Detail panels depend only on the (immutable) record and the renderer
    settings, so they are computed once per node.
    """

    def __init__(self, theme: UITheme, max_depth: int = DEFAULT_MAX_DEPTH, show_git: bool = False) -> None:
        self.theme = theme
        self.max_depth = max_depth
        self.show_git = show_git
        self._details: dict[int, tuple[TreeNode, list[str]]] = {}

    def detail_lines(self, node: TreeNode) -> list[str]:
        """Lines shown under ``node`` when it is expanded (group nodes have none)."""
        if node.kind is not NodeKind.RECORD:
            return []
        cached = self._details.get(id(node))
        if cached is not None and cached[0] is node:
            return cached[1]
        lines = record_detail_lines(node.record, self.theme, self.max_depth, self.show_git)
        self._details[id(node)] = (node, lines)
        return lines

    def line_count(self, node: TreeNode) -> int:
        if node.expanded:
            return 1 + len(self.detail_lines(node))
        return 1

    def lines(self, node: TreeNode, selected: bool = False) -> list[str]:
        header = node_header_line(node, self.theme, selected)
        if not node.expanded:
            return [header]
        return [header, *self.detail_lines(node)]
