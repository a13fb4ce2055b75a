"""Rendering engine for the plan viewer.

Defines render context data and composes full ANSI frames: tab bar, summary
box, the scrolled content window, a scroll indicator and the key legend.
Rendering never mutates view state; the caller resolves the viewport first.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Sequence
from dataclasses import dataclass

from ..ansi import clip_ansi_line, display_width
from ..models import Action, PlanSummary
from ..navigation import View, ViewState
from ..tree_model import TreeNode, visible_nodes
from ..ui_theme import UITheme
from ..viewport import scroll_window
from .attributes import paint
from .help import help_line
from .nodes import ACTION_ICONS, NodeRenderer, node_header_line, selected_with_ansi

# Tab bar, three summary box rows, scroll indicator, key legend.
CHROME_ROWS = 6

VIEW_TITLES: dict[View, str] = {
    View.CHANGES: "Changes",
    View.ERRORS: "Errors",
    View.WARNINGS: "Warnings",
}

EMPTY_MESSAGES: dict[View, str] = {
    View.CHANGES: "No changes to display",
    View.ERRORS: "No errors to display",
    View.WARNINGS: "No warnings to display",
}

__all__ = [
    "CHROME_ROWS",
    "NodeRenderer",
    "RenderContext",
    "build_frame_lines",
    "content_budget",
    "content_lines",
    "node_header_line",
    "render_frame",
    "scroll_indicator",
    "selected_with_ansi",
    "static_report_lines",
    "summary_text",
    "tab_bar",
]


@dataclass
class RenderContext:
    nodes: list[TreeNode]
    renderer: NodeRenderer
    state: ViewState
    summary: PlanSummary
    tab_counts: dict[View, int]
    width: int
    height: int
    terraform_version: str = ""
    show_help: bool = True


def content_budget(height: int) -> int:
    """Rows left for tree content in a terminal ``height`` rows tall."""
    return max(1, height - CHROME_ROWS)


def tab_bar(active: View, counts: dict[View, int], theme: UITheme) -> str:
    tabs: list[str] = []
    for view in View:
        label = f" {VIEW_TITLES[view]} ({counts.get(view, 0)}) "
        color = theme.tab_active if view is active else theme.tab_inactive
        if not color and view is active:
            label = f"[{label.strip()}]"
        tabs.append(paint(color, label, theme))
    return " ".join(tabs)


def summary_text(summary: PlanSummary, theme: UITheme, terraform_version: str = "") -> str:
    """Return ``✚ Create: n  ~ Update: n  ✖ Delete: n  ⟳ Replace: n`` plus the version."""
    parts = [
        paint(theme.action_create, f"{ACTION_ICONS[Action.CREATE]} Create: {summary.to_create}", theme),
        paint(theme.action_update, f"{ACTION_ICONS[Action.UPDATE]} Update: {summary.to_update}", theme),
        paint(theme.action_delete, f"{ACTION_ICONS[Action.DELETE]} Delete: {summary.to_delete}", theme),
        paint(theme.action_replace, f"{ACTION_ICONS[Action.REPLACE]} Replace: {summary.to_replace}", theme),
    ]
    text = "  ".join(parts)
    if terraform_version:
        text += paint(theme.summary_border, "  │  ", theme) + f"Version: {terraform_version}"
    return text


def _summary_box(text: str, theme: UITheme) -> list[str]:
    inner_w = display_width(text) + 2
    border = theme.summary_border
    return [
        paint(border, "╭" + "─" * inner_w + "╮", theme),
        paint(border, "│", theme) + f" {text} " + paint(border, "│", theme),
        paint(border, "╰" + "─" * inner_w + "╯", theme),
    ]


def content_lines(nodes: Sequence[TreeNode], renderer: NodeRenderer, cursor: int) -> list[str]:
    """Concatenate the rendered rows of ``nodes``; only the cursor header is highlighted."""
    lines: list[str] = []
    for idx, node in enumerate(nodes):
        lines.extend(renderer.lines(node, selected=idx == cursor))
    return lines


def scroll_indicator(first: int, budget: int, total: int) -> str:
    if total <= budget:
        return ""
    last = min(first + budget, total)
    return f"Scroll: [lines {first + 1}-{last} of {total}]"


def build_frame_lines(context: RenderContext) -> list[str]:
    """Compose every row of a frame, each clipped to the terminal width."""
    theme = context.renderer.theme
    state = context.state
    budget = content_budget(context.height)

    rows = [tab_bar(state.view, context.tab_counts, theme)]
    rows.extend(_summary_box(summary_text(context.summary, theme, context.terraform_version), theme))

    if context.nodes:
        lines = content_lines(context.nodes, context.renderer, state.cursor)
        window = scroll_window(lines, state.first_visible_line, budget)
        indicator = scroll_indicator(state.first_visible_line, budget, len(lines))
    else:
        window = [f"  {paint(theme.help_text, EMPTY_MESSAGES[state.view], theme)}"]
        indicator = ""
    window.extend([""] * (budget - len(window)))
    rows.extend(window)
    rows.append(paint(theme.tree_line, indicator, theme))
    rows.append(help_line(theme, context.show_help))

    width = max(1, context.width)
    clipped: list[str] = []
    for row in rows:
        text = clip_ansi_line(row, width)
        if "\033" in text and theme.reset:
            text += theme.reset
        clipped.append(text)
    return clipped


def render_frame(context: RenderContext) -> None:
    """Write a fully composed frame directly to stdout."""
    out: list[str] = ["\033[H\033[J"]
    out.append("\r\n".join(build_frame_lines(context)))
    os.write(sys.stdout.fileno(), "".join(out).encode("utf-8", errors="replace"))


def static_report_lines(
    forests: dict[View, list[TreeNode]],
    renderer: NodeRenderer,
    summary: PlanSummary,
    counts: dict[View, int],
    terraform_version: str = "",
) -> list[str]:
    """Render every view once, top to bottom, for non-interactive output.

    Nodes are shown in whatever expansion state the caller left them in.
    Empty error and warning sections are omitted.
    """
    theme = renderer.theme
    lines = [summary_text(summary, theme, terraform_version), ""]
    for view in View:
        nodes = visible_nodes(forests.get(view, []))
        if view is not View.CHANGES and not nodes:
            continue
        lines.append(paint(theme.module_header, f"{VIEW_TITLES[view]} ({counts.get(view, 0)})", theme))
        if not nodes:
            lines.append(f"  {EMPTY_MESSAGES[view]}")
        for node in nodes:
            lines.extend(renderer.lines(node))
        lines.append("")
    return lines
