"""Key legend shown on the bottom row of the viewer."""

from __future__ import annotations

from ..ui_theme import UITheme
from .attributes import paint

HELP_BINDINGS: tuple[tuple[str, str], ...] = (
    ("↑/↓", "Navigate"),
    ("Enter/Space", "Expand/Collapse"),
    ("Tab", "Switch View"),
    ("e", "Expand All"),
    ("c", "Collapse All"),
    ("g/G", "Top/Bottom"),
    ("q", "Quit"),
)

COMPACT_HELP_BINDINGS: tuple[tuple[str, str], ...] = (
    ("?", "Help"),
    ("q", "Quit"),
)


def help_line(theme: UITheme, show_help: bool = True) -> str:
    """Return the styled legend; the compact form only advertises ``?``."""
    bindings = HELP_BINDINGS if show_help else COMPACT_HELP_BINDINGS
    return "  ".join(
        paint(theme.help_key, key, theme) + paint(theme.help_text, f": {description}", theme)
        for key, description in bindings
    )
