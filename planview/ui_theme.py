"""UI theme definitions and selection helpers.

Themes are plain ANSI palettes handed to renderers explicitly; nothing reads
a theme from module state at render time.
"""

from __future__ import annotations

from dataclasses import dataclass

from .models import Action


@dataclass(frozen=True)
class UITheme:
    """Semantic ANSI palette used by renderers."""

    name: str
    reset: str
    selected: str
    tree_line: str
    action_create: str
    action_update: str
    action_delete: str
    action_replace: str
    action_read: str
    action_noop: str
    module_header: str
    file_header: str
    attribute: str
    value_added: str
    value_removed: str
    tab_active: str
    tab_inactive: str
    summary_border: str
    help_text: str
    help_key: str
    status_warning: str

    def action_color(self, action: Action) -> str:
        return {
            Action.CREATE: self.action_create,
            Action.UPDATE: self.action_update,
            Action.DELETE: self.action_delete,
            Action.REPLACE: self.action_replace,
            Action.READ: self.action_read,
        }.get(action, self.action_noop)


DEFAULT_THEME = UITheme(
    name="default",
    reset="\033[0m",
    selected="\033[48;5;62m",
    tree_line="\033[38;5;240m",
    action_create="\033[1;92m",
    action_update="\033[1;93m",
    action_delete="\033[1;91m",
    action_replace="\033[1;94m",
    action_read="\033[1;96m",
    action_noop="\033[97m",
    module_header="\033[1;96m",
    file_header="\033[97m",
    attribute="\033[38;5;245m",
    value_added="\033[92m",
    value_removed="\033[91m",
    tab_active="\033[1;97;48;5;62m",
    tab_inactive="\033[38;5;250;48;5;236m",
    summary_border="\033[38;5;62m",
    help_text="\033[3;38;5;241m",
    help_key="\033[38;5;229m",
    status_warning="\033[93m",
)

OCEAN_THEME = UITheme(
    name="ocean",
    reset="\033[0m",
    selected="\033[48;5;24m",
    tree_line="\033[2;38;5;31m",
    action_create="\033[1;38;5;84m",
    action_update="\033[1;38;5;215m",
    action_delete="\033[1;38;5;203m",
    action_replace="\033[1;38;5;45m",
    action_read="\033[1;38;5;153m",
    action_noop="\033[38;5;252m",
    module_header="\033[1;38;5;45m",
    file_header="\033[38;5;153m",
    attribute="\033[38;5;110m",
    value_added="\033[38;5;84m",
    value_removed="\033[38;5;203m",
    tab_active="\033[1;38;5;231;48;5;31m",
    tab_inactive="\033[38;5;153;48;5;236m",
    summary_border="\033[38;5;39m",
    help_text="\033[2;38;5;110m",
    help_key="\033[38;5;153m",
    status_warning="\033[38;5;215m",
)

PLAIN_THEME = UITheme(
    name="plain",
    reset="",
    selected="",
    tree_line="",
    action_create="",
    action_update="",
    action_delete="",
    action_replace="",
    action_read="",
    action_noop="",
    module_header="",
    file_header="",
    attribute="",
    value_added="",
    value_removed="",
    tab_active="",
    tab_inactive="",
    summary_border="",
    help_text="",
    help_key="",
    status_warning="",
)

_THEMES: dict[str, UITheme] = {
    DEFAULT_THEME.name: DEFAULT_THEME,
    OCEAN_THEME.name: OCEAN_THEME,
}


def available_theme_names() -> tuple[str, ...]:
    """Return selectable non-plain theme names."""
    return tuple(sorted(_THEMES.keys()))


def normalize_theme_name(name: str | None) -> str:
    """Return a valid theme name, falling back to default."""
    if not name:
        return DEFAULT_THEME.name
    candidate = str(name).strip().lower()
    if candidate in _THEMES:
        return candidate
    return DEFAULT_THEME.name


def resolve_theme(name: str | None, *, no_color: bool = False) -> UITheme:
    """Return concrete theme for requested name and color mode."""
    if no_color:
        return PLAIN_THEME
    return _THEMES[normalize_theme_name(name)]
