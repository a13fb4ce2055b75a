"""Key token to navigation event bindings."""

from __future__ import annotations

from collections.abc import Callable

from ..navigation import NavEvent
from .key_registry import KeyComboBinding, KeyComboRegistry

NAV_KEY_BINDINGS: tuple[tuple[tuple[str, ...], NavEvent], ...] = (
    (("UP", "k"), NavEvent.MOVE_UP),
    (("DOWN", "j"), NavEvent.MOVE_DOWN),
    (("ENTER_CR", "ENTER_LF", " "), NavEvent.TOGGLE),
    (("TAB",), NavEvent.NEXT_VIEW),
    (("SHIFT_TAB",), NavEvent.PREV_VIEW),
    (("g", "HOME"), NavEvent.JUMP_TOP),
    (("G", "END"), NavEvent.JUMP_BOTTOM),
    (("e",), NavEvent.EXPAND_ALL),
    (("c",), NavEvent.COLLAPSE_ALL),
    (("q", "CTRL_C"), NavEvent.QUIT),
)

HELP_TOGGLE_KEYS: tuple[str, ...] = ("?",)


def build_key_registry(
    on_event: Callable[[NavEvent], None],
    toggle_help: Callable[[], None],
) -> KeyComboRegistry:
    """Bind every navigation key to ``on_event`` and ``?`` to ``toggle_help``."""
    registry = KeyComboRegistry()
    for combos, event in NAV_KEY_BINDINGS:
        registry.register_binding(KeyComboBinding(combos, lambda event=event: on_event(event)))
    registry.register_binding(KeyComboBinding(HELP_TOGGLE_KEYS, toggle_help))
    return registry
