"""Cursor and expansion state machine for the plan tree.

``ViewState`` is immutable; every transition returns a new value. Expansion
flags live on the ``TreeNode`` objects themselves and are the only thing a
transition mutates in place. Events that make no sense in the current state
(moving with nothing on screen, toggling a diagnostic) degrade to no-ops.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, replace

from .tree_model import TreeNode, set_all_expanded, visible_nodes

DEFAULT_BUDGET = 20


class View(enum.Enum):
    CHANGES = 0
    ERRORS = 1
    WARNINGS = 2

    def cycled(self, step: int) -> View:
        members = list(View)
        return members[(members.index(self) + step) % len(members)]


class NavEvent(enum.Enum):
    MOVE_UP = "move_up"
    MOVE_DOWN = "move_down"
    JUMP_TOP = "jump_top"
    JUMP_BOTTOM = "jump_bottom"
    TOGGLE = "toggle"
    EXPAND_ALL = "expand_all"
    COLLAPSE_ALL = "collapse_all"
    NEXT_VIEW = "next_view"
    PREV_VIEW = "prev_view"
    QUIT = "quit"


@dataclass(frozen=True)
class ViewState:
    """Transient per-session view state."""

    cursor: int = 0
    first_visible_line: int = 0
    budget: int = DEFAULT_BUDGET
    view: View = View.CHANGES
    quit: bool = False


def clamp_cursor(state: ViewState, visible_count: int) -> ViewState:
    """Keep ``cursor`` inside ``[0, visible_count - 1]`` (``0`` when empty)."""
    cursor = max(0, min(state.cursor, visible_count - 1))
    if cursor == state.cursor:
        return state
    return replace(state, cursor=cursor)


def resize(state: ViewState, budget: int) -> ViewState:
    """Apply a new visible-row budget from a terminal resize."""
    budget = max(1, int(budget))
    if budget == state.budget:
        return state
    return replace(state, budget=budget)


def _switch_view(state: ViewState, step: int) -> ViewState:
    # Views hold unrelated node sets, so position never carries over.
    return replace(state, view=state.view.cycled(step), cursor=0, first_visible_line=0)


def apply_event(state: ViewState, event: NavEvent, forest: list[TreeNode]) -> ViewState:
    """Return the state after ``event`` on the active view's ``forest``."""
    if event is NavEvent.QUIT:
        return replace(state, quit=True)
    if event is NavEvent.NEXT_VIEW:
        return _switch_view(state, 1)
    if event is NavEvent.PREV_VIEW:
        return _switch_view(state, -1)

    visible = visible_nodes(forest)
    if not visible:
        return replace(state, cursor=0) if state.cursor else state
    state = clamp_cursor(state, len(visible))
    last = len(visible) - 1

    if event is NavEvent.MOVE_DOWN:
        if state.cursor < last:
            return replace(state, cursor=state.cursor + 1)
        return state
    if event is NavEvent.MOVE_UP:
        if state.cursor > 0:
            return replace(state, cursor=state.cursor - 1)
        return state
    if event is NavEvent.JUMP_TOP:
        return replace(state, cursor=0)
    if event is NavEvent.JUMP_BOTTOM:
        return replace(state, cursor=last)
    if event is NavEvent.TOGGLE:
        node = visible[state.cursor]
        if node.is_expandable:
            node.expanded = not node.expanded
        return state
    if event is NavEvent.EXPAND_ALL:
        set_all_expanded(forest, True)
        return state
    if event is NavEvent.COLLAPSE_ALL:
        set_all_expanded(forest, False)
        return clamp_cursor(state, len(visible_nodes(forest)))
    return state
