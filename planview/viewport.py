"""Viewport math over the variable-height rendered line stream.

Each visible node occupies its header line plus, when expanded, every detail
line the renderer emits for it. ``line_count`` callbacks must therefore be
backed by the same rendering code that draws the frame, otherwise offsets
and displayed content drift apart.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import replace
from typing import TypeVar

from .navigation import ViewState

T = TypeVar("T")


def line_offsets(nodes: Sequence[T], line_count: Callable[[T], int]) -> list[int]:
    """Return cumulative start lines; the final item is the total line count."""
    offsets = [0]
    total = 0
    for node in nodes:
        total += max(1, int(line_count(node)))
        offsets.append(total)
    return offsets


def adjust_first_visible_line(offsets: Sequence[int], cursor: int, first: int, budget: int) -> int:
    """Scroll minimally so the cursor node is on screen.

    The cursor's header line always ends up inside
    ``[first, first + budget)``. When the whole node fits in ``budget`` rows it
    is shown entirely; a taller node is shown from its header down.
    """
    count = len(offsets) - 1
    if count <= 0:
        return 0
    budget = max(1, budget)
    cursor = max(0, min(cursor, count - 1))
    start = offsets[cursor]
    end = offsets[cursor + 1] - 1
    total = offsets[-1]

    if start < first:
        first = start
    elif end >= first + budget:
        first = min(start, end - budget + 1)

    # Avoid trailing blank rows once content above has shrunk.
    first = min(first, max(0, total - budget))
    first = min(first, start)
    return max(0, first)


def follow_cursor(state: ViewState, nodes: Sequence[T], line_count: Callable[[T], int]) -> ViewState:
    """Return ``state`` with ``first_visible_line`` adjusted for its cursor."""
    offsets = line_offsets(nodes, line_count)
    first = adjust_first_visible_line(offsets, state.cursor, state.first_visible_line, state.budget)
    if first == state.first_visible_line:
        return state
    return replace(state, first_visible_line=first)


def scroll_window(lines: Sequence[str], first: int, budget: int) -> list[str]:
    """Return the slice of ``lines`` shown for a viewport."""
    first = max(0, first)
    return list(lines[first : first + max(1, budget)])
