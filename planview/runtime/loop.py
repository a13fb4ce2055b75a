"""Main interactive event loop for the terminal UI.

Each iteration polls the terminal size, redraws when something changed, then
waits briefly for one key. Feature logic lives in ``ViewerSession``.
"""

from __future__ import annotations

import shutil
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..input import read_key
from ..render import RenderContext, render_frame
from .terminal import TerminalController

if TYPE_CHECKING:
    from .app import ViewerSession


@dataclass(frozen=True)
class RuntimeLoopTiming:
    """Timing constants controlling interactive loop behavior."""

    key_poll_ms: int = 100


@dataclass(frozen=True)
class RuntimeLoopCallbacks:
    """Injected I/O used by ``run_main_loop``; swapped out in tests."""

    read_key: Callable[[int, int | None], str] = read_key
    render: Callable[[RenderContext], None] = render_frame
    terminal_size: Callable[[], tuple[int, int]] = lambda: tuple(shutil.get_terminal_size((80, 24)))


def run_main_loop(
    session: ViewerSession,
    terminal: TerminalController,
    stdin_fd: int,
    timing: RuntimeLoopTiming | None = None,
    callbacks: RuntimeLoopCallbacks | None = None,
) -> None:
    """Run the interactive loop until the session asks to quit."""
    timing = timing or RuntimeLoopTiming()
    ops = callbacks or RuntimeLoopCallbacks()
    last_columns = -1

    with terminal.raw_mode():
        while not session.should_quit:
            columns, lines = ops.terminal_size()
            session.resize(lines)
            if columns != last_columns:
                last_columns = columns
                session.dirty = True

            if session.dirty:
                ops.render(session.render_context(columns, lines))
                session.dirty = False

            key = ops.read_key(stdin_fd, timing.key_poll_ms)
            if not key:
                continue
            session.handle_key(key)
