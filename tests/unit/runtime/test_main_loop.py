from __future__ import annotations

import unittest
from contextlib import contextmanager

from planview.models import Action, ChangeRecord, PlanResult
from planview.render import NodeRenderer, RenderContext
from planview.runtime import RuntimeLoopCallbacks, RuntimeLoopTiming, run_main_loop
from planview.runtime.app import ViewerSession
from planview.ui_theme import PLAIN_THEME


class _FakeTerminal:
    def __init__(self) -> None:
        self.entered = 0

    @contextmanager
    def raw_mode(self):
        self.entered += 1
        yield


def _session() -> ViewerSession:
    records = [ChangeRecord(address=f"null_resource.r{i}", action=Action.UPDATE) for i in range(5)]
    return ViewerSession(PlanResult(records=records), NodeRenderer(PLAIN_THEME))


class RunMainLoopTests(unittest.TestCase):
    def _run(self, session: ViewerSession, keys: list[str], sizes: list[tuple[int, int]] | None = None):
        pending = list(keys)
        frames: list[RenderContext] = []
        size_queue = list(sizes or [])
        polls: list[int | None] = []

        def read_key(_fd: int, timeout_ms: int | None) -> str:
            polls.append(timeout_ms)
            return pending.pop(0) if pending else "q"

        def terminal_size() -> tuple[int, int]:
            if len(size_queue) > 1:
                return size_queue.pop(0)
            return size_queue[0] if size_queue else (80, 24)

        terminal = _FakeTerminal()
        run_main_loop(
            session,
            terminal,
            stdin_fd=0,
            timing=RuntimeLoopTiming(key_poll_ms=7),
            callbacks=RuntimeLoopCallbacks(read_key=read_key, render=frames.append, terminal_size=terminal_size),
        )
        return terminal, frames, polls

    def test_loop_renders_handles_keys_and_quits(self) -> None:
        session = _session()

        terminal, frames, polls = self._run(session, ["j", "j"])

        self.assertTrue(session.should_quit)
        self.assertEqual(terminal.entered, 1)
        self.assertEqual(session.state.cursor, 2)
        self.assertEqual([frame.state.cursor for frame in frames], [0, 1, 2])
        self.assertEqual(set(polls), {7})

    def test_idle_polls_do_not_redraw(self) -> None:
        _, frames, _ = self._run(_session(), ["", "", ""])

        self.assertEqual(len(frames), 1)

    def test_unbound_keys_do_not_redraw(self) -> None:
        _, frames, _ = self._run(_session(), ["x", "y"])

        self.assertEqual(len(frames), 1)

    def test_resize_triggers_redraw_with_new_size(self) -> None:
        _, frames, _ = self._run(_session(), ["", ""], sizes=[(80, 24), (100, 30), (100, 30)])

        self.assertEqual([(frame.width, frame.height) for frame in frames], [(80, 24), (100, 30)])
        self.assertEqual(frames[-1].state.budget, 24)


if __name__ == "__main__":
    unittest.main()
