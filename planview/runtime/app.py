"""Viewer session wiring and the interactive pager bootstrap.

``ViewerSession`` owns the forests of all three views, the immutable
``ViewState`` and the node renderer, and turns key tokens into state
transitions. After every transition the cursor is clamped and the viewport
re-resolved so rendering can stay a pure projection.
"""

from __future__ import annotations

import logging
import os
import sys
from contextlib import ExitStack

from ..input import build_key_registry
from ..models import PlanResult
from ..navigation import NavEvent, View, ViewState, apply_event, clamp_cursor, resize
from ..render import NodeRenderer, RenderContext, content_budget, static_report_lines
from ..tree_model import (
    LocateFn,
    TreeNode,
    build_diagnostic_forest,
    build_forest,
    flatten_leaves,
    set_all_expanded,
    visible_nodes,
)
from ..ui_theme import UITheme
from ..viewport import follow_cursor
from .loop import run_main_loop
from .terminal import TerminalController

logger = logging.getLogger(__name__)

TTY_PATH = "/dev/tty"


def build_view_forests(plan: PlanResult, locate: LocateFn | None = None) -> dict[View, list[TreeNode]]:
    """Build the node forest shown by each view."""
    return {
        View.CHANGES: build_forest(plan.records, locate),
        View.ERRORS: build_diagnostic_forest(plan.errors),
        View.WARNINGS: build_diagnostic_forest(plan.warnings),
    }


def view_counts(forests: dict[View, list[TreeNode]]) -> dict[View, int]:
    """Tab counts: real records for changes, diagnostics for the other views."""
    return {
        View.CHANGES: len(flatten_leaves(forests.get(View.CHANGES, []))),
        View.ERRORS: len(forests.get(View.ERRORS, [])),
        View.WARNINGS: len(forests.get(View.WARNINGS, [])),
    }


class ViewerSession:
    """Interactive state for one plan shown in one terminal."""

    def __init__(
        self,
        plan: PlanResult,
        renderer: NodeRenderer,
        *,
        locate: LocateFn | None = None,
        expand_on_start: bool = False,
    ) -> None:
        self.plan = plan
        self.renderer = renderer
        self.forests = build_view_forests(plan, locate)
        self.counts = view_counts(self.forests)
        self.state = ViewState()
        self.show_help = True
        self.dirty = True
        self.registry = build_key_registry(self.apply, self.toggle_help)
        if expand_on_start:
            set_all_expanded(self.forests[View.CHANGES], True)

    @property
    def forest(self) -> list[TreeNode]:
        return self.forests[self.state.view]

    @property
    def should_quit(self) -> bool:
        return self.state.quit

    def visible(self) -> list[TreeNode]:
        return visible_nodes(self.forest)

    def _sync_viewport(self) -> None:
        nodes = self.visible()
        state = clamp_cursor(self.state, len(nodes))
        self.state = follow_cursor(state, nodes, self.renderer.line_count)

    def apply(self, event: NavEvent) -> None:
        self.state = apply_event(self.state, event, self.forest)
        self._sync_viewport()
        self.dirty = True

    def toggle_help(self) -> None:
        self.show_help = not self.show_help
        self.dirty = True

    def handle_key(self, key: str) -> bool:
        """Dispatch one key token; returns whether anything was bound to it."""
        handled = self.registry.dispatch(key)
        if not handled:
            logger.debug("unbound key %r", key)
        return handled

    def resize(self, rows: int) -> None:
        """Recompute the content budget for a terminal ``rows`` tall."""
        state = resize(self.state, content_budget(rows))
        if state is self.state:
            return
        self.state = state
        self._sync_viewport()
        self.dirty = True

    def render_context(self, width: int, height: int) -> RenderContext:
        return RenderContext(
            nodes=self.visible(),
            renderer=self.renderer,
            state=self.state,
            summary=self.plan.summary,
            tab_counts=self.counts,
            width=width,
            height=height,
            terraform_version=self.plan.terraform_version,
            show_help=self.show_help,
        )


def render_static(plan: PlanResult, renderer: NodeRenderer, locate: LocateFn | None = None) -> str:
    """Return the fully expanded plan as text for non-interactive output."""
    forests = build_view_forests(plan, locate)
    set_all_expanded(forests[View.CHANGES], True)
    lines = static_report_lines(forests, renderer, plan.summary, view_counts(forests), plan.terraform_version)
    return "\n".join(lines) + "\n"


def _open_input_fd(stack: ExitStack) -> int | None:
    """Return a terminal fd for key input, or ``None`` when none is available.

    When the plan arrives on stdin, keys are read from the controlling tty.
    """
    if os.isatty(sys.stdin.fileno()):
        return sys.stdin.fileno()
    try:
        fd = os.open(TTY_PATH, os.O_RDONLY)
    except OSError:
        return None
    stack.callback(os.close, fd)
    return fd


def run_pager(
    plan: PlanResult,
    theme: UITheme,
    *,
    locate: LocateFn | None = None,
    max_depth: int,
    show_git: bool = False,
    nopager: bool = False,
    expand_on_start: bool = False,
) -> None:
    """Show ``plan`` interactively, or print it once when no terminal is attached."""
    renderer = NodeRenderer(theme, max_depth=max_depth, show_git=show_git)
    with ExitStack() as stack:
        stdin_fd = None if nopager else _open_input_fd(stack)
        if stdin_fd is None or not os.isatty(sys.stdout.fileno()):
            sys.stdout.write(render_static(plan, renderer, locate))
            return

        session = ViewerSession(plan, renderer, locate=locate, expand_on_start=expand_on_start)
        terminal = TerminalController(stdin_fd, sys.stdout.fileno())
        logger.info(
            "starting viewer: %d records, %d errors, %d warnings",
            len(plan.records),
            len(plan.errors),
            len(plan.warnings),
        )
        run_main_loop(session, terminal, stdin_fd)
