"""Tests for viewer session wiring between keys, state and rendering."""

from __future__ import annotations

import io
import unittest
from unittest import mock

from planview.models import Action, ChangeRecord, Diagnostic, Location, PlanResult
from planview.navigation import View
from planview.render import NodeRenderer
from planview.runtime import app
from planview.runtime.app import ViewerSession, build_view_forests, render_static, view_counts
from planview.ui_theme import PLAIN_THEME


def _plan(count: int = 3) -> PlanResult:
    records = [
        ChangeRecord(address=f"null_resource.r{i:02d}", action=Action.CREATE, after={"id": i, "name": f"r{i}"})
        for i in range(count)
    ]
    records.append(ChangeRecord(address="module.m.null_resource.x", action=Action.DELETE, module="module.m"))
    return PlanResult(
        records=records,
        errors=[Diagnostic("bad thing")],
        warnings=[Diagnostic("odd", severity="warning"), Diagnostic("odder", severity="warning")],
        terraform_version="1.6.0",
    )


def _session(count: int = 3, **kwargs) -> ViewerSession:
    return ViewerSession(_plan(count), NodeRenderer(PLAIN_THEME), **kwargs)


class ViewForestTests(unittest.TestCase):
    def test_counts_use_leaves_and_diagnostics(self) -> None:
        forests = build_view_forests(_plan(3))

        self.assertEqual(view_counts(forests), {View.CHANGES: 4, View.ERRORS: 1, View.WARNINGS: 2})
        self.assertEqual(len(forests[View.CHANGES]), 4)


class ViewerSessionTests(unittest.TestCase):
    def test_keys_move_cursor_and_quit(self) -> None:
        session = _session()

        self.assertTrue(session.handle_key("j"))
        self.assertTrue(session.handle_key("DOWN"))
        self.assertEqual(session.state.cursor, 2)

        self.assertFalse(session.handle_key("x"))
        self.assertFalse(session.should_quit)
        session.handle_key("q")
        self.assertTrue(session.should_quit)

    def test_tab_switches_view_and_visible_nodes(self) -> None:
        session = _session()

        session.handle_key("TAB")

        self.assertIs(session.state.view, View.ERRORS)
        self.assertEqual([node.diagnostic.message for node in session.visible()], ["bad thing"])

    def test_toggle_expands_group(self) -> None:
        session = _session()

        session.handle_key(" ")

        self.assertEqual(len(session.visible()), 5)

    def test_viewport_follows_cursor_with_expanded_details(self) -> None:
        session = _session(count=10)
        session.resize(10)
        session.handle_key("e")

        session.handle_key("G")

        nodes = session.visible()
        start = sum(session.renderer.line_count(node) for node in nodes[: session.state.cursor])
        self.assertLessEqual(session.state.first_visible_line, start)
        self.assertLess(start, session.state.first_visible_line + session.state.budget)

    def test_resize_updates_budget(self) -> None:
        session = _session()
        session.dirty = False

        session.resize(30)

        self.assertEqual(session.state.budget, 24)
        self.assertTrue(session.dirty)

    def test_help_toggle(self) -> None:
        session = _session()

        session.handle_key("?")

        self.assertFalse(session.show_help)
        self.assertFalse(session.render_context(80, 24).show_help)

    def test_expand_on_start(self) -> None:
        session = _session(expand_on_start=True)

        self.assertEqual(len(session.visible()), 5)
        self.assertTrue(all(node.expanded for node in session.visible()))

    def test_render_context_carries_plan_details(self) -> None:
        context = _session().render_context(100, 40)

        self.assertEqual(context.terraform_version, "1.6.0")
        self.assertEqual(context.summary.to_create, 3)
        self.assertEqual(context.tab_counts[View.WARNINGS], 2)


class StaticOutputTests(unittest.TestCase):
    def test_render_static_expands_every_record(self) -> None:
        text = render_static(_plan(2), NodeRenderer(PLAIN_THEME))

        self.assertIn("✚ Create: 2", text)
        self.assertIn('name = "r1"', text)
        self.assertIn("Errors (1)", text)
        self.assertIn("✖ bad thing", text)
        self.assertTrue(text.endswith("\n"))

    def test_render_static_shows_file_and_git_details(self) -> None:
        plan = PlanResult(
            records=[
                ChangeRecord(address="aws_s3_bucket.a", action=Action.CREATE, after={"x": 1}),
                ChangeRecord(address="aws_s3_bucket.b", action=Action.CREATE, after={"x": 2}),
            ]
        )

        def locate(record: ChangeRecord) -> Location:
            return Location(file_path="main.tf", commit_id="abcdef1234", is_tracked=True, branch="main")

        text = render_static(plan, NodeRenderer(PLAIN_THEME, show_git=True), locate)
        lines = text.splitlines()

        self.assertEqual(text.count("File Information:"), 2)
        self.assertTrue(any(line.strip().split() == ["Commit:", "abcdef12"] for line in lines))
        self.assertTrue(any(line.strip().split() == ["Branch:", "main"] for line in lines))
        self.assertTrue(any(line.strip().split() == ["Status:", "Up", "to", "date"] for line in lines))

    def test_git_rows_hidden_without_git_flag(self) -> None:
        plan = PlanResult(records=[ChangeRecord(address="aws_s3_bucket.a", action=Action.CREATE)])

        def locate(record: ChangeRecord) -> Location:
            return Location(file_path="main.tf", commit_id="abcdef1234", is_tracked=True, branch="main")

        text = render_static(plan, NodeRenderer(PLAIN_THEME), locate)

        self.assertIn("File Information:", text)
        self.assertNotIn("abcdef12", text)

    def test_run_pager_prints_static_output_with_nopager(self) -> None:
        out = io.StringIO()
        with mock.patch.object(app.sys, "stdout", out), mock.patch.object(app, "run_main_loop") as loop:
            app.run_pager(_plan(1), PLAIN_THEME, max_depth=5, nopager=True)

        loop.assert_not_called()
        self.assertIn("null_resource.r00", out.getvalue())

    def test_run_pager_falls_back_when_no_terminal(self) -> None:
        out = io.StringIO()
        with (
            mock.patch.object(app.sys, "stdout", out),
            mock.patch.object(app, "_open_input_fd", return_value=None),
            mock.patch.object(app, "run_main_loop") as loop,
        ):
            app.run_pager(_plan(1), PLAIN_THEME, max_depth=5)

        loop.assert_not_called()
        self.assertIn("Changes (2)", out.getvalue())


if __name__ == "__main__":
    unittest.main()
