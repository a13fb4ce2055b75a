"""CLI argument handling and dispatch tests.

``run_pager`` is patched out; config reads and writes go to a temporary
file so the developer's own preferences never leak into results.
"""

from __future__ import annotations

import json
import logging
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from planview import cli
from planview.diff import DEFAULT_MAX_DEPTH
from planview.errors import PlannerError
from planview.models import PlanResult
from planview.runtime import config
from planview.ui_theme import OCEAN_THEME, PLAIN_THEME

PLAN_JSON = {
    "format_version": "1.2",
    "terraform_version": "1.6.0",
    "resource_changes": [
        {
            "address": "aws_instance.web",
            "type": "aws_instance",
            "name": "web",
            "change": {"actions": ["create"], "before": None, "after": {"ami": "ami-1"}},
        }
    ],
}


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.tmp = Path(self._tmp.name)
        self.plan_path = self.tmp / "plan.json"
        self.plan_path.write_text(json.dumps(PLAN_JSON), encoding="utf-8")

        for patcher in (
            mock.patch("planview.runtime.config.CONFIG_PATH", self.tmp / "config.json"),
            mock.patch("planview.cli.run_pager"),
        ):
            patcher.start()
            self.addCleanup(patcher.stop)
        self.run_pager = cli.run_pager

    def test_plan_file_is_loaded_and_shown(self) -> None:
        cli.main([str(self.plan_path), "--no-locate", "--no-color"])

        self.run_pager.assert_called_once()
        plan, theme = self.run_pager.call_args.args
        kwargs = self.run_pager.call_args.kwargs
        self.assertIsInstance(plan, PlanResult)
        self.assertEqual([record.address for record in plan.records], ["aws_instance.web"])
        self.assertIs(theme, PLAIN_THEME)
        self.assertIsNone(kwargs["locate"])
        self.assertEqual(kwargs["max_depth"], DEFAULT_MAX_DEPTH)
        self.assertFalse(kwargs["expand_on_start"])
        self.assertFalse(kwargs["nopager"])

    def test_options_are_forwarded(self) -> None:
        with mock.patch("planview.cli.sys.stdout.isatty", return_value=True):
            cli.main(
                [
                    str(self.plan_path),
                    "--theme",
                    "ocean",
                    "--max-depth",
                    "3",
                    "--expand",
                    "--nopager",
                    "--git",
                    "--source-dir",
                    str(self.tmp),
                ]
            )

        _, theme = self.run_pager.call_args.args
        kwargs = self.run_pager.call_args.kwargs
        self.assertIs(theme, OCEAN_THEME)
        self.assertEqual(kwargs["max_depth"], 3)
        self.assertTrue(kwargs["expand_on_start"])
        self.assertTrue(kwargs["nopager"])
        self.assertTrue(kwargs["show_git"])
        self.assertIsNotNone(kwargs["locate"])

    def test_missing_plan_file_exits(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            cli.main([str(self.tmp / "missing.json")])

        self.assertEqual(str(ctx.exception.code), f"Path not found: {self.tmp / 'missing.json'}")
        self.run_pager.assert_not_called()

    def test_invalid_plan_exits_with_message(self) -> None:
        self.plan_path.write_text("{oops", encoding="utf-8")

        with self.assertRaises(SystemExit) as ctx:
            cli.main([str(self.plan_path)])

        self.assertIn("planview: failed to parse JSON plan", str(ctx.exception.code))

    def test_invalid_max_depth_is_rejected(self) -> None:
        with mock.patch("sys.stderr"):
            with self.assertRaises(SystemExit) as ctx:
                cli.main([str(self.plan_path), "--max-depth", "0"])

        self.assertEqual(ctx.exception.code, 2)

    def test_planner_args_require_no_plan_file(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            cli.main([str(self.plan_path), "--", "-var", "x=1"])

        self.assertIn("cannot be combined", str(ctx.exception.code))

    def test_runs_planner_without_plan_argument(self) -> None:
        with mock.patch("planview.cli.run_plan_json", return_value=json.dumps(PLAN_JSON)) as planner:
            cli.main(["--no-locate", "--", "-target=aws_instance.web"])

        planner.assert_called_once_with(["-target=aws_instance.web"], cwd=None)
        self.run_pager.assert_called_once()

    def test_planner_failure_exits(self) -> None:
        with mock.patch("planview.cli.run_plan_json", side_effect=PlannerError("terraform plan exited with status 1")):
            with self.assertRaises(SystemExit) as ctx:
                cli.main([])

        self.assertEqual(str(ctx.exception.code), "planview: terraform plan exited with status 1")

    def test_save_defaults_persists_preferences(self) -> None:
        cli.main([str(self.plan_path), "--theme", "ocean", "--max-depth", "4", "--expand", "--save-defaults"])

        self.assertEqual(config.load_theme_name(), "ocean")
        self.assertEqual(config.load_max_depth(), 4)
        self.assertTrue(config.load_expand_on_start())

    def test_saved_defaults_are_used(self) -> None:
        config.save_config({"max_depth": 7, "expand_on_start": True})

        cli.main([str(self.plan_path), "--no-locate"])

        kwargs = self.run_pager.call_args.kwargs
        self.assertEqual(kwargs["max_depth"], 7)
        self.assertTrue(kwargs["expand_on_start"])


class SplitPlannerArgsTests(unittest.TestCase):
    def test_split_at_first_separator(self) -> None:
        self.assertEqual(cli.split_planner_args(["a", "--", "b", "--", "c"]), (["a"], ["b", "--", "c"]))
        self.assertEqual(cli.split_planner_args(["a"]), (["a"], []))


class LoggingTests(unittest.TestCase):
    def test_log_file_handler_is_attached(self) -> None:
        package_logger = logging.getLogger("planview")
        previous_level = package_logger.level
        with tempfile.TemporaryDirectory() as tmp:
            log_path = Path(tmp) / "planview.log"
            cli.configure_logging(log_path)
            handler = package_logger.handlers[-1]
            try:
                self.assertIsInstance(handler, logging.FileHandler)
                self.assertEqual(package_logger.level, logging.DEBUG)
            finally:
                package_logger.removeHandler(handler)
                handler.close()
                package_logger.setLevel(previous_level)


if __name__ == "__main__":
    unittest.main()
