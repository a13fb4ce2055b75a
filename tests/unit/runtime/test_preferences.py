"""Tests for persisted viewer preferences.

Each test points ``CONFIG_PATH`` at a temporary file; malformed data must
always fall back to defaults instead of raising.
"""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from unittest import mock

from planview.diff import DEFAULT_MAX_DEPTH
from planview.runtime import config


class PreferenceTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.config_path = Path(self._tmp.name) / "nested" / "config.json"
        patcher = mock.patch("planview.runtime.config.CONFIG_PATH", self.config_path)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.addCleanup(self._tmp.cleanup)

    def test_missing_file_uses_defaults(self) -> None:
        self.assertEqual(config.load_config(), {})
        self.assertIsNone(config.load_theme_name())
        self.assertEqual(config.load_max_depth(), DEFAULT_MAX_DEPTH)
        self.assertFalse(config.load_expand_on_start())

    def test_round_trip_preferences(self) -> None:
        config.save_theme_name(" ocean ")
        config.save_max_depth(8)
        config.save_expand_on_start(True)

        self.assertEqual(config.load_theme_name(), "ocean")
        self.assertEqual(config.load_max_depth(), 8)
        self.assertTrue(config.load_expand_on_start())
        self.assertEqual(
            config.load_config(),
            {"theme": "ocean", "max_depth": 8, "expand_on_start": True},
        )

    def test_malformed_file_is_ignored(self) -> None:
        self.config_path.parent.mkdir(parents=True)
        self.config_path.write_text("{not json", encoding="utf-8")

        self.assertEqual(config.load_config(), {})

        self.config_path.write_text("[1, 2]", encoding="utf-8")
        self.assertEqual(config.load_config(), {})

    def test_invalid_values_fall_back(self) -> None:
        config.save_config({"theme": "  ", "max_depth": True, "expand_on_start": "yes"})

        self.assertIsNone(config.load_theme_name())
        self.assertEqual(config.load_max_depth(), DEFAULT_MAX_DEPTH)
        self.assertFalse(config.load_expand_on_start())

        config.save_config({"max_depth": 0})
        self.assertEqual(config.load_max_depth(), DEFAULT_MAX_DEPTH)

    def test_invalid_saves_are_ignored(self) -> None:
        config.save_max_depth(0)
        config.save_theme_name("   ")

        self.assertEqual(config.load_config(), {})


if __name__ == "__main__":
    unittest.main()
