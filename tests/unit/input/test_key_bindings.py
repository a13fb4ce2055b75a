from __future__ import annotations

import unittest

from planview.input import KeyComboBinding, KeyComboRegistry, build_key_registry
from planview.navigation import NavEvent


class NavigationBindingTests(unittest.TestCase):
    def test_navigation_keys_emit_events(self) -> None:
        expected = {
            "UP": NavEvent.MOVE_UP,
            "k": NavEvent.MOVE_UP,
            "j": NavEvent.MOVE_DOWN,
            " ": NavEvent.TOGGLE,
            "ENTER_CR": NavEvent.TOGGLE,
            "TAB": NavEvent.NEXT_VIEW,
            "SHIFT_TAB": NavEvent.PREV_VIEW,
            "g": NavEvent.JUMP_TOP,
            "END": NavEvent.JUMP_BOTTOM,
            "e": NavEvent.EXPAND_ALL,
            "c": NavEvent.COLLAPSE_ALL,
            "CTRL_C": NavEvent.QUIT,
        }
        for key, event in expected.items():
            events: list[NavEvent] = []
            registry = build_key_registry(events.append, lambda: None)

            self.assertTrue(registry.dispatch(key), key)
            self.assertEqual(events, [event], key)

    def test_unbound_key_is_ignored(self) -> None:
        events: list[NavEvent] = []
        registry = build_key_registry(events.append, lambda: None)

        self.assertFalse(registry.dispatch("x"))
        self.assertEqual(events, [])

    def test_help_key_toggles_help(self) -> None:
        events: list[NavEvent] = []
        help_toggles: list[bool] = []
        registry = build_key_registry(events.append, lambda: help_toggles.append(True))

        registry.dispatch("j")
        registry.dispatch("q")
        registry.dispatch("?")

        self.assertEqual(events, [NavEvent.MOVE_DOWN, NavEvent.QUIT])
        self.assertEqual(help_toggles, [True])


class RegistryTests(unittest.TestCase):
    def test_dispatch_reports_whether_key_was_bound(self) -> None:
        calls: list[str] = []
        registry = KeyComboRegistry()
        registry.register_binding(KeyComboBinding(("a", "b"), lambda: calls.append("ab")))
        registry.register_binding(KeyComboBinding(("z",), lambda: calls.append("z")))

        self.assertTrue(registry.dispatch("b"))
        self.assertTrue(registry.dispatch("z"))
        self.assertFalse(registry.dispatch("y"))
        self.assertEqual(calls, ["ab", "z"])

    def test_later_binding_overrides_combo(self) -> None:
        calls: list[str] = []
        registry = KeyComboRegistry()
        registry.register_binding(KeyComboBinding(("a",), lambda: calls.append("old")))
        registry.register_binding(KeyComboBinding(("a",), lambda: calls.append("new")))

        registry.dispatch("a")

        self.assertEqual(calls, ["new"])


if __name__ == "__main__":
    unittest.main()
