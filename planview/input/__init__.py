"""Input-layer public API for key decoding and key bindings.

Low-level terminal decoding (`read_key`) is kept apart from the bindings
that map key tokens onto navigation events.
"""

from .key_registry import KeyComboBinding, KeyComboRegistry
from .keys import HELP_TOGGLE_KEYS, NAV_KEY_BINDINGS, build_key_registry
from .reader import ESC_SEQUENCE_TIMEOUT_MS, read_key

__all__ = [
    "read_key",
    "ESC_SEQUENCE_TIMEOUT_MS",
    "KeyComboBinding",
    "KeyComboRegistry",
    "HELP_TOGGLE_KEYS",
    "NAV_KEY_BINDINGS",
    "build_key_registry",
]
