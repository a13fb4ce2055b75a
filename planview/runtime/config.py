"""Persistent JSON config helpers.

Stores the theme name, the diff depth cap and whether trees start expanded.
All access is defensive: malformed or missing config falls back safely.
"""

from __future__ import annotations

import json
from pathlib import Path

from platformdirs import user_config_dir

from ..diff import DEFAULT_MAX_DEPTH

APP_NAME = "planview"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except Exception:
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> None:
    """Persist config data as pretty-printed JSON.

    Any filesystem/serialization error is ignored to keep runtime behavior
    non-fatal when config cannot be written.
    """
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except Exception:
        pass


def load_theme_name() -> str | None:
    """Load persisted UI theme name, returning ``None`` when unset/invalid."""
    value = load_config().get("theme")
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped if stripped else None


def save_theme_name(theme_name: str) -> None:
    """Persist selected UI theme name."""
    stripped = str(theme_name).strip()
    if not stripped:
        return
    config = load_config()
    config["theme"] = stripped
    save_config(config)


def load_max_depth() -> int:
    """Return the persisted diff depth cap.

    Booleans, non-integers and values below 1 fall back to the default.
    """
    value = load_config().get("max_depth")
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        return DEFAULT_MAX_DEPTH
    return value


def save_max_depth(max_depth: int) -> None:
    if isinstance(max_depth, bool) or not isinstance(max_depth, int) or max_depth < 1:
        return
    config = load_config()
    config["max_depth"] = max_depth
    save_config(config)


def load_expand_on_start() -> bool:
    """Return whether trees should open fully expanded.

    Only explicit boolean values are accepted; any other type falls back to
    ``False``.
    """
    value = load_config().get("expand_on_start")
    return bool(value) if isinstance(value, bool) else False


def save_expand_on_start(expand: bool) -> None:
    config = load_config()
    config["expand_on_start"] = bool(expand)
    save_config(config)
