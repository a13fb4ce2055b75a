"""Plan data model shared by ingestion, tree building, and rendering.

Records are immutable once ingested. Structured before/after values stay in
the JSON value domain and are classified through ``value_kind`` so consumers
can dispatch over a closed set of shapes.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import PurePosixPath
from typing import Any, Union

JsonValue = Union[dict[str, Any], list[Any], str, int, float, bool, None]


class Action(str, enum.Enum):
    """Action classification for one change record."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    REPLACE = "replace"
    READ = "read"
    NO_OP = "no-op"

    @classmethod
    def parse(cls, raw: object) -> Action:
        """Map a raw action token to ``Action``; unknown tokens become no-op."""
        if isinstance(raw, Action):
            return raw
        text = str(raw or "").strip().lower()
        if text == "noop":
            text = "no-op"
        for action in cls:
            if action.value == text:
                return action
        return cls.NO_OP


def derive_action(actions: Iterable[object]) -> Action:
    """Collapse a raw plan action list into one primary ``Action``.

    A list holding both delete and create is a replacement regardless of
    ordering; otherwise the first action wins.
    """
    parsed = [Action.parse(action) for action in actions]
    if not parsed:
        return Action.NO_OP
    if Action.DELETE in parsed and Action.CREATE in parsed:
        return Action.REPLACE
    return parsed[0]


class ValueKind(enum.Enum):
    """Closed set of structured-value shapes."""

    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    NUMBER = "number"
    BOOL = "bool"
    NULL = "null"


def value_kind(value: object) -> ValueKind:
    """Classify ``value`` into its JSON shape.

    ``bool`` is checked before numbers since it subclasses ``int``. Tuples
    count as arrays; foreign objects are treated as strings.
    """
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, dict):
        return ValueKind.OBJECT
    if isinstance(value, (list, tuple)):
        return ValueKind.ARRAY
    return ValueKind.STRING


@dataclass(frozen=True)
class Location:
    """Source file of a record, with optional git attribution."""

    file_path: str
    commit_id: str = ""
    branch: str = ""
    author_name: str = ""
    author_email: str = ""
    commit_date: datetime | None = None
    commit_message: str = ""
    is_tracked: bool = False
    has_uncommitted_changes: bool = False
    error: str | None = None

    @property
    def file_name(self) -> str:
        """Basename used as the file-group key."""
        return PurePosixPath(self.file_path.replace("\\", "/")).name

    @property
    def is_valid(self) -> bool:
        return self.error is None and self.is_tracked

    @property
    def short_commit_id(self) -> str:
        return self.commit_id[:8]

    def status_summary(self) -> str:
        """Human-readable git status for detail panels."""
        if self.error:
            return f"Error: {self.error}"
        if not self.is_tracked:
            return "Not tracked by git"
        if self.has_uncommitted_changes:
            return "Has uncommitted changes"
        return "Up to date"


@dataclass(frozen=True)
class ChangeRecord:
    """One resource change from a plan."""

    address: str
    action: Action
    module: str | None = None
    location: Location | None = None
    before: JsonValue = None
    after: JsonValue = None
    dependencies: tuple[str, ...] = ()
    type: str = ""
    name: str = ""
    mode: str = "managed"
    provider_name: str = ""
    index: JsonValue = None
    action_reason: str = ""
    deposed: str = ""


@dataclass(frozen=True)
class Diagnostic:
    """One error or warning reported by the planner."""

    message: str
    severity: str = "error"
    resource: str | None = None
    detail: str = ""


@dataclass(frozen=True)
class PlanSummary:
    to_create: int = 0
    to_update: int = 0
    to_delete: int = 0
    to_replace: int = 0
    no_op: int = 0
    total: int = 0

    @classmethod
    def from_records(cls, records: Iterable[ChangeRecord]) -> PlanSummary:
        """Count records per action bucket."""
        counts = {action: 0 for action in Action}
        total = 0
        for record in records:
            counts[record.action] += 1
            total += 1
        return cls(
            to_create=counts[Action.CREATE],
            to_update=counts[Action.UPDATE],
            to_delete=counts[Action.DELETE],
            to_replace=counts[Action.REPLACE],
            no_op=counts[Action.NO_OP],
            total=total,
        )


@dataclass
class PlanResult:
    """Everything ingested from one plan."""

    records: list[ChangeRecord] = field(default_factory=list)
    errors: list[Diagnostic] = field(default_factory=list)
    warnings: list[Diagnostic] = field(default_factory=list)
    format_version: str = ""
    terraform_version: str = ""

    @property
    def summary(self) -> PlanSummary:
        return PlanSummary.from_records(self.records)
