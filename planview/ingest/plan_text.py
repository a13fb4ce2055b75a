"""Human-readable plan output parsing.

Best-effort recovery of change records from the text that ``terraform plan``
prints to a terminal. Only top-level attribute lines are captured; nested
blocks are skipped. ``Error:`` and ``Warning:`` lines become diagnostics.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field

from ..ansi import strip_ansi
from ..models import Action, ChangeRecord, Diagnostic, JsonValue, PlanResult

logger = logging.getLogger(__name__)

UNKNOWN_VALUE = "(known after apply)"

_RESOURCE_COMMENT_RE = re.compile(
    r"^\s*#\s+([^\s]+(?:\[[^\]]+\])?)\s+(will be|must be)\s+(created|destroyed|updated|replaced|read)"
)
_RESOURCE_LINE_RE = re.compile(r'^(\s*)([-+~]|-/\+|\+/-|<=)\s+(resource|data)\s+"([^"]+)"\s+"([^"]+)"')
_ATTRIBUTE_RE = re.compile(r"^\s*([+~-])\s*(\w+)\s*=\s*(.+)$")
_ERROR_RE = re.compile(r"^\s*(?:│\s*)?Error:\s*(.+)$")
_WARNING_RE = re.compile(r"^\s*(?:│\s*)?Warning:\s*(.+)$")
_SKIP_LINE_RE = re.compile(
    r"^\s*(Refreshing|Acquiring|Releasing|Initializing|Preparing|Reading|"
    r"Terraform will perform|Terraform used the selected providers)"
)
_VERSION_RE = re.compile(r"Terraform\s+v?(\d+\.\d+\.\d+)")
_INDEX_RE = re.compile(r"\[([^\]]+)\]$")
_MODULE_PREFIX_RE = re.compile(r"^((?:module\.[^.\[]+(?:\[[^\]]+\])?\.)+)")
_CHANGE_ARROW = " -> "
_TRAILING_COMMENT_RE = re.compile(r"\s+#\s+forces replacement\s*$")

_ACTION_WORDS: dict[str, Action] = {
    "created": Action.CREATE,
    "destroyed": Action.DELETE,
    "updated": Action.UPDATE,
    "replaced": Action.REPLACE,
    "read": Action.READ,
}

_SYMBOL_ACTIONS: dict[str, Action] = {
    "+": Action.CREATE,
    "-": Action.DELETE,
    "~": Action.UPDATE,
    "-/+": Action.REPLACE,
    "+/-": Action.REPLACE,
    "<=": Action.READ,
}


def parse_literal(raw: str) -> JsonValue:
    """Decode an attribute literal; unknown values become ``None``."""
    value = raw.strip()
    if value == UNKNOWN_VALUE:
        return None
    try:
        return json.loads(value)
    except ValueError:
        return value


def index_from_address(address: str) -> JsonValue:
    """Return the count/for_each key of ``address`` (``web[0]`` gives ``0``)."""
    match = _INDEX_RE.search(address)
    if match is None:
        return None
    return parse_literal(match.group(1))


def module_from_address(address: str) -> str | None:
    """Return the ``module.x.module.y`` prefix of ``address``, if any."""
    match = _MODULE_PREFIX_RE.match(address)
    if match is None:
        return None
    return match.group(1).rstrip(".")


@dataclass
class _PendingResource:
    address: str
    action: Action
    type: str
    name: str
    mode: str
    close_column: int
    action_reason: str = ""
    before: dict[str, JsonValue] = field(default_factory=dict)
    after: dict[str, JsonValue] = field(default_factory=dict)
    nested_depth: int = 0

    def add_attribute_line(self, line: str) -> None:
        stripped = line.strip()
        if self.nested_depth > 0:
            if stripped.endswith(("{", "[")):
                self.nested_depth += 1
            elif stripped.startswith(("}", "]")):
                self.nested_depth -= 1
            return

        match = _ATTRIBUTE_RE.match(line)
        if match is None:
            if stripped.endswith(("{", "[")):
                self.nested_depth += 1
            return
        symbol, key, raw = match.groups()
        raw = _TRAILING_COMMENT_RE.sub("", raw)
        if raw.rstrip().endswith(("{", "[")):
            self.nested_depth += 1
            return
        if symbol == "+":
            self.after[key] = parse_literal(raw)
        elif symbol == "-":
            self.before[key] = parse_literal(raw.split(_CHANGE_ARROW, 1)[0])
        else:
            old, _, new = raw.partition(_CHANGE_ARROW)
            self.before[key] = parse_literal(old)
            self.after[key] = parse_literal(new) if new else parse_literal(old)

    def to_record(self) -> ChangeRecord:
        before: JsonValue = self.before or None
        after: JsonValue = self.after or None
        if self.action in (Action.UPDATE, Action.REPLACE):
            before, after = dict(self.before), dict(self.after)
        return ChangeRecord(
            address=self.address,
            action=self.action,
            module=module_from_address(self.address),
            before=before,
            after=after,
            type=self.type,
            name=self.name,
            mode=self.mode,
            index=index_from_address(self.address),
            action_reason=self.action_reason,
        )


def parse_text_plan(text: str) -> PlanResult:
    """Parse human-readable plan output into a ``PlanResult``."""
    result = PlanResult()
    current: _PendingResource | None = None
    pending_address = ""
    pending_action: Action | None = None
    pending_reason = ""

    for line in strip_ansi(text).splitlines():
        if _SKIP_LINE_RE.match(line):
            continue

        error = _ERROR_RE.match(line)
        if error is not None:
            result.errors.append(Diagnostic(message=error.group(1).strip(), severity="error"))
            continue
        warning = _WARNING_RE.match(line)
        if warning is not None:
            result.warnings.append(Diagnostic(message=warning.group(1).strip(), severity="warning"))
            continue

        comment = _RESOURCE_COMMENT_RE.match(line)
        if comment is not None:
            pending_address = comment.group(1)
            pending_action = _ACTION_WORDS[comment.group(3)]
            pending_reason = f"must be {comment.group(3)}" if comment.group(2) == "must be" else ""
            continue

        resource = _RESOURCE_LINE_RE.match(line)
        if resource is not None:
            if current is not None:
                result.records.append(current.to_record())
            indent, symbol, keyword, resource_type, resource_name = resource.groups()
            mode = "data" if keyword == "data" else "managed"
            address = pending_address
            if not address:
                address = f"{resource_type}.{resource_name}"
                if mode == "data":
                    address = f"data.{address}"
            current = _PendingResource(
                address=address,
                action=pending_action or _SYMBOL_ACTIONS.get(symbol, Action.NO_OP),
                type=resource_type,
                name=resource_name,
                mode=mode,
                close_column=len(indent) + len(symbol) + 1,
                action_reason=pending_reason,
            )
            pending_address, pending_action, pending_reason = "", None, ""
            continue

        if current is None:
            continue
        if line.strip() == "}" and len(line) - len(line.lstrip()) == current.close_column:
            result.records.append(current.to_record())
            current = None
            continue
        current.add_attribute_line(line)

    if current is not None:
        result.records.append(current.to_record())

    version = _VERSION_RE.search(text)
    if version is not None:
        result.terraform_version = version.group(1)
    logger.debug("parsed text plan: %d records", len(result.records))
    return result
