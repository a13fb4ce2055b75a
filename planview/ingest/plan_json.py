"""Plan JSON ingestion.

Maps the machine-readable plan document (``terraform show -json`` /
``tofu show -json``) onto ``PlanResult``. Input that is not a JSON plan is
handed to the human-readable text parser.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

from ..errors import PlanParseError
from ..models import Action, ChangeRecord, Diagnostic, PlanResult, derive_action
from .plan_text import parse_text_plan

logger = logging.getLogger(__name__)

REPLACE_REASON = "forces replacement"
ERRORED_PLAN_MESSAGE = "Planning failed; the change set may be incomplete"


def detect_format(text: str) -> str:
    """Return ``"json"`` or ``"text"`` for raw plan input.

    Anything that opens like a JSON document is treated as JSON so that a
    truncated or corrupt plan file is reported instead of silently parsed as
    an empty text plan.
    """
    stripped = text.strip()
    if stripped.startswith(("{", "[")):
        return "json"
    return "text"


def _str(value: object) -> str:
    return value if isinstance(value, str) else ""


def _collect_dependencies(module: object, found: dict[str, tuple[str, ...]]) -> None:
    """Gather ``depends_on`` lists from a state module tree, keyed by address."""
    if not isinstance(module, dict):
        return
    for resource in module.get("resources") or ():
        if not isinstance(resource, dict):
            continue
        address = _str(resource.get("address"))
        depends_on = resource.get("depends_on")
        if address and isinstance(depends_on, list):
            found[address] = tuple(str(dep) for dep in depends_on)
    for child in module.get("child_modules") or ():
        _collect_dependencies(child, found)


def _prior_dependencies(document: dict[str, Any]) -> dict[str, tuple[str, ...]]:
    found: dict[str, tuple[str, ...]] = {}
    prior_state = document.get("prior_state")
    if isinstance(prior_state, dict):
        values = prior_state.get("values")
        if isinstance(values, dict):
            _collect_dependencies(values.get("root_module"), found)
    return found


def record_from_resource_change(rc: dict[str, Any], dependencies: tuple[str, ...] = ()) -> ChangeRecord | None:
    """Convert one ``resource_changes`` entry; entries without a change are skipped."""
    change = rc.get("change")
    if not isinstance(change, dict):
        return None
    actions = change.get("actions")
    action = derive_action(actions if isinstance(actions, list) else ())
    reason = _str(rc.get("action_reason"))
    if action is Action.REPLACE and not reason:
        reason = REPLACE_REASON
    module = _str(rc.get("module_address")) or None
    return ChangeRecord(
        address=_str(rc.get("address")),
        action=action,
        module=module,
        before=change.get("before"),
        after=change.get("after"),
        dependencies=dependencies,
        type=_str(rc.get("type")),
        name=_str(rc.get("name")),
        mode=_str(rc.get("mode")) or "managed",
        provider_name=_str(rc.get("provider_name")),
        index=rc.get("index"),
        action_reason=reason,
        deposed=_str(rc.get("deposed")),
    )


def _diagnostic(raw: object) -> Diagnostic | None:
    if not isinstance(raw, dict):
        return None
    message = _str(raw.get("summary")) or _str(raw.get("message"))
    if not message:
        return None
    severity = "warning" if _str(raw.get("severity")).lower() == "warning" else "error"
    return Diagnostic(
        message=message,
        severity=severity,
        resource=_str(raw.get("address")) or None,
        detail=_str(raw.get("detail")),
    )


def parse_plan_document(document: object) -> PlanResult:
    """Build a ``PlanResult`` from a decoded plan JSON object."""
    if not isinstance(document, dict):
        raise PlanParseError("plan JSON must be an object")

    dependencies = _prior_dependencies(document)
    result = PlanResult(
        format_version=_str(document.get("format_version")),
        terraform_version=_str(document.get("terraform_version")),
    )

    skipped = 0
    for rc in document.get("resource_changes") or ():
        if not isinstance(rc, dict):
            skipped += 1
            continue
        record = record_from_resource_change(rc, dependencies.get(_str(rc.get("address")), ()))
        if record is None:
            skipped += 1
            continue
        result.records.append(record)

    for raw in document.get("diagnostics") or ():
        diagnostic = _diagnostic(raw)
        if diagnostic is None:
            continue
        if diagnostic.severity == "warning":
            result.warnings.append(diagnostic)
        else:
            result.errors.append(diagnostic)
    if document.get("errored") is True:
        result.errors.append(Diagnostic(message=ERRORED_PLAN_MESSAGE))

    logger.debug(
        "parsed plan JSON: %d records (%d skipped), %d errors, %d warnings",
        len(result.records),
        skipped,
        len(result.errors),
        len(result.warnings),
    )
    return result


def parse_plan(text: str) -> PlanResult:
    """Parse raw plan input in either JSON or human-readable form."""
    if not text.strip():
        raise PlanParseError("no input provided")
    if detect_format(text) == "text":
        return parse_text_plan(text)
    try:
        document = json.loads(text)
    except ValueError as exc:
        raise PlanParseError(f"failed to parse JSON plan: {exc}") from exc
    return parse_plan_document(document)


def load_plan(source: str | Path) -> PlanResult:
    """Read and parse a plan from a file path, or from stdin when ``source`` is ``-``."""
    if str(source) == "-":
        text = sys.stdin.read()
    else:
        path = Path(source)
        try:
            text = path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise PlanParseError(f"cannot read plan file {path}: {exc.strerror or exc}") from exc
    return parse_plan(text)
