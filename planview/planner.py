"""Run ``terraform`` / ``tofu`` to produce a plan JSON document.

``plan`` output streams straight to the user's terminal (it may prompt for
variables); only the ``show -json`` output is captured.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from collections.abc import Sequence
from pathlib import Path

from .errors import PlannerError

logger = logging.getLogger(__name__)

PLANNER_COMMANDS: tuple[str, ...] = ("terraform", "tofu")
TEMP_PLAN_FILENAME = ".planview-temp.tfplan"


def find_planner_command() -> str | None:
    """Return the first planner found on ``PATH``; terraform wins over tofu."""
    for command in PLANNER_COMMANDS:
        if shutil.which(command):
            return command
    return None


def run_plan_json(
    extra_args: Sequence[str] = (),
    *,
    cwd: Path | None = None,
    command: str | None = None,
) -> str:
    """Run ``plan -out=<tmp>`` then ``show -json <tmp>`` and return the JSON text.

    The temporary plan file is removed afterwards, whether or not the
    planner succeeded.
    """
    command = command or find_planner_command()
    if command is None:
        raise PlannerError("neither terraform nor tofu was found on PATH")

    workdir = cwd or Path.cwd()
    plan_file = workdir / TEMP_PLAN_FILENAME
    plan_args = [command, "plan", f"-out={TEMP_PLAN_FILENAME}", *extra_args]
    logger.info("running %s", " ".join(plan_args))
    try:
        try:
            planned = subprocess.run(plan_args, cwd=workdir, check=False)
        except OSError as exc:
            raise PlannerError(f"failed to run {command}: {exc}") from exc
        if planned.returncode != 0:
            raise PlannerError(f"{command} plan exited with status {planned.returncode}")

        try:
            shown = subprocess.run(
                [command, "show", "-json", TEMP_PLAN_FILENAME],
                cwd=workdir,
                stdout=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                check=False,
            )
        except OSError as exc:
            raise PlannerError(f"failed to run {command}: {exc}") from exc
        if shown.returncode != 0:
            raise PlannerError(f"{command} show -json exited with status {shown.returncode}")
        return shown.stdout
    finally:
        try:
            plan_file.unlink()
        except FileNotFoundError:
            pass
        except OSError:
            logger.warning("failed to clean up temp file %s", plan_file, exc_info=True)
