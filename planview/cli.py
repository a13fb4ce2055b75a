"""Command-line front door for planview.

Parses CLI options, loads the plan (from a file, stdin, or by running the
planner), and dispatches into the interactive viewer runtime.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from . import __version__
from .errors import PlanviewError
from .ingest import load_plan, make_locator, parse_plan
from .models import PlanResult
from .planner import run_plan_json
from .runtime import run_pager
from .runtime.config import (
    load_expand_on_start,
    load_max_depth,
    load_theme_name,
    save_expand_on_start,
    save_max_depth,
    save_theme_name,
)
from .ui_theme import available_theme_names, normalize_theme_name, resolve_theme

PLANNER_ARGS_SEPARATOR = "--"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

logger = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    """argparse type for positive integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be >= 1")
    return parsed


def split_planner_args(argv: Sequence[str]) -> tuple[list[str], list[str]]:
    """Split ``argv`` at the first ``--`` into own options and planner arguments."""
    argv = list(argv)
    if PLANNER_ARGS_SEPARATOR not in argv:
        return argv, []
    cut = argv.index(PLANNER_ARGS_SEPARATOR)
    return argv[:cut], argv[cut + 1 :]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="planview",
        description="Browse a Terraform/OpenTofu plan as an interactive change tree.",
        epilog="Arguments after '--' are passed to 'plan' when the planner is run.",
    )
    parser.add_argument(
        "plan",
        nargs="?",
        default=None,
        help="Plan JSON (or text) file, '-' for stdin. Runs terraform/tofu plan when omitted.",
    )
    parser.add_argument("--no-locate", action="store_true", help="Skip .tf file lookup (no file grouping).")
    parser.add_argument("--git", action="store_true", help="Show git attribution for each resource's file.")
    parser.add_argument(
        "--source-dir",
        type=Path,
        default=None,
        help="Directory searched for .tf files (default: current directory).",
    )
    parser.add_argument(
        "--theme",
        default=None,
        help=f"UI theme name ({', '.join(available_theme_names())}).",
    )
    parser.add_argument("--no-color", action="store_true", help="Disable color output even on TTY.")
    parser.add_argument("--nopager", action="store_true", help="Print the expanded tree without interactive paging.")
    parser.add_argument(
        "--max-depth",
        type=_positive_int,
        default=None,
        help="Nesting depth shown in attribute diffs before values are elided.",
    )
    parser.add_argument("--expand", action="store_true", help="Start with every node expanded.")
    parser.add_argument(
        "--save-defaults",
        action="store_true",
        help="Remember --theme, --max-depth and --expand for future runs.",
    )
    parser.add_argument("--log-file", type=Path, default=None, help="Write debug logs to this file.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def configure_logging(log_file: Path | None) -> None:
    """Attach a file handler when requested; the terminal belongs to the viewer."""
    if log_file is None:
        return
    package_logger = logging.getLogger("planview")
    try:
        handler = logging.FileHandler(log_file, encoding="utf-8")
    except OSError as exc:
        raise SystemExit(f"Cannot open log file {log_file}: {exc.strerror or exc}") from exc
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG)


def _load(args: argparse.Namespace, planner_args: list[str]) -> PlanResult:
    if args.plan is not None:
        if planner_args:
            raise SystemExit("Planner arguments after '--' cannot be combined with a PLAN file.")
        if args.plan != "-" and not Path(args.plan).exists():
            raise SystemExit(f"Path not found: {args.plan}")
        return load_plan(args.plan)
    return parse_plan(run_plan_json(planner_args, cwd=args.source_dir))


def _save_defaults(args: argparse.Namespace) -> None:
    if args.theme is not None:
        save_theme_name(normalize_theme_name(args.theme))
    if args.max_depth is not None:
        save_max_depth(args.max_depth)
    save_expand_on_start(args.expand)


def main(argv: Sequence[str] | None = None) -> None:
    """Parse CLI arguments, load the plan, and launch the viewer.

    ``argv`` defaults to ``sys.argv[1:]``; everything after ``--`` is
    forwarded to the planner.
    """
    own_args, planner_args = split_planner_args(sys.argv[1:] if argv is None else argv)
    args = build_parser().parse_args(own_args)
    configure_logging(args.log_file)

    if args.save_defaults:
        _save_defaults(args)

    try:
        plan = _load(args, planner_args)
    except PlanviewError as exc:
        logger.error("loading plan failed: %s", exc)
        raise SystemExit(f"planview: {exc}") from exc

    locate = None
    if not args.no_locate:
        locate = make_locator(args.source_dir or Path.cwd(), git=args.git)

    no_color = args.no_color or not sys.stdout.isatty()
    theme = resolve_theme(args.theme or load_theme_name(), no_color=no_color)
    run_pager(
        plan,
        theme,
        locate=locate,
        max_depth=args.max_depth or load_max_depth(),
        show_git=args.git,
        nopager=args.nopager,
        expand_on_start=args.expand or load_expand_on_start(),
    )


if __name__ == "__main__":
    main()
