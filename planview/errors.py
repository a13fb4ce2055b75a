"""Exceptions raised by the I/O collaborators around the viewer core."""

from __future__ import annotations


class PlanviewError(Exception):
    """Base class for planview errors surfaced to the CLI."""


class PlanParseError(PlanviewError, ValueError):
    """Plan input is unreadable or is not a plan JSON document."""


class PlannerError(PlanviewError, RuntimeError):
    """The terraform/tofu planner is missing or exited unsuccessfully."""
