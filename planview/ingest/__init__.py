"""Plan ingestion and source-location lookup."""

from __future__ import annotations

from .locate import TerraformLocator, find_terraform_files, make_locator, resource_type_and_name
from .plan_json import detect_format, load_plan, parse_plan, parse_plan_document
from .plan_text import parse_text_plan

__all__ = [
    "TerraformLocator",
    "detect_format",
    "find_terraform_files",
    "load_plan",
    "make_locator",
    "parse_plan",
    "parse_plan_document",
    "parse_text_plan",
    "resource_type_and_name",
]
