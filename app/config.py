"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files

DEFAULT_JOB_HINTS: tuple[str, ...] = (
    "job",
    "job #",
    "job number",
    "job id",
    "project id",
    "proj #",
)
DEFAULT_NAME_HINTS: tuple[str, ...] = ("project", "name", "title", "project name")
DEFAULT_FINANCIAL_HINTS: tuple[str, ...] = (
    "budget",
    "forecast",
    "actual",
    "committed",
    "spent",
    "variance",
    "cost",
    "eac",
    "hard cost",
    "soft cost",
    "total budget",
    "forecasted cost",
    "cost to complete",
)


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_csv_env(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    """
    Read a comma-separated list from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    items = tuple(item.strip().lower() for item in value.split(",") if item.strip())
    return items or default


@dataclass(frozen=True)
class CostReportIngestionSettings:
    """
    Runtime settings for cost report ingestion.
    """

    max_file_bytes: int = 50 * 1024 * 1024
    allowed_extensions: tuple[str, ...] = (".xlsx", ".xlsm")
    preferred_sheet: str = "Cost Rpt Summary"
    header_scan_rows: int = 10
    section_header_pattern: str = r"^SDC\s+"
    period_length_days: int = 7
    max_row_issues: int = 500
    log_row_issues: bool = True
    job_hints: tuple[str, ...] = DEFAULT_JOB_HINTS
    name_hints: tuple[str, ...] = DEFAULT_NAME_HINTS
    financial_hints: tuple[str, ...] = DEFAULT_FINANCIAL_HINTS


@lru_cache(maxsize=1)
def get_cost_report_ingestion_settings() -> CostReportIngestionSettings:
    """
    Return cached cost report ingestion settings from environment variables.
    """

    return CostReportIngestionSettings(
        max_file_bytes=max(1, _get_int_env("COST_REPORT_MAX_FILE_BYTES", 50 * 1024 * 1024)),
        allowed_extensions=tuple(
            ext if ext.startswith(".") else f".{ext}"
            for ext in _get_csv_env("COST_REPORT_ALLOWED_EXTENSIONS", (".xlsx", ".xlsm"))
        ),
        preferred_sheet=_get_str_env("COST_REPORT_SHEET_NAME", "Cost Rpt Summary"),
        header_scan_rows=max(1, _get_int_env("COST_REPORT_HEADER_SCAN_ROWS", 10)),
        section_header_pattern=_get_str_env("COST_REPORT_SECTION_HEADER_PATTERN", r"^SDC\s+"),
        period_length_days=max(1, _get_int_env("COST_REPORT_PERIOD_LENGTH_DAYS", 7)),
        max_row_issues=max(1, _get_int_env("COST_REPORT_MAX_ROW_ISSUES", 500)),
        log_row_issues=_get_bool_env("COST_REPORT_LOG_ROW_ISSUES", True),
        job_hints=_get_csv_env("COST_REPORT_JOB_HINTS", DEFAULT_JOB_HINTS),
        name_hints=_get_csv_env("COST_REPORT_NAME_HINTS", DEFAULT_NAME_HINTS),
        financial_hints=_get_csv_env("COST_REPORT_FINANCIAL_HINTS", DEFAULT_FINANCIAL_HINTS),
    )
