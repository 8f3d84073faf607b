"""
tests/test_config.py

Environment-driven ingestion settings.
"""

from __future__ import annotations

import pytest

from app.config import DEFAULT_JOB_HINTS, get_cost_report_ingestion_settings


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_cost_report_ingestion_settings.cache_clear()
    yield
    get_cost_report_ingestion_settings.cache_clear()


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "COST_REPORT_MAX_FILE_BYTES",
        "COST_REPORT_ALLOWED_EXTENSIONS",
        "COST_REPORT_SHEET_NAME",
        "COST_REPORT_JOB_HINTS",
        "COST_REPORT_PERIOD_LENGTH_DAYS",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = get_cost_report_ingestion_settings()

    assert settings.max_file_bytes == 50 * 1024 * 1024
    assert settings.allowed_extensions == (".xlsx", ".xlsm")
    assert settings.preferred_sheet == "Cost Rpt Summary"
    assert settings.job_hints == DEFAULT_JOB_HINTS
    assert settings.period_length_days == 7


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("COST_REPORT_MAX_FILE_BYTES", "1024")
    monkeypatch.setenv("COST_REPORT_ALLOWED_EXTENSIONS", "xlsx, .XLSM")
    monkeypatch.setenv("COST_REPORT_SHEET_NAME", "Summary")
    monkeypatch.setenv("COST_REPORT_JOB_HINTS", "Ref, Job Code")
    monkeypatch.setenv("COST_REPORT_LOG_ROW_ISSUES", "off")

    settings = get_cost_report_ingestion_settings()

    assert settings.max_file_bytes == 1024
    assert settings.allowed_extensions == (".xlsx", ".xlsm")
    assert settings.preferred_sheet == "Summary"
    assert settings.job_hints == ("ref", "job code")
    assert settings.log_row_issues is False


def test_invalid_values_fall_back(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("COST_REPORT_PERIOD_LENGTH_DAYS", "weekly")
    monkeypatch.setenv("COST_REPORT_SHEET_NAME", "   ")
    monkeypatch.setenv("COST_REPORT_MAX_ROW_ISSUES", "0")

    settings = get_cost_report_ingestion_settings()

    assert settings.period_length_days == 7
    assert settings.preferred_sheet == "Cost Rpt Summary"
    assert settings.max_row_issues == 1
