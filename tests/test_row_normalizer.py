"""
tests/test_row_normalizer.py

Unit tests for RowNormalizer: identity null handling, numeric parsing,
soft issues and skip rules.
"""

from __future__ import annotations

import pytest

from app.domain.cost_report import EMPTY_CELL, NumberCell, TextCell
from app.mappers.row_normalizer import (
    SKIP_BLANK,
    SKIP_MISSING_IDENTITY,
    SKIP_SECTION_HEADER,
    RowNormalizer,
)
from app.mappers.schema_detector import SchemaDetector

HEADERS = ["Job Number", "Project Number", "Project Name", "Total Budget", "Actual Costs Invoiced"]


@pytest.fixture
def mapping():
    return SchemaDetector().detect(HEADERS)


@pytest.fixture
def normalizer() -> RowNormalizer:
    return RowNormalizer()


class TestRowNormalizer:
    def test_canonical_row(self, normalizer, mapping) -> None:
        cells = (
            TextCell("  25-8-131-QUIE6 "),
            TextCell("24-1-061-ige03"),
            TextCell(" Quincy Tower "),
            TextCell("$1,000.50"),
            NumberCell(250.0),
        )

        outcome = normalizer.normalize(cells, 4, mapping)

        assert outcome.row is not None
        assert outcome.issues == ()
        assert outcome.row.row_index == 4
        assert outcome.row.job_number == "25-8-131-quie6"
        assert outcome.row.project_number == "24-1-061-ige03"
        assert outcome.row.project_name == "Quincy Tower"
        assert outcome.row.financials == {"Total Budget": 1000.5, "Actual Costs Invoiced": 250.0}

    @pytest.mark.parametrize("token", ["n/a", "N/A", "-", "  "])
    def test_null_job_tokens_keep_row_with_project_number(self, normalizer, mapping, token) -> None:
        cells = (TextCell(token), TextCell("24-1-061"), TextCell("Tower"), EMPTY_CELL, EMPTY_CELL)

        outcome = normalizer.normalize(cells, 0, mapping)

        assert outcome.row is not None
        assert outcome.row.job_number is None
        assert outcome.row.project_number == "24-1-061"

    def test_row_without_job_and_project_number_is_skipped(self, normalizer, mapping) -> None:
        cells = (TextCell("n/a"), TextCell("-"), TextCell("Stray"), NumberCell(1.0), NumberCell(2.0))

        outcome = normalizer.normalize(cells, 0, mapping)

        assert outcome.skipped
        assert outcome.skip_reason == SKIP_MISSING_IDENTITY

    def test_blank_row_is_skipped(self, normalizer, mapping) -> None:
        outcome = normalizer.normalize((EMPTY_CELL,) * 5, 0, mapping)

        assert outcome.skip_reason == SKIP_BLANK

    def test_section_header_row_is_skipped(self, normalizer, mapping) -> None:
        cells = (TextCell("SDC Seattle Region"), EMPTY_CELL, EMPTY_CELL, EMPTY_CELL, EMPTY_CELL)

        outcome = normalizer.normalize(cells, 0, mapping)

        assert outcome.skip_reason == SKIP_SECTION_HEADER

    def test_integral_number_identity_renders_without_decimal(self, normalizer, mapping) -> None:
        cells = (NumberCell(2410061.0), EMPTY_CELL, TextCell("Numeric Job"), EMPTY_CELL, EMPTY_CELL)

        outcome = normalizer.normalize(cells, 0, mapping)

        assert outcome.row is not None
        assert outcome.row.job_number == "2410061"

    def test_unparseable_financial_text_is_soft_issue(self, normalizer, mapping) -> None:
        cells = (TextCell("10-1-100"), EMPTY_CELL, TextCell("Alpha"), TextCell("TBD"), TextCell("--"))

        outcome = normalizer.normalize(cells, 7, mapping)

        assert outcome.row is not None
        assert outcome.row.financials == {"Total Budget": None, "Actual Costs Invoiced": None}
        assert len(outcome.issues) == 1
        issue = outcome.issues[0]
        assert (issue.row_index, issue.column, issue.value) == (7, "Total Budget", "TBD")

    def test_name_only_layout_keeps_named_rows(self, normalizer) -> None:
        mapping = SchemaDetector().detect(["Title", "Budget"])

        outcome = normalizer.normalize((TextCell("Quincy Tower"), NumberCell(5.0)), 0, mapping)

        assert outcome.row is not None
        assert outcome.row.project_name == "Quincy Tower"
