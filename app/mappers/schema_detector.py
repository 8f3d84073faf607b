"""
app/mappers/schema_detector.py

Keyword-driven column detection for cost report header rows.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from app.config import DEFAULT_FINANCIAL_HINTS, DEFAULT_JOB_HINTS, DEFAULT_NAME_HINTS
from app.errors import SchemaError, SchemaErrorDetail

logger = logging.getLogger(__name__)

PROJECT_NUMBER_KEYWORDS: tuple[str, ...] = ("project number", "project #", "proj number")


def normalize_header(header: str) -> str:
    """
    Normalize a column name for flexible matching.
    """

    return "".join(ch for ch in header.strip().lower() if ch.isalnum())


@dataclass(frozen=True)
class ColumnMapping:
    """
    Detected column positions for one header row.
    """

    headers: tuple[str, ...]
    job_number_col: int | None = None
    project_number_col: int | None = None
    project_name_col: int | None = None
    financial_cols: dict[int, str] = field(default_factory=dict)
    project_number_inferred: bool = False

    @property
    def financial_columns(self) -> tuple[str, ...]:
        return tuple(self.financial_cols.values())


class SchemaDetector:
    """
    Locates identity and financial columns by case-insensitive substring hints.
    """

    def __init__(
        self,
        *,
        job_hints: Sequence[str] | None = None,
        name_hints: Sequence[str] | None = None,
        financial_hints: Sequence[str] | None = None,
    ) -> None:
        self._job_hints = _clean_hints(job_hints, DEFAULT_JOB_HINTS)
        self._name_hints = _clean_hints(name_hints, DEFAULT_NAME_HINTS)
        self._financial_hints = _clean_hints(financial_hints, DEFAULT_FINANCIAL_HINTS)

    def detect(self, headers: Sequence[str | None]) -> ColumnMapping:
        """
        Resolve column indices from a header row.

        Raises:
            SchemaError: neither a job-number nor a project-name column exists.
        """

        cleaned = tuple((header or "").strip() for header in headers)
        lowered = [header.lower() for header in cleaned]

        job_col = self._first_match(lowered, self._job_hints, exclude=set())

        project_number_col = self._first_match(
            lowered,
            PROJECT_NUMBER_KEYWORDS,
            exclude={job_col},
        )

        name_col = self._first_match(
            lowered,
            self._name_hints,
            exclude={job_col, project_number_col},
        )

        inferred = False
        if project_number_col is None and job_col is not None:
            fallback = job_col + 1
            if fallback < len(cleaned) and fallback != name_col:
                project_number_col = fallback
                inferred = True
                logger.debug(
                    "Assuming project number column index=%s header=%r",
                    fallback,
                    cleaned[fallback],
                )

        if job_col is None and name_col is None:
            raise SchemaError(
                message="Could not locate a job number or project name column in the header row.",
                errors=[
                    SchemaErrorDetail(
                        code="missing_identity_column",
                        message="No header matched the job or name hints.",
                        context={
                            "headers": [header for header in cleaned if header],
                            "jobHints": list(self._job_hints),
                            "nameHints": list(self._name_hints),
                        },
                    )
                ],
            )

        used = {col for col in (job_col, project_number_col, name_col) if col is not None}
        financial_cols: dict[int, str] = {}
        for index, value in enumerate(lowered):
            if not value or index in used:
                continue
            if any(hint in value for hint in self._financial_hints):
                financial_cols[index] = cleaned[index]

        if not financial_cols:
            logger.warning(
                "No financial columns detected headers=%s hints=%s",
                [header for header in cleaned if header],
                list(self._financial_hints),
            )

        mapping = ColumnMapping(
            headers=cleaned,
            job_number_col=job_col,
            project_number_col=project_number_col,
            project_name_col=name_col,
            financial_cols=financial_cols,
            project_number_inferred=inferred,
        )
        logger.info(
            "Columns detected job=%s project_number=%s name=%s financial=%s",
            _describe(cleaned, job_col),
            _describe(cleaned, project_number_col),
            _describe(cleaned, name_col),
            len(financial_cols),
        )
        return mapping

    @staticmethod
    def _first_match(
        lowered: Sequence[str],
        hints: Sequence[str],
        *,
        exclude: set[int | None],
    ) -> int | None:
        for index, value in enumerate(lowered):
            if not value or index in exclude:
                continue
            if any(hint in value for hint in hints):
                return index
        return None


def _clean_hints(hints: Sequence[str] | None, default: tuple[str, ...]) -> tuple[str, ...]:
    if not hints:
        return default
    cleaned = tuple(hint.strip().lower() for hint in hints if hint and hint.strip())
    return cleaned or default


def _describe(headers: Sequence[str], index: int | None) -> str | None:
    if index is None:
        return None
    return f"{index}:{headers[index]}"
