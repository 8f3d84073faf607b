"""
app/errors.py

Typed failures raised by the cost report ingestion engine.

Row-level problems (unparseable numbers, unmatched or ambiguous identities)
are never raised; they are recorded on the ingestion result instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Sequence


@dataclass(frozen=True)
class SchemaErrorDetail:
    """
    Structured schema detection error detail.
    """

    code: str
    message: str
    column: str | None = None
    column_index: int | None = None
    context: dict[str, Any] | None = None


class CostReportIngestionError(Exception):
    """Base exception for cost report ingestion failures."""


class SchemaError(CostReportIngestionError):
    """
    Raised when the workbook layout cannot be mapped onto identity columns.
    """

    def __init__(self, *, message: str, errors: Sequence[SchemaErrorDetail] = ()) -> None:
        super().__init__(message)
        self.message = message
        self.errors = tuple(errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "errors": [
                {
                    "code": error.code,
                    "message": error.message,
                    "column": error.column,
                    "columnIndex": error.column_index,
                    "context": error.context,
                }
                for error in self.errors
            ],
        }


class ValidationError(CostReportIngestionError):
    """
    Raised when caller-supplied input or options are unusable.
    """

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "field": self.field}


class WorkbookReadError(ValidationError):
    """Raised when the uploaded buffer is not a readable workbook."""


class TransactionError(CostReportIngestionError):
    """
    Raised when snapshot upserts fail; the whole unit of work is rolled back.
    """

    def __init__(
        self,
        message: str,
        *,
        project_id: str | None = None,
        period_start: date | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.project_id = project_id
        self.period_start = period_start

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "projectId": self.project_id,
            "periodStart": self.period_start.isoformat() if self.period_start else None,
            "cause": repr(self.__cause__) if self.__cause__ is not None else None,
        }
