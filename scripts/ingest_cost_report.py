"""
Ingest a cost report workbook from CLI.

Examples:
    python -m scripts.ingest_cost_report --file "Cost Report Summary 10.15.25.xlsx" --dry-run
    python -m scripts.ingest_cost_report --file report.xlsx --period-start 2025-10-13
    python -m scripts.ingest_cost_report --file report.xlsx --diagnose
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys

from app.errors import CostReportIngestionError
from app.logging_utils import configure_logging
from app.repositories.project_registry_repository import ProjectRegistryRepository
from app.schemas.cost_report_ingestion import IngestResultResponse
from app.services.cost_report_ingestion_service import (
    IngestOptions,
    get_cost_report_ingestion_service,
    parse_period_start,
)
from app.services.matching_diagnostics import MatchingDiagnosticsService, render_matching_report
from db.session import SessionLocal

logger = logging.getLogger(__name__)


def _split_hints(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(item.strip().lower() for item in value.split(",") if item.strip())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Ingest a cost report summary workbook.")
    parser.add_argument("--file", dest="file", required=True, help="Path to the .xlsx/.xlsm workbook.")
    parser.add_argument(
        "--period-start",
        dest="period_start",
        default=None,
        help="Reporting period start (YYYY-MM-DD). Required unless --dry-run.",
    )
    parser.add_argument(
        "--source-date",
        dest="source_date",
        default=None,
        help="Report date (YYYY-MM-DD). Inferred from the file name when omitted.",
    )
    parser.add_argument("--dry-run", dest="dry_run", action="store_true", help="Match only; write nothing.")
    parser.add_argument(
        "--diagnose",
        dest="diagnose",
        action="store_true",
        help="Print the plain-text matching diagnostics report instead of ingesting.",
    )
    parser.add_argument("--job-hints", dest="job_hints", default=None, help="Comma-separated job header hints.")
    parser.add_argument("--name-hints", dest="name_hints", default=None, help="Comma-separated name header hints.")
    parser.add_argument(
        "--financial-hints",
        dest="financial_hints",
        default=None,
        help="Comma-separated financial header hints.",
    )
    parser.add_argument("--log-level", dest="log_level", default=None, help="Overrides LOG_LEVEL.")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        with open(args.file, "rb") as handle:
            buffer = handle.read()
    except OSError as exc:
        print(json.dumps({"message": f"Unable to open {args.file}: {exc}"}, indent=2), file=sys.stderr)
        return 2

    service = get_cost_report_ingestion_service()
    try:
        options = IngestOptions(
            job_hints=_split_hints(args.job_hints),
            name_hints=_split_hints(args.name_hints),
            financial_hints=_split_hints(args.financial_hints),
            period_start=args.period_start,
            dry_run=args.dry_run or args.diagnose,
            source_file_name=os.path.basename(args.file),
            source_date=parse_period_start(args.source_date, field="sourceDate"),
        )
        with SessionLocal() as db:
            registry = ProjectRegistryRepository(db).load_snapshot()
            if args.diagnose:
                service.validate_upload(buffer=buffer, file_name=options.source_file_name)
                _, normalized = service.extract_rows(buffer, options=options)
                diagnostics = MatchingDiagnosticsService().diagnose(normalized.rows, registry)
                print(render_matching_report(diagnostics))
                return 0

            result = service.ingest_buffer(buffer, registry=registry, db=db, options=options)
    except CostReportIngestionError as exc:
        logger.error("Cost report ingestion failed file=%s error=%s", args.file, exc)
        payload = exc.to_dict() if hasattr(exc, "to_dict") else {"message": str(exc)}
        print(json.dumps(payload, indent=2, default=str), file=sys.stderr)
        return 1

    response = IngestResultResponse.from_result(result)
    print(json.dumps(response.model_dump(mode="json", by_alias=True), indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
