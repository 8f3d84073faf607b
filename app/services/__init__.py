"""
app/services package marker.
"""

from app.services.cost_report_ingestion_service import (
    CostReportIngestionService,
    IngestOptions,
    get_cost_report_ingestion_service,
    infer_source_date,
    ingest_cost_report,
    parse_period_start,
)
from app.services.matching_diagnostics import (
    MatchingDiagnostics,
    MatchingDiagnosticsService,
    render_matching_report,
)
from app.services.snapshot_writer import SnapshotWriter
from app.services.summary_aggregator import SummaryAggregator, partition_resolutions

__all__ = [
    "CostReportIngestionService",
    "IngestOptions",
    "MatchingDiagnostics",
    "MatchingDiagnosticsService",
    "SnapshotWriter",
    "SummaryAggregator",
    "get_cost_report_ingestion_service",
    "infer_source_date",
    "ingest_cost_report",
    "parse_period_start",
    "partition_resolutions",
    "render_matching_report",
]
