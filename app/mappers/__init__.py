"""
app/mappers package marker.
"""

from app.mappers.financial_extractor import DEFAULT_FIELD_ALIASES, FinancialExtractor
from app.mappers.row_normalizer import RowNormalization, RowNormalizer, normalize_identity
from app.mappers.schema_detector import ColumnMapping, SchemaDetector, normalize_header

__all__ = [
    "DEFAULT_FIELD_ALIASES",
    "ColumnMapping",
    "FinancialExtractor",
    "RowNormalization",
    "RowNormalizer",
    "SchemaDetector",
    "normalize_header",
    "normalize_identity",
]
