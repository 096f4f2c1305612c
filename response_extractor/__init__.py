"""
Response extraction package: free text to structured numeric signals.
Pure regex heuristics - no LLM, no I/O.
"""

from response_extractor.models import (
    Trend,
    TimeFamily,
    Metric,
    Table,
    ListGroup,
    TimeSeriesPoint,
    ExtractedData
)

from response_extractor.extractor import (
    ResponseExtractor,
    extract_data_from_response
)

__all__ = [
    'Trend',
    'TimeFamily',
    'Metric',
    'Table',
    'ListGroup',
    'TimeSeriesPoint',
    'ExtractedData',
    'ResponseExtractor',
    'extract_data_from_response'
]

__version__ = "1.0.0"
