"""Pydantic models for SeriesForge."""

from seriesforge.models.query import ReportEntry, ReportQuery, ReportResponse, encode_component
from seriesforge.models.report import ReportDefinition, Strategy
from seriesforge.models.results import Results

__all__ = [
    "ReportDefinition",
    "ReportEntry",
    "ReportQuery",
    "ReportResponse",
    "Results",
    "Strategy",
    "encode_component",
]
