"""Ways of sending a ReportQuery and getting a ReportResponse back."""

from seriesforge.transport.base import ReportTransport
from seriesforge.transport.duckdb_backend import DuckDBReportBackend
from seriesforge.transport.http_client import HttpReportClient

__all__ = ["DuckDBReportBackend", "HttpReportClient", "ReportTransport"]
