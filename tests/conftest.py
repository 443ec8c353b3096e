"""Pytest fixtures for SeriesForge tests."""

from collections.abc import Generator
from datetime import date
from pathlib import Path

import pytest

from seriesforge.config import Settings
from seriesforge.models.query import ReportQuery
from seriesforge.transport.duckdb_backend import DuckDBReportBackend


@pytest.fixture
def sample_reports_yaml() -> str:
    """Sample report YAML content for testing."""
    return """
reports:
  - name: visits_by_source
    description: "Daily visits per source"
    ids: "ga:12345"
    metric: ga:visits
    dimension: ga:source
    start_date: 2010-01-01
    end_date: 2010-01-05
    sort: -ga:visits

  - name: organic_sources
    description: "Organic sources, one request each"
    ids: "ga:12345"
    metric: ga:visits
    dimension: ga:source
    start_date: 2010-01-01
    end_date: 2010-01-05
    filters: ga:medium==organic
    sort: [-ga:visits]
    strategy: individual
"""


@pytest.fixture
def reports_dir(tmp_path: Path, sample_reports_yaml: str) -> Path:
    """Create a temporary reports directory with sample YAML."""
    reports_path = tmp_path / "reports"
    reports_path.mkdir()
    (reports_path / "test.yaml").write_text(sample_reports_yaml)
    return reports_path


@pytest.fixture
def sample_sessions_data() -> list[tuple]:
    """Sparse traffic: quiet days have no row at all.

    dense series over 2010-01-01..05 this should rebuild to:
        google      10 20 30 40 50
        bing         0  5  0  7  0
        newsletter   0  0  0  0  9
        shop;promo   3  0  0  0  0
    """
    return [
        ("google", "organic", date(2010, 1, 1), 10),
        ("google", "organic", date(2010, 1, 2), 20),
        ("google", "organic", date(2010, 1, 3), 30),
        ("google", "organic", date(2010, 1, 4), 40),
        ("google", "organic", date(2010, 1, 5), 50),
        ("bing", "organic", date(2010, 1, 2), 5),
        ("bing", "organic", date(2010, 1, 4), 7),
        ("newsletter", "email", date(2010, 1, 5), 9),
        ("shop;promo", "referral", date(2010, 1, 1), 3),
        # outside the range, and a row that sums to zero - neither shows up
        ("archive", "referral", date(2009, 12, 31), 4),
        ("ghost", "referral", date(2010, 1, 3), 0),
    ]


@pytest.fixture
def expected_series() -> dict[str, list[float]]:
    return {
        "google": [10.0, 20.0, 30.0, 40.0, 50.0],
        "bing": [0.0, 5.0, 0.0, 7.0, 0.0],
        "newsletter": [0.0, 0.0, 0.0, 0.0, 9.0],
        "shop;promo": [3.0, 0.0, 0.0, 0.0, 0.0],
    }


@pytest.fixture
def backend(sample_sessions_data: list[tuple]) -> Generator[DuckDBReportBackend, None, None]:
    """Create a DuckDB report backend with the sparse sessions table."""
    backend = DuckDBReportBackend("sessions")
    backend.create_table_from_data(
        ["source VARCHAR", "medium VARCHAR", "date DATE", "visits INTEGER"],
        sample_sessions_data,
    )
    yield backend
    backend.close()


@pytest.fixture
def sessions_csv(tmp_path: Path, sample_sessions_data: list[tuple]) -> Path:
    """The same sessions data as a CSV file."""
    lines = ["source,medium,date,visits"]
    for source, medium, day, visits in sample_sessions_data:
        lines.append(f"{source},{medium},{day.isoformat()},{visits}")
    path = tmp_path / "sessions.csv"
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def base_query() -> ReportQuery:
    """Discovery query: visits by source over five days."""
    return ReportQuery(
        ids="ga:12345",
        metrics=["ga:visits"],
        dimensions=["ga:source"],
        sort=["-ga:visits"],
        start_date=date(2010, 1, 1),
        end_date=date(2010, 1, 5),
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        max_results_per_request=10000,
        max_url_length=2000,
        date_dimension="ga:date",
    )
