"""Pydantic models for report queries and the responses they produce.

the query model doubles as the url builder. that's on purpose: the planner
sizes filters against the length of the url this model renders, so the
transport must send exactly encoded_url() - any second code path that builds
urls differently would quietly break the budget math.
"""

from datetime import date
from urllib.parse import quote_plus

from pydantic import BaseModel, Field

from seriesforge.config import DEFAULT_BASE_URL


def encode_component(value: str) -> str:
    """Percent-encode a query string value exactly the way encoded_url() does."""
    return quote_plus(value)


class ReportQuery(BaseModel):
    """A single request to the reporting api.

    mirrors the api's own parameters one-for-one. None means "leave the
    parameter off the url", which matters for filters: an empty string still
    renders as `filters=` and costs characters.
    """

    base_url: str = DEFAULT_BASE_URL
    ids: str
    metrics: list[str]
    dimensions: list[str] = Field(default_factory=list)
    sort: list[str] = Field(default_factory=list)
    filters: str | None = None
    start_date: date
    end_date: date
    max_results: int | None = None
    start_index: int | None = None  # 1-based, like the api

    @property
    def dimension_name(self) -> str:
        """The first (and for our purposes only) dimension, or "" if none."""
        return self.dimensions[0] if self.dimensions else ""

    @property
    def metric_name(self) -> str:
        return self.metrics[0] if self.metrics else ""

    def query_params(self) -> list[tuple[str, str]]:
        """Url parameters in the order they're rendered."""
        params = [("ids", self.ids)]
        if self.dimensions:
            params.append(("dimensions", ",".join(self.dimensions)))
        params.append(("metrics", ",".join(self.metrics)))
        if self.filters is not None:
            params.append(("filters", self.filters))
        if self.sort:
            params.append(("sort", ",".join(self.sort)))
        params.append(("start-date", self.start_date.isoformat()))
        params.append(("end-date", self.end_date.isoformat()))
        if self.start_index is not None:
            params.append(("start-index", str(self.start_index)))
        if self.max_results is not None:
            params.append(("max-results", str(self.max_results)))
        return params

    def encoded_url(self) -> str:
        """The full request url, exactly as the transport sends it."""
        query_string = "&".join(
            f"{name}={encode_component(value)}" for name, value in self.query_params()
        )
        return f"{self.base_url}?{query_string}"


class ReportEntry(BaseModel):
    """One row of a report response.

    dimensions come back in query order - for grouped queries that's
    (value, date), for per-value queries it's just (date,).
    """

    dimensions: list[str]
    metric_value: str  # the api sends numbers as strings
    confidence_interval: float = 0.0  # nonzero means the value was estimated

    @property
    def is_sampled(self) -> bool:
        return self.confidence_interval != 0


class ReportResponse(BaseModel):
    """An ordered page of entries returned for one query."""

    entries: list[ReportEntry] = Field(default_factory=list)
    contains_sampled_data: bool = False
    total_results: int | None = None

    @property
    def is_sampled(self) -> bool:
        return self.contains_sampled_data or any(e.is_sampled for e in self.entries)
