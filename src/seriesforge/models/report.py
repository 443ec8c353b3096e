"""Pydantic models for report definitions.

a report definition is the yaml-facing description of a run: which metric,
broken out by which dimension, over which dates. it's deliberately narrower
than ReportQuery - one metric, one dimension - since that's all the
reconstruction code knows how to turn into a table.
"""

from datetime import date
from enum import Enum
from typing import Self

from pydantic import BaseModel, model_validator

from seriesforge.config import DEFAULT_BASE_URL
from seriesforge.models.query import ReportQuery


class Strategy(str, Enum):
    """How follow-up queries are planned and their responses folded.

    group packs many values into each request and is what you want almost
    always. individual is one request per value - simpler, and useful when
    a dimension has only a handful of values.
    """

    INDIVIDUAL = "individual"
    GROUP = "group"


class ReportDefinition(BaseModel):
    """A named report: one metric by one dimension over a date range."""

    name: str
    description: str | None = None
    ids: str  # table/view id, e.g. "ga:12345"
    metric: str
    dimension: str
    start_date: date
    end_date: date
    filters: str | None = None  # raw filter expression, kept on every request
    sort: list[str] = []
    max_results: int | None = None  # caps the discovery query, i.e. number of rows
    strategy: Strategy = Strategy.GROUP

    @model_validator(mode="after")
    def validate_date_range(self) -> Self:
        """Reject ranges that end before they start.

        number_of_days would come out zero or negative and the group planner
        divides by it - much nicer to fail here with the report name attached.
        """
        if self.end_date < self.start_date:
            raise ValueError(
                f"Report '{self.name}' ends ({self.end_date}) before it starts "
                f"({self.start_date})"
            )
        return self

    def to_query(self, base_url: str = DEFAULT_BASE_URL) -> ReportQuery:
        """Build the discovery query for this report."""
        return ReportQuery(
            base_url=base_url,
            ids=self.ids,
            metrics=[self.metric],
            dimensions=[self.dimension],
            sort=list(self.sort),
            filters=self.filters,
            start_date=self.start_date,
            end_date=self.end_date,
            max_results=self.max_results,
        )
