"""Planning follow-up queries from a discovery query and its values.

the discovery query tells us *which* dimension values exist; the follow-up
queries get each value's day-by-day series. two ways to do that:

  individual - one request per value, dimension swapped for the date.
               trivially correct, but 500 values means 500 requests.
  group      - keep the dimension, add the date, and OR as many values
               into each request as the url length and row cap allow.

both hand back a FilteredQueries and never touch the caller's query.
"""

import logging
from abc import ABC, abstractmethod

from seriesforge.dates import number_of_days
from seriesforge.models.query import ReportQuery
from seriesforge.models.report import Strategy
from seriesforge.planner.bucket_manager import BucketManager
from seriesforge.planner.filtered_queries import FilteredQueries
from seriesforge.planner.filters import add_and_operator, equality_filter

logger = logging.getLogger(__name__)

# api limits, overridable through Settings
MAX_RESULTS = 10000
MAX_QUERY_LEN = 2000
DATE_DIMENSION = "ga:date"


class QueryManager(ABC):
    """Builds the plan of follow-up queries for one report run."""

    def __init__(self, date_dimension: str = DATE_DIMENSION) -> None:
        self.date_dimension = date_dimension

    def plan_queries(
        self, base_query: ReportQuery, dimension_values: list[str] | None
    ) -> FilteredQueries:
        """Plan the follow-up queries for the discovered dimension values."""
        self._check_shape(base_query)
        query = base_query.model_copy(deep=True)
        dimension_name = query.dimension_name

        self.update_query(query)
        self.prepare(query)
        queries = FilteredQueries(query, self.get_filter_list(dimension_name, dimension_values))

        logger.debug(
            "Planned %d follow-up query(s) for %d %s values",
            len(queries),
            len(dimension_values or []),
            dimension_name or "(no dimension)",
        )
        return queries

    def _check_shape(self, query: ReportQuery) -> None:
        # the result table has exactly one label column and one value per cell
        if len(query.dimensions) > 1:
            raise ValueError(
                f"Expected a single dimension, got {len(query.dimensions)}: {query.dimensions}"
            )
        if len(query.metrics) != 1:
            raise ValueError(f"Expected a single metric, got {len(query.metrics)}: {query.metrics}")
        if number_of_days(query.start_date, query.end_date) < 1:
            raise ValueError(f"End date {query.end_date} is before start date {query.start_date}")

    def prepare(self, query: ReportQuery) -> None:
        """Hook that runs on the rewritten query before filters are built."""

    @abstractmethod
    def update_query(self, query: ReportQuery) -> None:
        """Rewrite the query (in place) into the shape of a follow-up query."""

    @abstractmethod
    def get_filter_list(self, dimension_name: str, dimension_values: list[str] | None) -> list[str]:
        """One filter string per follow-up query."""


class IndividualQueryManager(QueryManager):
    """One follow-up query per dimension value, grouped by day."""

    def update_query(self, query: ReportQuery) -> None:
        query.dimensions = [self.date_dimension]
        query.sort = [self.date_dimension]
        query.max_results = number_of_days(query.start_date, query.end_date)
        query.start_index = None
        add_and_operator(query)

    def get_filter_list(self, dimension_name: str, dimension_values: list[str] | None) -> list[str]:
        if not dimension_name or not dimension_values:
            return []
        return [equality_filter(dimension_name, value) for value in dimension_values]


class GroupQueryManager(QueryManager):
    """Packs many dimension values into each follow-up query.

    each response row is then (value, day), so the row cap divided by the
    number of days bounds how many values can share a request without the
    response spilling onto a second page.
    """

    def __init__(
        self,
        bucket_manager: BucketManager | None = None,
        max_results: int = MAX_RESULTS,
        max_query_len: int = MAX_QUERY_LEN,
        date_dimension: str = DATE_DIMENSION,
    ) -> None:
        super().__init__(date_dimension)
        self.bucket_manager = bucket_manager or BucketManager()
        self.max_results = max_results
        self.max_query_len = max_query_len

    def update_query(self, query: ReportQuery) -> None:
        dimension_and_date = [*query.dimensions, self.date_dimension]
        query.dimensions = dimension_and_date
        query.sort = list(dimension_and_date)
        query.max_results = self.max_results
        query.start_index = None
        add_and_operator(query)

    def prepare(self, query: ReportQuery) -> None:
        # budgets depend on the rewritten query, so they're measured here
        max_chars = self.get_filter_max_char_length(self.max_query_len, query)
        max_list = self.get_filter_max_list_size(self.max_results, query)
        logger.debug("Filter budget: %d encoded chars, %d values per query", max_chars, max_list)
        self.bucket_manager.init(max_chars, max_list)

    def get_filter_max_char_length(self, max_url_length: int, query: ReportQuery) -> int:
        """Encoded chars left for generated filters in the url.

        measured with the filters parameter present (empty if unset) so the
        fixed `&filters=` overhead is charged against the budget. the measured
        url comes from a copy; the query's own filter is never touched.
        """
        measured = query if query.filters is not None else query.model_copy(update={"filters": ""})
        return max_url_length - len(measured.encoded_url())

    def get_filter_max_list_size(self, max_results: int, query: ReportQuery) -> int:
        """How many values fit per query without the response paginating."""
        return max_results // number_of_days(query.start_date, query.end_date)

    def get_filter_list(self, dimension_name: str, dimension_values: list[str] | None) -> list[str]:
        if not dimension_name or not dimension_values:
            return []
        buckets = self.bucket_manager.get_buckets_of_filters(dimension_name, dimension_values)
        return [str(bucket) for bucket in buckets]


def get_query_manager(
    strategy: Strategy | str,
    max_results: int = MAX_RESULTS,
    max_query_len: int = MAX_QUERY_LEN,
    date_dimension: str = DATE_DIMENSION,
) -> QueryManager:
    """Pick the query manager for a strategy."""
    if Strategy(strategy) == Strategy.INDIVIDUAL:
        return IndividualQueryManager(date_dimension=date_dimension)
    return GroupQueryManager(
        max_results=max_results,
        max_query_len=max_query_len,
        date_dimension=date_dimension,
    )
