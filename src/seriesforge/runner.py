"""Driving a report run end to end.

discover the dimension values, plan the follow-up queries, send them one
at a time and fold each response into the table. nothing is retried; the
first failed request ends the run and the partial table is thrown away,
because a table with a silently missing row looks exactly like a good one.
"""

import logging

from seriesforge.config import Settings, get_settings
from seriesforge.exceptions import PlanExecutionError, ProtocolError, TransportError
from seriesforge.models.query import ReportQuery
from seriesforge.models.report import Strategy
from seriesforge.models.results import Results
from seriesforge.planner.filtered_queries import FilteredQueries
from seriesforge.planner.query_manager import QueryManager, get_query_manager
from seriesforge.reconstruct.result_manager import ResultManager, get_result_manager
from seriesforge.transport.base import ReportTransport

logger = logging.getLogger(__name__)


class ReportRunner:
    """Runs a report query through one planning strategy.

    Args:
        transport: Anything with send_query(query) -> ReportResponse.
        strategy: "group" packs many values per request, "individual" sends
            one request per value.
        settings: Api limits and the date dimension; defaults to get_settings().
    """

    def __init__(
        self,
        transport: ReportTransport,
        strategy: Strategy | str = Strategy.GROUP,
        settings: Settings | None = None,
    ) -> None:
        self.transport = transport
        self.strategy = Strategy(strategy)
        self.settings = settings or get_settings()

    def _query_manager(self) -> QueryManager:
        # fresh per run - the group manager holds budgets for the current query
        return get_query_manager(
            self.strategy,
            max_results=self.settings.max_results_per_request,
            max_query_len=self.settings.max_url_length,
            date_dimension=self.settings.date_dimension,
        )

    def _result_manager(self) -> ResultManager:
        return get_result_manager(self.strategy)

    def discover_dimension_values(self, query: ReportQuery) -> list[str]:
        """Send the query as-is and collect the first dimension of every row."""
        logger.debug("Discovering %s values", query.dimension_name)
        response = self.transport.send_query(query)
        values = [entry.dimensions[0] for entry in response.entries if entry.dimensions]
        logger.info("Found %d %s values", len(values), query.dimension_name)
        return values

    def plan(self, query: ReportQuery, dimension_values: list[str]) -> FilteredQueries:
        """Plan the follow-up queries without sending anything."""
        return self._query_manager().plan_queries(query, dimension_values)

    def run(self, query: ReportQuery) -> Results:
        """Run the whole report and return the dense table.

        a failing discovery query raises its TransportError/ProtocolError
        as-is; a failing follow-up raises PlanExecutionError saying which one.
        """
        values = self.discover_dimension_values(query)
        results = Results().init_table(query, values)
        plan = self.plan(query, values)
        total = len(plan)
        result_manager = self._result_manager()
        logger.info("Running %d follow-up query(s) with the %s strategy", total, self.strategy.value)

        for index, planned in enumerate(plan):
            logger.debug("Query %d/%d: %s", index + 1, total, planned.filters)
            try:
                response = self.transport.send_query(planned)
            except (TransportError, ProtocolError) as e:
                logger.error("Query %d/%d failed: %s", index + 1, total, planned.encoded_url())
                raise PlanExecutionError(index, total, planned) from e
            result_manager.fold_response(results, response)

        return results
