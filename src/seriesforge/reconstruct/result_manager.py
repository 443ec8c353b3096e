"""Folding api responses into the dense result table.

the api never returns rows whose metric is zero. ask for visits by
(source, date) and a source with no visits on the 3rd simply has no row for
the 3rd. the group manager has to notice the gap and put the zero back,
otherwise every later value in that row lands in the wrong column.
"""

import logging
from abc import ABC, abstractmethod

from seriesforge.dates import days_between, next_result_date, to_result_date_format
from seriesforge.models.query import ReportResponse
from seriesforge.models.report import Strategy
from seriesforge.models.results import Results

logger = logging.getLogger(__name__)


class ResultManager(ABC):
    """Folds one response at a time into a Results table."""

    @abstractmethod
    def fold_response(self, results: Results, response: ReportResponse) -> None:
        """Add the rows from one response to the table."""

    def forward_fill_row(self, row_size: int, row: list[float] | None) -> None:
        """Pad the tail of a row with zeros up to row_size."""
        if row is None or row_size < 0:
            return
        remaining = row_size - len(row)
        if remaining > 0:
            row.extend([0.0] * remaining)


class IndividualResultManager(ResultManager):
    """One response is one row: the per-day series for a single value.

    responses must arrive in the same order as the discovered values, since
    the row label is picked by position.
    """

    def fold_response(self, results: Results, response: ReportResponse) -> None:
        row = [float(entry.metric_value) for entry in response.entries]
        # a value with no visits at all can come back with no rows
        self.forward_fill_row(results.num_cols, row)
        results.add_row(row)
        results.mark_sampled(response.is_sampled)


class GroupResultManager(ResultManager):
    """One response holds many values, each as a run of (value, date) rows.

    rows come sorted by value then date, so a change of value marks the end
    of one series and the start of the next.
    """

    def fold_response(self, results: Results, response: ReportResponse) -> None:
        start_date = to_result_date_format(results.column_dates[0])
        num_cols = results.num_cols

        dimension_value: str | None = None
        expected_date = start_date
        row: list[float] | None = None

        for entry in response.entries:
            value, found_date = entry.dimensions[0], entry.dimensions[1]

            if value != dimension_value:
                # new series - close out the previous one
                if row is not None:
                    self.forward_fill_row(num_cols, row)
                    results.add_row(row, dimension_value)
                row = []
                dimension_value = value
                expected_date = start_date

            if found_date != expected_date:
                self.back_fill_row(expected_date, found_date, row)

            row.append(float(entry.metric_value))
            expected_date = next_result_date(found_date)

        if row is not None:
            self.forward_fill_row(num_cols, row)
            results.add_row(row, dimension_value)

        results.mark_sampled(response.is_sampled)

    def back_fill_row(self, expected_date: str, found_date: str, row: list[float]) -> None:
        """Pad with a zero for every day skipped between expected and found.

        a found date at or before the expected one adds nothing - out of
        order rows aren't something we can repair, only not make worse.
        """
        missing = days_between(expected_date, found_date)
        if missing > 0:
            row.extend([0.0] * missing)
        elif missing < 0:
            logger.debug("Row for %s went backwards in time, not back-filling", found_date)


def get_result_manager(strategy: Strategy | str) -> ResultManager:
    """Pick the result manager matching a query planning strategy."""
    if Strategy(strategy) == Strategy.INDIVIDUAL:
        return IndividualResultManager()
    return GroupResultManager()
