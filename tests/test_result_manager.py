"""Tests for folding responses into result tables."""

from datetime import date

import pytest

from seriesforge.models.query import ReportEntry, ReportQuery, ReportResponse
from seriesforge.models.results import Results
from seriesforge.reconstruct.result_manager import (
    GroupResultManager,
    IndividualResultManager,
    get_result_manager,
)


def response(*rows: tuple, ci: float = 0.0) -> ReportResponse:
    """Build a response from (dimension..., metric) tuples."""
    return ReportResponse(
        entries=[
            ReportEntry(dimensions=list(row[:-1]), metric_value=str(row[-1]), confidence_interval=ci)
            for row in rows
        ]
    )


@pytest.fixture
def page_query() -> ReportQuery:
    return ReportQuery(
        ids="ga:1",
        metrics=["ga:visits"],
        dimensions=["ga:landingPage"],
        start_date=date(2010, 1, 1),
        end_date=date(2010, 1, 3),
    )


class TestFillHelpers:
    def test_back_fill(self):
        """One zero per skipped day."""
        row: list[float] = []
        GroupResultManager().back_fill_row("20100101", "20100105", row)
        assert row == [0.0] * 4

    def test_back_fill_across_months(self):
        """Skipped days are counted across month ends."""
        row: list[float] = []
        GroupResultManager().back_fill_row("20100629", "20100702", row)
        assert len(row) == 3

    def test_back_fill_same_or_earlier(self):
        """Nothing is added when no day was skipped."""
        row = [1.0]
        manager = GroupResultManager()
        manager.back_fill_row("20100101", "20100101", row)
        manager.back_fill_row("20100105", "20100101", row)
        assert row == [1.0]

    def test_forward_fill(self):
        """Short rows are padded to size."""
        row = [1.0]
        GroupResultManager().forward_fill_row(5, row)
        assert row == [1.0, 0.0, 0.0, 0.0, 0.0]

    def test_forward_fill_full_row(self):
        """Full or overlong rows are left alone."""
        row = [1.0, 2.0, 3.0]
        GroupResultManager().forward_fill_row(2, row)
        assert row == [1.0, 2.0, 3.0]

    def test_forward_fill_none(self):
        """A missing row is ignored."""
        IndividualResultManager().forward_fill_row(3, None)


class TestGroupResultManager:
    @pytest.mark.parametrize(
        "rows, expected",
        [
            # every day present
            (
                [("/a", "20100101", 1), ("/a", "20100102", 2), ("/a", "20100103", 3)],
                {"/a": [1.0, 2.0, 3.0]},
            ),
            # gap at the start
            ([("/a", "20100102", 2), ("/a", "20100103", 3)], {"/a": [0.0, 2.0, 3.0]}),
            # gap in the middle
            ([("/a", "20100101", 1), ("/a", "20100103", 3)], {"/a": [1.0, 0.0, 3.0]}),
            # gap at the end
            ([("/a", "20100101", 1)], {"/a": [1.0, 0.0, 0.0]}),
            # two values, each sparse
            (
                [("/a", "20100101", 1), ("/a", "20100103", 3), ("/b", "20100102", 2)],
                {"/a": [1.0, 0.0, 3.0], "/b": [0.0, 2.0, 0.0]},
            ),
            # a value whose only day is the last one
            (
                [("/a", "20100101", 1), ("/b", "20100103", 7)],
                {"/a": [1.0, 0.0, 0.0], "/b": [0.0, 0.0, 7.0]},
            ),
        ],
    )
    def test_rebuilds_dense_rows(self, page_query: ReportQuery, rows, expected):
        """Missing days come back as zeros in the right column."""
        results = Results().init_table(page_query, list(expected))
        GroupResultManager().fold_response(results, response(*rows))

        assert dict(zip(results.row_labels, results.rows)) == expected
        assert all(len(row) == results.num_cols for row in results.rows)

    def test_labels_from_response(self, page_query: ReportQuery):
        """Rows are labelled with the response's values, not discovery order."""
        results = Results().init_table(page_query, ["/b", "/a"])
        GroupResultManager().fold_response(
            results, response(("/a", "20100101", 1), ("/b", "20100101", 2))
        )
        assert results.row_labels == ["/a", "/b"]

    def test_multiple_responses_accumulate(self, page_query: ReportQuery):
        """Each response adds its own rows."""
        results = Results().init_table(page_query, ["/a", "/b"])
        manager = GroupResultManager()
        manager.fold_response(results, response(("/a", "20100102", 4)))
        manager.fold_response(results, response(("/b", "20100103", 5)))

        assert results.row_labels == ["/a", "/b"]
        assert results.rows == [[0.0, 4.0, 0.0], [0.0, 0.0, 5.0]]

    def test_empty_response(self, page_query: ReportQuery):
        """No entries, no rows."""
        results = Results().init_table(page_query, ["/a"])
        GroupResultManager().fold_response(results, ReportResponse())
        assert results.rows == []
        assert not results.is_sampled

    def test_sampling_is_sticky(self, page_query: ReportQuery):
        """A sampled response marks the table; later clean ones don't unmark it."""
        results = Results().init_table(page_query, ["/a", "/b"])
        manager = GroupResultManager()
        manager.fold_response(results, response(("/a", "20100101", 1), ci=0.3))
        manager.fold_response(results, response(("/b", "20100101", 1)))
        assert results.is_sampled

    def test_bad_date_raises(self, page_query: ReportQuery):
        """Malformed dates abort the fold."""
        results = Results().init_table(page_query, ["/a"])
        with pytest.raises(ValueError):
            GroupResultManager().fold_response(results, response(("/a", "2010-01-01", 1)))


class TestIndividualResultManager:
    def test_one_row_per_response(self, page_query: ReportQuery):
        """Each response is one row, labelled in discovery order."""
        results = Results().init_table(page_query, ["/a", "/b"])
        manager = IndividualResultManager()
        manager.fold_response(results, response(("20100101", 1), ("20100102", 0), ("20100103", 3)))
        manager.fold_response(results, response(("20100101", 0), ("20100102", 2), ("20100103", 0)))

        assert results.row_labels == ["/a", "/b"]
        assert results.rows == [[1.0, 0.0, 3.0], [0.0, 2.0, 0.0]]

    def test_empty_response_is_zero_row(self, page_query: ReportQuery):
        """A value with no rows at all becomes a row of zeros."""
        results = Results().init_table(page_query, ["a", "b"])
        manager = IndividualResultManager()
        manager.fold_response(results, response(("20100101", 1), ("20100102", 2), ("20100103", 3)))
        manager.fold_response(results, ReportResponse())

        assert results.rows[1] == [0.0, 0.0, 0.0]
        assert all(len(row) == results.num_cols for row in results.rows)

    def test_short_response_padded(self, page_query: ReportQuery):
        """A response missing trailing days is padded to the date range."""
        results = Results().init_table(page_query, ["a"])
        IndividualResultManager().fold_response(results, response(("20100101", 4)))
        assert results.rows == [[4.0, 0.0, 0.0]]

    def test_sampling(self, page_query: ReportQuery):
        """Any sampled entry marks the table."""
        results = Results().init_table(page_query, ["/a"])
        IndividualResultManager().fold_response(
            results, response(("20100101", 1), ("20100102", 1), ("20100103", 1), ci=1.5)
        )
        assert results.is_sampled


class TestGetResultManager:
    def test_by_name(self):
        """Strategies are picked by name."""
        assert isinstance(get_result_manager("individual"), IndividualResultManager)
        assert isinstance(get_result_manager("group"), GroupResultManager)
