"""End-to-end tests for ReportRunner."""

import pytest

from seriesforge.config import Settings
from seriesforge.exceptions import PlanExecutionError, ProtocolError, TransportError
from seriesforge.models.query import ReportQuery, ReportResponse
from seriesforge.runner import ReportRunner
from seriesforge.transport.duckdb_backend import DuckDBReportBackend


class RecordingTransport:
    """Wraps a transport, remembering each query and optionally failing one."""

    def __init__(self, inner, fail_on: int | None = None, error: Exception | None = None):
        self.inner = inner
        self.sent: list[ReportQuery] = []
        self.fail_on = fail_on
        self.error = error or TransportError("connection reset")

    def send_query(self, query: ReportQuery) -> ReportResponse:
        self.sent.append(query)
        if self.fail_on is not None and len(self.sent) == self.fail_on:
            raise self.error
        return self.inner.send_query(query)

    def close(self) -> None:
        pass


def as_table(results) -> dict[str, list[float]]:
    return dict(zip(results.row_labels, results.rows))


class TestReportRunner:
    @pytest.mark.parametrize("strategy", ["group", "individual"])
    def test_rebuilds_dense_series(
        self, backend, base_query, settings, expected_series, strategy
    ):
        """Both strategies rebuild the same dense table."""
        results = ReportRunner(backend, strategy, settings).run(base_query)

        assert as_table(results) == expected_series
        assert results.column_dates == [
            "2010-01-01",
            "2010-01-02",
            "2010-01-03",
            "2010-01-04",
            "2010-01-05",
        ]
        assert not results.is_sampled

    def test_individual_keeps_discovery_order(self, backend, base_query, settings):
        """Individual rows follow the discovered order."""
        results = ReportRunner(backend, "individual", settings).run(base_query)
        assert results.row_labels == ["google", "bing", "newsletter", "shop;promo"]

    def test_group_sends_one_follow_up(self, backend, base_query, settings):
        """Four values fit one grouped request."""
        transport = RecordingTransport(backend)
        ReportRunner(transport, "group", settings).run(base_query)
        # discovery + one follow-up
        assert len(transport.sent) == 2

    def test_individual_sends_one_per_value(self, backend, base_query, settings):
        """One follow-up per discovered value."""
        transport = RecordingTransport(backend)
        ReportRunner(transport, "individual", settings).run(base_query)
        assert len(transport.sent) == 5

    def test_group_split_by_row_cap(self, backend, base_query, expected_series):
        """A small row cap splits the values, the table stays the same."""
        transport = RecordingTransport(backend)
        settings = Settings(max_results_per_request=10)

        results = ReportRunner(transport, "group", settings).run(base_query)

        assert len(transport.sent) == 3
        assert as_table(results) == expected_series

    def test_base_filter_kept(self, backend, base_query, settings):
        """The report's own filter applies to every request."""
        query = base_query.model_copy(update={"filters": "ga:medium==organic"})
        results = ReportRunner(backend, "group", settings).run(query)
        assert as_table(results) == {
            "google": [10.0, 20.0, 30.0, 40.0, 50.0],
            "bing": [0.0, 5.0, 0.0, 7.0, 0.0],
        }

    def test_sampling_propagates(self, sample_sessions_data, base_query, settings):
        """Sampled responses mark the table."""
        with DuckDBReportBackend(confidence_interval=0.1) as backend:
            backend.create_table_from_data(
                ["source VARCHAR", "medium VARCHAR", "date DATE", "visits INTEGER"],
                sample_sessions_data,
            )
            results = ReportRunner(backend, "group", settings).run(base_query)
        assert results.is_sampled

    def test_nothing_discovered(self, backend, base_query, settings):
        """No values, no follow-ups, an empty table."""
        transport = RecordingTransport(backend)
        query = base_query.model_copy(update={"filters": "ga:source==nobody"})

        results = ReportRunner(transport, "group", settings).run(query)

        assert len(transport.sent) == 1
        assert results.rows == []
        assert results.num_cols == 5

    def test_follow_up_failure_aborts(self, backend, base_query):
        """The first failed follow-up ends the run and says which one."""
        transport = RecordingTransport(backend, fail_on=3)
        settings = Settings(max_results_per_request=10)

        with pytest.raises(PlanExecutionError) as exc_info:
            ReportRunner(transport, "group", settings).run(base_query)

        err = exc_info.value
        assert (err.index, err.total) == (1, 2)
        assert "Query 2 of 2" in str(err)
        assert isinstance(err.__cause__, TransportError)
        assert err.query.dimensions == ["ga:source", "ga:date"]
        # nothing is sent after the failure
        assert len(transport.sent) == 3

    def test_protocol_error_aborts(self, backend, base_query, settings):
        """Api rejections abort the same way."""
        transport = RecordingTransport(backend, fail_on=2, error=ProtocolError("bad", 400))
        with pytest.raises(PlanExecutionError) as exc_info:
            ReportRunner(transport, "individual", settings).run(base_query)
        assert exc_info.value.index == 0
        assert isinstance(exc_info.value.__cause__, ProtocolError)

    def test_discovery_failure_propagates(self, backend, base_query, settings):
        """A failed discovery raises the transport's own error."""
        transport = RecordingTransport(backend, fail_on=1)
        with pytest.raises(TransportError):
            ReportRunner(transport, "group", settings).run(base_query)

    def test_plan_without_io(self, base_query, settings):
        """plan() only needs values, not a working transport."""
        transport = RecordingTransport(None)
        runner = ReportRunner(transport, "individual", settings)

        plan = runner.plan(base_query, ["google", "bing"])

        assert len(plan) == 2
        assert transport.sent == []

    def test_unknown_strategy(self, backend, settings):
        """Strategies are checked up front."""
        with pytest.raises(ValueError):
            ReportRunner(backend, "batched", settings)
