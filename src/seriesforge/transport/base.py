"""The interface every report transport implements."""

from typing import Protocol

from seriesforge.models.query import ReportQuery, ReportResponse


class ReportTransport(Protocol):
    """Sends one query and returns its (single page) response.

    implementations raise TransportError when no response came back and
    ProtocolError when the api rejected the query. they don't retry - that
    call belongs to whoever drives the plan.
    """

    def send_query(self, query: ReportQuery) -> ReportResponse: ...

    def close(self) -> None: ...
