"""HTTP transport for the reporting api.

thin on purpose: GET exactly the url the query renders, turn the json into
a ReportResponse, and map failures onto our two error types. the planner's
char budget is measured against ReportQuery.encoded_url(), so we must not
let requests rebuild the query string (no params=..., ever).
"""

import logging
from typing import Any

import requests

from seriesforge.exceptions import ProtocolError, TransportError
from seriesforge.models.query import ReportEntry, ReportQuery, ReportResponse

logger = logging.getLogger(__name__)


class HttpReportClient:
    """Sends report queries over HTTP with an optional bearer token."""

    def __init__(
        self,
        token: str | None = None,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()

    def send_query(self, query: ReportQuery) -> ReportResponse:
        url = query.encoded_url()
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        logger.debug("GET %s", url)

        try:
            resp = self.session.get(url, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(f"Request failed: {e}") from e

        payload = self._decode(resp)
        if not resp.ok or "error" in payload:
            raise ProtocolError(self._error_message(resp, payload), status_code=resp.status_code)

        return self.parse_response(payload)

    def _decode(self, resp: requests.Response) -> dict[str, Any]:
        try:
            payload = resp.json()
        except ValueError as e:
            if not resp.ok:
                # error pages are often html - still report the status
                return {}
            raise ProtocolError(
                f"Response is not valid JSON: {e}", status_code=resp.status_code
            ) from e
        if not isinstance(payload, dict):
            raise ProtocolError("Response JSON is not an object", status_code=resp.status_code)
        return payload

    def _error_message(self, resp: requests.Response, payload: dict[str, Any]) -> str:
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return f"API error {error.get('code', resp.status_code)}: {error['message']}"
        return f"API error {resp.status_code}: {resp.reason}"

    @staticmethod
    def parse_response(payload: dict[str, Any]) -> ReportResponse:
        """Turn a core-reporting style payload into a ReportResponse.

        rows are flat lists lined up with columnHeaders; we pull the
        dimension columns in order and the first metric column. an empty
        report has no "rows" key at all rather than an empty list.
        """
        headers = payload.get("columnHeaders", [])
        dim_idx = [i for i, h in enumerate(headers) if h.get("columnType") == "DIMENSION"]
        metric_idx = [i for i, h in enumerate(headers) if h.get("columnType") == "METRIC"]
        rows = payload.get("rows") or []
        if rows and not metric_idx:
            raise ProtocolError("Response has rows but no metric column")

        entries = [
            ReportEntry(
                dimensions=[row[i] for i in dim_idx],
                metric_value=row[metric_idx[0]],
            )
            for row in rows
        ]
        return ReportResponse(
            entries=entries,
            contains_sampled_data=bool(payload.get("containsSampledData", False)),
            total_results=payload.get("totalResults"),
        )

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "HttpReportClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
