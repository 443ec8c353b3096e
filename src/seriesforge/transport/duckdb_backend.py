"""A local stand-in for the reporting api, backed by DuckDB.

answers a ReportQuery the way the real api would: group by the requested
dimensions, sum the metric, drop the zero rows, sort, then page with
start-index/max-results. that last part is the whole point - a backend that
returned the zero rows would never exercise the gap filling.

useful for tests, for demos, and for replaying an exported dataset without
burning api quota. column names are the api names minus the prefix, so
`ga:source` reads the `source` column. the date dimension is special: it
reads a DATE column called `date` and renders it as YYYYMMDD like the api.
"""

import logging
import re
from pathlib import Path
from typing import Any

import duckdb
import sqlglot
from sqlglot import exp

from seriesforge.dates import list_of_dates, to_result_date_format
from seriesforge.exceptions import ProtocolError
from seriesforge.models.query import ReportEntry, ReportQuery, ReportResponse
from seriesforge.planner.filters import FilterPredicate, parse_filter_expression

logger = logging.getLogger(__name__)

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# filter operator -> sqlglot node (or function name for the string matchers)
_COMPARISONS = {
    "==": exp.EQ,
    "!=": exp.NEQ,
    ">": exp.GT,
    "<": exp.LT,
    ">=": exp.GTE,
    "<=": exp.LTE,
}
_FUNCTIONS = {
    "=@": ("contains", False),
    "!@": ("contains", True),
    "=~": ("regexp_matches", False),
    "!~": ("regexp_matches", True),
}


def column_name(api_name: str) -> str:
    """`ga:source` -> `source`, rejecting anything that isn't a bare identifier."""
    name = api_name.split(":")[-1]
    if not _IDENTIFIER_RE.match(name):
        raise ProtocolError(f"Invalid field name: {api_name}", status_code=400)
    return name


class DuckDBReportBackend:
    """Serve report queries from a DuckDB table.

    Args:
        table: Table holding one row per (dimensions..., date) with metric columns.
        database_path: Path to a DuckDB file, or None for in-memory.
        date_dimension: Api name of the per-day dimension.
        confidence_interval: If nonzero, every entry is reported as sampled
            with this interval. lets tests drive the sampling path.
    """

    def __init__(
        self,
        table: str = "sessions",
        database_path: str | None = None,
        date_dimension: str = "ga:date",
        confidence_interval: float = 0.0,
        dialect: str = "duckdb",
    ) -> None:
        self.table = column_name(table)
        self.database_path = database_path
        self.date_dimension = date_dimension
        self.confidence_interval = confidence_interval
        self.dialect = dialect
        self._conn: duckdb.DuckDBPyConnection | None = None  # lazy init

    @property
    def conn(self) -> duckdb.DuckDBPyConnection:
        """Get or create the DuckDB connection."""
        if self._conn is None:
            self._conn = duckdb.connect(self.database_path or ":memory:")
        return self._conn

    # ── loading ─────────────────────────────────────────────

    def load_csv(self, path: str | Path) -> None:
        """Load a CSV file as the backing table (replacing it)."""
        path = Path(path)
        self.conn.execute(f"""
            CREATE OR REPLACE TABLE {self.table} AS
            SELECT * FROM read_csv_auto('{path}')
        """)

    def load_parquet(self, path: str | Path) -> None:
        """Load a Parquet file as the backing table (replacing it)."""
        path = Path(path)
        self.conn.execute(f"""
            CREATE OR REPLACE TABLE {self.table} AS
            SELECT * FROM read_parquet('{path}')
        """)

    def create_table_from_data(self, columns: list[str], data: list[tuple[Any, ...]]) -> None:
        """Create the backing table from rows held in memory.

        columns are full definitions, e.g. ["source VARCHAR", "date DATE",
        "visits INTEGER"].
        """
        if not data:
            raise ValueError("Cannot create table from empty data")

        placeholders = ", ".join(["?"] * len(columns))
        self.conn.execute(f"CREATE OR REPLACE TABLE {self.table} ({', '.join(columns)})")
        self.conn.executemany(f"INSERT INTO {self.table} VALUES ({placeholders})", data)

    # ── compiling ───────────────────────────────────────────

    def _field(self, api_name: str) -> exp.Expression:
        """The sql expression producing an api dimension's value."""
        if api_name == self.date_dimension:
            return exp.Anonymous(
                this="strftime",
                expressions=[exp.column("date"), exp.Literal.string("%Y%m%d")],
            )
        return exp.column(column_name(api_name))

    def _predicate(self, predicate: FilterPredicate) -> exp.Expression:
        field = self._field(predicate.name)
        value = exp.Literal.string(predicate.value)
        if predicate.operator in _COMPARISONS:
            return _COMPARISONS[predicate.operator](this=field, expression=value)

        func, negate = _FUNCTIONS[predicate.operator]
        node: exp.Expression = exp.Anonymous(this=func, expressions=[field, value])
        return exp.not_(node) if negate else node

    def _filter_condition(self, filters: str | None) -> exp.Expression | None:
        try:
            groups = parse_filter_expression(filters)
        except ValueError as e:
            raise ProtocolError(str(e), status_code=400) from e
        if not groups:
            return None
        return exp.and_(
            *(exp.or_(*(self._predicate(p) for p in group)) for group in groups)
        )

    def _is_date_series(self, query: ReportQuery) -> bool:
        return query.dimensions == [self.date_dimension]

    def compile(self, query: ReportQuery) -> str:
        """Build the SQL that answers one report query.

        group by and order by use select-list positions, so the date
        dimension's strftime expression only has to be written once. a query
        grouped by the date alone is left unpaged here - send_query fills in
        the missing days first and pages afterwards.
        """
        if not query.metrics:
            raise ProtocolError("Query must name at least one metric", status_code=400)

        metric = exp.func("SUM", exp.column(column_name(query.metric_name)))
        fields = list(query.dimensions) + [query.metric_name]
        select = [self._field(name) for name in query.dimensions]
        select.append(metric.copy())

        date_range = exp.Between(
            this=exp.column("date"),
            low=exp.cast(exp.Literal.string(query.start_date.isoformat()), "DATE"),
            high=exp.cast(exp.Literal.string(query.end_date.isoformat()), "DATE"),
        )
        where = date_range
        condition = self._filter_condition(query.filters)
        if condition is not None:
            where = exp.and_(date_range, condition)

        stmt = sqlglot.select(*select).from_(self.table).where(where)

        if query.dimensions:
            stmt = stmt.group_by(*(str(i + 1) for i in range(len(query.dimensions))))
            if not self._is_date_series(query):
                # the api leaves out rows whose metric is zero
                stmt = stmt.having(exp.NEQ(this=metric, expression=exp.Literal.number(0)))

        order = []
        for name in query.sort:
            desc = name.startswith("-")
            name = name.lstrip("-")
            if name not in fields:
                raise ProtocolError(f"Sort field {name} is not in the query", status_code=400)
            order.append(f"{fields.index(name) + 1}{' DESC' if desc else ''}")
        if order:
            stmt = stmt.order_by(*order)

        if not self._is_date_series(query):
            if query.max_results is not None:
                stmt = stmt.limit(query.max_results)
            if query.start_index is not None and query.start_index > 1:
                stmt = stmt.offset(query.start_index - 1)

        return stmt.sql(dialect=self.dialect, pretty=True)

    # ── serving ─────────────────────────────────────────────

    def send_query(self, query: ReportQuery) -> ReportResponse:
        sql = self.compile(query)
        logger.debug("Running report sql:\n%s", sql)
        try:
            rows = self.conn.execute(sql).fetchall()
        except duckdb.Error as e:
            raise ProtocolError(f"Query failed: {e}", status_code=400) from e

        pairs = [([str(v) for v in row[:-1]], self._format_metric(row[-1])) for row in rows]
        if self._is_date_series(query):
            pairs = self._dense_date_series(query, pairs)

        entries = [
            ReportEntry(
                dimensions=dims,
                metric_value=value,
                confidence_interval=self.confidence_interval,
            )
            for dims, value in pairs
        ]
        return ReportResponse(
            entries=entries,
            contains_sampled_data=self.confidence_interval != 0,
            total_results=len(entries),
        )

    def _dense_date_series(
        self, query: ReportQuery, pairs: list[tuple[list[str], str]]
    ) -> list[tuple[list[str], str]]:
        """One row per day in range, zeros included, then paged.

        this is how the api answers a query whose only dimension is the
        date: every day shows up, quiet days with a "0".
        """
        by_day = {dims[0]: value for dims, value in pairs}
        days = [to_result_date_format(d) for d in list_of_dates(query.start_date, query.end_date)]
        if query.sort == [f"-{self.date_dimension}"]:
            days.reverse()
        dense = [([day], by_day.get(day, "0")) for day in days]

        start = (query.start_index or 1) - 1
        end = None if query.max_results is None else start + query.max_results
        return dense[start:end]

    @staticmethod
    def _format_metric(value: Any) -> str:
        # the api sends "12", not "12.0", for whole numbers
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value)

    def close(self) -> None:
        """Close the database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "DuckDBReportBackend":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
