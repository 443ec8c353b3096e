"""The lazily built sequence of follow-up queries a plan sends."""

from collections.abc import Iterator

from seriesforge.models.query import ReportQuery


class FilteredQueries:
    """A base query plus a list of filters, producing one query per filter.

    each query is the base query with its filter replaced by the original
    filter (whatever the base query already had, AND-terminated) followed by
    one entry of the filter list. queries are built on demand and every one
    is an independent copy, so holding on to an earlier query is safe.

    works as a normal iterator, and also keeps the explicit cursor api
    (has_next/next_query/reset) for callers that want to replay a plan.
    """

    def __init__(self, query: ReportQuery, filter_list: list[str] | None = None) -> None:
        self.query = query
        self.original_filter = query.filters if query.filters is not None else ""
        self.filter_list: list[str] = filter_list if filter_list is not None else []
        self._cursor = 0

    @property
    def cursor(self) -> int:
        return self._cursor

    def get_filtered_query(self, index: int) -> ReportQuery | None:
        """The query for one entry of the filter list, or None if out of range."""
        if index < 0 or index >= len(self.filter_list):
            return None
        return self.query.model_copy(
            deep=True, update={"filters": self.original_filter + self.filter_list[index]}
        )

    def has_next(self) -> bool:
        return 0 <= self._cursor < len(self.filter_list)

    def next_query(self) -> ReportQuery | None:
        """The next query, or None once the plan is exhausted."""
        query = self.get_filtered_query(self._cursor)
        if query is not None:
            self._cursor += 1
        return query

    def reset(self) -> None:
        """Rewind so the same plan can be sent again."""
        self._cursor = 0

    def __len__(self) -> int:
        return len(self.filter_list)

    def __iter__(self) -> Iterator[ReportQuery]:
        return self

    def __next__(self) -> ReportQuery:
        query = self.next_query()
        if query is None:
            raise StopIteration
        return query
