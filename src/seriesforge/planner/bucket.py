"""Buckets of filters that fit in a single request."""

from dataclasses import dataclass, field

from seriesforge.planner.filters import OR_OPERATOR, Filter, operator_size


@dataclass(eq=False)
class Bucket:
    """A group of filters that will be OR'd together into one request.

    bounded two ways: the encoded characters the filters (plus the commas
    between them) may take up, and how many filters it may hold. char_length
    only tracks the filters themselves - the operator overhead is worked out
    in can_add since it depends on how many filters are already in.
    """

    max_char_length: int
    max_list_size: int
    filters: list[Filter] = field(default_factory=list)
    char_length: int = 0

    @classmethod
    def create(
        cls, max_char_length: int, max_list_size: int, initial: Filter | None = None
    ) -> "Bucket":
        """Create a bucket, optionally seeded with a first filter.

        the seed goes in no matter what. every filter has to land in some
        bucket, and a lone filter that blows the budget is better sent on
        its own than not at all.
        """
        bucket = cls(max_char_length=max_char_length, max_list_size=max_list_size)
        if initial is not None:
            bucket._append(initial)
        return bucket

    def can_add(self, filter_: Filter) -> bool:
        """Whether the filter fits in both the count and the char budget.

        each filter already in the bucket needs one operator between it and
        the next, so adding one more costs len(filters) operators in total.
        """
        projected = self.char_length + len(self.filters) * operator_size()
        return (
            len(self.filters) < self.max_list_size
            and projected + filter_.encoded_size <= self.max_char_length
        )

    def add(self, filter_: Filter) -> bool:
        """Add the filter if it fits. Returns whether it was added."""
        if not self.can_add(filter_):
            return False
        self._append(filter_)
        return True

    def _append(self, filter_: Filter) -> None:
        self.filters.append(filter_)
        self.char_length += filter_.encoded_size

    def __len__(self) -> int:
        return len(self.filters)

    def __eq__(self, other: object) -> bool:
        # same filters in the same order; the limits don't matter
        if not isinstance(other, Bucket):
            return NotImplemented
        return self.filters == other.filters

    def __str__(self) -> str:
        return OR_OPERATOR.join(f.expression for f in self.filters)
