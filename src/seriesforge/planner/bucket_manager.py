"""Greedy packing of per-value filters into as few buckets as possible.

this is classic first-fit decreasing: sort the filters biggest first, then
drop each one into the first bucket with room for it, opening a new bucket
when none has. not optimal (bin packing is np-hard, and we have two limits
per bin) but it's deterministic, fast, and in practice lands within a
bucket or two of the best you could do.
"""

import logging

from seriesforge.planner.bucket import Bucket
from seriesforge.planner.filters import Filter

logger = logging.getLogger(__name__)


class BucketManager:
    """Turns a dimension's values into buckets of OR-able filters.

    call init() with the two budgets before asking for buckets - the group
    query manager does this once per plan, since the char budget depends on
    the rest of the query.
    """

    def __init__(self) -> None:
        self.filter_max_char_length = 0
        self.filter_max_list_size = 0

    def init(self, filter_max_char_length: int, filter_max_list_size: int) -> None:
        self.filter_max_char_length = filter_max_char_length
        self.filter_max_list_size = filter_max_list_size

    def get_filters_ordered_by_size(
        self, dimension_name: str, dimension_values: list[str] | None
    ) -> list[Filter]:
        """One filter per value, biggest first.

        filters that are too big for even an empty bucket are dropped - they
        could never be sent, and aborting would block every other value too.
        that's lossy, so at least say so in the log.
        """
        if not dimension_values:
            return []

        filters = []
        dropped = 0
        for value in dimension_values:
            filter_ = Filter.create(dimension_name, value)
            if filter_.encoded_size <= self.filter_max_char_length:
                filters.append(filter_)
            else:
                dropped += 1

        if dropped:
            logger.warning(
                "Dropped %d of %d %s values whose filter exceeds %d encoded chars",
                dropped,
                len(dimension_values),
                dimension_name,
                self.filter_max_char_length,
            )

        # sorted() is stable, so equal sizes keep their discovery order
        return sorted(filters)

    def get_buckets_of_filters(
        self, dimension_name: str, dimension_values: list[str] | None
    ) -> list[Bucket]:
        """Pack the values' filters into buckets, first-fit largest-first."""
        filters = self.get_filters_ordered_by_size(dimension_name, dimension_values)
        if not filters:
            return []

        buckets = [
            Bucket.create(self.filter_max_char_length, self.filter_max_list_size, filters[0])
        ]
        for filter_ in filters[1:]:
            if not any(bucket.add(filter_) for bucket in buckets):
                buckets.append(
                    Bucket.create(self.filter_max_char_length, self.filter_max_list_size, filter_)
                )

        logger.debug(
            "Packed %d %s filters into %d bucket(s)", len(filters), dimension_name, len(buckets)
        )
        return buckets
