"""Query planning: filter encoding, bucket packing and follow-up query plans."""

from seriesforge.planner.bucket import Bucket
from seriesforge.planner.bucket_manager import BucketManager
from seriesforge.planner.filtered_queries import FilteredQueries
from seriesforge.planner.filters import Filter, FilterPredicate, parse_filter_expression
from seriesforge.planner.query_manager import (
    GroupQueryManager,
    IndividualQueryManager,
    QueryManager,
    get_query_manager,
)

__all__ = [
    "Bucket",
    "BucketManager",
    "Filter",
    "FilterPredicate",
    "FilteredQueries",
    "GroupQueryManager",
    "IndividualQueryManager",
    "QueryManager",
    "get_query_manager",
    "parse_filter_expression",
]
