"""Rebuilding dense per-day series from sparse api responses."""

from seriesforge.reconstruct.result_manager import (
    GroupResultManager,
    IndividualResultManager,
    ResultManager,
    get_result_manager,
)

__all__ = [
    "GroupResultManager",
    "IndividualResultManager",
    "ResultManager",
    "get_result_manager",
]
