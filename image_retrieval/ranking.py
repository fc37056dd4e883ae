"""
Query result type and top-N ranking.
"""

from typing import Iterable, List, NamedTuple


class MatchResult(NamedTuple):
    """One database entry scored against a query (lower distance is better)."""

    image_path: str
    distance: float


def rank_results(results: Iterable[MatchResult], top_n: int) -> List[MatchResult]:
    """
    Sort results by ascending distance and keep the best top_n.

    Ties keep no particular order. A non-positive top_n yields an empty
    list.

    Args:
        results: Scored database entries.
        top_n: Maximum number of results to return.

    Returns:
        At most top_n results, closest first.
    """
    if top_n <= 0:
        return []
    return sorted(results, key=lambda r: r.distance)[:top_n]
