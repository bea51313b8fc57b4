"""
Typo-tolerant search over tagged files.

Every tagged file is scored against the query: for each query term, take
the smallest edit distance between the term and the file's path or any of
its tags, then add those minima up. The lowest totals are returned.

This is a full scan (entries x terms x tags). A personal tag store is small
enough that nothing smarter is needed.
"""

from typing import Container, Optional, Sequence

from rapidfuzz.distance import Levenshtein

from .stores import TagStore
from .types import SearchResult

DEFAULT_LIMIT = 10


def edit_distance(a: str, b: str) -> int:
    """Unit-cost insert/delete/substitute distance, case-sensitive."""
    return Levenshtein.distance(a, b)


def score_entry(terms: Sequence[str], path: str, tags: Sequence[str]) -> int:
    """Cumulative distance of one file to the query terms."""
    total = 0
    for term in terms:
        best = edit_distance(term, path)
        for tag in tags:
            best = min(best, edit_distance(term, tag))
        total += best
    return total


def search(
    terms: Sequence[str],
    tag_store: TagStore,
    limit: int = DEFAULT_LIMIT,
    ignore: Optional[Container[str]] = None,
) -> list[SearchResult]:
    """
    Rank tagged files against query terms.

    Args:
        terms: Query terms, each matched independently
        tag_store: Files to rank
        limit: Maximum number of results
        ignore: Paths to leave out of the ranking

    Returns:
        Up to ``limit`` results, best (lowest score) first. Equal scores
        keep the tag store's order.
    """
    if limit <= 0:
        return []
    scores = [
        SearchResult(path, score_entry(terms, path, tags))
        for path, tags in tag_store.items()
        if ignore is None or path not in ignore
    ]
    scores.sort(key=lambda r: r.score)
    return scores[:limit]
