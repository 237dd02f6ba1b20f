
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional
from app.schemas.search import SearchResult


def calculate_relevance(text: Optional[str], query: str) -> float:
    """Tiered string-match score in [0, 1].

    1.0 exact, 0.9 prefix, 0.7 substring, otherwise half the share of
    (distinct) query words found inside some word of the text.
    """
    if not text:
        return 0.0

    lower_text = text.lower()
    lower_query = query.strip().lower()
    if not lower_query:
        return 0.0

    if lower_text == lower_query:
        return 1.0
    if lower_text.startswith(lower_query):
        return 0.9
    if lower_query in lower_text:
        return 0.7

    words = lower_text.split()
    query_words = list(dict.fromkeys(lower_query.split()))
    matched = sum(1 for qw in query_words if any(qw in w for w in words))
    return 0.5 * (matched / len(query_words))


@dataclass
class MergedPage:
    results: List[SearchResult] = field(default_factory=list)
    total: int = 0
    cursor: Optional[str] = None


def merge_results(
    users: List[SearchResult],
    campaigns: List[SearchResult],
    orgs: List[SearchResult],
    offset: int,
    limit: int,
    matched: Optional[int] = None,
) -> MergedPage:
    """Sort all candidates by score and cut one page.

    ``matched`` is the number of rows the sources reported in total when they
    hold more than was fetched; ``total`` never drops below the candidates seen.
    """
    combined = [*users, *campaigns, *orgs]
    # sorted() is stable with reverse=True, so equal scores keep source order
    ranked = sorted(combined, key=lambda r: r.score, reverse=True)
    end = offset + limit
    total = max(len(ranked), matched or 0)

    return MergedPage(
        results=ranked[offset:end],
        total=total,
        cursor=str(end) if total > end else None,
    )
