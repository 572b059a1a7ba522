"""Citation/reference network fetch and summary statistics."""

import logging
from collections import Counter
from typing import Optional

from paperlens.exporters.models import (
    CitationData,
    CitationStatistics,
    ReferenceData,
    ReferenceStatistics,
)
from paperlens.search.client import PaperClient
from paperlens.search.models import Paper, PaperSummary

logger = logging.getLogger(__name__)

TOP_VENUES = 10
MOST_INFLUENTIAL = 5


# ── Statistics ───────────────────────────────────────────────────────


def count_by_year(summaries: list[PaperSummary]) -> dict[int, int]:
    """Occurrences per publication year; unknown years (0) are skipped."""
    counts: dict[int, int] = {}
    for s in summaries:
        if s.year > 0:
            counts[s.year] = counts.get(s.year, 0) + 1
    return counts


def top_venues(summaries: list[PaperSummary], limit: int = TOP_VENUES) -> list[tuple[str, int]]:
    """Most frequent non-empty venues; equal counts keep first-seen order."""
    return Counter(s.venue for s in summaries if s.venue).most_common(limit)


def citation_statistics(summaries: list[PaperSummary]) -> CitationStatistics:
    avg = (
        sum(s.citation_count for s in summaries) / len(summaries) if summaries else 0.0
    )
    ranked = sorted(summaries, key=lambda s: s.citation_count, reverse=True)
    return CitationStatistics(
        by_year=count_by_year(summaries),
        top_venues=top_venues(summaries),
        avg_citation_count=avg,
        most_influential=[s.title for s in ranked[:MOST_INFLUENTIAL]],
    )


def reference_statistics(summaries: list[PaperSummary]) -> ReferenceStatistics:
    years = [s.year for s in summaries if s.year > 0]
    return ReferenceStatistics(
        by_year=count_by_year(summaries),
        year_range=(min(years), max(years)) if years else None,
        top_venues=top_venues(summaries),
    )


# ── Fetch ────────────────────────────────────────────────────────────


async def fetch_citations(
    client: PaperClient, paper: Paper, max_count: int
) -> Optional[CitationData]:
    """Up to *max_count* citing papers in provider order, or None if there are none.

    Raises IdentifierUnavailableError when the paper has no Semantic Scholar ID.
    """
    citing = await client.fetch_citations(paper)
    summaries = [PaperSummary.from_paper(p) for p in citing[:max_count]]
    if not summaries:
        logger.info("No citations found for '%s'", paper.title)
        return None

    logger.info(
        "Kept %d of %d citing papers (paper reports %d)",
        len(summaries),
        len(citing),
        paper.citations_count,
    )
    return CitationData(
        total_count=paper.citations_count,
        fetched_count=len(summaries),
        papers=summaries,
        statistics=citation_statistics(summaries),
    )


async def fetch_references(
    client: PaperClient, paper: Paper, max_count: int
) -> Optional[ReferenceData]:
    """Up to *max_count* referenced papers, or None if there are none."""
    cited = await client.fetch_references(paper)
    summaries = [PaperSummary.from_paper(p) for p in cited[:max_count]]
    if not summaries:
        logger.info("No references found for '%s'", paper.title)
        return None

    return ReferenceData(
        total_count=paper.references_count,
        fetched_count=len(summaries),
        papers=summaries,
        statistics=reference_statistics(summaries),
    )
