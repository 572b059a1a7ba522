"""Title normalization, exact deduplication and fuzzy title matching."""

import logging
import re
from typing import NamedTuple, Optional, Sequence

from rapidfuzz.distance import Levenshtein

from paperlens.search.models import Paper

logger = logging.getLogger(__name__)


class TitleMatch(NamedTuple):
    """Best fuzzy candidate and its distance from the query (0 = identical)."""

    paper: Paper
    distance: float


# ── Public API ───────────────────────────────────────────────────────


def deduplicate_papers(papers: Sequence[Paper]) -> list[Paper]:
    """Drop papers whose normalized title was already seen.

    Order is preserved and the first occurrence wins, so when arXiv results
    precede Semantic Scholar results the arXiv record is kept.
    """
    seen: set[str] = set()
    unique: list[Paper] = []

    for paper in papers:
        key = normalize_title(paper.title)
        if key in seen:
            logger.debug("Dropping duplicate title: %s", paper.title)
            continue
        seen.add(key)
        unique.append(paper)

    if len(unique) < len(papers):
        logger.info(
            "Deduplication: %d papers → %d unique (%d duplicates removed)",
            len(papers),
            len(unique),
            len(papers) - len(unique),
        )
    return unique


def best_title_match(query: str, candidates: Sequence[Paper]) -> Optional[TitleMatch]:
    """Return the candidate whose title is closest to *query*.

    Ties resolve to the earliest candidate. Returns None for no candidates.
    """
    best: Optional[TitleMatch] = None
    for paper in candidates:
        distance = title_distance(query, paper.title)
        if best is None or distance < best.distance:
            best = TitleMatch(paper, distance)
    return best


# ── Helpers ──────────────────────────────────────────────────────────


_PUNCT_RE = re.compile(r"[^\w\s]|_", re.UNICODE)
_SPACE_RE = re.compile(r"\s+")


def normalize_title(title: str) -> str:
    """Lowercase, strip punctuation, collapse whitespace."""
    t = title.lower()
    t = _PUNCT_RE.sub("", t)
    t = _SPACE_RE.sub(" ", t).strip()
    return t


def title_distance(t1: str, t2: str) -> float:
    """Normalized Levenshtein distance between two titles (0.0–1.0)."""
    return 1.0 - Levenshtein.normalized_similarity(normalize_title(t1), normalize_title(t2))
