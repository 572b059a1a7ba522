"""Unified paper client: parallel arXiv + Semantic Scholar search and lookup."""

import asyncio
import logging
from typing import Optional

from paperlens.core.config import Settings, load_settings
from paperlens.core.errors import PaperLensError, PaperNotFoundError, SearchCriteriaError, TitleMatchError
from paperlens.parsers.pdf_parser import PdfExtractor
from paperlens.search.arxiv import ArxivClient
from paperlens.search.dedup import best_title_match, deduplicate_papers
from paperlens.search.enrich import enrich_from_semantic_scholar
from paperlens.search.models import Paper, SearchParams, SearchResult
from paperlens.search.semantic_scholar import SemanticScholarClient

logger = logging.getLogger(__name__)

FUZZY_CANDIDATES = 20


class PaperClient:
    """Search and fetch papers across arXiv and Semantic Scholar.

    Source adapters and the PDF extractor are injected; defaults are built
    from :class:`Settings` when omitted.
    """

    def __init__(
        self,
        arxiv: Optional[ArxivClient] = None,
        semantic_scholar: Optional[SemanticScholarClient] = None,
        extractor: Optional[PdfExtractor] = None,
        settings: Optional[Settings] = None,
    ):
        settings = settings or load_settings()
        self.arxiv = arxiv or ArxivClient(
            timeout=settings.request_timeout,
            retry_count=settings.retry_count,
            retry_wait=settings.retry_wait_time,
        )
        self.semantic_scholar = semantic_scholar or SemanticScholarClient(
            api_key=settings.semantic_scholar_api_key,
            timeout=settings.request_timeout,
            retry_count=settings.retry_count,
            retry_wait=settings.retry_wait_time,
        )
        self.extractor = extractor or PdfExtractor()

    # ── Search ───────────────────────────────────────────────────

    async def search(self, params: SearchParams) -> SearchResult:
        """Search both sources in parallel and merge the results.

        A failing source is skipped; the call only fails when no paper is
        left after merging.
        """
        if params.is_id_lookup():
            return await self._fetch_by_id(params)

        if not params.has_search_criteria():
            raise SearchCriteriaError("No search criteria provided")

        arxiv_result, ss_result = await asyncio.gather(
            self.arxiv.search(params),
            self.semantic_scholar.search(params),
            return_exceptions=True,
        )

        result = SearchResult()
        merged: list[Paper] = []

        if isinstance(arxiv_result, BaseException):
            _raise_if_fatal(arxiv_result)
            logger.warning("arXiv search failed: %s", arxiv_result)
        elif arxiv_result:
            merged.extend(Paper.from_arxiv(entry) for entry in arxiv_result)
            result.sources.append("arxiv")

        if isinstance(ss_result, BaseException):
            _raise_if_fatal(ss_result)
            logger.warning("Semantic Scholar search failed: %s", ss_result)
        elif ss_result:
            merged.extend(Paper.from_semantic_scholar(record) for record in ss_result)
            result.sources.append("semantic_scholar")

        result.papers = deduplicate_papers(merged)
        if result.is_empty():
            raise PaperNotFoundError("No papers found matching the search criteria")

        logger.info(
            "Search returned %d papers from %s", len(result), ", ".join(result.sources)
        )
        return result

    async def search_by_title_fuzzy(self, title: str, threshold: float) -> Paper:
        """Find the single paper whose title best matches *title*.

        *threshold* is the largest accepted distance (0.0 = exact match).
        """
        params = SearchParams(title=title, max_results=FUZZY_CANDIDATES)
        result = await self.search(params)

        match = best_title_match(title, result.papers)
        if match is None:
            raise PaperNotFoundError(f"No candidates found for title '{title}'")
        if match.distance > threshold:
            raise TitleMatchError(title, match.paper.title, match.distance, threshold)

        logger.info("Matched '%s' (distance %.3f)", match.paper.title, match.distance)
        paper = match.paper
        if not paper.ss_id:
            await self._try_enrich(paper)
        return paper

    # ── Direct Fetch ─────────────────────────────────────────────

    async def fetch_by_arxiv_id(self, arxiv_id: str) -> Paper:
        """Fetch from arXiv, then best-effort enrich and extract text."""
        entry = await self.arxiv.fetch_by_id(arxiv_id)
        paper = Paper.from_arxiv(entry)
        await self._try_enrich(paper)
        await self._try_extract_text(paper)
        return paper

    async def fetch_by_ss_id(self, ss_id: str) -> Paper:
        record = await self.semantic_scholar.fetch_details(ss_id)
        paper = Paper.from_semantic_scholar(record)
        await self._try_extract_text(paper)
        return paper

    async def _fetch_by_id(self, params: SearchParams) -> SearchResult:
        result = SearchResult()
        if params.arxiv_id:
            result.papers.append(await self.fetch_by_arxiv_id(params.arxiv_id))
            result.sources.append("arxiv")
        if params.ss_id:
            result.papers.append(await self.fetch_by_ss_id(params.ss_id))
            result.sources.append("semantic_scholar")
        return result

    # ── Text Extraction ──────────────────────────────────────────

    async def extract_text(self, paper: Paper) -> None:
        """Extract PDF text into *paper*; errors propagate."""
        text = await self.extractor.extract_for_paper(paper)
        paper.set_extracted_text(text)

    async def _try_extract_text(self, paper: Paper) -> None:
        try:
            await self.extract_text(paper)
        except PaperLensError as exc:
            logger.warning("PDF extraction failed for '%s': %s", paper.title, exc)

    async def _try_enrich(self, paper: Paper) -> None:
        try:
            record = await self.semantic_scholar.search_exact_title(paper.title)
        except PaperLensError as exc:
            logger.debug("Semantic Scholar enrichment skipped for '%s': %s", paper.title, exc)
            return
        enrich_from_semantic_scholar(paper, record)

    # ── Citation Graph ───────────────────────────────────────────

    async def fetch_citations(self, paper: Paper) -> list[Paper]:
        """Papers citing *paper*; requires a Semantic Scholar ID."""
        records = await self.semantic_scholar.fetch_citations(paper.require_ss_id())
        return [Paper.from_semantic_scholar(r) for r in records]

    async def fetch_references(self, paper: Paper) -> list[Paper]:
        """Papers referenced by *paper*; requires a Semantic Scholar ID."""
        records = await self.semantic_scholar.fetch_references(paper.require_ss_id())
        return [Paper.from_semantic_scholar(r) for r in records]


def _raise_if_fatal(exc: BaseException) -> None:
    """Source failures are absorbed; anything outside the app's errors is not."""
    if not isinstance(exc, Exception):
        raise exc
