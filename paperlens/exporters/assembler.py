"""Assemble an export record: resolve the paper, then run optional steps.

Every optional step is non-fatal. A failure is logged and appended to the
record's warning list, and the export continues. Only resolving the paper
itself can fail the export.
"""

import asyncio
import logging
from typing import Optional

from pydantic import BaseModel, Field

from paperlens.agents.analyzer import PaperAnalyzer
from paperlens.agents.models import LlmConfig
from paperlens.agents.providers import LlmProvider, build_provider
from paperlens.core.config import LlmProviderName, Settings, load_settings
from paperlens.core.errors import PaperLensError, PaperNotFoundError, SearchCriteriaError
from paperlens.exporters.models import ExportedPaper, ExportMetadata, ExportOptions
from paperlens.exporters.network import fetch_citations, fetch_references
from paperlens.search.client import PaperClient
from paperlens.search.models import Paper, SearchParams

logger = logging.getLogger(__name__)


class ExportRequest(BaseModel):
    """What to export and which optional steps to run."""

    arxiv_id: Optional[str] = None
    ss_id: Optional[str] = None
    title: Optional[str] = None
    threshold: float = Field(default=0.3, ge=0.0, le=1.0)

    extract_text: bool = False
    analyze: bool = False
    include_citations: bool = False
    include_references: bool = False
    extract_keywords: bool = False
    max_citations: int = Field(default=50, gt=0)

    provider: Optional[LlmProviderName] = None
    model: Optional[str] = None

    def needs_llm(self) -> bool:
        return self.analyze or self.extract_keywords


# ── Paper Resolution ─────────────────────────────────────────────────


async def resolve_paper(client: PaperClient, request: ExportRequest) -> Paper:
    """Find the target paper by ID, else by fuzzy title."""
    if request.arxiv_id or request.ss_id:
        if request.title:
            logger.info("Both an ID and a title given; resolving by ID")
        result = await client.search(SearchParams(arxiv_id=request.arxiv_id, ss_id=request.ss_id))
        if result.is_empty():
            raise PaperNotFoundError("Paper not found")
        return result.papers[0]

    if not request.title:
        raise SearchCriteriaError("Either an arXiv ID, a Semantic Scholar ID or a title is required")

    logger.info("Searching for paper: '%s' (threshold %.2f)", request.title, request.threshold)
    return await client.search_by_title_fuzzy(request.title, request.threshold)


# ── Export ───────────────────────────────────────────────────────────


async def export_paper(
    client: PaperClient,
    request: ExportRequest,
    settings: Optional[Settings] = None,
    provider: Optional[LlmProvider] = None,
) -> ExportedPaper:
    """Build an :class:`ExportedPaper` for *request*.

    *provider* overrides the LLM provider that would otherwise be built from
    *settings* and ``request.provider``.
    """
    paper = await resolve_paper(client, request)
    warnings: list[str] = []

    if request.extract_text and not paper.has_extracted_text():
        try:
            await client.extract_text(paper)
        except PaperLensError as exc:
            _warn(warnings, f"Text extraction failed: {exc}")

    analyzer: Optional[PaperAnalyzer] = None
    if request.needs_llm():
        try:
            analyzer = _build_analyzer(request, settings, provider)
        except PaperLensError as exc:
            _warn(warnings, f"LLM provider unavailable: {exc}")

    if request.analyze and not paper.is_analyzed() and analyzer is not None:
        try:
            await analyzer.analyze_and_update(paper)
        except PaperLensError as exc:
            _warn(warnings, f"LLM analysis failed: {exc}")

    exported = ExportedPaper(paper=paper)
    await _attach_network(client, paper, request, exported, warnings)

    if request.extract_keywords and analyzer is not None:
        try:
            keywords = await analyzer.extract_keywords(paper)
            context = await analyzer.extract_research_context(paper, keywords.keywords)
        except PaperLensError as exc:
            _warn(warnings, f"Keyword extraction failed: {exc}")
        else:
            exported.keywords = keywords
            exported.research_context = context

    exported.export_metadata = ExportMetadata(
        options=ExportOptions(
            analyzed=request.analyze,
            text_extracted=request.extract_text,
            citations_included=request.include_citations,
            references_included=request.include_references,
            keywords_extracted=request.extract_keywords,
            max_citations=request.max_citations,
            llm_provider=analyzer.provider.name if analyzer else None,
            llm_model=analyzer.model if analyzer else None,
        ),
        warnings=warnings,
    )
    logger.info("Export of '%s' finished with %d warnings", paper.title, len(warnings))
    return exported


async def _attach_network(
    client: PaperClient,
    paper: Paper,
    request: ExportRequest,
    exported: ExportedPaper,
    warnings: list[str],
) -> None:
    """Fetch citations and references concurrently; each may fail alone."""
    steps = {}
    if request.include_citations:
        steps["citations"] = fetch_citations(client, paper, request.max_citations)
    if request.include_references:
        steps["references"] = fetch_references(client, paper, request.max_citations)
    if not steps:
        return

    results = await asyncio.gather(*steps.values(), return_exceptions=True)
    for name, result in zip(steps, results):
        if isinstance(result, Exception):
            _warn(warnings, f"{name.capitalize()} fetch failed: {result}")
        elif isinstance(result, BaseException):
            raise result
        else:
            setattr(exported, name, result)


def _build_analyzer(
    request: ExportRequest,
    settings: Optional[Settings],
    provider: Optional[LlmProvider],
) -> PaperAnalyzer:
    if provider is None:
        provider = build_provider(settings or load_settings(), request.provider)
    return PaperAnalyzer(provider, LlmConfig(model=request.model or ""))


def _warn(warnings: list[str], message: str) -> None:
    logger.warning("%s", message)
    warnings.append(message)
