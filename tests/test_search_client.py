"""Tests for the parallel search orchestrator, using mocked source adapters."""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from paperlens.core.errors import (
    ArxivError,
    IdentifierUnavailableError,
    PaperNotFoundError,
    PdfExtractionError,
    SearchCriteriaError,
    SemanticScholarError,
    TitleMatchError,
)
from paperlens.parsers.models import PaperSection, PaperText
from paperlens.search.client import PaperClient
from paperlens.search.models import Paper, SearchParams


# ── Factories ────────────────────────────────────────────────────────


def _ax_entry(title, arxiv_id="1706.03762", authors=("Ashish Vaswani",)):
    return {
        "id": f"http://arxiv.org/abs/{arxiv_id}v1",
        "title": title,
        "summary": "abstract",
        "authors": list(authors),
        "published": "2017-06-12T00:00:00Z",
    }


def _s2_record(title, paper_id="s2-1", **kw):
    record = {"paperId": paper_id, "title": title, "citationCount": 7, "year": 2020}
    record.update(kw)
    return record


def _text():
    return PaperText(
        plain_text="body",
        sections=[PaperSection(index=0, title="Full Text", content="body")],
        extracted_at=datetime.now(timezone.utc),
        source_url="https://arxiv.org/pdf/1706.03762",
    )


@pytest.fixture()
def arxiv():
    mock = MagicMock()
    mock.search = AsyncMock(return_value=[])
    mock.fetch_by_id = AsyncMock()
    return mock


@pytest.fixture()
def s2():
    mock = MagicMock()
    mock.search = AsyncMock(return_value=[])
    mock.search_exact_title = AsyncMock(side_effect=PaperNotFoundError("no match"))
    mock.fetch_details = AsyncMock()
    mock.fetch_citations = AsyncMock(return_value=[])
    mock.fetch_references = AsyncMock(return_value=[])
    return mock


@pytest.fixture()
def extractor():
    mock = MagicMock()
    mock.extract_for_paper = AsyncMock(return_value=_text())
    return mock


@pytest.fixture()
def client(arxiv, s2, extractor):
    return PaperClient(arxiv=arxiv, semantic_scholar=s2, extractor=extractor)


# ── Validation ───────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_search_without_criteria_fails_before_io(client, arxiv, s2):
    with pytest.raises(SearchCriteriaError):
        await client.search(SearchParams())
    arxiv.search.assert_not_called()
    s2.search.assert_not_called()


# ── Fan-out & Merge ──────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_merge_orders_arxiv_first_and_dedups(client, arxiv, s2):
    arxiv.search.return_value = [_ax_entry("Attention Is All You Need")]
    s2.search.return_value = [
        _s2_record("Attention is all you need."),
        _s2_record("Deep Residual Learning", paper_id="s2-2"),
    ]

    result = await client.search(SearchParams(query="attention"))

    assert [p.title for p in result.papers] == ["Attention Is All You Need", "Deep Residual Learning"]
    assert result.papers[0].arxiv_id == "1706.03762"
    assert result.sources == ["arxiv", "semantic_scholar"]
    assert result.total_count is None


@pytest.mark.asyncio
async def test_sources_are_searched_concurrently(client, arxiv, s2):
    s2_started = asyncio.Event()

    async def arxiv_search(params):
        await s2_started.wait()
        return [_ax_entry("Attention Is All You Need")]

    async def s2_search(params):
        s2_started.set()
        return [_s2_record("Deep Residual Learning")]

    arxiv.search.side_effect = arxiv_search
    s2.search.side_effect = s2_search

    result = await asyncio.wait_for(client.search(SearchParams(query="attention")), timeout=1)

    assert result.sources == ["arxiv", "semantic_scholar"]


@pytest.mark.asyncio
async def test_one_source_failing_is_absorbed(client, arxiv, s2):
    arxiv.search.side_effect = ArxivError("boom")
    s2.search.return_value = [_s2_record("Deep Residual Learning")]

    result = await client.search(SearchParams(title="residual"))

    assert len(result) == 1
    assert result.sources == ["semantic_scholar"]


@pytest.mark.asyncio
async def test_both_sources_failing_raises_not_found(client, arxiv, s2):
    arxiv.search.side_effect = ArxivError("down")
    s2.search.side_effect = SemanticScholarError("rate limited")

    with pytest.raises(PaperNotFoundError):
        await client.search(SearchParams(query="anything"))


@pytest.mark.asyncio
async def test_both_sources_empty_raises_not_found(client):
    with pytest.raises(PaperNotFoundError):
        await client.search(SearchParams(query="nothing"))


@pytest.mark.asyncio
async def test_source_with_zero_records_not_listed(client, arxiv, s2):
    arxiv.search.return_value = [_ax_entry("Only Here")]
    result = await client.search(SearchParams(query="only"))
    assert result.sources == ["arxiv"]


# ── ID Lookup ────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_arxiv_id_lookup_enriches_and_extracts(client, arxiv, s2, extractor):
    arxiv.fetch_by_id.return_value = _ax_entry("Attention Is All You Need")
    s2.search_exact_title.side_effect = None
    s2.search_exact_title.return_value = _s2_record(
        "Attention Is All You Need", paper_id="204e", citationCount=120000
    )

    result = await client.search(SearchParams(arxiv_id="1706.03762"))

    paper = result.papers[0]
    assert result.sources == ["arxiv"]
    assert paper.ss_id == "204e"
    assert paper.citations_count == 120000
    assert paper.has_extracted_text()
    arxiv.search.assert_not_called()
    s2.search.assert_not_called()


@pytest.mark.asyncio
async def test_arxiv_id_lookup_swallows_enrich_and_extract_failures(client, arxiv, s2, extractor):
    arxiv.fetch_by_id.return_value = _ax_entry("Attention Is All You Need")
    s2.search_exact_title.side_effect = SemanticScholarError("down")
    extractor.extract_for_paper.side_effect = PdfExtractionError("bad pdf")

    result = await client.search(SearchParams(arxiv_id="1706.03762"))

    paper = result.papers[0]
    assert paper.ss_id == ""
    assert paper.extracted_text is None


@pytest.mark.asyncio
async def test_ss_id_lookup(client, s2):
    s2.fetch_details.return_value = _s2_record("Deep Residual Learning", paper_id="2c03")
    result = await client.search(SearchParams(ss_id="2c03"))
    assert result.papers[0].ss_id == "2c03"
    assert result.sources == ["semantic_scholar"]


@pytest.mark.asyncio
async def test_missing_arxiv_id_propagates_not_found(client, arxiv):
    arxiv.fetch_by_id.side_effect = PaperNotFoundError("arXiv paper not found: 0000.00000")
    with pytest.raises(PaperNotFoundError):
        await client.search(SearchParams(arxiv_id="0000.00000"))


# ── Fuzzy Title Search ───────────────────────────────────────────────


@pytest.mark.asyncio
async def test_fuzzy_search_accepts_close_match(client, arxiv, s2):
    s2.search.return_value = [
        _s2_record("Attention Is All You Need", paper_id="204e"),
        _s2_record("Attention Is Not Explanation", paper_id="other"),
    ]

    paper = await client.search_by_title_fuzzy("attention is all you need", threshold=0.3)

    assert paper.ss_id == "204e"
    params = s2.search.call_args.args[0]
    assert params.title == "attention is all you need"
    assert params.max_results == 20


@pytest.mark.asyncio
async def test_fuzzy_search_rejects_distant_match(client, s2):
    s2.search.return_value = [_s2_record("Generative Adversarial Nets")]

    with pytest.raises(TitleMatchError) as excinfo:
        await client.search_by_title_fuzzy("Attention Is All You Need", threshold=0.1)

    err = excinfo.value
    assert err.threshold == 0.1
    assert err.distance > 0.1
    assert "0.10" in str(err)
    assert "Generative Adversarial Nets" in str(err)


@pytest.mark.asyncio
async def test_fuzzy_search_enriches_arxiv_only_match(client, arxiv, s2):
    arxiv.search.return_value = [_ax_entry("Attention Is All You Need")]
    s2.search_exact_title.side_effect = None
    s2.search_exact_title.return_value = _s2_record("Attention Is All You Need", paper_id="204e")

    paper = await client.search_by_title_fuzzy("Attention Is All You Need", threshold=0.0)

    assert paper.arxiv_id == "1706.03762"
    assert paper.ss_id == "204e"


# ── Citation Graph ───────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_fetch_citations_requires_ss_id(client):
    with pytest.raises(IdentifierUnavailableError):
        await client.fetch_citations(Paper(title="arXiv only", arxiv_id="1"))


@pytest.mark.asyncio
async def test_fetch_references_maps_records(client, s2):
    s2.fetch_references.return_value = [_s2_record("Ref A", paper_id="a"), _s2_record("Ref B", paper_id="b")]
    refs = await client.fetch_references(Paper(title="t", ss_id="x"))
    assert [p.ss_id for p in refs] == ["a", "b"]
    s2.fetch_references.assert_awaited_once_with("x")
