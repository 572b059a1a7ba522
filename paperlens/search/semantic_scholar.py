"""Semantic Scholar Graph API client over httpx."""

import asyncio
import logging
from typing import Optional
from urllib.parse import quote

import httpx

from paperlens.core.errors import PaperNotFoundError, SemanticScholarError
from paperlens.search.models import SearchParams

logger = logging.getLogger(__name__)

S2_API_BASE = "https://api.semanticscholar.org/graph/v1"

_BASE_FIELDS = [
    "paperId",
    "externalIds",
    "title",
    "abstract",
    "url",
    "venue",
    "journal",
    "year",
    "publicationDate",
    "citationCount",
    "referenceCount",
    "influentialCitationCount",
    "isOpenAccess",
    "openAccessPdf",
]
# Search and edge endpoints only return authorId/name for authors
LIST_FIELDS = ",".join(_BASE_FIELDS + ["authors"])
DETAIL_FIELDS = ",".join(
    _BASE_FIELDS
    + [
        "citationStyles",
        "authors.authorId",
        "authors.name",
        "authors.hIndex",
        "authors.affiliations",
        "authors.paperCount",
        "authors.citationCount",
    ]
)

_SEARCH_LIMIT = 100
_EDGE_PAGE_SIZE = 1000
_MAX_EDGES = 1000
_RETRY_STATUSES = {429, 500, 502, 503, 504}


class SemanticScholarClient:
    """Search, detail lookup and citation graph traversal.

    Every method returns raw Graph API records (camelCase dicts) consumed by
    :meth:`Paper.from_semantic_scholar` and the enricher.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        retry_count: int = 3,
        retry_wait: float = 1.0,
        max_edges: int = _MAX_EDGES,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key
        self._timeout = timeout
        self._retry_count = retry_count
        self._retry_wait = retry_wait
        self._max_edges = max_edges
        self._transport = transport

    # ── Search ───────────────────────────────────────────────────

    async def search(self, params: SearchParams) -> list[dict]:
        query_text = self.build_query_text(params)
        query = {
            "query": query_text,
            "limit": min(params.max_results, _SEARCH_LIMIT),
            "fields": LIST_FIELDS,
        }
        if params.year:
            query["year"] = params.year
        if params.min_citations is not None:
            query["minCitationCount"] = params.min_citations

        logger.info("Semantic Scholar query: %s", query_text)
        data = await self._get("/paper/search", query)
        records = [r for r in data.get("data") or [] if r.get("title")]
        logger.info(
            "Semantic Scholar returned %d papers (total %s)", len(records), data.get("total")
        )
        return records

    async def search_exact_title(self, title: str) -> dict:
        """Best title match for *title* via the ``/paper/search/match`` endpoint."""
        data = await self._get("/paper/search/match", {"query": title, "fields": DETAIL_FIELDS})
        matches = data.get("data") or []
        if not matches:
            raise PaperNotFoundError(f"No Semantic Scholar title match for '{title}'")
        return matches[0]

    # ── Details & Graph ──────────────────────────────────────────

    async def fetch_details(self, paper_id: str) -> dict:
        return await self._get(f"/paper/{quote(paper_id, safe=':')}", {"fields": DETAIL_FIELDS})

    async def fetch_citations(self, paper_id: str) -> list[dict]:
        """Papers citing *paper_id*, in API order."""
        return await self._fetch_edges(paper_id, "citations", "citingPaper")

    async def fetch_references(self, paper_id: str) -> list[dict]:
        """Papers cited by *paper_id*, in API order."""
        return await self._fetch_edges(paper_id, "references", "citedPaper")

    async def _fetch_edges(self, paper_id: str, edge: str, key: str) -> list[dict]:
        path = f"/paper/{quote(paper_id, safe=':')}/{edge}"
        papers: list[dict] = []
        offset = 0

        while len(papers) < self._max_edges:
            limit = min(_EDGE_PAGE_SIZE, self._max_edges - len(papers))
            data = await self._get(path, {"fields": LIST_FIELDS, "offset": offset, "limit": limit})
            batch = data.get("data") or []
            for item in batch:
                paper = item.get(key)
                if paper and paper.get("paperId"):
                    papers.append(paper)
            if not batch or data.get("next") is None:
                break
            offset = data["next"]

        logger.info("Fetched %d %s for %s", len(papers), edge, paper_id)
        return papers

    # ── Query Builder ────────────────────────────────────────────

    def build_query_text(self, params: SearchParams) -> str:
        """Prefer the free-text query, then title, then author."""
        text = params.query or params.title or params.author
        if not text:
            raise SemanticScholarError("No search criteria provided")
        return text

    # ── HTTP with Retry ──────────────────────────────────────────

    async def _get(self, path: str, query: dict) -> dict:
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["x-api-key"] = self._api_key

        async with httpx.AsyncClient(
            base_url=S2_API_BASE,
            timeout=self._timeout,
            headers=headers,
            transport=self._transport,
        ) as client:
            for attempt in range(1, self._retry_count + 1):
                try:
                    response = await client.get(path, params=query)
                except httpx.TransportError as exc:
                    error: str = str(exc)
                else:
                    if response.status_code == 404:
                        raise PaperNotFoundError(f"Semantic Scholar: not found ({path})")
                    if response.status_code not in _RETRY_STATUSES:
                        if response.is_error:
                            raise SemanticScholarError(
                                f"HTTP {response.status_code} for {path}: {response.text[:200]}"
                            )
                        try:
                            data = response.json()
                        except ValueError as exc:
                            raise SemanticScholarError(f"Invalid JSON from {path}: {exc}") from exc
                        if not isinstance(data, dict):
                            raise SemanticScholarError(
                                f"Unexpected payload from {path}: {type(data).__name__}"
                            )
                        return data
                    error = f"HTTP {response.status_code}"

                if attempt == self._retry_count:
                    raise SemanticScholarError(f"Request to {path} failed: {error}")
                wait = self._retry_wait * 2 ** (attempt - 1)
                logger.warning(
                    "Semantic Scholar request failed (attempt %d/%d): %s, retrying in %.1fs",
                    attempt,
                    self._retry_count,
                    error,
                    wait,
                )
                await asyncio.sleep(wait)
        raise SemanticScholarError(f"Request to {path} failed")  # pragma: no cover
