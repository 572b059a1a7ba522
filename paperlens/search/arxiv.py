"""arXiv search client: Atom API over httpx, parsed with feedparser."""

import asyncio
import logging
from typing import Optional

import feedparser
import httpx

from paperlens.core.errors import ArxivError, PaperNotFoundError
from paperlens.search.models import SearchParams

logger = logging.getLogger(__name__)

ARXIV_API_URL = "http://export.arxiv.org/api/query"

_MAX_RETRIES = 3
_RETRY_WAIT = 1.0


class ArxivClient:
    """Search arXiv and fetch entries by ID.

    Results are normalized entry dicts consumed by :meth:`Paper.from_arxiv`.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        retry_count: int = _MAX_RETRIES,
        retry_wait: float = _RETRY_WAIT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._timeout = timeout
        self._retry_count = retry_count
        self._retry_wait = retry_wait
        self._transport = transport

    # ── Public API ───────────────────────────────────────────────

    async def search(self, params: SearchParams) -> list[dict]:
        """Run a query built from *params*, newest submissions first."""
        query = self.build_query(params)
        logger.info("arXiv query: %s (max %d)", query, params.max_results)

        entries = await self._query(
            {
                "search_query": query,
                "start": 0,
                "max_results": params.max_results,
                "sortBy": "submittedDate",
                "sortOrder": "descending",
            }
        )
        logger.info("arXiv returned %d entries", len(entries))
        return entries

    async def fetch_by_id(self, arxiv_id: str) -> dict:
        entries = await self._query({"id_list": arxiv_id, "max_results": 1})
        if not entries:
            raise PaperNotFoundError(f"arXiv paper not found: {arxiv_id}")
        return entries[0]

    # ── Query Builder ────────────────────────────────────────────

    def build_query(self, params: SearchParams) -> str:
        """Combine field filters with AND; categories are OR-ed together."""
        conditions: list[str] = []
        if params.title:
            conditions.append(f'ti:"{params.title}"')
        if params.author:
            conditions.append(f'au:"{params.author}"')
        if params.abstract_contains:
            conditions.append(f'abs:"{params.abstract_contains}"')
        if params.query:
            conditions.extend(f"all:{word}" for word in params.query.split())

        if not conditions:
            raise ArxivError("No search criteria provided")

        if params.categories:
            cats = " OR ".join(f"cat:{c}" for c in params.categories)
            conditions.append(f"({cats})" if len(params.categories) > 1 else cats)

        return " AND ".join(conditions)

    # ── HTTP with Retry ──────────────────────────────────────────

    async def _query(self, query_params: dict) -> list[dict]:
        body = await self._get_with_retry(query_params)
        feed = await asyncio.to_thread(feedparser.parse, body)
        if feed.bozo and not feed.entries:
            raise ArxivError(f"Unreadable arXiv feed: {feed.bozo_exception}")

        entries = []
        for entry in feed.entries:
            if "/api/errors" in entry.get("id", ""):
                raise ArxivError(entry.get("summary", "unknown arXiv API error"))
            parsed = _parse_entry(entry)
            if parsed:
                entries.append(parsed)
        return entries

    async def _get_with_retry(self, query_params: dict) -> str:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            for attempt in range(1, self._retry_count + 1):
                try:
                    response = await client.get(ARXIV_API_URL, params=query_params)
                    response.raise_for_status()
                    return response.text
                except httpx.HTTPError as exc:
                    if attempt == self._retry_count:
                        raise ArxivError(f"arXiv request failed: {exc}") from exc
                    wait = self._retry_wait * 2 ** (attempt - 1)
                    logger.warning(
                        "arXiv request failed (attempt %d/%d): %s, retrying in %.1fs",
                        attempt,
                        self._retry_count,
                        exc,
                        wait,
                    )
                    await asyncio.sleep(wait)
        raise ArxivError("arXiv request failed")  # pragma: no cover


# ── Entry → dict ─────────────────────────────────────────────────────


def _parse_entry(entry) -> Optional[dict]:
    """Flatten a feedparser entry into the fields Paper.from_arxiv reads."""
    title = entry.get("title")
    if not title:
        return None

    primary = entry.get("arxiv_primary_category") or {}

    return {
        "id": entry.get("id", ""),
        "title": title,
        "summary": entry.get("summary", ""),
        "authors": [a.get("name") for a in entry.get("authors", []) if a.get("name")],
        "published": entry.get("published"),
        "primary_category": primary.get("term", ""),
        "categories": [t.get("term") for t in entry.get("tags", []) if t.get("term")],
        "journal_ref": entry.get("arxiv_journal_ref", ""),
        "doi": entry.get("arxiv_doi", ""),
    }
