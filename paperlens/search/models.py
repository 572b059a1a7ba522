"""Shared data models for search modules."""

import logging
import re
from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from paperlens.agents.models import PaperAnalysis
from paperlens.core.errors import IdentifierUnavailableError
from paperlens.parsers.models import PaperText

logger = logging.getLogger(__name__)

PaperSource = Literal["arxiv", "semantic_scholar"]

_ARXIV_URL_RE = re.compile(r"^https?://(?:export\.)?arxiv\.org/(?:abs|pdf)/")
_ARXIV_VERSION_RE = re.compile(r"v\d+$")


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ── Author ───────────────────────────────────────────────────────────


class Author(BaseModel):
    """A paper author. Only ``name`` is known for arXiv-only records."""

    name: str
    ss_id: str = ""
    h_index: int = 0
    affiliations: list[str] = Field(default_factory=list)
    paper_count: int = 0
    citation_count: int = 0

    @classmethod
    def from_name(cls, name: str) -> "Author":
        return cls(name=name)

    @classmethod
    def from_semantic_scholar(cls, record: dict) -> "Author":
        return cls(
            name=record.get("name") or "",
            ss_id=record.get("authorId") or "",
            h_index=record.get("hIndex") or 0,
            affiliations=record.get("affiliations") or [],
            paper_count=record.get("paperCount") or 0,
            citation_count=record.get("citationCount") or 0,
        )


# ── Paper ────────────────────────────────────────────────────────────


class Paper(BaseModel):
    """Unified academic paper record built from arXiv and/or Semantic Scholar."""

    # Identifiers
    ss_id: str = ""
    arxiv_id: str = ""
    doi: str = ""

    # Metadata
    title: str
    authors: list[Author] = Field(default_factory=list)
    abstract_text: str = ""
    abstract_text_ja: Optional[str] = None
    url: str = ""
    journal: str = ""
    primary_category: str = ""
    categories: list[str] = Field(default_factory=list)
    published_date: Optional[datetime] = None
    bibtex: str = ""

    # Metrics
    citations_count: int = 0
    references_count: int = 0
    influential_citation_count: int = 0
    is_open_access: bool = False
    open_access_pdf_url: Optional[str] = None

    # Attachments
    analysis: Optional[PaperAnalysis] = None
    extracted_text: Optional[PaperText] = None

    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    # ── Constructors ─────────────────────────────────────────────

    @classmethod
    def from_arxiv(cls, entry: dict) -> "Paper":
        """Build a paper from a normalized arXiv feed entry."""
        arxiv_id = extract_arxiv_id(entry.get("id", ""))
        return cls(
            arxiv_id=arxiv_id,
            doi=entry.get("doi") or "",
            title=_clean_whitespace(entry.get("title", "")),
            authors=[Author.from_name(n) for n in entry.get("authors", [])],
            abstract_text=_clean_whitespace(entry.get("summary", "")),
            url=f"https://arxiv.org/abs/{arxiv_id}",
            journal=entry.get("journal_ref") or "arXiv",
            primary_category=entry.get("primary_category") or "",
            categories=entry.get("categories") or [],
            published_date=parse_date(entry.get("published")),
        )

    @classmethod
    def from_semantic_scholar(cls, record: dict) -> "Paper":
        """Build a paper from a Semantic Scholar Graph API record."""
        external_ids = record.get("externalIds") or {}
        oa_pdf = record.get("openAccessPdf") or {}
        journal = (record.get("journal") or {}).get("name") or record.get("venue") or ""
        bibtex = (record.get("citationStyles") or {}).get("bibtex") or ""

        published = parse_date(record.get("publicationDate"))
        if published is None and record.get("year"):
            published = datetime(int(record["year"]), 1, 1, tzinfo=timezone.utc)

        return cls(
            ss_id=record.get("paperId") or "",
            arxiv_id=external_ids.get("ArXiv") or "",
            doi=external_ids.get("DOI") or "",
            title=record.get("title") or "",
            authors=[Author.from_semantic_scholar(a) for a in record.get("authors") or []],
            abstract_text=record.get("abstract") or "",
            url=record.get("url") or "",
            journal=journal,
            published_date=published,
            bibtex=bibtex,
            citations_count=record.get("citationCount") or 0,
            references_count=record.get("referenceCount") or 0,
            influential_citation_count=record.get("influentialCitationCount") or 0,
            is_open_access=bool(oa_pdf.get("url")) or bool(record.get("isOpenAccess")),
            open_access_pdf_url=oa_pdf.get("url") or None,
        )

    # ── Accessors ────────────────────────────────────────────────

    @property
    def year(self) -> int:
        """Publication year, 0 when unknown."""
        return self.published_date.year if self.published_date else 0

    def require_ss_id(self) -> str:
        if not self.ss_id:
            raise IdentifierUnavailableError(
                f"Semantic Scholar paper ID is not available for '{self.title}'"
            )
        return self.ss_id

    def is_analyzed(self) -> bool:
        return self.analysis is not None and self.analysis.is_complete()

    def has_extracted_text(self) -> bool:
        return self.extracted_text is not None and self.extracted_text.is_valid()

    def pdf_url(self) -> Optional[str]:
        """Open-access PDF if known, else the arXiv PDF, else None."""
        if self.open_access_pdf_url:
            return self.open_access_pdf_url
        if self.arxiv_id:
            return f"https://arxiv.org/pdf/{self.arxiv_id}"
        return None

    def to_citation(self) -> str:
        if len(self.authors) > 3:
            authors = f"{self.authors[0].name} et al."
        else:
            authors = ", ".join(a.name for a in self.authors)
        year = str(self.year) if self.year else "n.d."
        return f"{authors} ({year}). {self.title}"

    # ── Mutators ─────────────────────────────────────────────────

    def touch(self) -> None:
        self.updated_at = _now()

    def set_analysis(self, analysis: PaperAnalysis) -> None:
        self.analysis = analysis
        self.touch()

    def set_extracted_text(self, text: PaperText) -> None:
        self.extracted_text = text
        self.touch()


# ── Search Parameters & Results ──────────────────────────────────────


class SearchParams(BaseModel):
    """Query specification for :meth:`PaperClient.search`."""

    query: Optional[str] = None
    title: Optional[str] = None
    author: Optional[str] = None
    abstract_contains: Optional[str] = None
    arxiv_id: Optional[str] = None
    ss_id: Optional[str] = None
    max_results: int = Field(default=10, gt=0)
    categories: list[str] = Field(default_factory=list)
    min_citations: Optional[int] = Field(default=None, ge=0)
    year: Optional[str] = Field(default=None, description='"2023" or "2020-2023"')

    def is_id_lookup(self) -> bool:
        return bool(self.arxiv_id) or bool(self.ss_id)

    def has_search_criteria(self) -> bool:
        return any((self.query, self.title, self.author, self.abstract_contains))


class SearchResult(BaseModel):
    """Merged, deduplicated papers plus the sources that contributed."""

    papers: list[Paper] = Field(default_factory=list)
    sources: list[PaperSource] = Field(default_factory=list)
    total_count: Optional[int] = None

    def __len__(self) -> int:
        return len(self.papers)

    def is_empty(self) -> bool:
        return not self.papers


# ── Paper Summary ────────────────────────────────────────────────────

_SNIPPET_LIMIT = 500


class PaperSummary(BaseModel):
    """Reduced, read-only projection of a paper for citation networks."""

    model_config = ConfigDict(frozen=True)

    ss_id: str = ""
    arxiv_id: str = ""
    doi: str = ""
    title: str = ""
    authors: list[str] = Field(default_factory=list)
    year: int = 0
    venue: str = ""
    citation_count: int = 0
    influential_citation_count: int = 0
    abstract_snippet: str = ""
    url: str = ""

    @classmethod
    def from_paper(cls, paper: Paper) -> "PaperSummary":
        abstract = paper.abstract_text
        if len(abstract) > _SNIPPET_LIMIT:
            abstract = abstract[:_SNIPPET_LIMIT] + "..."
        return cls(
            ss_id=paper.ss_id,
            arxiv_id=paper.arxiv_id,
            doi=paper.doi,
            title=paper.title,
            authors=[a.name for a in paper.authors],
            year=paper.year,
            venue=paper.journal,
            citation_count=paper.citations_count,
            influential_citation_count=paper.influential_citation_count,
            abstract_snippet=abstract,
            url=paper.url,
        )


# ── Helpers ──────────────────────────────────────────────────────────

_SPACE_RE = re.compile(r"\s+")


def _clean_whitespace(text: str) -> str:
    return _SPACE_RE.sub(" ", text or "").strip()


def extract_arxiv_id(raw_id: str) -> str:
    """Clean arXiv ID from a URL or versioned ID.

    >>> extract_arxiv_id("http://arxiv.org/abs/1706.03762v7")
    '1706.03762'
    """
    arxiv_id = _ARXIV_URL_RE.sub("", raw_id.strip())
    return _ARXIV_VERSION_RE.sub("", arxiv_id)


def parse_date(value: Optional[str]) -> Optional[datetime]:
    """Parse ISO dates such as ``2017-06-12`` or ``2017-06-12T17:57:34Z``."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning("Unrecognized date string: %s", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
