"""Export record: a paper plus optional citation network and LLM blocks."""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from paperlens.agents.models import KeywordsData, ResearchContext
from paperlens.search.models import Paper, PaperSummary

EXPORT_SCHEMA_VERSION = "1.0.0"
TOOL_VERSION = "0.1.0"


# ── Metadata ─────────────────────────────────────────────────────────


class ExportOptions(BaseModel):
    """Which optional steps were requested, recorded for reproducibility."""

    model_config = ConfigDict(frozen=True)

    analyzed: bool = False
    text_extracted: bool = False
    citations_included: bool = False
    references_included: bool = False
    keywords_extracted: bool = False
    max_citations: int = 50
    llm_provider: Optional[str] = None
    llm_model: Optional[str] = None


class ExportMetadata(BaseModel):
    exported_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    tool_version: str = TOOL_VERSION
    options: ExportOptions = Field(default_factory=ExportOptions)
    warnings: list[str] = Field(default_factory=list)


# ── Citation Network ─────────────────────────────────────────────────


class CitationStatistics(BaseModel):
    by_year: dict[int, int] = Field(default_factory=dict)
    top_venues: list[tuple[str, int]] = Field(default_factory=list)
    avg_citation_count: float = 0.0
    most_influential: list[str] = Field(default_factory=list)


class ReferenceStatistics(BaseModel):
    by_year: dict[int, int] = Field(default_factory=dict)
    year_range: Optional[tuple[int, int]] = None
    top_venues: list[tuple[str, int]] = Field(default_factory=list)


class CitationData(BaseModel):
    """Papers citing the exported paper.

    ``total_count`` is the paper's own citation counter; ``fetched_count``
    is the number of summaries kept after truncation.
    """

    total_count: int
    fetched_count: int
    papers: list[PaperSummary]
    statistics: CitationStatistics


class ReferenceData(BaseModel):
    """Papers referenced by the exported paper."""

    total_count: int
    fetched_count: int
    papers: list[PaperSummary]
    statistics: ReferenceStatistics


# ── Export Record ────────────────────────────────────────────────────


class ExportedPaper(BaseModel):
    """Composite export record. Absent blocks are ``None``, never empty."""

    schema_version: str = EXPORT_SCHEMA_VERSION
    export_metadata: ExportMetadata = Field(default_factory=ExportMetadata)
    paper: Paper
    citations: Optional[CitationData] = None
    references: Optional[ReferenceData] = None
    keywords: Optional[KeywordsData] = None
    research_context: Optional[ResearchContext] = None
