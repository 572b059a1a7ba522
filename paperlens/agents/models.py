"""Shared data models for LLM providers and the analysis agent."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


# ── Conversation ─────────────────────────────────────────────────────


class Message(BaseModel):
    """A single chat message sent to an LLM provider."""

    role: Literal["system", "user", "assistant"]
    content: str

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: str) -> "Message":
        return cls(role="assistant", content=content)


class LlmConfig(BaseModel):
    """Per-request sampling settings. Empty ``model`` means provider default."""

    model: str = ""
    temperature: Optional[float] = Field(default=0.3, ge=0.0, le=2.0)
    max_tokens: Optional[int] = Field(default=4096, gt=0)
    top_p: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    stop_sequences: list[str] = Field(default_factory=list)


# ── Analysis ─────────────────────────────────────────────────────────


class DatasetInfo(BaseModel):
    """A dataset used by the analysed paper."""

    name: str
    url: str = ""
    paper_title: str = ""
    paper_url: str = ""
    paper_authors: str = ""
    description: str = ""
    domain: str = ""
    size: str = ""

    def is_valid(self) -> bool:
        return bool(self.name.strip())


class PaperAnalysis(BaseModel):
    """LLM-generated analysis of a paper."""

    summary: str
    summary_ja: Optional[str] = None
    background_and_purpose: str = ""
    methodology: str = ""
    datasets: list[DatasetInfo] = Field(default_factory=list)
    results: str = ""
    advantages_limitations_and_future_work: str = ""
    key_contributions: list[str] = Field(default_factory=list)
    tasks: list[str] = Field(default_factory=list)
    analyzed_at: datetime
    provider: str
    model: str

    def is_complete(self) -> bool:
        return bool(self.summary) and bool(self.methodology)


class AnalysisResponse(BaseModel):
    """Structured output expected from the full-analysis prompt."""

    summary: str
    background_and_purpose: str
    methodology: str
    datasets: list[DatasetInfo] = Field(default_factory=list)
    results: str
    advantages_limitations_and_future_work: str
    key_contributions: list[str] = Field(default_factory=list)
    tasks: list[str] = Field(default_factory=list)


# ── Keywords & Research Context ──────────────────────────────────────


class TechnicalTerm(BaseModel):
    term: str
    definition: Optional[str] = None


class KeywordsData(BaseModel):
    """Keywords, topics and terms extracted from a paper."""

    keywords: list[str] = Field(default_factory=list)
    topics: list[str] = Field(default_factory=list)
    technical_terms: list[TechnicalTerm] = Field(default_factory=list)
    methods: list[str] = Field(default_factory=list)
    datasets: list[str] = Field(default_factory=list)


class ResearchContext(BaseModel):
    """Where a paper sits in its research field."""

    primary_field: str
    sub_fields: list[str] = Field(default_factory=list)
    research_type: str = Field(
        default="",
        description="empirical, theoretical, survey, methodology or application",
    )
    positioning: str = ""
    related_directions: list[str] = Field(default_factory=list)
