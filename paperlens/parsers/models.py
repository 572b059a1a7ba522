"""Shared data models for parsers."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class PaperSection(BaseModel):
    """One section of a paper, in document order."""

    index: int = Field(ge=0)
    title: str
    content: str


class PaperText(BaseModel):
    """Full text extracted from a paper PDF."""

    plain_text: str
    sections: list[PaperSection] = Field(default_factory=list)
    markdown: str = ""
    extracted_at: datetime
    source_url: str

    def is_valid(self) -> bool:
        return bool(self.plain_text) and bool(self.sections)

    def get_section(self, title: str) -> Optional[PaperSection]:
        """Case-insensitive lookup by section title."""
        wanted = title.lower()
        return next((s for s in self.sections if s.title.lower() == wanted), None)

    def get_abstract(self) -> Optional[PaperSection]:
        return self.get_section("Abstract")

    def get_introduction(self) -> Optional[PaperSection]:
        return self.get_section("Introduction")
