"""PDF-to-text extraction: Docling for Markdown, PyMuPDF as fallback."""

import asyncio
import logging
import re
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import fitz  # PyMuPDF
import httpx
from docling.document_converter import DocumentConverter

from paperlens.core.errors import PdfExtractionError
from paperlens.parsers.models import PaperSection, PaperText
from paperlens.search.models import Paper

logger = logging.getLogger(__name__)

_SPARSE_THRESHOLD = 100  # chars; sparser Docling output triggers the PyMuPDF fallback
_HEADING_RE = re.compile(r"^(#{1,6})\s+(.+?)\s*#*\s*$", re.MULTILINE)


# ── Conversion ───────────────────────────────────────────────────────


def parse_with_docling(pdf_path: str) -> str:
    """Parse a digital PDF to Markdown using Docling."""
    converter = DocumentConverter()
    result = converter.convert(pdf_path)
    return result.document.export_to_markdown()


def parse_with_pymupdf(pdf_path: str) -> str:
    """Raw page text via PyMuPDF, one block per page."""
    doc = fitz.open(pdf_path)
    try:
        pages = [
            f"<!-- Page {num} -->\n{page.get_text().strip()}"
            for num, page in enumerate(doc, 1)
        ]
    finally:
        doc.close()
    return "\n\n".join(pages)


def convert_pdf(pdf_path: str) -> str:
    """Docling first; fall back to PyMuPDF when its output is sparse or it fails."""
    try:
        markdown = parse_with_docling(pdf_path)
    except Exception as exc:
        logger.warning("Docling failed on %s: %s, falling back to PyMuPDF", pdf_path, exc)
        markdown = ""

    if len(markdown.strip()) < _SPARSE_THRESHOLD:
        logger.info("Docling output sparse (%d chars), using PyMuPDF", len(markdown.strip()))
        try:
            markdown = parse_with_pymupdf(pdf_path)
        except Exception as exc:
            raise PdfExtractionError(f"PDF parse failed: {exc}") from exc
    return markdown


# ── Sections ─────────────────────────────────────────────────────────


def split_sections(markdown: str) -> list[PaperSection]:
    """Split Markdown on headings into ordered sections.

    Text before the first heading becomes a "Preamble" section; a document
    without headings becomes a single "Full Text" section.
    """
    headings = list(_HEADING_RE.finditer(markdown))
    if not headings:
        body = markdown.strip()
        return [PaperSection(index=0, title="Full Text", content=body)] if body else []

    sections: list[PaperSection] = []
    preamble = markdown[: headings[0].start()].strip()
    if preamble:
        sections.append(PaperSection(index=0, title="Preamble", content=preamble))

    for i, match in enumerate(headings):
        end = headings[i + 1].start() if i + 1 < len(headings) else len(markdown)
        content = markdown[match.end():end].strip()
        sections.append(
            PaperSection(index=len(sections), title=match.group(2).strip(), content=content)
        )
    return sections


def build_paper_text(markdown: str, source_url: str) -> PaperText:
    sections = split_sections(markdown)
    plain_text = "\n\n".join(s.content for s in sections if s.content)
    return PaperText(
        plain_text=plain_text,
        sections=sections,
        markdown=markdown,
        extracted_at=datetime.now(timezone.utc),
        source_url=source_url,
    )


# ── Extractor ────────────────────────────────────────────────────────


class PdfExtractor:
    """Download a paper PDF and extract its text."""

    def __init__(
        self,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._timeout = timeout
        self._transport = transport

    async def extract_for_paper(self, paper: Paper) -> PaperText:
        url = paper.pdf_url()
        if not url:
            raise PdfExtractionError(f"No PDF URL available for '{paper.title}'")
        return await self.extract_from_url(url)

    async def extract_from_url(self, url: str) -> PaperText:
        logger.info("Extracting text from PDF: %s", url)
        with tempfile.TemporaryDirectory() as tmp:
            pdf_path = Path(tmp) / "paper.pdf"
            await self._download(url, pdf_path)
            markdown = await asyncio.to_thread(convert_pdf, str(pdf_path))

        text = build_paper_text(markdown, url)
        if not text.is_valid():
            raise PdfExtractionError(f"No text could be extracted from {url}")

        logger.info(
            "Extracted %d sections, %d chars total", len(text.sections), len(text.plain_text)
        )
        return text

    async def _download(self, url: str, dest: Path) -> None:
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, follow_redirects=True, transport=self._transport
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPError as exc:
            raise PdfExtractionError(f"PDF download failed for {url}: {exc}") from exc

        if not response.content.startswith(b"%PDF"):
            raise PdfExtractionError(f"Response from {url} is not a PDF")
        dest.write_bytes(response.content)
