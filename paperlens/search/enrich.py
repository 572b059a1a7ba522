"""Merge a Semantic Scholar record into an existing paper."""

import logging

from paperlens.search.models import Paper

logger = logging.getLogger(__name__)


def enrich_from_semantic_scholar(paper: Paper, record: dict) -> Paper:
    """Merge *record* into *paper* in place and return it.

    Semantic Scholar is authoritative for its ID and all counts, which are
    overwritten even when zero. Authors are matched by exact name and never
    appended. BibTeX and the open-access URL are only filled when empty.
    """
    external_ids = record.get("externalIds") or {}

    paper.ss_id = record.get("paperId") or ""
    if external_ids.get("DOI"):
        paper.doi = external_ids["DOI"]
    paper.citations_count = record.get("citationCount") or 0
    paper.references_count = record.get("referenceCount") or 0
    paper.influential_citation_count = record.get("influentialCitationCount") or 0

    by_name: dict = {}
    for author in paper.authors:
        by_name.setdefault(author.name, author)

    matched = 0
    for ss_author in record.get("authors") or []:
        existing = by_name.get(ss_author.get("name") or "")
        if existing is None:
            continue
        existing.ss_id = ss_author.get("authorId") or ""
        existing.h_index = ss_author.get("hIndex") or 0
        existing.affiliations = ss_author.get("affiliations") or []
        existing.paper_count = ss_author.get("paperCount") or 0
        existing.citation_count = ss_author.get("citationCount") or 0
        matched += 1

    if not paper.bibtex:
        paper.bibtex = (record.get("citationStyles") or {}).get("bibtex") or ""

    oa_url = (record.get("openAccessPdf") or {}).get("url")
    if oa_url and not paper.open_access_pdf_url:
        paper.open_access_pdf_url = oa_url
    paper.is_open_access = paper.is_open_access or bool(oa_url) or bool(record.get("isOpenAccess"))

    paper.touch()
    logger.debug(
        "Enriched '%s' from Semantic Scholar (%s): %d/%d authors matched",
        paper.title,
        paper.ss_id or "no id",
        matched,
        len(paper.authors),
    )
    return paper
