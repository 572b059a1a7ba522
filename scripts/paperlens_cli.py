#!/usr/bin/env python3
"""paperlens command-line interface: search, fetch and export papers."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Ensure project root is on sys.path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from paperlens.agents.analyzer import PaperAnalyzer
from paperlens.agents.models import LlmConfig
from paperlens.agents.providers import build_provider
from paperlens.core.config import Settings, load_settings
from paperlens.core.errors import PaperLensError
from paperlens.exporters import write_export
from paperlens.exporters.assembler import ExportRequest, export_paper
from paperlens.search.client import PaperClient
from paperlens.search.models import SearchParams

logger = logging.getLogger("paperlens")


# ── Commands ─────────────────────────────────────────────────────────


async def cmd_search(args: argparse.Namespace, settings: Settings) -> int:
    params = SearchParams(
        query=args.query,
        title=args.title,
        author=args.author,
        abstract_contains=args.abstract,
        max_results=args.max_results,
        categories=args.category or [],
        min_citations=args.min_citations,
        year=args.year,
    )
    client = PaperClient(settings=settings)
    result = await client.search(params)

    if args.json:
        print(result.model_dump_json(indent=None if args.compact else 2))
        return 0

    logger.info("Found %d papers (sources: %s)", len(result), ", ".join(result.sources))
    for i, paper in enumerate(result.papers, 1):
        ids = ", ".join(
            f"{label}:{value}"
            for label, value in (("arXiv", paper.arxiv_id), ("S2", paper.ss_id), ("DOI", paper.doi))
            if value
        )
        print(f"{i:3d}. {paper.to_citation()}")
        print(f"     {ids or 'no identifiers'} | citations: {paper.citations_count}")
    return 0


async def cmd_fetch(args: argparse.Namespace, settings: Settings) -> int:
    params = SearchParams(arxiv_id=args.arxiv, ss_id=args.ss)
    client = PaperClient(settings=settings)
    result = await client.search(params)
    paper = result.papers[0]

    if args.analyze:
        provider = build_provider(settings, args.provider)
        analyzer = PaperAnalyzer(provider, LlmConfig(model=args.model or ""))
        await analyzer.analyze_and_update(paper)
        if args.translate:
            paper.abstract_text_ja = await analyzer.translate(paper.abstract_text, "Japanese")

    print(paper.model_dump_json(indent=None if args.compact else 2))
    return 0


async def cmd_export(args: argparse.Namespace, settings: Settings) -> int:
    request = ExportRequest(
        arxiv_id=args.arxiv,
        ss_id=args.ss,
        title=args.title,
        threshold=args.threshold,
        extract_text=args.extract_text or args.all,
        analyze=args.analyze or args.all,
        include_citations=args.citations or args.all,
        include_references=args.references or args.all,
        extract_keywords=args.keywords or args.all,
        max_citations=args.max_citations,
        provider=args.provider,
        model=args.model,
    )
    client = PaperClient(settings=settings)
    exported = await export_paper(client, request, settings=settings)

    for warning in exported.export_metadata.warnings:
        logger.warning("Export warning: %s", warning)

    text = write_export(exported, args.output, fmt=args.format, compact=args.compact)
    if text is not None:
        print(text)
    return 0


COMMANDS = {"search": cmd_search, "fetch": cmd_fetch, "export": cmd_export}


# ── CLI ──────────────────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Search, fetch and export academic papers")
    parser.add_argument("--config", default=None, help="Path to settings YAML file")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging verbosity",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # search
    p = sub.add_parser("search", help="Search arXiv and Semantic Scholar")
    p.add_argument("query", nargs="?", default=None, help="Free-text query")
    p.add_argument("--title", help="Title filter")
    p.add_argument("--author", help="Author filter")
    p.add_argument("--abstract", help="Abstract must contain this phrase")
    p.add_argument("--category", action="append", help="arXiv category (repeatable)")
    p.add_argument("--max-results", type=int, default=10)
    p.add_argument("--min-citations", type=int, default=None)
    p.add_argument("--year", help='Year or range, e.g. "2023" or "2020-2023"')
    p.add_argument("--json", action="store_true", help="Print results as JSON")
    p.add_argument("--compact", action="store_true", help="Compact JSON output")

    # fetch
    p = sub.add_parser("fetch", help="Fetch one paper by identifier")
    ids = p.add_mutually_exclusive_group(required=True)
    ids.add_argument("--arxiv", help="arXiv ID, e.g. 1706.03762")
    ids.add_argument("--ss", help="Semantic Scholar paper ID")
    p.add_argument("--analyze", action="store_true", help="Run LLM analysis")
    p.add_argument("--translate", action="store_true", help="Translate the abstract (with --analyze)")
    p.add_argument("--provider", choices=("openai", "anthropic", "ollama"), default=None)
    p.add_argument("--model", default=None)
    p.add_argument("--compact", action="store_true")

    # export
    p = sub.add_parser("export", help="Export a paper with optional network and analysis")
    target = p.add_mutually_exclusive_group(required=True)
    target.add_argument("--arxiv", help="arXiv ID")
    target.add_argument("--ss", help="Semantic Scholar paper ID")
    target.add_argument("--title", help="Find the paper by fuzzy title match")
    p.add_argument(
        "--threshold",
        type=float,
        default=0.3,
        help="Maximum title distance accepted (0.0 = exact)",
    )
    p.add_argument("--extract-text", action="store_true")
    p.add_argument("--analyze", action="store_true")
    p.add_argument("--citations", action="store_true")
    p.add_argument("--references", action="store_true")
    p.add_argument("--keywords", action="store_true")
    p.add_argument("--all", action="store_true", help="Enable every optional step")
    p.add_argument("--max-citations", type=int, default=50)
    p.add_argument("--provider", choices=("openai", "anthropic", "ollama"), default=None)
    p.add_argument("--model", default=None)
    p.add_argument("--format", choices=("json", "yaml"), default="json")
    p.add_argument("--output", "-o", default=None, help="Write to this file instead of stdout")
    p.add_argument("--compact", action="store_true")

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )

    try:
        settings = load_settings(args.config)
        return asyncio.run(COMMANDS[args.command](args, settings))
    except PaperLensError as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
