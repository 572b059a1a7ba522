"""Export convenience function."""

import logging
from pathlib import Path
from typing import Literal, Optional

import yaml

from paperlens.exporters.models import ExportedPaper

logger = logging.getLogger(__name__)

ExportFormat = Literal["json", "yaml"]


def render_export(exported: ExportedPaper, fmt: ExportFormat = "json", compact: bool = False) -> str:
    """Serialize an export record as JSON or YAML."""
    if fmt == "json":
        return exported.model_dump_json(indent=None if compact else 2)
    if fmt == "yaml":
        return yaml.safe_dump(
            exported.model_dump(mode="json"),
            sort_keys=False,
            allow_unicode=True,
            default_flow_style=None if compact else False,
        )
    raise ValueError(f"Unsupported export format: {fmt}")


def write_export(
    exported: ExportedPaper,
    path: str | Path | None = None,
    fmt: ExportFormat = "json",
    compact: bool = False,
) -> Optional[str]:
    """Write the rendered record to *path*, or return it when no path is given."""
    text = render_export(exported, fmt, compact)
    if path is None:
        return text

    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(text, encoding="utf-8")
    logger.info("Exported to %s", out)
    return None
