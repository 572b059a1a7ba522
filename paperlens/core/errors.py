"""Exception hierarchy shared by search, parsing, analysis and export."""


class PaperLensError(Exception):
    """Base class for every error raised by paperlens."""


# ── Input Validation ─────────────────────────────────────────────────


class SearchCriteriaError(PaperLensError):
    """A search request carried no query signal."""


class ConfigError(PaperLensError):
    """Invalid or incomplete configuration."""


# ── Not Found ────────────────────────────────────────────────────────


class PaperNotFoundError(PaperLensError):
    """A search or fetch returned no usable record."""


class TitleMatchError(PaperNotFoundError):
    """The best fuzzy title match was farther than the accepted threshold."""

    def __init__(self, query: str, best_title: str, distance: float, threshold: float):
        self.query = query
        self.best_title = best_title
        self.distance = distance
        self.threshold = threshold
        super().__init__(
            f"No paper matched '{query}' within threshold {threshold:.2f} "
            f"(best distance {distance:.3f} for '{best_title}')"
        )


# ── Upstream Providers ───────────────────────────────────────────────


class ArxivError(PaperLensError):
    """arXiv API request failed or returned an unreadable feed."""


class SemanticScholarError(PaperLensError):
    """Semantic Scholar API request failed."""


class LlmError(PaperLensError):
    """LLM provider failed or returned an unparseable response."""


class PdfExtractionError(PaperLensError):
    """PDF download or text extraction failed."""


# ── Preconditions ────────────────────────────────────────────────────


class IdentifierUnavailableError(PaperLensError):
    """The record lacks the identifier an operation requires."""
