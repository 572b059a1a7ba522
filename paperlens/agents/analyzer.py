"""LLM analysis agent: summaries, structured analysis, keywords and context."""

import logging
from datetime import datetime, timezone
from typing import Optional

from paperlens.agents import prompts
from paperlens.agents.models import (
    AnalysisResponse,
    KeywordsData,
    LlmConfig,
    Message,
    PaperAnalysis,
    ResearchContext,
)
from paperlens.agents.providers import LlmProvider
from paperlens.search.models import Paper

logger = logging.getLogger(__name__)

FULL_TEXT_LIMIT = 12_000  # chars of extracted text sent with the abstract


class PaperAnalyzer:
    """Run analysis prompts for a paper against one LLM provider."""

    def __init__(self, provider: LlmProvider, config: Optional[LlmConfig] = None):
        self.provider = provider
        self.config = config or LlmConfig()

    @property
    def model(self) -> str:
        return self.provider.resolve_model(self.config)

    def effective_config(self) -> LlmConfig:
        return self.config.model_copy(update={"model": self.model})

    # ── Full Analysis ────────────────────────────────────────────

    async def analyze(self, paper: Paper) -> PaperAnalysis:
        """Structured analysis of *paper*, using extracted text when available."""
        config = self.effective_config()
        messages = [
            Message.system(prompts.SYSTEM_PROMPT),
            Message.user(prompts.full_analysis_prompt(paper.title, _analysis_body(paper))),
        ]
        logger.info("Analysing '%s' with %s/%s", paper.title, self.provider.name, config.model)
        response = await self.provider.complete_structured(messages, config, AnalysisResponse)

        return PaperAnalysis(
            summary=response.summary,
            background_and_purpose=response.background_and_purpose,
            methodology=response.methodology,
            datasets=[d for d in response.datasets if d.is_valid()],
            results=response.results,
            advantages_limitations_and_future_work=response.advantages_limitations_and_future_work,
            key_contributions=response.key_contributions,
            tasks=response.tasks,
            analyzed_at=datetime.now(timezone.utc),
            provider=self.provider.name,
            model=config.model,
        )

    async def analyze_and_update(self, paper: Paper) -> None:
        paper.set_analysis(await self.analyze(paper))

    # ── Free-text Prompts ────────────────────────────────────────

    async def generate_summary(self, paper: Paper) -> str:
        return await self._complete(prompts.summary_prompt(paper.title, paper.abstract_text))

    async def generate_methodology(self, paper: Paper) -> str:
        return await self._complete(prompts.methodology_prompt(paper.title, paper.abstract_text))

    async def translate(self, text: str, language: str = "Japanese") -> str:
        return await self._complete(
            prompts.translation_prompt(text, language),
            system=prompts.TRANSLATION_SYSTEM_PROMPT,
        )

    async def _complete(self, user_prompt: str, system: str = prompts.SYSTEM_PROMPT) -> str:
        messages = [Message.system(system), Message.user(user_prompt)]
        return await self.provider.complete(messages, self.effective_config())

    # ── Keywords & Research Context ──────────────────────────────

    async def extract_keywords(self, paper: Paper) -> KeywordsData:
        messages = [
            Message.system(prompts.SYSTEM_PROMPT),
            Message.user(prompts.keyword_extraction_prompt(paper.title, paper.abstract_text)),
        ]
        keywords = await self.provider.complete_structured(
            messages, self.effective_config(), KeywordsData
        )
        logger.info("Extracted %d keywords for '%s'", len(keywords.keywords), paper.title)
        return keywords

    async def extract_research_context(
        self, paper: Paper, keywords: list[str]
    ) -> ResearchContext:
        messages = [
            Message.system(prompts.SYSTEM_PROMPT),
            Message.user(
                prompts.research_context_prompt(paper.title, paper.abstract_text, keywords)
            ),
        ]
        return await self.provider.complete_structured(
            messages, self.effective_config(), ResearchContext
        )


def _analysis_body(paper: Paper) -> str:
    if not paper.has_extracted_text():
        return paper.abstract_text
    text = paper.extracted_text.plain_text[:FULL_TEXT_LIMIT]
    return f"{paper.abstract_text}\n\nFull text (truncated):\n{text}"
