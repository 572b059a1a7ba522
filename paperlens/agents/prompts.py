"""Prompt templates for paper analysis, translation and keyword extraction."""

SYSTEM_PROMPT = (
    "You are an expert analyst of academic papers with deep knowledge across "
    "scientific fields. Your job is to analyse research papers and extract "
    "structured information. Be concise and accurate, focus on the key "
    "contributions and what is novel, use technical terms appropriately and "
    "stay objective. If the text does not contain some information, say "
    '"not stated in the abstract".'
)

TRANSLATION_SYSTEM_PROMPT = (
    "You are a professional translator of English academic papers. Preserve "
    "the accuracy of technical terms and the academic tone."
)


def _paper_block(title: str, body: str) -> str:
    return f"Title: {title}\n\nAbstract: {body or '[Not available]'}"


def summary_prompt(title: str, body: str) -> str:
    return f"""Analyse this academic paper and write a concise summary (2-3 paragraphs).

{_paper_block(title, body)}

Focus on:
1. The main problem or research question addressed
2. The proposed solution, method or approach
3. The key findings and contributions

Give a clear, structured summary that captures the essence of the paper."""


def methodology_prompt(title: str, body: str) -> str:
    return f"""Extract and explain the methodology of this paper.

{_paper_block(title, body)}

Describe:
1. The research approach (experimental, theoretical, empirical, ...)
2. The main methods and techniques used
3. The evaluation methodology and metrics
4. Novel methodological contributions

If the text gives few methodological details, describe what can be inferred."""


def full_analysis_prompt(title: str, body: str) -> str:
    return f"""Analyse this academic paper comprehensively and return a structured analysis.

{_paper_block(title, body)}

Respond with JSON only, using this structure:
{{
    "summary": "2-3 paragraph summary of the paper",
    "background_and_purpose": "research background, motivation and goals",
    "methodology": "technical approach, methods and techniques used",
    "datasets": [
        {{
            "name": "dataset name (e.g. ImageNet, COCO, SQuAD)",
            "url": "where the dataset can be accessed, or empty",
            "paper_title": "title of the paper that introduced it, or empty",
            "paper_url": "URL of that paper, or empty",
            "paper_authors": "authors of that paper, or empty",
            "description": "short description, or empty",
            "domain": "field (e.g. Computer Vision, NLP, Speech)",
            "size": "size information (e.g. 1.2M images), or empty"
        }}
    ],
    "results": "main findings and experimental results",
    "advantages_limitations_and_future_work": "strengths, weaknesses and future directions",
    "key_contributions": ["contribution 1", "contribution 2"],
    "tasks": ["research area 1", "research area 2"]
}}

"datasets" lists every dataset used in the paper; return [] if none are mentioned.
Fill in every field. Where the text is silent, make a reasonable inference or say "not stated"."""


def translation_prompt(text: str, language: str) -> str:
    return f"""Translate the following academic text into {language}.

Requirements:
- Keep technical terms accurate
- Keep the academic tone and style
- Keep the same paragraph structure

Text to translate:
{text}

Return only the translation, without explanations."""


def keyword_extraction_prompt(title: str, body: str) -> str:
    return f"""Extract keywords, topics and technical terms from the following academic paper.

{_paper_block(title, body)}

Respond with JSON only, using this structure:
{{
    "keywords": ["keyword 1", "keyword 2"],
    "topics": ["topic 1", "topic 2"],
    "technical_terms": [
        {{"term": "term 1", "definition": "short definition"}}
    ],
    "methods": ["method 1", "method 2"],
    "datasets": ["dataset 1", "dataset 2"]
}}

Guidelines:
- keywords: the main search keywords of the paper (5-10)
- topics: research areas and topics (3-5)
- technical_terms: important technical terms with definitions (about 5)
- methods: every method or technique used
- datasets: every dataset mentioned, or [] if none"""


def research_context_prompt(title: str, body: str, keywords: list[str]) -> str:
    return f"""Analyse where the following academic paper sits in its research field.

{_paper_block(title, body)}

Keywords: {", ".join(keywords)}

Respond with JSON only, using this structure:
{{
    "primary_field": "main research field",
    "sub_fields": ["sub-field 1", "sub-field 2"],
    "research_type": "one of: empirical, theoretical, survey, methodology, application",
    "positioning": "how this work fits into the field (2-3 sentences)",
    "related_directions": ["direction 1", "direction 2"]
}}

Guidelines:
- primary_field: the single most relevant field
- sub_fields: more specific sub-fields (2-4)
- positioning: what the work contributes and which problem it addresses
- related_directions: research directions this work could lead to (3-5)"""
