"""Prompt templates for remote chunk enrichment and document aggregation.

Both prompts ask for structured output; the provider validates the reply
against the matching pydantic model.
"""

from docdigest.models.summary import AggregationRequest, SummaryOptions

LANGUAGE_NAMES: dict[str, str] = {
    "chinese": "中文",
    "english": "English",
    "japanese": "日本語",
    "korean": "한국어",
    "spanish": "Español",
    "french": "Français",
    "german": "Deutsch",
    "italian": "Italiano",
    "portuguese": "Português",
    "russian": "Русский",
    "arabic": "العربية",
    "hindi": "हिन्दी",
    "thai": "ไทย",
}

LEVEL_STYLES: dict[str, str] = {
    "brief": "concise",
    "medium": "balanced",
    "detailed": "detailed",
}

CHUNK_SYSTEM_PROMPT = """You are an expert document analyst.
Analyse the document excerpt and return:
- title: a short descriptive title
- summary: a {style} summary ({instructions})
- keywords: 3 to 8 key terms or phrases, preferring domain terms
- importance: a score between 0 and 1
  (0.9-1.0 core findings and conclusions, 0.7-0.8 key supporting material,
  0.5-0.6 background, 0.3-0.4 examples, 0.0-0.2 transitions)
- content_type: one of introduction, main_content, conclusion, example,
  reference, acknowledgement
Write the title, summary and keywords in {language}.""".strip()

CHUNK_USER_PROMPT = """Document excerpt:
{content}""".strip()

AGGREGATE_SYSTEM_PROMPT = """You are a document structure analyst who builds hierarchical summaries.
1. Read every section summary.
2. Write one self-contained overall summary in {language}.
3. Extract the key points, most important first, each with a short
   description and an importance of high, medium or low.
{level_hint}""".strip()

AGGREGATE_USER_PROMPT = """## Section summaries
{summaries}
{sections}{important}""".strip()

LEVEL_HINTS: dict[str, str] = {
    "brief": "Keep the overall summary to 3-4 paragraphs and at most 5 key points.",
    "medium": "Keep a moderate length with 6-8 key points.",
    "detailed": "Include more detail and context, with up to 10 key points.",
}


def language_name(language: str) -> str:
    """Display name of a language for use inside prompts."""
    return LANGUAGE_NAMES.get(language.lower(), language)


def format_chunk_prompts(text: str, language: str, options: SummaryOptions) -> tuple[str, str]:
    """Return the (system, user) prompts for enriching one chunk."""
    system = CHUNK_SYSTEM_PROMPT.format(
        style=LEVEL_STYLES.get(options.level, "balanced"),
        instructions=options.prompt,
        language=language_name(language),
    )
    return system, CHUNK_USER_PROMPT.format(content=text)


def format_aggregate_prompts(
    request: AggregationRequest,
    language: str,
    options: SummaryOptions,
) -> tuple[str, str]:
    """Return the (system, user) prompts for the document roll-up."""
    system = AGGREGATE_SYSTEM_PROMPT.format(
        language=language_name(language),
        level_hint=LEVEL_HINTS.get(options.level, LEVEL_HINTS["medium"]),
    )

    sections = ""
    if request.section_summaries:
        lines = []
        for section in request.section_summaries:
            pages = ", ".join(str(p) for p in section.page_numbers) or "unknown"
            lines.append(f"### {section.title} (pages: {pages})\n{section.summary}")
        sections = "\n\n## Document structure\n" + "\n\n".join(lines)

    important = ""
    if request.important_chunks:
        lines = [
            f"**{chunk.title}** (importance: {chunk.importance})\n{chunk.summary}"
            for chunk in request.important_chunks
        ]
        important = "\n\n## Important passages\n" + "\n\n".join(lines)

    user = AGGREGATE_USER_PROMPT.format(
        summaries=request.summaries,
        sections=sections,
        important=important,
    )
    return system, user
