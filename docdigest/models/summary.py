"""Summarization data models: provider I/O and hierarchical results."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from docdigest.models.chunk import EnrichedChunk

SummaryLevelName = Literal["brief", "medium", "detailed"]
ImportanceLabel = Literal["high", "medium", "low"]


class SummaryOptions(BaseModel):
    """Per-call options passed to a summarization provider."""

    model_config = ConfigDict(frozen=True)

    level: SummaryLevelName = "medium"
    max_tokens: int = Field(default=500, gt=0)
    prompt: str = "Create a balanced summary with key points and supporting details"


SUMMARY_LEVELS: dict[str, SummaryOptions] = {
    "brief": SummaryOptions(
        level="brief",
        max_tokens=200,
        prompt="Create a very concise summary focusing only on the main points",
    ),
    "medium": SummaryOptions(
        level="medium",
        max_tokens=500,
        prompt="Create a balanced summary with key points and supporting details",
    ),
    "detailed": SummaryOptions(
        level="detailed",
        max_tokens=800,
        prompt="Create a comprehensive summary preserving important details and context",
    ),
}


class ProviderSummary(BaseModel):
    """Structured output of a single ``summarize`` call."""

    title: str
    summary: str
    keywords: list[str] = Field(default_factory=list)
    importance: float | None = Field(default=None, ge=0.0, le=1.0)
    content_type: str | None = None


class KeyPoint(BaseModel):
    """One ranked takeaway of the document."""

    point: str
    description: str = ""
    importance: ImportanceLabel = "medium"


class SectionSummary(BaseModel):
    """Title and summary of one section-level chunk."""

    title: str
    summary: str
    page_numbers: list[int] = Field(default_factory=list)


class Highlight(BaseModel):
    """One of the most important chunks of the document."""

    title: str | None = None
    summary: str | None = None
    page_numbers: list[int] = Field(default_factory=list)
    importance: float | None = None
    chunk_index: int


class AggregationRequest(BaseModel):
    """Everything a provider sees when rolling chunk summaries up."""

    summaries: str
    section_summaries: list[SectionSummary] = Field(default_factory=list)
    important_chunks: list[Highlight] = Field(default_factory=list)


class AggregatedSummary(BaseModel):
    """Structured output of an ``aggregate`` call."""

    overall_summary: str
    key_points: list[KeyPoint] = Field(default_factory=list)


class HierarchicalSummary(BaseModel):
    """Document-level roll-up of all enriched chunks."""

    overall_summary: str
    key_points: list[KeyPoint] = Field(default_factory=list)
    section_breakdown: list[SectionSummary] = Field(default_factory=list)
    highlights: list[Highlight] = Field(default_factory=list)


class SummarizationMetadata(BaseModel):
    """Bookkeeping about one orchestration run."""

    total_chunks: int
    summary_level: SummaryLevelName
    language: str
    provider: str
    fallback_count: int = 0
    created_at: datetime = Field(default_factory=datetime.now)


class SummarizationResult(BaseModel):
    """Index-ordered enriched chunks plus their hierarchical summary."""

    chunks: list[EnrichedChunk]
    hierarchical_summary: HierarchicalSummary
    metadata: SummarizationMetadata
