"""Context window data models."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from docdigest.models.chunk import EnrichedChunk

Priority = Literal["chronological", "importance", "semantic"]
Task = Literal["summarize", "qa", "analysis", "translation"]


class ContextQuery(BaseModel):
    """A relevance query against a chunk set."""

    query: str
    language: str | None = None
    max_chunks: int | None = Field(default=None, gt=0)
    include_context: bool = False


class ContextWindow(BaseModel):
    """A token-bounded, read-only selection of chunks for one task."""

    model_config = ConfigDict(frozen=True)

    chunks: list[EnrichedChunk] = Field(default_factory=list)
    total_tokens: int = 0
    max_tokens: int
    priority: Priority
