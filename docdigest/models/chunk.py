"""Chunk data models."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from docdigest.exceptions import InputError

if TYPE_CHECKING:
    from docdigest.models.summary import ProviderSummary

SemanticLevel = Literal["paragraph", "section", "chapter"]


class ChunkMetadata(BaseModel):
    """Positional metadata for a chunk.

    ``start_index``/``end_index`` always describe the un-padded core span in
    the source text. Overlap padding injected around the core is recorded in
    ``overlap_before``/``overlap_after`` and never shifts the span.
    """

    model_config = ConfigDict(frozen=True)

    start_index: int = Field(ge=0)
    end_index: int
    chunk_index: int = Field(ge=0)
    semantic_level: SemanticLevel | None = None
    title: str | None = None
    page_numbers: list[int] = Field(default_factory=list)
    overlap_before: int = Field(default=0, ge=0)
    overlap_after: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _check_span(self) -> ChunkMetadata:
        if self.start_index >= self.end_index:
            raise ValueError(
                f"start_index ({self.start_index}) must be lower than "
                f"end_index ({self.end_index})"
            )
        return self


class Chunk(BaseModel):
    """A contiguous span of source text plus positional metadata."""

    model_config = ConfigDict(frozen=True)

    text: str
    metadata: ChunkMetadata

    @property
    def chunk_index(self) -> int:
        return self.metadata.chunk_index

    @property
    def core_text(self) -> str:
        """The chunk text without injected overlap padding."""
        end = len(self.text) - self.metadata.overlap_after
        return self.text[self.metadata.overlap_before : end]


class EnrichedChunk(Chunk):
    """A chunk with the optional fields attached by a summarization provider."""

    summary: str | None = None
    title: str | None = None
    keywords: list[str] = Field(default_factory=list)
    importance: float | None = Field(default=None, ge=0.0, le=1.0)
    relationships: list[str] = Field(default_factory=list)
    content_type: str | None = None

    @classmethod
    def from_chunk(cls, chunk: Chunk) -> EnrichedChunk:
        """Lift a raw chunk into an (empty) enriched chunk."""
        if isinstance(chunk, EnrichedChunk):
            return chunk
        return cls(text=chunk.text, metadata=chunk.metadata)

    @property
    def display_title(self) -> str | None:
        """Provider title when present, otherwise the detected heading."""
        return self.title or self.metadata.title

    @property
    def importance_score(self) -> float:
        return self.importance if self.importance is not None else 0.0


def enrich(chunk: Chunk, result: ProviderSummary) -> EnrichedChunk:
    """Merge provider output into a chunk, returning a new value.

    Fields the provider leaves empty keep whatever the chunk already carried.
    """
    base = EnrichedChunk.from_chunk(chunk)
    update: dict = {"summary": result.summary, "title": result.title}
    if result.keywords:
        update["keywords"] = list(result.keywords)
    if result.importance is not None:
        update["importance"] = result.importance
    if result.content_type is not None:
        update["content_type"] = result.content_type
    return base.model_copy(update=update)


def validate_chunk_set(chunks: Sequence[Chunk]) -> None:
    """Reject chunk sets whose chunk_index values are not unique."""
    seen: set[int] = set()
    for chunk in chunks:
        if chunk.chunk_index in seen:
            raise InputError(f"Duplicate chunk_index {chunk.chunk_index} in chunk set")
        seen.add(chunk.chunk_index)
