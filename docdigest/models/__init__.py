"""Data models for the docdigest pipeline."""

from docdigest.models.chunk import Chunk, ChunkMetadata, EnrichedChunk, enrich, validate_chunk_set
from docdigest.models.context import ContextQuery, ContextWindow
from docdigest.models.document import ExtractedText, PageSpan
from docdigest.models.summary import (
    SUMMARY_LEVELS,
    AggregatedSummary,
    AggregationRequest,
    Highlight,
    HierarchicalSummary,
    KeyPoint,
    ProviderSummary,
    SectionSummary,
    SummarizationMetadata,
    SummarizationResult,
    SummaryOptions,
)

__all__ = [
    "SUMMARY_LEVELS",
    "AggregatedSummary",
    "AggregationRequest",
    "Chunk",
    "ChunkMetadata",
    "ContextQuery",
    "ContextWindow",
    "EnrichedChunk",
    "ExtractedText",
    "Highlight",
    "HierarchicalSummary",
    "KeyPoint",
    "PageSpan",
    "ProviderSummary",
    "SectionSummary",
    "SummarizationMetadata",
    "SummarizationResult",
    "SummaryOptions",
    "enrich",
    "validate_chunk_set",
]
