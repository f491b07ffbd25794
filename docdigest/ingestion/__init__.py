"""Document ingestion: extraction, structure detection and chunking."""

from docdigest.ingestion.chunker import (
    AdaptiveChunker,
    ChunkingStrategy,
    SemanticChunker,
    SimpleChunker,
    SlidingWindowChunker,
    StrategyKind,
    chunk_extracted_text,
    classify,
)
from docdigest.ingestion.extractor import PlainTextExtractor, TextExtractor, detect_language
from docdigest.ingestion.pages import assign_page_numbers
from docdigest.ingestion.structure import HeadingDetector, RegexHeadingDetector, structure_score

__all__ = [
    "AdaptiveChunker",
    "ChunkingStrategy",
    "HeadingDetector",
    "PlainTextExtractor",
    "RegexHeadingDetector",
    "SemanticChunker",
    "SimpleChunker",
    "SlidingWindowChunker",
    "StrategyKind",
    "TextExtractor",
    "assign_page_numbers",
    "chunk_extracted_text",
    "classify",
    "detect_language",
    "structure_score",
]
