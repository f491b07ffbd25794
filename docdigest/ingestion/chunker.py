"""Chunking strategies: structural, sliding-window, simple and adaptive dispatch."""

import logging
import re
from enum import Enum
from typing import NamedTuple, Protocol

from docdigest.config import ChunkingConfig
from docdigest.exceptions import InputError
from docdigest.ingestion.pages import assign_page_numbers
from docdigest.ingestion.structure import (
    DEFAULT_DETECTOR,
    HeadingDetector,
    structure_score,
)
from docdigest.models.chunk import Chunk, ChunkMetadata, SemanticLevel
from docdigest.models.document import ExtractedText

logger = logging.getLogger(__name__)

# Adaptive dispatch thresholds (characters / marker lines).
STRUCTURE_MIN_LENGTH = 10_000
SLIDING_MIN_LENGTH = 50_000
STRUCTURE_MIN_MARKERS = 2

PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


class StrategyKind(str, Enum):
    """The concrete strategy the adaptive dispatcher can route to."""

    SEMANTIC = "semantic"
    SLIDING_WINDOW = "sliding-window"
    SIMPLE = "simple"


class ChunkingStrategy(Protocol):
    """Anything that turns raw text into an ordered list of chunks."""

    name: str

    def chunk(self, text: str) -> list[Chunk]:
        """Split ``text`` into chunks with strictly increasing chunk_index from 0."""
        ...


class _Piece(NamedTuple):
    start: int
    end: int
    semantic_level: SemanticLevel | None
    title: str | None


def _make_chunk(
    text: str,
    start: int,
    end: int,
    chunk_index: int,
    semantic_level: SemanticLevel | None = None,
    title: str | None = None,
    overlap_before: int = 0,
    overlap_after: int = 0,
) -> Chunk:
    return Chunk(
        text=text,
        metadata=ChunkMetadata(
            start_index=start,
            end_index=end,
            chunk_index=chunk_index,
            semantic_level=semantic_level,
            title=title,
            overlap_before=overlap_before,
            overlap_after=overlap_after,
        ),
    )


def classify(
    length: int,
    score: int,
    *,
    structure_min_length: int = STRUCTURE_MIN_LENGTH,
    sliding_min_length: int = SLIDING_MIN_LENGTH,
    structure_min_markers: int = STRUCTURE_MIN_MARKERS,
) -> StrategyKind:
    """Pick a strategy from the text length and its structure score."""
    if score >= structure_min_markers and length > structure_min_length:
        return StrategyKind.SEMANTIC
    if length > sliding_min_length:
        return StrategyKind.SLIDING_WINDOW
    return StrategyKind.SIMPLE


class SemanticChunker:
    """Splits text along detected headings, then along paragraphs.

    Chunking steps:
    1. Sections: a new section starts at each heading line, unless the
       running section is still at most ``min_chunk_size`` characters, in
       which case the heading is merged forward into it.
    2. Paragraphs: sections longer than ``max_chunk_size`` are re-accumulated
       from blank-line separated paragraphs up to ``max_chunk_size``. A single
       paragraph above the maximum is cut into ``max_chunk_size`` pieces.
    3. Overlap: every chunk but the first is prefixed with the tail of the
       previous core, every chunk but the last is suffixed with the head of
       the next core. Metadata spans keep describing the core only.

    Args:
        config: ChunkingConfig with max/min chunk size and overlap settings.
        detector: Heading detector; defaults to the built-in regex table.
    """

    name = StrategyKind.SEMANTIC.value

    def __init__(
        self,
        config: ChunkingConfig | None = None,
        detector: HeadingDetector = DEFAULT_DETECTOR,
    ) -> None:
        self._config = config or ChunkingConfig()
        self._detector = detector

    def chunk(self, text: str) -> list[Chunk]:
        if not text:
            return []

        pieces: list[_Piece] = []
        for section in self._split_sections(text):
            if section.end - section.start > self._config.max_chunk_size:
                pieces.extend(self._split_paragraphs(text, section))
            else:
                pieces.append(section)

        logger.debug("Semantic chunking produced %d pieces", len(pieces))
        return self._add_overlap(text, pieces)

    def _split_sections(self, text: str) -> list[_Piece]:
        sections: list[_Piece] = []
        start = 0
        title: str | None = None
        offset = 0

        for line in text.split("\n"):
            if self._detector.is_heading(line):
                running = text[start:offset]
                if len(running.strip()) > self._config.min_chunk_size:
                    sections.append(_Piece(start, offset, "section", title))
                    start = offset
                    title = line.strip()
                elif not running.strip():
                    # Nothing accumulated yet: the heading names this section.
                    title = line.strip()
            offset += len(line) + 1

        if start < len(text):
            sections.append(_Piece(start, len(text), "section", title))
        return sections

    def _split_paragraphs(self, text: str, section: _Piece) -> list[_Piece]:
        max_size = self._config.max_chunk_size

        spans: list[tuple[int, int]] = []
        prev = section.start
        for match in PARAGRAPH_BREAK.finditer(text, section.start, section.end):
            if match.end() > prev:
                spans.append((prev, match.end()))
                prev = match.end()
        if prev < section.end:
            spans.append((prev, section.end))

        pieces: list[_Piece] = []
        current_start: int | None = None
        current_end = section.start

        def flush() -> None:
            nonlocal current_start
            if current_start is not None:
                pieces.append(_Piece(current_start, current_end, "paragraph", section.title))
                current_start = None

        for para_start, para_end in spans:
            if para_end - para_start > max_size:
                flush()
                for cut in range(para_start, para_end, max_size):
                    pieces.append(
                        _Piece(cut, min(cut + max_size, para_end), "paragraph", section.title)
                    )
                continue

            if current_start is not None and para_end - current_start > max_size:
                flush()
            if current_start is None:
                current_start = para_start
            current_end = para_end

        flush()
        return pieces

    def _add_overlap(self, text: str, pieces: list[_Piece]) -> list[Chunk]:
        overlap = self._config.overlap_size
        cores = [text[p.start : p.end] for p in pieces]
        stripped = [core.strip() for core in cores]
        last = len(pieces) - 1

        chunks: list[Chunk] = []
        for i, piece in enumerate(pieces):
            prefix = ""
            suffix = ""
            if overlap > 0 and i > 0:
                prefix = f"...{stripped[i - 1][-overlap:]}\n\n"
            if overlap > 0 and i < last:
                suffix = f"\n\n{stripped[i + 1][:overlap]}..."

            chunks.append(
                _make_chunk(
                    text=prefix + cores[i] + suffix,
                    start=piece.start,
                    end=piece.end,
                    chunk_index=i,
                    semantic_level=piece.semantic_level,
                    title=piece.title,
                    overlap_before=len(prefix),
                    overlap_after=len(suffix),
                )
            )
        return chunks


class SlidingWindowChunker:
    """Fixed-size overlapping windows advancing by ``step_size``.

    The last window is emitted as soon as it reaches the end of the text,
    so the windows always cover the whole input.
    """

    name = StrategyKind.SLIDING_WINDOW.value

    def __init__(self, config: ChunkingConfig | None = None) -> None:
        config = config or ChunkingConfig()
        if config.step_size <= 0 or config.step_size >= config.window_size:
            raise InputError(
                f"Sliding window needs 0 < step_size < window_size, "
                f"got step={config.step_size}, window={config.window_size}"
            )
        self._window = config.window_size
        self._step = config.step_size

    def chunk(self, text: str) -> list[Chunk]:
        chunks: list[Chunk] = []
        for start in range(0, len(text), self._step):
            end = min(start + self._window, len(text))
            chunks.append(_make_chunk(text[start:end], start, end, len(chunks)))
            if start + self._window >= len(text):
                break
        return chunks


class SimpleChunker:
    """Consecutive fixed-size slices without overlap."""

    name = StrategyKind.SIMPLE.value

    def __init__(self, config: ChunkingConfig | None = None) -> None:
        config = config or ChunkingConfig()
        self._size = config.simple_chunk_size

    def chunk(self, text: str) -> list[Chunk]:
        chunks: list[Chunk] = []
        for start in range(0, len(text), self._size):
            end = min(start + self._size, len(text))
            chunks.append(_make_chunk(text[start:end], start, end, len(chunks)))
        return chunks


class AdaptiveChunker:
    """Chooses a strategy per document from its length and structure score.

    Structured documents longer than ``structure_min_length`` go to the
    semantic chunker, very long unstructured ones to the sliding window, and
    everything else to the simple splitter.

    Args:
        config: ChunkingConfig shared by all underlying strategies.
        detector: Heading detector used for scoring and section splitting.
    """

    name = "adaptive"

    def __init__(
        self,
        config: ChunkingConfig | None = None,
        detector: HeadingDetector = DEFAULT_DETECTOR,
    ) -> None:
        self._config = config or ChunkingConfig()
        self._detector = detector
        self._strategies: dict[StrategyKind, ChunkingStrategy] = {
            StrategyKind.SEMANTIC: SemanticChunker(self._config, detector),
            StrategyKind.SLIDING_WINDOW: SlidingWindowChunker(self._config),
            StrategyKind.SIMPLE: SimpleChunker(self._config),
        }

    def select(self, text: str) -> StrategyKind:
        """Return the strategy kind ``chunk`` would use for ``text``."""
        return classify(
            len(text),
            structure_score(text, self._detector),
            structure_min_length=self._config.structure_min_length,
            sliding_min_length=self._config.sliding_min_length,
            structure_min_markers=self._config.structure_min_markers,
        )

    def chunk(self, text: str) -> list[Chunk]:
        if not text:
            return []
        kind = self.select(text)
        logger.info("Chunking %d characters with the %s strategy", len(text), kind.value)
        return self._strategies[kind].chunk(text)


def chunk_extracted_text(
    extracted: ExtractedText,
    strategy: ChunkingStrategy | None = None,
) -> list[Chunk]:
    """Chunk an extractor's output and attach page numbers to every chunk."""
    strategy = strategy or AdaptiveChunker()
    chunks = strategy.chunk(extracted.full_text)
    return assign_page_numbers(chunks, extracted.page_metadata)
