"""Tests for the chunking strategies and the adaptive dispatcher."""

import pytest
from pydantic import ValidationError

from docdigest.config import ChunkingConfig
from docdigest.exceptions import InputError
from docdigest.ingestion.chunker import (
    AdaptiveChunker,
    SemanticChunker,
    SimpleChunker,
    SlidingWindowChunker,
    StrategyKind,
    chunk_extracted_text,
    classify,
)
from docdigest.ingestion.structure import RegexHeadingDetector, structure_score
from docdigest.models.chunk import Chunk
from docdigest.models.document import ExtractedText, PageSpan

SENTENCE = "The quick brown fox jumps over the lazy dog. "
PARAGRAPH = (SENTENCE * 10).strip()


def _section(title: str, paragraphs: int) -> str:
    return f"# {title}\n\n" + "\n\n".join([PARAGRAPH] * paragraphs) + "\n\n"


def _indices(chunks: list[Chunk]) -> list[int]:
    return [c.chunk_index for c in chunks]


def _rebuild_windows(chunks: list[Chunk]) -> str:
    """Reassemble overlapping windows by dropping each window's repeated head."""
    text = ""
    for chunk in chunks:
        text += chunk.text[len(text) - chunk.metadata.start_index :]
    return text


@pytest.fixture
def config() -> ChunkingConfig:
    return ChunkingConfig()


@pytest.fixture
def structured_text() -> str:
    return _section("Introduction", 11) + _section("Methods", 11) + _section("Results", 11)


# ── Structure detection ──────────────────────────────────────────────────────


class TestStructureDetection:
    def test_markdown_headers_count(self) -> None:
        text = "# One\nbody.\n## Two\nbody.\n"
        assert structure_score(text) == 2

    def test_chapters_and_numbered_lines(self) -> None:
        text = "Chapter 1\ntext.\n第三章 开始\ntext.\n2. Second point\n"
        assert structure_score(text) == 3

    def test_title_case_lines_do_not_count(self) -> None:
        text = "Background Information\nSome prose here.\nAnother Heading\n"
        assert structure_score(text) == 0
        assert RegexHeadingDetector().is_heading("Background Information")

    def test_prose_and_blank_lines_are_not_headings(self) -> None:
        detector = RegexHeadingDetector()
        assert not detector.is_heading("")
        assert not detector.is_heading("   ")
        assert not detector.is_heading("This sentence ends with a period.")


# ── Adaptive dispatch ────────────────────────────────────────────────────────


class TestClassify:
    def test_structured_long_text_is_semantic(self) -> None:
        assert classify(15_000, 3) is StrategyKind.SEMANTIC

    def test_structured_short_text_is_simple(self) -> None:
        assert classify(9_000, 5) is StrategyKind.SIMPLE

    def test_length_threshold_is_exclusive(self) -> None:
        assert classify(10_000, 2) is StrategyKind.SIMPLE

    def test_single_marker_is_not_structure(self) -> None:
        assert classify(15_000, 1) is StrategyKind.SIMPLE

    def test_long_unstructured_text_is_sliding(self) -> None:
        assert classify(60_000, 0) is StrategyKind.SLIDING_WINDOW

    def test_long_structured_text_prefers_semantic(self) -> None:
        assert classify(60_000, 5) is StrategyKind.SEMANTIC

    def test_custom_thresholds(self) -> None:
        assert classify(200, 1, structure_min_length=100, structure_min_markers=1) is (
            StrategyKind.SEMANTIC
        )


class TestAdaptiveChunker:
    def test_structured_document_scenario(
        self, config: ChunkingConfig, structured_text: str
    ) -> None:
        assert len(structured_text) > 10_000
        chunker = AdaptiveChunker(config)
        assert chunker.select(structured_text) is StrategyKind.SEMANTIC

        chunks = chunker.chunk(structured_text)
        assert len(chunks) >= 3
        assert all(c.metadata.semantic_level in ("section", "paragraph") for c in chunks)

    def test_unstructured_long_document_uses_sliding_window(self, config: ChunkingConfig) -> None:
        text = "word " * 12_000
        chunker = AdaptiveChunker(config)
        assert chunker.select(text) is StrategyKind.SLIDING_WINDOW
        chunks = chunker.chunk(text)
        assert len(chunks) > 1
        assert all(len(c.text) <= config.window_size for c in chunks)

    def test_short_document_uses_simple_split(self, config: ChunkingConfig) -> None:
        text = "word " * 1_000
        chunks = AdaptiveChunker(config).chunk(text)
        assert "".join(c.text for c in chunks) == text

    def test_no_structure_never_empty(self, config: ChunkingConfig) -> None:
        chunks = AdaptiveChunker(config).chunk("just a little text")
        assert len(chunks) == 1
        assert chunks[0].text == "just a little text"

    def test_empty_text_returns_no_chunks(self, config: ChunkingConfig) -> None:
        assert AdaptiveChunker(config).chunk("") == []

    def test_whitespace_only_yields_one_chunk(self, config: ChunkingConfig) -> None:
        chunks = AdaptiveChunker(config).chunk("   \n\n  ")
        assert len(chunks) == 1

    def test_deterministic(self, config: ChunkingConfig, structured_text: str) -> None:
        chunker = AdaptiveChunker(config)
        assert chunker.chunk(structured_text) == chunker.chunk(structured_text)


# ── Semantic (structural) chunking ───────────────────────────────────────────


class TestSemanticChunker:
    def test_indices_start_at_zero_and_increase(
        self, config: ChunkingConfig, structured_text: str
    ) -> None:
        chunks = SemanticChunker(config).chunk(structured_text)
        assert _indices(chunks) == list(range(len(chunks)))

    def test_cores_partition_the_text(self, config: ChunkingConfig, structured_text: str) -> None:
        chunks = SemanticChunker(config).chunk(structured_text)
        assert "".join(c.core_text for c in chunks) == structured_text

    def test_metadata_describes_core_span(
        self, config: ChunkingConfig, structured_text: str
    ) -> None:
        for chunk in SemanticChunker(config).chunk(structured_text):
            meta = chunk.metadata
            assert structured_text[meta.start_index : meta.end_index] == chunk.core_text

    @pytest.mark.parametrize("max_size", [600, 1000, 2500, 4000])
    def test_cores_respect_max_chunk_size(self, structured_text: str, max_size: int) -> None:
        config = ChunkingConfig(max_chunk_size=max_size, min_chunk_size=100)
        for chunk in SemanticChunker(config).chunk(structured_text):
            assert len(chunk.core_text) <= max_size

    def test_oversized_paragraph_is_cut(self) -> None:
        config = ChunkingConfig(max_chunk_size=500, min_chunk_size=50, overlap_size=0)
        text = "# Wall\n" + "x" * 1_800
        chunks = SemanticChunker(config).chunk(text)
        assert len(chunks) == 4
        assert all(len(c.core_text) <= 500 for c in chunks)
        assert "".join(c.text for c in chunks) == text

    def test_short_section_merges_forward(self) -> None:
        config = ChunkingConfig(min_chunk_size=100, overlap_size=0)
        text = (
            "# Intro\nTiny intro line.\n"
            f"# Part One\n{PARAGRAPH}\n"
            f"# Part Two\n{PARAGRAPH}\n"
        )
        chunks = SemanticChunker(config).chunk(text)
        assert len(chunks) == 2
        assert chunks[0].metadata.title == "# Intro"
        assert "# Part One" in chunks[0].core_text
        assert chunks[1].metadata.title == "# Part Two"
        assert all(c.metadata.semantic_level == "section" for c in chunks)

    def test_large_section_split_into_paragraph_chunks(self) -> None:
        config = ChunkingConfig(max_chunk_size=1_000, min_chunk_size=100)
        text = _section("Only", 6)
        chunks = SemanticChunker(config).chunk(text)
        assert len(chunks) > 1
        assert all(c.metadata.semantic_level == "paragraph" for c in chunks)
        assert all(c.metadata.title == "# Only" for c in chunks)

    def test_overlap_padding(self) -> None:
        config = ChunkingConfig(min_chunk_size=100, overlap_size=20)
        text = f"# A\n{PARAGRAPH}\n# B\n{PARAGRAPH}\n# C\n{PARAGRAPH}\n"
        chunks = SemanticChunker(config).chunk(text)
        assert len(chunks) == 3

        first, middle, last = chunks
        assert first.metadata.overlap_before == 0
        assert last.metadata.overlap_after == 0
        assert middle.text.startswith("..." + first.core_text.strip()[-20:] + "\n\n")
        assert middle.text.endswith("\n\n" + last.core_text.strip()[:20] + "...")
        assert middle.metadata.overlap_before == len("...") + 20 + len("\n\n")

    def test_zero_overlap_leaves_text_untouched(self) -> None:
        config = ChunkingConfig(min_chunk_size=100, overlap_size=0)
        text = f"# A\n{PARAGRAPH}\n# B\n{PARAGRAPH}\n"
        chunks = SemanticChunker(config).chunk(text)
        assert all(c.text == c.core_text for c in chunks)

    def test_pluggable_detector(self) -> None:
        class SectionSignDetector:
            def is_heading(self, line: str) -> bool:
                return line.startswith("§")

            def is_structural_marker(self, line: str) -> bool:
                return self.is_heading(line)

        config = ChunkingConfig(min_chunk_size=10, overlap_size=0)
        text = "§ 1\nfirst rule text here.\n§ 2\nsecond rule text here.\n"
        chunks = SemanticChunker(config, SectionSignDetector()).chunk(text)
        assert [c.metadata.title for c in chunks] == ["§ 1", "§ 2"]

    def test_empty_text(self, config: ChunkingConfig) -> None:
        assert SemanticChunker(config).chunk("") == []


# ── Sliding window and simple split ──────────────────────────────────────────


class TestSlidingWindowChunker:
    @pytest.fixture
    def chunker(self) -> SlidingWindowChunker:
        return SlidingWindowChunker(ChunkingConfig(window_size=100, step_size=60))

    def test_window_positions(self, chunker: SlidingWindowChunker) -> None:
        chunks = chunker.chunk("a" * 250)
        assert [c.metadata.start_index for c in chunks] == [0, 60, 120, 180]
        assert chunks[-1].metadata.end_index == 250

    def test_reconstructs_text(self, chunker: SlidingWindowChunker) -> None:
        text = "".join(chr(ord("a") + i % 26) for i in range(1_234))
        chunks = chunker.chunk(text)
        assert _rebuild_windows(chunks) == text
        assert _indices(chunks) == list(range(len(chunks)))

    def test_exact_window_is_single_chunk(self, chunker: SlidingWindowChunker) -> None:
        assert len(chunker.chunk("b" * 100)) == 1

    def test_consecutive_windows_overlap(self, chunker: SlidingWindowChunker) -> None:
        chunks = chunker.chunk("c" * 300)
        for prev, nxt in zip(chunks, chunks[1:]):
            assert nxt.metadata.start_index < prev.metadata.end_index

    def test_step_must_be_smaller_than_window(self) -> None:
        config = ChunkingConfig.model_construct(window_size=100, step_size=100)
        with pytest.raises(InputError):
            SlidingWindowChunker(config)

    def test_config_rejects_invalid_geometry(self) -> None:
        with pytest.raises(ValidationError):
            ChunkingConfig(window_size=1_000, step_size=2_000)


class TestSimpleChunker:
    def test_fixed_size_slices(self) -> None:
        chunker = SimpleChunker(ChunkingConfig(simple_chunk_size=100))
        text = "z" * 250
        chunks = chunker.chunk(text)
        assert [len(c.text) for c in chunks] == [100, 100, 50]
        assert "".join(c.text for c in chunks) == text
        assert _indices(chunks) == [0, 1, 2]


# ── Page mapping ─────────────────────────────────────────────────────────────


class TestChunkExtractedText:
    def test_page_numbers_attached(self) -> None:
        extracted = ExtractedText(
            full_text="p" * 200,
            page_metadata=[
                PageSpan(page_number=1, start_index=0, end_index=100),
                PageSpan(page_number=2, start_index=100, end_index=200),
            ],
        )
        chunks = chunk_extracted_text(extracted, SimpleChunker(ChunkingConfig(simple_chunk_size=120)))
        assert [c.metadata.page_numbers for c in chunks] == [[1, 2], [2]]

    def test_without_pages(self) -> None:
        chunks = chunk_extracted_text(ExtractedText(full_text="short text"))
        assert chunks[0].metadata.page_numbers == []
