"""Batched chunk enrichment and hierarchical roll-up.

Two modes share the same batching and fallback rules:

- ``process``: collect-all. Results come back in chunk_index order, followed
  by one aggregation call that builds the hierarchical summary.
- ``stream``: priority-ordered streaming. Each enriched chunk is yielded as
  soon as its call completes; with ``prioritize`` the most important chunks
  are processed first, so emission order is not chunk_index order.

Batches are the backpressure mechanism: every chunk of a batch is summarized
concurrently and the next batch starts only once the whole batch settled.
A failing provider call never escapes its chunk; the chunk gets a
deterministic fallback title and summary instead.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Sequence

from docdigest.config import SummarizationConfig
from docdigest.exceptions import InputError
from docdigest.models.chunk import Chunk, EnrichedChunk, enrich, validate_chunk_set
from docdigest.models.summary import (
    SUMMARY_LEVELS,
    AggregatedSummary,
    AggregationRequest,
    Highlight,
    HierarchicalSummary,
    SectionSummary,
    SummarizationMetadata,
    SummarizationResult,
    SummaryOptions,
)
from docdigest.summarization.local import LocalSummaryProvider
from docdigest.summarization.providers import SummarizationProvider

logger = logging.getLogger(__name__)

IMPORTANCE_RANK: dict[str, int] = {"high": 0, "medium": 1, "low": 2}

# Number of top chunks shown to the provider during aggregation.
AGGREGATION_IMPORTANT_CHUNKS = 5


def fallback_title(chunk: Chunk) -> str:
    return f"Section {chunk.chunk_index + 1}"


def _by_importance(chunks: Sequence[EnrichedChunk]) -> list[EnrichedChunk]:
    return sorted(chunks, key=lambda c: c.importance_score, reverse=True)


def _batches(chunks: Sequence[Chunk], size: int) -> list[Sequence[Chunk]]:
    return [chunks[i : i + size] for i in range(0, len(chunks), size)]


class SummarizationOrchestrator:
    """Drives a summarization provider over a document's chunks.

    Args:
        provider: The provider selected for this run.
        config: Batch size, inter-batch delay and fallback settings.
        fallback: Deterministic summarizer used when aggregation fails.
    """

    def __init__(
        self,
        provider: SummarizationProvider,
        config: SummarizationConfig | None = None,
        fallback: LocalSummaryProvider | None = None,
    ) -> None:
        self._provider = provider
        self._config = config or SummarizationConfig()
        self._fallback = fallback or LocalSummaryProvider()

    @property
    def provider_name(self) -> str:
        return getattr(self._provider, "name", type(self._provider).__name__)

    async def process(
        self,
        chunks: Sequence[Chunk],
        language: str,
        level: str | None = None,
    ) -> SummarizationResult:
        """Enrich every chunk and build the hierarchical summary.

        Raises:
            InputError: If ``chunks`` is empty, has duplicate indices or
                ``level`` is unknown. Provider failures never raise.
        """
        ordered = self._prepare(chunks)
        options = self._options(level)
        batches = _batches(ordered, self._config.batch_size)

        enriched: list[EnrichedChunk] = []
        fallback_count = 0
        for number, batch in enumerate(batches, start=1):
            if number > 1 and self._config.batch_delay:
                await asyncio.sleep(self._config.batch_delay)

            results = await asyncio.gather(
                *(self._enrich(chunk, language, options) for chunk in batch)
            )
            for chunk, used_fallback in results:
                enriched.append(chunk)
                fallback_count += used_fallback
            logger.info("Enriched batch %d/%d (%d chunks)", number, len(batches), len(batch))

        if fallback_count:
            logger.warning("%d/%d chunks used the local fallback", fallback_count, len(enriched))

        summary = await self.aggregate(enriched, language, options.level)
        return SummarizationResult(
            chunks=enriched,
            hierarchical_summary=summary,
            metadata=SummarizationMetadata(
                total_chunks=len(enriched),
                summary_level=options.level,
                language=language,
                provider=self.provider_name,
                fallback_count=fallback_count,
            ),
        )

    async def stream(
        self,
        chunks: Sequence[Chunk],
        language: str,
        *,
        cancel_event: asyncio.Event | None = None,
        prioritize: bool = True,
        level: str | None = None,
    ) -> AsyncIterator[EnrichedChunk]:
        """Yield enriched chunks as soon as each one is ready.

        Cancellation is cooperative: once ``cancel_event`` is set no new
        provider call starts and nothing more is yielded. Calls already in
        flight run to completion but their results are dropped.
        """
        ordered = self._prepare(chunks)
        if prioritize:
            ordered = _by_importance([EnrichedChunk.from_chunk(c) for c in ordered])
        options = self._options(level)

        def cancelled() -> bool:
            return cancel_event is not None and cancel_event.is_set()

        for number, batch in enumerate(_batches(ordered, self._config.batch_size), start=1):
            if number > 1 and self._config.batch_delay:
                await asyncio.sleep(self._config.batch_delay)

            tasks: list[asyncio.Task] = []
            for chunk in batch:
                if cancelled():
                    break
                tasks.append(asyncio.create_task(self._enrich(chunk, language, options)))

            try:
                for next_done in asyncio.as_completed(tasks):
                    enriched, _ = await next_done
                    if cancelled():
                        continue
                    yield enriched
            finally:
                for task in tasks:
                    if not task.done():
                        task.cancel()

            if cancelled():
                logger.info("Streaming cancelled after batch %d", number)
                return

    async def aggregate(
        self,
        chunks: Sequence[EnrichedChunk],
        language: str,
        level: str | None = None,
    ) -> HierarchicalSummary:
        """Roll enriched chunks up into a hierarchical summary.

        Holds no state between calls: the same chunks always produce the
        same structure, and the same overall summary for a deterministic
        provider.
        """
        options = self._options(level)
        ordered = sorted(chunks, key=lambda c: c.chunk_index)
        ranked = _by_importance(ordered)

        sections = [
            SectionSummary(
                title=chunk.display_title or fallback_title(chunk),
                summary=chunk.summary or self._prefix(chunk),
                page_numbers=list(chunk.metadata.page_numbers),
            )
            for chunk in ordered
            if chunk.metadata.semantic_level == "section"
        ]
        request = AggregationRequest(
            summaries="\n\n".join(c.summary for c in ordered if c.summary),
            section_summaries=sections,
            important_chunks=[self._highlight(c) for c in ranked[:AGGREGATION_IMPORTANT_CHUNKS]],
        )

        try:
            aggregated: AggregatedSummary = await self._provider.aggregate(
                request, language, options
            )
        except Exception as e:
            logger.warning("Aggregation failed, using local summary: %s", e)
            aggregated = self._fallback.aggregate_sync(request, language)

        key_points = sorted(aggregated.key_points, key=lambda kp: IMPORTANCE_RANK[kp.importance])
        return HierarchicalSummary(
            overall_summary=aggregated.overall_summary,
            key_points=key_points,
            section_breakdown=sections,
            highlights=[self._highlight(c) for c in ranked[: self._config.highlight_count]],
        )

    async def _enrich(
        self,
        chunk: Chunk,
        language: str,
        options: SummaryOptions,
    ) -> tuple[EnrichedChunk, bool]:
        """Summarize one chunk; returns the result and whether it fell back."""
        try:
            result = await self._provider.summarize(chunk.text, language, options)
            enriched = enrich(chunk, result)
        except Exception as e:
            logger.warning("Chunk %d fell back to local summary: %s", chunk.chunk_index, e)
            return self._fallback_chunk(chunk), True
        return enriched, False

    def _fallback_chunk(self, chunk: Chunk) -> EnrichedChunk:
        return EnrichedChunk.from_chunk(chunk).model_copy(
            update={"summary": self._prefix(chunk), "title": fallback_title(chunk)}
        )

    def _prefix(self, chunk: Chunk) -> str:
        core = chunk.core_text.strip()
        limit = self._config.fallback_summary_chars
        return core[:limit] + "..." if len(core) > limit else core

    def _highlight(self, chunk: EnrichedChunk) -> Highlight:
        return Highlight(
            title=chunk.display_title,
            summary=chunk.summary,
            page_numbers=list(chunk.metadata.page_numbers),
            importance=chunk.importance,
            chunk_index=chunk.chunk_index,
        )

    def _options(self, level: str | None) -> SummaryOptions:
        name = level or self._config.level
        try:
            return SUMMARY_LEVELS[name]
        except KeyError:
            raise InputError(f"Unknown summary level: {name!r}") from None

    def _prepare(self, chunks: Sequence[Chunk]) -> list[Chunk]:
        if not chunks:
            raise InputError("Cannot summarize an empty chunk set")
        validate_chunk_set(chunks)
        return sorted(chunks, key=lambda c: c.chunk_index)
