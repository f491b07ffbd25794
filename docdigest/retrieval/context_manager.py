"""Relevance scoring and token-budgeted context window selection."""

import logging
from collections.abc import Sequence

from docdigest.config import ContextConfig
from docdigest.exceptions import InputError
from docdigest.models.chunk import Chunk, EnrichedChunk, validate_chunk_set
from docdigest.models.context import ContextQuery, ContextWindow, Priority, Task
from docdigest.tokens import estimate_chunk_tokens, estimate_tokens, estimate_total_tokens

logger = logging.getLogger(__name__)

# Relevance weights per kind of keyword hit.
TEXT_MATCH_WEIGHT = 0.3
KEYWORD_MATCH_WEIGHT = 0.4
TITLE_MATCH_WEIGHT = 0.5

# Rank = RELEVANCE_WEIGHT * relevance + IMPORTANCE_WEIGHT * importance
RELEVANCE_WEIGHT = 0.7
IMPORTANCE_WEIGHT = 0.3

MAX_QUERY_KEYWORDS = 10
MIN_KEYWORD_LENGTH = 3

SUMMARIZE_IMPORTANCE_THRESHOLD = 0.6
ANALYSIS_IMPORTANCE_THRESHOLD = 0.7
ANALYSIS_SECTION_QUOTA = 3
ANALYSIS_IMPORTANT_QUOTA = 5
ANALYSIS_REGULAR_QUOTA = 7


def extract_keywords(text: str) -> list[str]:
    """First MAX_QUERY_KEYWORDS lower-cased words longer than two characters."""
    words = [word for word in text.lower().split() if len(word) >= MIN_KEYWORD_LENGTH]
    return words[:MAX_QUERY_KEYWORDS]


def score_relevance(chunk: EnrichedChunk, query_keywords: list[str]) -> float:
    """Keyword-overlap relevance of one chunk, capped at 1.0.

    Each query keyword found in the text adds TEXT_MATCH_WEIGHT, each chunk
    keyword containing a query keyword adds KEYWORD_MATCH_WEIGHT, and a title
    containing any query keyword adds TITLE_MATCH_WEIGHT once.
    """
    if not query_keywords:
        return 0.0

    score = 0.0
    text = chunk.text.lower()
    score += TEXT_MATCH_WEIGHT * sum(1 for kw in query_keywords if kw in text)

    for chunk_keyword in chunk.keywords:
        lowered = chunk_keyword.lower()
        if any(kw in lowered for kw in query_keywords):
            score += KEYWORD_MATCH_WEIGHT

    title = chunk.display_title
    if title and any(kw in title.lower() for kw in query_keywords):
        score += TITLE_MATCH_WEIGHT

    return min(score, 1.0)


def _by_index(chunks: Sequence[EnrichedChunk]) -> list[EnrichedChunk]:
    return sorted(chunks, key=lambda c: c.chunk_index)


def _by_importance(chunks: Sequence[EnrichedChunk]) -> list[EnrichedChunk]:
    return sorted(chunks, key=lambda c: c.importance_score, reverse=True)


class ContextManager:
    """Fits chunk sets into token-bounded context windows.

    Every operation is pure: inputs are never reordered or mutated and the
    same inputs always produce the same window. ``total_tokens`` of a
    returned window is the running sum accumulated while admitting chunks,
    so it never exceeds ``max_tokens``.

    Args:
        max_context_tokens: Token budget of windows built by this manager.
        default_max_chunks: Chunk cap for relevance queries without one.
        task_max_chunks: Chunk cap for task-specific windows.
        adaptive_target_tokens: Default target of ``adaptive_context_selection``.
    """

    def __init__(
        self,
        max_context_tokens: int = 32_000,
        *,
        default_max_chunks: int = 10,
        task_max_chunks: int = 15,
        adaptive_target_tokens: int = 16_000,
    ) -> None:
        if max_context_tokens <= 0:
            raise InputError(f"max_context_tokens must be positive, got {max_context_tokens}")
        if default_max_chunks <= 0 or task_max_chunks <= 0:
            raise InputError("Chunk caps must be positive")
        if adaptive_target_tokens <= 0:
            raise InputError(
                f"adaptive_target_tokens must be positive, got {adaptive_target_tokens}"
            )
        self._max_tokens = max_context_tokens
        self._default_max_chunks = default_max_chunks
        self._task_max_chunks = task_max_chunks
        self._adaptive_target_tokens = adaptive_target_tokens

    @classmethod
    def from_config(cls, config: ContextConfig) -> "ContextManager":
        return cls(
            config.max_context_tokens,
            default_max_chunks=config.default_max_chunks,
            task_max_chunks=config.task_max_chunks,
            adaptive_target_tokens=config.adaptive_target_tokens,
        )

    @property
    def max_tokens(self) -> int:
        return self._max_tokens

    def select_relevant_chunks(
        self,
        chunks: Sequence[Chunk],
        query: ContextQuery,
    ) -> ContextWindow:
        """Pick the chunks that best answer ``query`` within the budget.

        Chunks are ranked by ``0.7 * relevance + 0.3 * importance`` and
        admitted greedily. With ``include_context`` the direct neighbours of
        every admitted chunk are added while they still fit, and the window
        is returned in document order.
        """
        enriched = self._prepare(chunks)
        keywords = extract_keywords(query.query)

        ranked = sorted(
            enriched,
            key=lambda c: RELEVANCE_WEIGHT * score_relevance(c, keywords)
            + IMPORTANCE_WEIGHT * c.importance_score,
            reverse=True,
        )
        max_chunks = query.max_chunks or self._default_max_chunks
        selected, used = self._fit(ranked, max_chunks, query.language)

        if query.include_context:
            selected, used = self._add_neighbours(selected, used, enriched, query.language)
            selected = _by_index(selected)

        logger.debug(
            "Selected %d/%d chunks (%d tokens) for query %r",
            len(selected),
            len(enriched),
            used,
            query.query,
        )
        return ContextWindow(
            chunks=selected,
            total_tokens=used,
            max_tokens=self._max_tokens,
            priority="importance",
        )

    def create_task_specific_context(
        self,
        chunks: Sequence[Chunk],
        task: Task,
        language: str | None = None,
    ) -> ContextWindow:
        """Build a window tuned to a downstream task.

        - summarize: important (> 0.6) or section-level chunks, most important first
        - qa, translation: every chunk in document order
        - analysis: a mix of section, important and regular chunks

        Candidates are admitted greedily up to ``task_max_chunks`` and the
        budget; the window lists them in document order.
        """
        enriched = self._prepare(chunks)

        candidates: list[EnrichedChunk]
        priority: Priority
        if task == "summarize":
            candidates = _by_importance(
                [
                    c
                    for c in enriched
                    if c.importance_score > SUMMARIZE_IMPORTANCE_THRESHOLD
                    or c.metadata.semantic_level == "section"
                ]
            )
            priority = "importance"
        elif task in ("qa", "translation"):
            candidates = _by_index(enriched)
            priority = "chronological"
        elif task == "analysis":
            candidates = self._select_diverse(enriched)
            priority = "semantic"
        else:
            raise InputError(f"Unknown task: {task!r}")

        selected, used = self._fit(candidates, self._task_max_chunks, language)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Task %s: %d/%d chunks, %d of %d candidate tokens",
                task,
                len(selected),
                len(enriched),
                used,
                estimate_total_tokens(candidates, language),
            )
        return ContextWindow(
            chunks=_by_index(selected),
            total_tokens=used,
            max_tokens=self._max_tokens,
            priority=priority,
        )

    def adaptive_context_selection(
        self,
        chunks: Sequence[Chunk],
        current_context: str,
        target_tokens: int | None = None,
        language: str | None = None,
    ) -> ContextWindow:
        """Top up an existing context with the most important chunks.

        Chunks are considered by importance; one that does not fit the
        remaining budget is skipped and smaller ones after it may still be
        admitted. ``total_tokens`` includes the current context. Without
        ``target_tokens`` the manager's ``adaptive_target_tokens`` is used.
        """
        if target_tokens is None:
            target_tokens = self._adaptive_target_tokens
        if target_tokens <= 0:
            raise InputError(f"target_tokens must be positive, got {target_tokens}")
        enriched = self._prepare(chunks)

        current_tokens = estimate_tokens(current_context, language)
        available = target_tokens - current_tokens
        if available <= 0:
            return ContextWindow(
                chunks=[],
                total_tokens=current_tokens,
                max_tokens=target_tokens,
                priority="importance",
            )

        selected: list[EnrichedChunk] = []
        used = 0
        for chunk in _by_importance(enriched):
            tokens = estimate_chunk_tokens(chunk, language)
            if used + tokens <= available:
                selected.append(chunk)
                used += tokens

        return ContextWindow(
            chunks=selected,
            total_tokens=current_tokens + used,
            max_tokens=target_tokens,
            priority="importance",
        )

    def _prepare(self, chunks: Sequence[Chunk]) -> list[EnrichedChunk]:
        """Validate a chunk set and lift raw chunks to enriched ones."""
        validate_chunk_set(chunks)
        return [EnrichedChunk.from_chunk(chunk) for chunk in chunks]

    def _fit(
        self,
        chunks: Sequence[EnrichedChunk],
        max_chunks: int,
        language: str | None,
    ) -> tuple[list[EnrichedChunk], int]:
        """Admit chunks in order until the next one would overflow the budget."""
        selected: list[EnrichedChunk] = []
        used = 0
        for chunk in chunks[:max_chunks]:
            tokens = estimate_chunk_tokens(chunk, language)
            if used + tokens > self._max_tokens:
                break
            selected.append(chunk)
            used += tokens
        return selected, used

    def _add_neighbours(
        self,
        selected: list[EnrichedChunk],
        used: int,
        all_chunks: list[EnrichedChunk],
        language: str | None,
    ) -> tuple[list[EnrichedChunk], int]:
        by_index = {c.chunk_index: c for c in all_chunks}
        included = {c.chunk_index for c in selected}
        result = list(selected)

        for chunk in selected:
            for neighbour_index in (chunk.chunk_index - 1, chunk.chunk_index + 1):
                neighbour = by_index.get(neighbour_index)
                if neighbour is None or neighbour_index in included:
                    continue
                tokens = estimate_chunk_tokens(neighbour, language)
                if used + tokens > self._max_tokens:
                    continue
                result.append(neighbour)
                included.add(neighbour_index)
                used += tokens

        return result, used

    def _select_diverse(self, chunks: list[EnrichedChunk]) -> list[EnrichedChunk]:
        sections = [c for c in chunks if c.metadata.semantic_level == "section"]
        important = [c for c in chunks if c.importance_score > ANALYSIS_IMPORTANCE_THRESHOLD]
        regular = [
            c
            for c in chunks
            if c.metadata.semantic_level != "section"
            and c.importance_score <= ANALYSIS_IMPORTANCE_THRESHOLD
        ]

        picked: dict[int, EnrichedChunk] = {}
        for group in (
            sections[:ANALYSIS_SECTION_QUOTA],
            important[:ANALYSIS_IMPORTANT_QUOTA],
            regular[:ANALYSIS_REGULAR_QUOTA],
        ):
            for chunk in group:
                picked.setdefault(chunk.chunk_index, chunk)
        return _by_index(list(picked.values()))
