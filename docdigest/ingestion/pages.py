"""Mapping of chunk spans onto extractor page offsets."""

from docdigest.models.chunk import Chunk
from docdigest.models.document import PageSpan


def pages_for_span(start: int, end: int, pages: list[PageSpan]) -> list[int]:
    """Page numbers whose span intersects ``[start, end)``."""
    return [
        page.page_number
        for page in pages
        if start < page.end_index and end > page.start_index
    ]


def assign_page_numbers(chunks: list[Chunk], pages: list[PageSpan]) -> list[Chunk]:
    """Return copies of ``chunks`` with ``page_numbers`` filled from ``pages``.

    Chunks are never modified in place; without page metadata the input
    list is returned unchanged.
    """
    if not pages:
        return chunks

    result: list[Chunk] = []
    for chunk in chunks:
        meta = chunk.metadata
        numbers = pages_for_span(meta.start_index, meta.end_index, pages)
        result.append(
            chunk.model_copy(update={"metadata": meta.model_copy(update={"page_numbers": numbers})})
        )
    return result
