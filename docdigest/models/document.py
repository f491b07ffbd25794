"""Extracted document models: the TextExtractor contract."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class PageSpan(BaseModel):
    """Character span of one page within the extracted full text."""

    model_config = ConfigDict(frozen=True)

    page_number: int = Field(ge=1)
    start_index: int = Field(ge=0)
    end_index: int = Field(ge=0)


class ExtractedText(BaseModel):
    """Raw text of a document plus the ordered page offsets within it."""

    model_config = ConfigDict(frozen=True)

    full_text: str
    page_metadata: list[PageSpan] = Field(default_factory=list)
    source_path: str = ""
