"""Plain-text extraction: the built-in TextExtractor for .txt and .md files."""

import logging
import re
from pathlib import Path
from typing import Protocol

import chardet

from docdigest.exceptions import InputError
from docdigest.models.document import ExtractedText, PageSpan

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES: frozenset[str] = frozenset({".txt", ".md", ".markdown"})

PAGE_BREAK = "\f"
PAGE_SEPARATOR = "\n\n"


class TextExtractor(Protocol):
    """Produces the full text and page offsets of a source document."""

    def extract(self, file_path: str | Path) -> ExtractedText:
        ...


class PlainTextExtractor:
    """Reads text files, treating form feeds as page breaks.

    A file without form feeds is a single page. Pages are joined with a
    blank line so paragraph splitting sees page boundaries.
    """

    def extract(self, file_path: str | Path) -> ExtractedText:
        """Read a text file into an ExtractedText.

        Args:
            file_path: Path to the text file.

        Returns:
            ExtractedText with full text and one PageSpan per page.

        Raises:
            FileNotFoundError: If file_path does not exist.
            InputError: If the file suffix is not supported.
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        if path.suffix.lower() not in SUPPORTED_SUFFIXES:
            raise InputError(
                f"Unsupported file format: '{path.suffix}'. "
                f"Supported: {', '.join(sorted(SUPPORTED_SUFFIXES))}"
            )

        raw_text = self._read_text(path)
        pages = raw_text.split(PAGE_BREAK)
        if len(pages) > 1 and not pages[-1].strip():
            pages.pop()

        full_text = ""
        spans: list[PageSpan] = []
        for number, page in enumerate(pages, start=1):
            start = len(full_text)
            full_text += page
            if number < len(pages):
                full_text += PAGE_SEPARATOR
            spans.append(PageSpan(page_number=number, start_index=start, end_index=len(full_text)))

        logger.info("Extracted %d characters over %d pages from %s", len(full_text), len(spans), path)
        return ExtractedText(full_text=full_text, page_metadata=spans, source_path=str(path))

    def _read_text(self, file_path: Path) -> str:
        """Read a text file with encoding detection.

        Tries UTF-8 first, then uses chardet for fallback detection.
        """
        try:
            return file_path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            pass

        raw_bytes = file_path.read_bytes()
        detected = chardet.detect(raw_bytes)
        encoding = detected.get("encoding") or "utf-8"
        confidence = detected.get("confidence") or 0

        if confidence < 0.7:
            logger.warning(
                "Low confidence encoding detection for %s: %s (%.0f%%)",
                file_path,
                encoding,
                confidence * 100,
            )

        try:
            return raw_bytes.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            logger.error("Failed to decode %s as %s, replacing invalid bytes", file_path, encoding)
            return raw_bytes.decode("utf-8", errors="replace")


def detect_language(text: str) -> str | None:
    """Guess the dominant script of ``text`` and map it to a language name.

    Returns None when the text has no letters the heuristic recognises.
    """
    counts = {
        "chinese": len(re.findall(r"[\u4e00-\u9fff]", text)),
        "japanese": len(re.findall(r"[\u3040-\u30ff]", text)),
        "korean": len(re.findall(r"[\uac00-\ud7af]", text)),
        "russian": len(re.findall(r"[\u0400-\u04ff]", text)),
        "arabic": len(re.findall(r"[\u0600-\u06ff]", text)),
        "thai": len(re.findall(r"[\u0e00-\u0e7f]", text)),
        "hindi": len(re.findall(r"[\u0900-\u097f]", text)),
        "english": len(re.findall(r"[a-zA-Z]", text)),
    }
    # Kana mixed with kanji is Japanese, not Chinese.
    if counts["japanese"] and counts["chinese"]:
        counts["japanese"] += counts["chinese"]

    language, count = max(counts.items(), key=lambda item: item[1])
    return language if count > 0 else None
