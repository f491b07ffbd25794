"""Heading detection used by the structural chunker and the adaptive dispatcher."""

import re
from typing import Protocol

# Heading patterns, matched against a stripped line.
HEADING_PATTERNS: dict[str, re.Pattern[str]] = {
    "cjk_chapter": re.compile(r"^第[一二三四五六七八九十百千\d]+章.*"),
    "chapter": re.compile(r"^Chapter \d+.*"),
    "markdown": re.compile(r"^#{1,6} .*"),
    "numbered": re.compile(r"^\d+\.\s+.*"),
    "title_case": re.compile(r"^[A-Z][^.!?]*$"),
}

# Patterns strong enough to count towards a document's structure score.
# Title-case lines split sections but are too common to prove structure.
MARKER_PATTERN_NAMES: tuple[str, ...] = ("cjk_chapter", "chapter", "markdown", "numbered")


class HeadingDetector(Protocol):
    """Decides whether a single line of text is a heading."""

    def is_heading(self, line: str) -> bool:
        """True if the line starts a new section."""
        ...

    def is_structural_marker(self, line: str) -> bool:
        """True if the line counts towards the document's structure score."""
        ...


class RegexHeadingDetector:
    """Heading detector driven by a table of compiled regular expressions.

    Args:
        patterns: Named patterns that start a new section.
        marker_names: Subset of ``patterns`` used for the structure score.
    """

    def __init__(
        self,
        patterns: dict[str, re.Pattern[str]] | None = None,
        marker_names: tuple[str, ...] | None = None,
    ) -> None:
        self._patterns = dict(patterns if patterns is not None else HEADING_PATTERNS)
        names = marker_names if marker_names is not None else MARKER_PATTERN_NAMES
        self._markers = [self._patterns[name] for name in names if name in self._patterns]

    def is_heading(self, line: str) -> bool:
        stripped = line.strip()
        if not stripped:
            return False
        return any(pattern.match(stripped) for pattern in self._patterns.values())

    def is_structural_marker(self, line: str) -> bool:
        stripped = line.strip()
        if not stripped:
            return False
        return any(pattern.match(stripped) for pattern in self._markers)


DEFAULT_DETECTOR = RegexHeadingDetector()


def structure_score(text: str, detector: HeadingDetector = DEFAULT_DETECTOR) -> int:
    """Count the lines of ``text`` that are structural markers."""
    return sum(1 for line in text.split("\n") if detector.is_structural_marker(line))
