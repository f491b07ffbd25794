"""Language-aware character-to-token estimation."""

import math
from collections.abc import Iterable

from docdigest.models.chunk import Chunk

# Approximate characters per token for each supported language.
LANGUAGE_TOKEN_RATIOS: dict[str, float] = {
    "chinese": 1.5,
    "japanese": 2.0,
    "korean": 2.5,
    "thai": 2.2,
    "hindi": 2.8,
    "russian": 3.2,
    "arabic": 3.5,
    "german": 3.8,
    "english": 4.0,
    "french": 4.2,
    "italian": 4.3,
    "portuguese": 4.4,
    "spanish": 4.5,
}

LANGUAGE_ALIASES: dict[str, str] = {
    "zh": "chinese",
    "ja": "japanese",
    "ko": "korean",
    "th": "thai",
    "hi": "hindi",
    "ru": "russian",
    "ar": "arabic",
    "de": "german",
    "en": "english",
    "fr": "french",
    "it": "italian",
    "pt": "portuguese",
    "es": "spanish",
}

DEFAULT_TOKEN_RATIO = 2.5


def token_ratio(language: str | None) -> float:
    """Return the characters-per-token ratio for a language.

    Accepts full names ("english") and ISO 639-1 codes ("en"), case-insensitive.
    Unknown or missing languages use DEFAULT_TOKEN_RATIO.
    """
    if not language:
        return DEFAULT_TOKEN_RATIO
    key = language.strip().lower()
    key = LANGUAGE_ALIASES.get(key, key)
    return LANGUAGE_TOKEN_RATIOS.get(key, DEFAULT_TOKEN_RATIO)


def estimate_tokens(text: str, language: str | None = None) -> int:
    """Estimate the token count of a text string.

    Args:
        text: The text to estimate tokens for.
        language: Language name or code used to pick the ratio.

    Returns:
        ``ceil(len(text) / ratio)``; 0 for an empty string.
    """
    if not text:
        return 0
    return math.ceil(len(text) / token_ratio(language))


def estimate_chunk_tokens(chunk: Chunk, language: str | None = None) -> int:
    """Estimate the tokens a chunk occupies in a context window (padding included)."""
    return estimate_tokens(chunk.text, language)


def estimate_total_tokens(chunks: Iterable[Chunk], language: str | None = None) -> int:
    """Sum of per-chunk estimates."""
    return sum(estimate_chunk_tokens(chunk, language) for chunk in chunks)
