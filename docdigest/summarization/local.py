"""Deterministic local summarizer used when no remote provider is available."""

import logging
import re
from collections import Counter

from docdigest.models.summary import (
    AggregatedSummary,
    AggregationRequest,
    ImportanceLabel,
    KeyPoint,
    ProviderSummary,
    SummaryOptions,
)

logger = logging.getLogger(__name__)

SENTENCE_SPLIT = re.compile(r"[.!?。！？\n]")
WORD_SPLIT = re.compile(r"[\W_]+")
MIN_SENTENCE_LENGTH = 6
MAX_TITLE_LENGTH = 60
MAX_SUMMARY_SENTENCES = 5
MAX_KEYWORDS = 6

IMPORTANT_TERMS: tuple[str, ...] = (
    "重要", "关键", "核心", "主要", "结论", "总结",
    "important", "key", "core", "main", "conclusion", "summary",
)

# Checked in order; the first matching group wins.
CONTENT_TYPE_TERMS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("acknowledgement", ("感谢", "致谢", "thank", "acknowledge")),
    ("introduction", ("介绍", "引言", "introduction", "overview")),
    ("conclusion", ("结论", "总结", "conclusion", "summary")),
    ("example", ("例如", "示例", "example", "instance")),
    ("reference", ("参考", "引用", "reference", "citation")),
)

CHINESE_LANGUAGES = frozenset({"chinese", "中文", "zh"})
TERMINAL_PUNCTUATION = frozenset("。.!！?？")


def _is_chinese(language: str) -> bool:
    return language.strip().lower() in CHINESE_LANGUAGES


def split_sentences(text: str) -> list[str]:
    """Sentences of at least MIN_SENTENCE_LENGTH characters, whitespace-normalised."""
    clean = re.sub(r"\s+", " ", text).strip()
    sentences = (s.strip() for s in SENTENCE_SPLIT.split(clean))
    return [s for s in sentences if len(s) >= MIN_SENTENCE_LENGTH]


def importance_label(importance: float | None) -> ImportanceLabel:
    """Bucket a 0-1 importance score into high / medium / low."""
    score = importance or 0.0
    if score >= 0.7:
        return "high"
    if score >= 0.4:
        return "medium"
    return "low"


class LocalSummaryProvider:
    """Heuristic, I/O-free implementation of the summarization provider.

    Same inputs always give the same outputs, which makes it usable both as
    the primary provider when nothing remote is configured and as the
    fallback when a remote call fails.
    """

    name = "local"

    async def summarize(
        self,
        text: str,
        language: str,
        options: SummaryOptions | None = None,
    ) -> ProviderSummary:
        return self.summarize_sync(text, language)

    async def aggregate(
        self,
        request: AggregationRequest,
        language: str,
        options: SummaryOptions | None = None,
    ) -> AggregatedSummary:
        return self.aggregate_sync(request, language)

    def summarize_sync(self, text: str, language: str = "english") -> ProviderSummary:
        sentences = split_sentences(text)
        clean = re.sub(r"\s+", " ", text).strip()
        return ProviderSummary(
            title=self._title(sentences, language),
            summary=self._summary(sentences, language),
            keywords=self._keywords(clean, language),
            importance=self._importance(clean),
            content_type=self._content_type(clean),
        )

    def aggregate_sync(
        self,
        request: AggregationRequest,
        language: str = "english",
    ) -> AggregatedSummary:
        overall = self._summary(split_sentences(request.summaries), language)

        key_points = [
            KeyPoint(
                point=chunk.title or f"Section {chunk.chunk_index + 1}",
                description=chunk.summary or "",
                importance=importance_label(chunk.importance),
            )
            for chunk in request.important_chunks
        ]
        if not key_points:
            key_points = [
                KeyPoint(point=keyword, importance="medium")
                for keyword in self._keywords(request.summaries, language)
            ]
        return AggregatedSummary(overall_summary=overall, key_points=key_points)

    def _title(self, sentences: list[str], language: str) -> str:
        if not sentences:
            return "文档摘要" if _is_chinese(language) else "Document Summary"
        title = sentences[0]
        if len(title) > MAX_TITLE_LENGTH:
            title = title[: MAX_TITLE_LENGTH - 3] + "..."
        return title

    def _summary(self, sentences: list[str], language: str) -> str:
        chinese = _is_chinese(language)
        if not sentences:
            return "文档内容为空。" if chinese else "Document content is empty."

        # First three, the middle one and the last one.
        picked = sentences[:3]
        if len(sentences) > 6:
            picked.append(sentences[len(sentences) // 2])
        if len(sentences) > 4:
            picked.append(sentences[-1])
        unique = list(dict.fromkeys(picked))[:MAX_SUMMARY_SENTENCES]

        end = "。" if chinese else "."
        lines = ["本文档主要内容：" if chinese else "Main content:"]
        for sentence in unique:
            suffix = "" if sentence[-1] in TERMINAL_PUNCTUATION else end
            lines.append(f"- {sentence}{suffix}")

        char_count = sum(len(s) for s in sentences)
        if chinese:
            stats = f"文档包含约 {len(sentences)} 个句子，{char_count} 个字符。"
        else:
            stats = (
                f"Document contains approximately {len(sentences)} sentences, "
                f"{char_count} characters."
            )
        return "\n".join(lines) + "\n\n" + stats

    def _keywords(self, text: str, language: str) -> list[str]:
        chinese = _is_chinese(language)
        min_length = 2 if chinese else 4
        words = [w.lower() for w in WORD_SPLIT.split(text) if len(w) >= min_length]
        keywords = [word for word, _ in Counter(words).most_common(8)]

        if len(keywords) < 3:
            defaults = ["文档", "内容", "信息"] if chinese else ["document", "content", "information"]
            keywords.extend([d for d in defaults if d not in keywords][: 3 - len(keywords)])
        return keywords[:MAX_KEYWORDS]

    def _importance(self, text: str) -> float:
        importance = min(len(text) / 1000, 0.5)
        lowered = text.lower()
        if any(term in lowered for term in IMPORTANT_TERMS):
            importance += 0.3
        if re.search(r"\d", text) or re.search(r"[=+\-*/]", text):
            importance += 0.1
        return round(min(max(importance, 0.1), 1.0), 3)

    def _content_type(self, text: str) -> str:
        lowered = text.lower()
        for content_type, terms in CONTENT_TYPE_TERMS:
            if any(term in lowered for term in terms):
                return content_type
        return "main_content"
