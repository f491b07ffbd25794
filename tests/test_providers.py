"""Tests for the local and remote summarization providers and their selection."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from docdigest.config import AppConfig, ProviderConfig
from docdigest.exceptions import ProviderError
from docdigest.models import (
    SUMMARY_LEVELS,
    AggregatedSummary,
    AggregationRequest,
    Highlight,
    KeyPoint,
    ProviderSummary,
    SectionSummary,
)
from docdigest.summarization import (
    LocalSummaryProvider,
    OpenAICompatibleProvider,
    select_provider,
)
from docdigest.summarization.local import importance_label, split_sentences
from docdigest.summarization.prompts import format_aggregate_prompts, format_chunk_prompts

REPORT = (
    "This is an important conclusion about revenue growth. "
    "Revenue rose 12 percent in 2023. "
    "Costs were stable across all regions."
)


@pytest.fixture
def local() -> LocalSummaryProvider:
    return LocalSummaryProvider()


# ── Local summarizer ─────────────────────────────────────────────────────────


class TestSplitSentences:
    def test_splits_on_terminal_punctuation(self) -> None:
        assert split_sentences("First one here.  Second\none here! Last one?") == [
            "First one here",
            "Second one here",
            "Last one",
        ]

    def test_drops_fragments(self) -> None:
        assert split_sentences("Ok. Fine. A proper sentence.") == ["A proper sentence"]

    def test_chinese_punctuation(self) -> None:
        assert split_sentences("这是第一个句子内容。这是第二个句子内容！") == [
            "这是第一个句子内容",
            "这是第二个句子内容",
        ]


class TestImportanceLabel:
    @pytest.mark.parametrize(
        ("score", "label"),
        [(0.9, "high"), (0.7, "high"), (0.5, "medium"), (0.4, "medium"), (0.1, "low"), (None, "low")],
    )
    def test_buckets(self, score: float | None, label: str) -> None:
        assert importance_label(score) == label


class TestLocalSummarize:
    def test_title_is_first_sentence(self, local: LocalSummaryProvider) -> None:
        result = local.summarize_sync(REPORT)
        assert result.title == "This is an important conclusion about revenue growth"

    def test_long_title_truncated(self, local: LocalSummaryProvider) -> None:
        result = local.summarize_sync("Word " * 16 + ".")
        assert len(result.title) == 60
        assert result.title.endswith("...")

    def test_summary_lists_sentences(self, local: LocalSummaryProvider) -> None:
        summary = local.summarize_sync(REPORT).summary
        assert summary.startswith("Main content:")
        assert "- Revenue rose 12 percent in 2023." in summary
        assert "approximately 3 sentences" in summary

    def test_keywords_by_frequency(self, local: LocalSummaryProvider) -> None:
        keywords = local.summarize_sync(REPORT).keywords
        assert keywords[0] == "revenue"
        assert len(keywords) == 6

    def test_importance_and_content_type(self, local: LocalSummaryProvider) -> None:
        result = local.summarize_sync(REPORT)
        assert 0.5 < result.importance < 0.55  # type: ignore[operator]
        assert result.content_type == "conclusion"

    def test_plain_text_is_main_content(self, local: LocalSummaryProvider) -> None:
        result = local.summarize_sync("The river runs through the valley all year long.")
        assert result.content_type == "main_content"
        assert result.importance == 0.1

    def test_empty_text(self, local: LocalSummaryProvider) -> None:
        result = local.summarize_sync("")
        assert result.title == "Document Summary"
        assert result.summary == "Document content is empty."
        assert result.keywords == ["document", "content", "information"]
        assert result.importance == 0.1

    def test_empty_chinese_text(self, local: LocalSummaryProvider) -> None:
        result = local.summarize_sync("", "chinese")
        assert result.title == "文档摘要"
        assert result.keywords == ["文档", "内容", "信息"]

    def test_deterministic(self, local: LocalSummaryProvider) -> None:
        assert local.summarize_sync(REPORT) == local.summarize_sync(REPORT)

    @pytest.mark.asyncio
    async def test_async_matches_sync(self, local: LocalSummaryProvider) -> None:
        options = SUMMARY_LEVELS["brief"]
        assert await local.summarize(REPORT, "english", options) == local.summarize_sync(REPORT)


class TestLocalAggregate:
    def test_key_points_from_important_chunks(self, local: LocalSummaryProvider) -> None:
        request = AggregationRequest(
            summaries="Revenue grew strongly this year.",
            important_chunks=[
                Highlight(title="Revenue", summary="Up 12%", importance=0.8, chunk_index=0),
                Highlight(importance=0.2, chunk_index=3),
            ],
        )
        result = local.aggregate_sync(request)
        assert [(kp.point, kp.importance) for kp in result.key_points] == [
            ("Revenue", "high"),
            ("Section 4", "low"),
        ]
        assert result.key_points[0].description == "Up 12%"
        assert "Revenue grew strongly this year." in result.overall_summary

    def test_key_points_from_keywords(self, local: LocalSummaryProvider) -> None:
        request = AggregationRequest(summaries="Budget budget planning review.")
        points = local.aggregate_sync(request).key_points
        assert points[0].point == "budget"
        assert all(kp.importance == "medium" for kp in points)


# ── Prompts ──────────────────────────────────────────────────────────────────


class TestPrompts:
    def test_chunk_prompts_carry_level_and_language(self) -> None:
        system, user = format_chunk_prompts("Body text", "chinese", SUMMARY_LEVELS["detailed"])
        assert "detailed summary" in system
        assert "中文" in system
        assert user.endswith("Body text")

    def test_aggregate_prompts_include_structure(self) -> None:
        request = AggregationRequest(
            summaries="S1\n\nS2",
            section_summaries=[SectionSummary(title="Intro", summary="Opening", page_numbers=[1])],
            important_chunks=[Highlight(title="Key", summary="Core", importance=0.9, chunk_index=2)],
        )
        system, user = format_aggregate_prompts(request, "english", SUMMARY_LEVELS["brief"])
        assert "at most 5 key points" in system
        assert "### Intro (pages: 1)" in user
        assert "**Key** (importance: 0.9)" in user


# ── Remote provider ──────────────────────────────────────────────────────────


class TestOpenAICompatibleProvider:
    @pytest.fixture
    def provider(self) -> OpenAICompatibleProvider:
        config = ProviderConfig(base_url="http://localhost:8000/v1", model="test-model", timeout=5)
        return OpenAICompatibleProvider(config, api_key="test-key")

    @pytest.mark.asyncio
    async def test_summarize_returns_structured_output(
        self, provider: OpenAICompatibleProvider
    ) -> None:
        expected = ProviderSummary(title="T", summary="S", keywords=["k"], importance=0.7)
        mock_result = MagicMock()
        mock_result.output = expected

        with patch("pydantic_ai.Agent") as mock_agent_class:
            mock_agent = MagicMock()
            mock_agent.run = AsyncMock(return_value=mock_result)
            mock_agent_class.return_value = mock_agent

            result = await provider.summarize("Chunk text", "english", SUMMARY_LEVELS["medium"])

            assert result == expected
            assert mock_agent_class.call_args.kwargs["output_type"] is ProviderSummary
            mock_agent.run.assert_called_once()
            assert "Chunk text" in mock_agent.run.call_args.args[0]

    @pytest.mark.asyncio
    async def test_aggregate_uses_aggregate_output_type(
        self, provider: OpenAICompatibleProvider
    ) -> None:
        mock_result = MagicMock()
        mock_result.output = AggregatedSummary(
            overall_summary="Overall", key_points=[KeyPoint(point="P", importance="high")]
        )

        with patch("pydantic_ai.Agent") as mock_agent_class:
            mock_agent = MagicMock()
            mock_agent.run = AsyncMock(return_value=mock_result)
            mock_agent_class.return_value = mock_agent

            result = await provider.aggregate(
                AggregationRequest(summaries="S"), "english", SUMMARY_LEVELS["medium"]
            )

            assert result.overall_summary == "Overall"
            assert mock_agent_class.call_args.kwargs["output_type"] is AggregatedSummary

    @pytest.mark.asyncio
    async def test_raises_provider_error_on_failure(
        self, provider: OpenAICompatibleProvider
    ) -> None:
        with patch("pydantic_ai.Agent") as mock_agent_class:
            mock_agent = MagicMock()
            mock_agent.run = AsyncMock(side_effect=Exception("API error"))
            mock_agent_class.return_value = mock_agent

            with pytest.raises(ProviderError, match="Summarization failed"):
                await provider.summarize("Chunk text", "english", SUMMARY_LEVELS["medium"])

    @pytest.mark.asyncio
    async def test_timeout_becomes_provider_error(
        self, provider: OpenAICompatibleProvider
    ) -> None:
        with patch("pydantic_ai.Agent") as mock_agent_class:
            mock_agent = MagicMock()
            mock_agent.run = AsyncMock(side_effect=asyncio.TimeoutError())
            mock_agent_class.return_value = mock_agent

            with pytest.raises(ProviderError):
                await provider.summarize("Chunk text", "english", SUMMARY_LEVELS["medium"])


# ── Selection ────────────────────────────────────────────────────────────────


class TestSelectProvider:
    def test_local_without_api_key(self) -> None:
        assert isinstance(select_provider(AppConfig()), LocalSummaryProvider)

    def test_remote_with_api_key(self) -> None:
        provider = select_provider(AppConfig(api_key="secret"))
        assert isinstance(provider, OpenAICompatibleProvider)
        assert provider.name == "remote"

    def test_local_kind_ignores_api_key(self) -> None:
        config = AppConfig(api_key="secret", provider=ProviderConfig(kind="local"))
        assert isinstance(select_provider(config), LocalSummaryProvider)

    def test_remote_kind_without_key_falls_back(self) -> None:
        config = AppConfig(provider=ProviderConfig(kind="remote"))
        assert isinstance(select_provider(config), LocalSummaryProvider)
