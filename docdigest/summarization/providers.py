"""The summarization provider capability and its one-time selection."""

import logging
from typing import Protocol

from docdigest.config import AppConfig
from docdigest.models.summary import (
    AggregatedSummary,
    AggregationRequest,
    ProviderSummary,
    SummaryOptions,
)
from docdigest.summarization.local import LocalSummaryProvider
from docdigest.summarization.remote import OpenAICompatibleProvider

logger = logging.getLogger(__name__)


class SummarizationProvider(Protocol):
    """Turns text into structured summaries. Any method may raise."""

    name: str

    async def summarize(
        self,
        text: str,
        language: str,
        options: SummaryOptions,
    ) -> ProviderSummary:
        """Summarize one chunk of text."""
        ...

    async def aggregate(
        self,
        request: AggregationRequest,
        language: str,
        options: SummaryOptions,
    ) -> AggregatedSummary:
        """Roll chunk summaries up into a document-level summary."""
        ...


def select_provider(config: AppConfig) -> SummarizationProvider:
    """Pick the provider for a run.

    ``kind="local"`` always uses the local summarizer. ``"remote"`` and
    ``"auto"`` use the remote provider when an API key is configured and
    fall back to the local summarizer otherwise.
    """
    kind = config.provider.kind
    if kind != "local" and config.api_key:
        logger.info("Using remote provider %s at %s", config.provider.model, config.provider.base_url)
        return OpenAICompatibleProvider(config.provider, config.api_key)

    if kind == "remote":
        logger.warning("Remote provider requested but no API key is set; using local summarizer")
    else:
        logger.info("Using local summarizer")
    return LocalSummaryProvider()
