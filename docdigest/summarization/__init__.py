"""Chunk enrichment through summarization providers and hierarchical roll-up."""

from docdigest.summarization.local import LocalSummaryProvider
from docdigest.summarization.orchestrator import SummarizationOrchestrator
from docdigest.summarization.providers import SummarizationProvider, select_provider
from docdigest.summarization.remote import OpenAICompatibleProvider

__all__ = [
    "LocalSummaryProvider",
    "OpenAICompatibleProvider",
    "SummarizationOrchestrator",
    "SummarizationProvider",
    "select_provider",
]
