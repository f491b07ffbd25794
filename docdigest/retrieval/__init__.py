"""Context window selection over chunk sets."""

from docdigest.retrieval.context_manager import ContextManager, extract_keywords, score_relevance

__all__ = ["ContextManager", "extract_keywords", "score_relevance"]
