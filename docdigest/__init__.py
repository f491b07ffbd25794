"""docdigest: chunking, context budgeting and hierarchical summarization of long documents."""

__version__ = "0.1.0"
