"""Entry point: summarize a text file and print the result as JSON."""

import argparse
import asyncio
import logging
import sys

from docdigest.config import load_config
from docdigest.ingestion import (
    AdaptiveChunker,
    PlainTextExtractor,
    chunk_extracted_text,
    detect_language,
)
from docdigest.summarization import SummarizationOrchestrator, select_provider


def main() -> None:
    """Extract, chunk and summarize the given file."""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("path", help="Text or Markdown file to summarize")
    parser.add_argument("--config", default="config.yaml", help="Path to config.yaml")
    parser.add_argument("--language", help="Output language (detected when omitted)")
    parser.add_argument("--level", choices=["brief", "medium", "detailed"])
    args = parser.parse_args()

    config = load_config(args.config)
    logging.basicConfig(
        level=config.app.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    extracted = PlainTextExtractor().extract(args.path)
    chunks = chunk_extracted_text(extracted, AdaptiveChunker(config.chunking))
    if not chunks:
        print("Document is empty", file=sys.stderr)
        sys.exit(1)

    language = args.language or detect_language(extracted.full_text) or config.app.language
    orchestrator = SummarizationOrchestrator(select_provider(config), config.summarization)
    result = asyncio.run(orchestrator.process(chunks, language, args.level))
    print(result.model_dump_json(indent=2))


if __name__ == "__main__":
    main()
