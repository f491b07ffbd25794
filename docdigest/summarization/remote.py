"""Remote summarization through an OpenAI-compatible chat endpoint."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from docdigest.exceptions import ProviderError
from docdigest.models.summary import (
    AggregatedSummary,
    AggregationRequest,
    ProviderSummary,
    SummaryOptions,
)
from docdigest.summarization.prompts import format_aggregate_prompts, format_chunk_prompts

if TYPE_CHECKING:
    from docdigest.config import ProviderConfig

logger = logging.getLogger(__name__)

# Extra room for the JSON envelope around the aggregate output.
AGGREGATE_MAX_TOKENS = 1500


class OpenAICompatibleProvider:
    """Structured summaries from any OpenAI-compatible API (Together AI by default).

    Every call builds a pydantic-ai agent whose output type is the pydantic
    model the orchestrator expects, so malformed replies are retried by the
    agent and surface as ProviderError when retries run out.
    """

    name = "remote"

    def __init__(self, config: ProviderConfig, api_key: str) -> None:
        self._config = config
        self._api_key = api_key

    async def summarize(
        self,
        text: str,
        language: str,
        options: SummaryOptions,
    ) -> ProviderSummary:
        system_prompt, prompt = format_chunk_prompts(text, language, options)
        return await self._run(ProviderSummary, system_prompt, prompt, options.max_tokens)

    async def aggregate(
        self,
        request: AggregationRequest,
        language: str,
        options: SummaryOptions,
    ) -> AggregatedSummary:
        system_prompt, prompt = format_aggregate_prompts(request, language, options)
        return await self._run(AggregatedSummary, system_prompt, prompt, AGGREGATE_MAX_TOKENS)

    async def _run(
        self,
        output_type: type[Any],
        system_prompt: str,
        prompt: str,
        max_tokens: int,
    ) -> Any:
        from pydantic_ai import Agent  # noqa: PLC0415
        from pydantic_ai.models.openai import OpenAIChatModel  # noqa: PLC0415
        from pydantic_ai.providers.openai import OpenAIProvider  # noqa: PLC0415
        from pydantic_ai.settings import ModelSettings  # noqa: PLC0415

        provider = OpenAIProvider(api_key=self._api_key, base_url=self._config.base_url)
        model = OpenAIChatModel(
            model_name=self._config.model,
            provider=provider,
            settings=ModelSettings(
                temperature=self._config.temperature,
                max_tokens=max_tokens,
            ),
        )
        agent = Agent(
            model=model,
            system_prompt=system_prompt,
            output_type=output_type,
            retries=self._config.max_retries,
        )

        try:
            result = await asyncio.wait_for(agent.run(prompt), timeout=self._config.timeout)
        except Exception as e:
            msg = f"Summarization failed: {e}"
            raise ProviderError(msg) from e
        return result.output
