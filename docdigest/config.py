"""Configuration loader for the docdigest pipeline."""

import os
from pathlib import Path
from typing import Literal

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator


class AppInfo(BaseModel):
    """Application metadata."""

    name: str = "docdigest"
    version: str = "0.1.0"
    language: str = "english"
    log_level: str = "INFO"


class ChunkingConfig(BaseModel):
    """Text chunking configuration. All sizes are in characters."""

    max_chunk_size: int = Field(default=4000, gt=0)
    min_chunk_size: int = Field(default=500, ge=0)
    overlap_size: int = Field(default=200, ge=0)
    window_size: int = Field(default=4000, gt=0)
    step_size: int = Field(default=3000, gt=0)
    simple_chunk_size: int = Field(default=4000, gt=0)
    structure_min_length: int = 10_000
    sliding_min_length: int = 50_000
    structure_min_markers: int = 2

    @model_validator(mode="after")
    def _check_window_geometry(self) -> "ChunkingConfig":
        if self.step_size >= self.window_size:
            raise ValueError("step_size must be smaller than window_size")
        return self


class ContextConfig(BaseModel):
    """Context window budgeting configuration."""

    max_context_tokens: int = Field(default=32_000, gt=0)
    default_max_chunks: int = Field(default=10, gt=0)
    task_max_chunks: int = Field(default=15, gt=0)
    adaptive_target_tokens: int = Field(default=16_000, gt=0)


class SummarizationConfig(BaseModel):
    """Batched enrichment configuration."""

    batch_size: int = Field(default=5, gt=0)
    batch_delay: float = Field(default=0.1, ge=0)
    fallback_summary_chars: int = Field(default=200, gt=0)
    highlight_count: int = Field(default=3, ge=0)
    level: Literal["brief", "medium", "detailed"] = "medium"


class ProviderConfig(BaseModel):
    """Summarization provider configuration."""

    kind: Literal["auto", "remote", "local"] = "auto"
    model: str = "meta-llama/Llama-3.3-70B-Instruct-Turbo"
    base_url: str = "https://api.together.xyz/v1"
    temperature: float = 0.3
    max_retries: int = 2
    timeout: float = Field(default=60.0, gt=0)


class AppConfig(BaseModel):
    """Root application configuration."""

    app: AppInfo = Field(default_factory=AppInfo)
    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    context: ContextConfig = Field(default_factory=ContextConfig)
    summarization: SummarizationConfig = Field(default_factory=SummarizationConfig)
    provider: ProviderConfig = Field(default_factory=ProviderConfig)

    # API key loaded from environment
    api_key: str | None = None


def load_config(config_path: str | Path = "config.yaml") -> AppConfig:
    """Load configuration from YAML file and environment variables.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Fully populated AppConfig instance.
    """
    load_dotenv()

    yaml_data: dict = {}
    config_file = Path(config_path)
    if config_file.exists():
        with open(config_file) as f:
            yaml_data = yaml.safe_load(f) or {}

    config = AppConfig(**yaml_data)

    # Override API key from environment
    config.api_key = os.getenv("TOGETHER_API_KEY") or os.getenv("OPENAI_API_KEY")

    return config
