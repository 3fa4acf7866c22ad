"""Configuration settings for the site generation pipeline."""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

# Load .env file
load_dotenv()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Keys
    openrouter_api_key: str = os.getenv("OPENROUTER_API_KEY", "")
    anthropic_api_key: str = os.getenv("ANTHROPIC_API_KEY", "")
    llm_api_base: str = ""

    # Model Configuration
    llm_provider: str = "litellm"  # "litellm" | "anthropic"
    generation_model: str = os.getenv("OPENROUTER_MODEL", "openrouter/x-ai/grok-code-fast-1")
    json_mode: bool = True

    # Pricing in cents per 1M tokens; unset means look up LiteLLM's price table
    prompt_cents_per_million: Optional[float] = None
    completion_cents_per_million: Optional[float] = None

    # Paths
    config_dir: Path = Path(__file__).parent
    units_file: Path = config_dir / "units.yaml"

    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"


# Global settings instance
settings = Settings()
