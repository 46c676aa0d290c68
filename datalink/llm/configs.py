"""Configuration for the reasoning service."""

import os
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field

API_KEY_ENV = {
    "google_genai": "GOOGLE_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
}


class LLMSettings(BaseModel):
    """Settings for the LLM behind the reasoning service."""

    model: str = Field(
        default="gemini-2.5-flash",
        description="Model identifier passed to init_chat_model"
    )

    provider: str = Field(
        default="google_genai",
        description="LangChain model provider ('google_genai', 'anthropic', 'openai')"
    )

    temperature: float = Field(
        default=0.2,
        description="Sampling temperature"
    )

    summary_sample_rows: int = Field(
        default=3,
        description="Sample rows per file included in discovery, plan and chat prompts"
    )

    merge_sample_rows: int = Field(
        default=50,
        description="Rows per file sent for a semantic merge"
    )

    chat_history_window: int = Field(
        default=10,
        description="Most recent chat messages replayed to the model"
    )

    @property
    def api_key_env(self) -> Optional[str]:
        return API_KEY_ENV.get(self.provider)

    def api_key(self) -> Optional[str]:
        """API key for the configured provider, read from the environment."""
        env_name = self.api_key_env
        return os.getenv(env_name) if env_name else None

    @staticmethod
    def from_config(section: Optional[Dict[str, Any]] = None) -> "LLMSettings":
        """Create settings from the 'llm' config section, ignoring unknown keys."""
        if not section:
            return LLMSettings()

        known = {k: v for k, v in section.items() if k in LLMSettings.model_fields}
        return LLMSettings(**known)
