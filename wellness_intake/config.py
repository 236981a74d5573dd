# wellness_intake/config.py
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    openai_api_key: str | None = Field(None, validation_alias="OPENAI_API_KEY")
    openai_base_url: str | None = Field(None, validation_alias="OPENAI_BASE_URL")
    llm_model: str = Field("gpt-4o-mini", validation_alias="LLM_MODEL")

    extraction_temperature: float = Field(0.1, validation_alias="EXTRACTION_TEMPERATURE")
    question_temperature: float = Field(0.7, validation_alias="QUESTION_TEMPERATURE")
    extraction_max_tokens: int = Field(1000, validation_alias="EXTRACTION_MAX_TOKENS")
    question_max_tokens: int = Field(300, validation_alias="QUESTION_MAX_TOKENS")
    summary_temperature: float = Field(0.3, validation_alias="SUMMARY_TEMPERATURE")
    summary_max_tokens: int = Field(2500, validation_alias="SUMMARY_MAX_TOKENS")

    max_turns_per_stage: int = Field(2, ge=1, validation_alias="MAX_TURNS_PER_STAGE")
    completion_policy: Literal["turn_limit", "required_fields"] = Field(
        "turn_limit", validation_alias="COMPLETION_POLICY"
    )

    # When unset, the prompts packaged in wellness_intake.intake.prompts are used.
    prompts_base_url: str | None = Field(None, validation_alias="PROMPTS_BASE_URL")
    prompts_cache_seconds: float = Field(120.0, validation_alias="PROMPTS_CACHE_SECONDS")
    prompts_timeout_seconds: float = Field(10.0, validation_alias="PROMPTS_TIMEOUT_SECONDS")
    prompts_max_retries: int = Field(3, ge=1, validation_alias="PROMPTS_MAX_RETRIES")

    # When unset, sessions live in process memory only.
    database_url: str | None = Field(None, validation_alias="DATABASE_URL")

    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
