# wellness_intake/intake/stage_config.py
from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

import httpx
from pydantic import BaseModel, ValidationError

from wellness_intake.intake.errors import ConfigurationUnavailable
from wellness_intake.intake.stages import DATA_STAGES, WellnessStage, is_terminal

logger = logging.getLogger(__name__)


class StageConfig(BaseModel):
    # The terminal stage extracts nothing, so it has no extraction prompt.
    extraction_prompt: Optional[str] = None
    question_prompt: str
    introduction_message: str

    model_config = {"extra": "ignore"}


def parse_prompts_payload(
    data: Mapping[str, Any],
) -> Tuple[str, Dict[WellnessStage, StageConfig]]:
    """
    Validate a prompts payload ({stage_value: {...}, "persona_prompt": ...})
    and return (persona_prompt, configs).

    Every data-collecting stage must carry both prompts; the terminal stage is
    optional. Raises ValueError on anything incomplete.
    """
    configs: Dict[WellnessStage, StageConfig] = {}
    for stage in WellnessStage:
        raw = data.get(stage.value)
        if raw is None:
            if is_terminal(stage):
                continue
            raise ValueError(f"Missing prompts for stage: {stage.value}")
        try:
            config = StageConfig.model_validate(raw)
        except ValidationError as e:
            raise ValueError(f"Invalid prompts for stage {stage.value}: {e}") from e

        if stage in DATA_STAGES and not (config.extraction_prompt or "").strip():
            raise ValueError(f"Missing extraction prompt for stage: {stage.value}")
        if not config.question_prompt.strip():
            raise ValueError(f"Missing question prompt for stage: {stage.value}")
        configs[stage] = config

    persona = data.get("persona_prompt") or ""
    if not isinstance(persona, str):
        raise ValueError("persona_prompt must be a string")
    return persona, configs


class StageConfigProvider(ABC):
    """
    Source of the per-stage prompt text. Implementations raise
    ConfigurationUnavailable when they cannot answer; there is no fallback.
    """

    @abstractmethod
    def get_stage_config(self, stage: WellnessStage) -> StageConfig:
        ...

    @abstractmethod
    def get_persona_prompt(self) -> str:
        ...

    def extraction_prompt(self, stage: WellnessStage) -> str:
        prompt = self.get_stage_config(stage).extraction_prompt
        if not prompt:
            raise ConfigurationUnavailable(
                f"Stage {stage.value!r} has no extraction prompt", stage=stage
            )
        return prompt

    def question_prompt(self, stage: WellnessStage) -> str:
        return self.get_stage_config(stage).question_prompt

    def introduction_message(self, stage: WellnessStage) -> str:
        return self.get_stage_config(stage).introduction_message


class StaticStageConfigProvider(StageConfigProvider):
    """
    In-process prompt set, e.g. the packaged defaults or a test fixture.
    """

    def __init__(self, configs: Mapping[WellnessStage, StageConfig], persona_prompt: str = ""):
        self._configs = dict(configs)
        self._persona_prompt = persona_prompt

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "StaticStageConfigProvider":
        persona, configs = parse_prompts_payload(data)
        return cls(configs, persona_prompt=persona)

    @classmethod
    def packaged(cls) -> "StaticStageConfigProvider":
        from wellness_intake.intake.prompts import DEFAULT_PROMPTS

        return cls.from_payload(DEFAULT_PROMPTS)

    def get_stage_config(self, stage: WellnessStage) -> StageConfig:
        try:
            return self._configs[stage]
        except KeyError:
            raise ConfigurationUnavailable(
                f"No prompts configured for stage: {stage.value}", stage=stage
            ) from None

    def get_persona_prompt(self) -> str:
        return self._persona_prompt


class HttpStageConfigProvider(StageConfigProvider):
    """
    Loads the prompt set from `{base_url}/prompts`.

    Expected response:
        {"success": true, "data": {"demographics_baseline": {...}, ..., "persona_prompt": "..."}}

    Results are cached for `cache_seconds`. Failed fetches are retried with
    exponential backoff, then surface as ConfigurationUnavailable.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        cache_seconds: float = 120.0,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        client: Optional[httpx.Client] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.base_url = base_url.rstrip("/")
        self.cache_seconds = cache_seconds
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self._client = client or httpx.Client(
            timeout=timeout,
            headers={"User-Agent": "wellness-intake/1.0"},
        )
        self._sleep = sleep
        self._lock = threading.Lock()
        self._cached: Optional[Tuple[str, Dict[WellnessStage, StageConfig]]] = None
        self._fetched_at: float = 0.0

    def clear_cache(self) -> None:
        with self._lock:
            self._cached = None
            self._fetched_at = 0.0
        logger.info("Prompt cache cleared")

    def get_stage_config(self, stage: WellnessStage) -> StageConfig:
        _, configs = self._load()
        config = configs.get(stage)
        if config is None:
            raise ConfigurationUnavailable(
                f"No prompts found on server for stage: {stage.value}", stage=stage
            )
        return config

    def get_persona_prompt(self) -> str:
        persona, _ = self._load()
        return persona

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _load(self) -> Tuple[str, Dict[WellnessStage, StageConfig]]:
        with self._lock:
            now = time.monotonic()
            if self._cached is not None and now - self._fetched_at < self.cache_seconds:
                return self._cached

            loaded = self._fetch_with_retries()
            self._cached = loaded
            self._fetched_at = time.monotonic()
            logger.info("Loaded wellness prompts for %d stages", len(loaded[1]))
            return loaded

    def _fetch_with_retries(self) -> Tuple[str, Dict[WellnessStage, StageConfig]]:
        last_error: Optional[Exception] = None
        for attempt in range(1, self.max_retries + 1):
            try:
                return self._fetch_once()
            except (httpx.HTTPError, ValueError) as e:
                last_error = e
                if attempt == self.max_retries:
                    break
                delay = self.retry_delay * (2 ** (attempt - 1))
                logger.warning(
                    "Loading prompts failed (attempt %d/%d), retrying in %.1fs: %s",
                    attempt, self.max_retries, delay, e,
                )
                self._sleep(delay)

        logger.error("Loading prompts failed after %d attempts: %s", self.max_retries, last_error)
        raise ConfigurationUnavailable(
            f"Could not load prompts from {self.base_url}: {last_error}"
        ) from last_error

    def _fetch_once(self) -> Tuple[str, Dict[WellnessStage, StageConfig]]:
        response = self._client.get(f"{self.base_url}/prompts")
        response.raise_for_status()

        body = response.json()
        if not isinstance(body, dict) or not body.get("success") or not isinstance(body.get("data"), dict):
            raise ValueError("Invalid prompts response format from server")

        return parse_prompts_payload(body["data"])
