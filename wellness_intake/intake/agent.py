# wellness_intake/intake/agent.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from wellness_intake.config import Settings, get_settings
from wellness_intake.intake.aggregator import finalize
from wellness_intake.intake.errors import ConfigurationUnavailable, IntakeError
from wellness_intake.intake.extractor import ExtractionAdapter
from wellness_intake.intake.policy import CompletionPolicy, build_policy
from wellness_intake.intake.questions import QuestionGenerator, build_context
from wellness_intake.intake.schema import ExtractionResult, Utterance, WellnessData
from wellness_intake.intake.stage_config import (
    HttpStageConfigProvider,
    StageConfigProvider,
    StaticStageConfigProvider,
)
from wellness_intake.intake.stages import FIRST_STAGE, WellnessStage, is_terminal
from wellness_intake.intake.state import StageProgress
from wellness_intake.intake.summarizer import WellnessSummarizer
from wellness_intake.llm import (
    LLMClient,
    LLMExtractionCapability,
    LLMTextGenerationCapability,
    OpenAILLMClient,
)

logger = logging.getLogger(__name__)


@dataclass
class TurnResult:
    # None only when the interview was already finished
    extraction_result: Optional[ExtractionResult]
    updated_progress: StageProgress
    bot_response: str
    should_advance: bool


class WellnessIntakeAgent:
    """
    WellnessIntakeAgent runs the staged wellness interview.

    Stages (strictly forward, one at a time):
      - demographics & baseline
      - biometrics & habits
      - lifestyle context
      - medical history
      - goals & preferences
      - completed (absorbing)

    Each user message goes through:
      extraction -> merge into stage data -> completion policy ->
      follow-up question, or advance and introduce the next stage
      (or close the interview).

    The agent holds no session state. Progress objects passed in are never
    mutated; each turn returns a new one.
    """

    def __init__(
        self,
        extractor: ExtractionAdapter,
        question_generator: QuestionGenerator,
        policy: CompletionPolicy,
        config_provider: StageConfigProvider,
        summarizer: Optional[WellnessSummarizer] = None,
    ):
        self.extractor = extractor
        self.question_generator = question_generator
        self.policy = policy
        self.config_provider = config_provider
        self.summarizer = summarizer

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        llm_client: Optional[LLMClient] = None,
        config_provider: Optional[StageConfigProvider] = None,
    ) -> "WellnessIntakeAgent":
        settings = settings or get_settings()
        llm_client = llm_client or OpenAILLMClient()

        if config_provider is None:
            if settings.prompts_base_url:
                config_provider = HttpStageConfigProvider(
                    settings.prompts_base_url,
                    timeout=settings.prompts_timeout_seconds,
                    cache_seconds=settings.prompts_cache_seconds,
                    max_retries=settings.prompts_max_retries,
                )
            else:
                config_provider = StaticStageConfigProvider.packaged()

        extraction = LLMExtractionCapability(
            llm_client,
            temperature=settings.extraction_temperature,
            max_tokens=settings.extraction_max_tokens,
        )
        generation = LLMTextGenerationCapability(
            llm_client,
            temperature=settings.question_temperature,
            max_tokens=settings.question_max_tokens,
        )
        summary = LLMTextGenerationCapability(
            llm_client,
            temperature=settings.summary_temperature,
            max_tokens=settings.summary_max_tokens,
        )
        return cls(
            extractor=ExtractionAdapter(extraction, config_provider),
            question_generator=QuestionGenerator(generation, config_provider),
            policy=build_policy(settings.completion_policy, settings.max_turns_per_stage),
            config_provider=config_provider,
            summarizer=WellnessSummarizer(summary),
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def initialize_progress(self) -> StageProgress:
        return StageProgress(current_stage=FIRST_STAGE)

    def start(self) -> tuple[StageProgress, str]:
        """
        New progress plus the first stage's introduction, which is also
        recorded as the opening assistant message.
        """
        progress = self.initialize_progress()
        intro = self.stage_introduction(progress.current_stage)
        progress.append_message(progress.current_stage, Utterance(role="assistant", content=intro))
        return progress, intro

    def stage_introduction(self, stage: WellnessStage) -> str:
        return self.config_provider.introduction_message(stage)

    def finalize(self, progress: StageProgress) -> WellnessData:
        return finalize(progress)

    def summarize(self, progress: StageProgress) -> str:
        """
        Free-text wellness profile of the conversation so far. Raises
        GenerationUnavailable when the model gives nothing back.
        """
        if self.summarizer is None:
            raise ConfigurationUnavailable("No wellness summarizer configured", stage=progress.current_stage)
        return self.summarizer.summarize(progress)

    def process_user_response(self, utterance: str, progress: StageProgress) -> TurnResult:
        """
        Run one turn. On failure the IntakeError carries `progress`: the
        session with this utterance appended and nothing merged or advanced.
        """
        if progress.is_complete:
            # Conversation already finished
            unchanged = progress.model_copy(deep=True)
            try:
                closing = self.stage_introduction(unchanged.current_stage)
            except IntakeError as e:
                e.progress = unchanged
                raise
            return TurnResult(
                extraction_result=None,
                updated_progress=unchanged,
                bot_response=closing,
                should_advance=False,
            )

        working = progress.model_copy(deep=True)
        stage = working.current_stage
        working.append_message(stage, Utterance(role="user", content=utterance))
        checkpoint = working.model_copy(deep=True)

        try:
            extraction = self.extractor.extract(
                stage,
                utterance,
                working.history(stage),
                working.data_for(stage),
            )

            stage_data = working.merge_stage_data(stage, extraction.extracted_data)
            working.used_external_extraction = True

            should_advance = self.policy.is_complete(stage, stage_data, working.history(stage))
            if should_advance:
                bot_response = self._advance_and_introduce(working)
            else:
                bot_response = self.question_generator.next_question(stage, build_context(working))
        except IntakeError as e:
            e.progress = checkpoint
            raise

        working.append_message(
            working.current_stage, Utterance(role="assistant", content=bot_response)
        )

        return TurnResult(
            extraction_result=extraction,
            updated_progress=working,
            bot_response=bot_response,
            should_advance=should_advance,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _advance_and_introduce(self, progress: StageProgress) -> str:
        finished = progress.current_stage
        new_stage = progress.advance()
        logger.info("Stage %s complete, moving to %s", finished.value, new_stage.value)

        context = build_context(progress)
        if is_terminal(new_stage):
            return self.question_generator.completion_message(context)
        return self.question_generator.next_question(new_stage, context)
