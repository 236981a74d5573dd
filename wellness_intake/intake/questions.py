# wellness_intake/intake/questions.py
from __future__ import annotations

import logging
from typing import Dict, List, Sequence

from wellness_intake.intake.errors import GenerationUnavailable
from wellness_intake.intake.schema import Utterance
from wellness_intake.intake.stage_config import StageConfigProvider
from wellness_intake.intake.stages import TERMINAL_STAGE, WellnessStage
from wellness_intake.intake.state import StageProgress
from wellness_intake.llm import TextGenerationCapability

logger = logging.getLogger(__name__)

NEXT_QUESTION_REQUEST = (
    "Generate the next natural question for this wellness stage based on our conversation so far."
)
COMPLETION_REQUEST = "The interview is complete. Write the closing message."


def build_context(progress: StageProgress) -> List[Utterance]:
    """
    Completed stages in the order they were finished, then the current
    stage. Turn order within each stage is kept.
    """
    context: List[Utterance] = []
    for stage in progress.completed_stages:
        context.extend(progress.history(stage))
    if progress.current_stage not in progress.completed_stages:
        context.extend(progress.history(progress.current_stage))
    return context


class QuestionGenerator:
    """
    Produces the assistant's next message. The same code serves every
    stage; what to ask about comes from the stage's question prompt.
    """

    def __init__(self, capability: TextGenerationCapability, config_provider: StageConfigProvider):
        self.capability = capability
        self.config_provider = config_provider

    def next_question(self, stage: WellnessStage, context: Sequence[Utterance]) -> str:
        instruction = self._instruction(stage)
        return self._generate(stage, instruction, context, NEXT_QUESTION_REQUEST)

    def completion_message(self, context: Sequence[Utterance]) -> str:
        instruction = self._instruction(TERMINAL_STAGE)
        return self._generate(TERMINAL_STAGE, instruction, context, COMPLETION_REQUEST)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _instruction(self, stage: WellnessStage) -> str:
        persona = self.config_provider.get_persona_prompt()
        stage_prompt = self.config_provider.question_prompt(stage)
        return "\n\n".join(p for p in (persona, stage_prompt) if p)

    def _generate(
        self,
        stage: WellnessStage,
        instruction: str,
        context: Sequence[Utterance],
        request: str,
    ) -> str:
        turns: List[Dict[str, str]] = [{"role": u.role, "content": u.content} for u in context]
        turns.append({"role": "user", "content": request})

        try:
            text = self.capability.invoke(instruction, turns)
        except Exception as e:
            logger.error("Question generation failed for stage %s: %s", stage.value, e)
            raise GenerationUnavailable(f"Text generation failed: {e}", stage=stage) from e

        text = (text or "").strip()
        if not text:
            logger.error("Question generation returned empty text for stage %s", stage.value)
            raise GenerationUnavailable("Text generation returned no text", stage=stage)
        return text
