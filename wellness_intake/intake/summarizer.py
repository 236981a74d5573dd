# wellness_intake/intake/summarizer.py
from __future__ import annotations

import json
import logging
from typing import List, Sequence

from wellness_intake.intake.aggregator import finalize
from wellness_intake.intake.errors import GenerationUnavailable
from wellness_intake.intake.prompts import SUMMARY_REQUEST, SUMMARY_SYSTEM_PROMPT
from wellness_intake.intake.questions import build_context
from wellness_intake.intake.schema import Utterance
from wellness_intake.intake.state import StageProgress
from wellness_intake.llm import TextGenerationCapability

logger = logging.getLogger(__name__)


def build_transcript_text(utterances: Sequence[Utterance], assistant_name: str = "Anna") -> str:
    """
    Build a plain text transcript like:

      User: ...

      Anna: ...
    """
    lines: List[str] = []
    for utt in utterances:
        speaker = "User" if utt.role == "user" else assistant_name
        lines.append(f"{speaker}: {utt.content}")
    return "\n\n".join(lines)


class WellnessSummarizer:
    """
    Writes a readable wellness profile from the whole conversation plus the
    final merged data. Works on partial interviews too; whatever is not
    known yet is reported as not specified.

    No heuristic fallback: if the model gives nothing, GenerationUnavailable.
    """

    def __init__(
        self,
        capability: TextGenerationCapability,
        system_prompt: str = SUMMARY_SYSTEM_PROMPT,
    ):
        self.capability = capability
        self.system_prompt = system_prompt

    def summarize(self, progress: StageProgress) -> str:
        context = build_context(progress)
        data = finalize(progress)

        request = SUMMARY_REQUEST.format(
            transcript=build_transcript_text(context) or "(no messages yet)",
            data=json.dumps(data.known_fields(), indent=2, ensure_ascii=False),
            message_count=len(context),
        )
        turns = [{"role": "user", "content": request}]

        try:
            text = self.capability.invoke(self.system_prompt, turns)
        except Exception as e:
            logger.error("Wellness summary generation failed: %s", e)
            raise GenerationUnavailable(
                f"Summary generation failed: {e}", stage=progress.current_stage
            ) from e

        text = (text or "").strip()
        if not text:
            logger.error("Wellness summary generation returned empty text")
            raise GenerationUnavailable("Summary generation returned no text", stage=progress.current_stage)

        logger.info(
            "Wellness summary generated: stage=%s messages=%d fields=%d",
            progress.current_stage.value,
            len(context),
            len(data.known_fields()),
        )
        return text
