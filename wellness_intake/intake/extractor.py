# wellness_intake/intake/extractor.py
from __future__ import annotations

import json
import logging
from numbers import Real
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from wellness_intake.intake.errors import ExtractionMalformed, ExtractionUnavailable
from wellness_intake.intake.prompts import EXTRACTION_RULES
from wellness_intake.intake.schema import ExtractionResult, Utterance, WellnessData, is_filled
from wellness_intake.intake.stage_config import StageConfigProvider
from wellness_intake.intake.stages import STAGE_FIELDS, STAGE_REQUIRED_FIELDS, WellnessStage
from wellness_intake.llm import ExtractionCapability

logger = logging.getLogger(__name__)

RESPONSE_FORMAT = """
Return a single JSON object and nothing else:

{
  "extractedData": { only the fields listed for this stage },
  "confidence": number from 0 to 100,
  "reasoning": "what was extracted and from where"
}
""".strip()

# How many earlier utterances of the stage to show the extractor.
CONTEXT_WINDOW = 6


def find_json_object(text: str) -> Optional[str]:
    """
    Return the first balanced {...} substring in `text`, or None.

    Braces inside JSON string literals are ignored, so the model can
    wrap the payload in prose or ``` fences without confusing us.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue

            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start:i + 1]
        # Unbalanced from this brace; try the next one.
        start = text.find("{", start + 1)
    return None


def parse_extraction_payload(raw: str, stage: WellnessStage) -> Dict[str, Any]:
    """
    Pull the payload out of a raw model response and check its shape:
    an "extractedData" object and a numeric "confidence".
    """
    snippet = find_json_object(raw or "")
    if snippet is None:
        raise ExtractionMalformed("No JSON object found in extraction response", stage=stage)

    try:
        payload = json.loads(snippet)
    except json.JSONDecodeError as e:
        raise ExtractionMalformed(f"Extraction response is not valid JSON: {e}", stage=stage) from e

    if not isinstance(payload, dict):
        raise ExtractionMalformed("Extraction payload is not an object", stage=stage)

    extracted = payload.get("extractedData")
    if not isinstance(extracted, dict):
        raise ExtractionMalformed("Extraction payload has no extractedData object", stage=stage)

    confidence = payload.get("confidence")
    # bool is a Real subclass; "true" is not a confidence
    if isinstance(confidence, bool) or not isinstance(confidence, Real):
        raise ExtractionMalformed("Extraction payload has no numeric confidence", stage=stage)

    return payload


class ExtractionAdapter:
    """
    Turns one user utterance into structured WellnessData for a stage.

    The adapter only talks to the extraction capability; merging the
    result into the session is the agent's job.
    """

    def __init__(self, capability: ExtractionCapability, config_provider: StageConfigProvider):
        self.capability = capability
        self.config_provider = config_provider

    def extract(
        self,
        stage: WellnessStage,
        user_utterance: str,
        stage_context: Sequence[Utterance] = (),
        previous_data: Optional[WellnessData] = None,
    ) -> ExtractionResult:
        previous_data = previous_data or WellnessData()

        system_instruction = self._build_system_instruction(stage, previous_data)
        user_text = self._build_user_text(user_utterance, stage_context)

        try:
            raw = self.capability.invoke(system_instruction, user_text)
        except Exception as e:
            logger.error("Extraction call failed for stage %s: %s", stage.value, e)
            raise ExtractionUnavailable(f"Extraction service failed: {e}", stage=stage) from e

        try:
            result = self._to_result(stage, raw, previous_data)
        except ExtractionMalformed:
            logger.error("Malformed extraction response for stage %s: %r", stage.value, (raw or "")[:200])
            raise

        logger.info(
            "Extraction for stage %s: fields=%s confidence=%.0f",
            stage.value,
            sorted(result.extracted_data.known_fields()),
            result.confidence,
        )
        return result

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _build_system_instruction(self, stage: WellnessStage, previous_data: WellnessData) -> str:
        stage_prompt = self.config_provider.extraction_prompt(stage)
        allowed = ", ".join(STAGE_FIELDS.get(stage, []))

        parts = [
            EXTRACTION_RULES,
            stage_prompt,
            f"Allowed fields for this stage: {allowed}",
        ]
        known = previous_data.known_fields()
        if known:
            parts.append(
                "Already known for this stage (do not repeat unless the user corrects it):\n"
                + json.dumps(known, ensure_ascii=False)
            )
        parts.append(RESPONSE_FORMAT)
        return "\n\n".join(parts)

    def _build_user_text(self, user_utterance: str, stage_context: Sequence[Utterance]) -> str:
        # The newest utterance is usually already the last item of the context.
        earlier: List[Utterance] = list(stage_context)
        if earlier and earlier[-1].role == "user" and earlier[-1].content == user_utterance:
            earlier = earlier[:-1]
        earlier = earlier[-CONTEXT_WINDOW:]

        lines = []
        if earlier:
            lines.append("Earlier in this part of the conversation:")
            lines.extend(f"{u.role}: {u.content}" for u in earlier)
            lines.append("")
        lines.append(f'User response: "{user_utterance}"')
        lines.append("")
        lines.append("Extract data in JSON format according to the instructions.")
        return "\n".join(lines)

    def _to_result(self, stage: WellnessStage, raw: str, previous_data: WellnessData) -> ExtractionResult:
        payload = parse_extraction_payload(raw, stage)

        # Only the stage's own fields; bmi is always derived later.
        allowed = set(STAGE_FIELDS.get(stage, []))
        fields = {k: v for k, v in payload["extractedData"].items() if k in allowed}
        try:
            data = WellnessData.model_validate(fields)
        except ValidationError as e:
            raise ExtractionMalformed(f"Extracted data failed validation: {e}", stage=stage) from e

        confidence = min(100.0, max(0.0, float(payload["confidence"])))
        reasoning = payload.get("reasoning")

        required = STAGE_REQUIRED_FIELDS.get(stage, [])
        missing = [
            name for name in required
            if not (is_filled(getattr(data, name)) or is_filled(getattr(previous_data, name)))
        ]

        return ExtractionResult(
            stage=stage,
            extracted_data=data,
            confidence=confidence,
            reasoning=reasoning if isinstance(reasoning, str) else "",
            missing_fields=missing,
        )
