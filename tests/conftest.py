import json

import pytest

from wellness_intake.intake.agent import WellnessIntakeAgent
from wellness_intake.intake.extractor import ExtractionAdapter
from wellness_intake.intake.policy import TurnLimitPolicy
from wellness_intake.intake.questions import QuestionGenerator
from wellness_intake.intake.stage_config import StaticStageConfigProvider
from wellness_intake.intake.summarizer import WellnessSummarizer
from wellness_intake.llm import ExtractionCapability, TextGenerationCapability


def extraction_payload(data=None, confidence=90, reasoning="test"):
    return json.dumps(
        {"extractedData": data or {}, "confidence": confidence, "reasoning": reasoning}
    )


class ScriptedExtraction(ExtractionCapability):
    """
    Returns queued responses in order. Dicts are wrapped into a payload,
    exceptions are raised. Once the queue is empty, returns an empty payload.
    """

    def __init__(self):
        self.responses = []
        self.calls = []

    def queue(self, *items):
        self.responses.extend(items)
        return self

    def invoke(self, system_instruction, user_text):
        self.calls.append((system_instruction, user_text))
        item = self.responses.pop(0) if self.responses else {}
        if isinstance(item, Exception):
            raise item
        if isinstance(item, dict):
            return extraction_payload(item)
        return item


class ScriptedGeneration(TextGenerationCapability):
    def __init__(self):
        self.responses = []
        self.calls = []

    def queue(self, *items):
        self.responses.extend(items)
        return self

    def invoke(self, system_instruction, turns):
        self.calls.append((system_instruction, [dict(t) for t in turns]))
        if self.responses:
            item = self.responses.pop(0)
            if isinstance(item, Exception):
                raise item
            return item
        return f"Generated question {len(self.calls)}"


@pytest.fixture
def provider():
    return StaticStageConfigProvider.packaged()


@pytest.fixture
def extraction():
    return ScriptedExtraction()


@pytest.fixture
def generation():
    return ScriptedGeneration()


@pytest.fixture
def agent(extraction, generation, provider):
    return WellnessIntakeAgent(
        extractor=ExtractionAdapter(extraction, provider),
        question_generator=QuestionGenerator(generation, provider),
        policy=TurnLimitPolicy(max_turns=2),
        config_provider=provider,
        summarizer=WellnessSummarizer(generation),
    )
