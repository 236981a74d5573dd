"""
QuestionGenerator and conversation context assembly
"""

import pytest

from wellness_intake.intake.errors import GenerationUnavailable
from wellness_intake.intake.questions import (
    COMPLETION_REQUEST,
    NEXT_QUESTION_REQUEST,
    QuestionGenerator,
    build_context,
)
from wellness_intake.intake.schema import Utterance
from wellness_intake.intake.stages import WellnessStage
from wellness_intake.intake.state import StageProgress

A = WellnessStage.DEMOGRAPHICS_BASELINE
B = WellnessStage.BIOMETRICS_HABITS
C = WellnessStage.LIFESTYLE_CONTEXT


def say(progress, stage, role, text):
    progress.append_message(stage, Utterance(role=role, content=text))


def test_context_is_completed_stages_then_current():
    progress = StageProgress()
    say(progress, A, "assistant", "a1")
    say(progress, A, "user", "a2")
    progress.advance()
    say(progress, B, "assistant", "b1")
    say(progress, B, "user", "b2")
    say(progress, B, "user", "b3")
    progress.advance()
    say(progress, C, "assistant", "c1")
    say(progress, C, "user", "c2")

    context = build_context(progress)
    assert [u.content for u in context] == ["a1", "a2", "b1", "b2", "b3", "c1", "c2"]


def test_context_of_fresh_progress_is_empty():
    assert build_context(StageProgress()) == []


def test_next_question_uses_persona_and_stage_prompt(generation, provider):
    generation.queue("  How many hours do you sleep?  ")
    generator = QuestionGenerator(generation, provider)
    context = [Utterance(role="user", content="I'm 28")]

    question = generator.next_question(B, context)

    assert question == "How many hours do you sleep?"
    instruction, turns = generation.calls[0]
    assert provider.get_persona_prompt() in instruction
    assert provider.question_prompt(B) in instruction
    assert turns[0] == {"role": "user", "content": "I'm 28"}
    assert turns[-1] == {"role": "user", "content": NEXT_QUESTION_REQUEST}


def test_completion_message_uses_terminal_prompt(generation, provider):
    generation.queue("Thanks, all done!")
    generator = QuestionGenerator(generation, provider)

    assert generator.completion_message([]) == "Thanks, all done!"
    instruction, turns = generation.calls[0]
    assert provider.question_prompt(WellnessStage.COMPLETED) in instruction
    assert turns == [{"role": "user", "content": COMPLETION_REQUEST}]


@pytest.mark.parametrize("reply", ["", "   ", None])
def test_empty_generation_is_fatal(generation, provider, reply):
    generation.queue(reply)
    generator = QuestionGenerator(generation, provider)

    with pytest.raises(GenerationUnavailable):
        generator.next_question(A, [])


def test_generation_failure_is_fatal(generation, provider):
    generation.queue(TimeoutError("upstream timed out"))
    generator = QuestionGenerator(generation, provider)

    with pytest.raises(GenerationUnavailable) as exc_info:
        generator.completion_message([])
    assert exc_info.value.stage == WellnessStage.COMPLETED
