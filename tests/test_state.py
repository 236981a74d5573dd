"""
StageProgress: history, merging and stage advancement
"""

import pytest

from wellness_intake.intake.policy import count_user_turns
from wellness_intake.intake.schema import Utterance, WellnessData
from wellness_intake.intake.stages import WellnessStage
from wellness_intake.intake.state import StageProgress

DEMO = WellnessStage.DEMOGRAPHICS_BASELINE
BIO = WellnessStage.BIOMETRICS_HABITS


def test_new_progress_is_empty():
    progress = StageProgress()
    assert progress.current_stage == DEMO
    assert progress.completed_stages == []
    assert progress.stage_data == {}
    assert progress.message_history == {}
    assert progress.used_external_extraction is False
    assert progress.started_at is not None
    assert progress.last_active_at is not None


def test_append_message_keeps_order_and_counts_user_turns():
    progress = StageProgress()
    progress.append_message(DEMO, Utterance(role="assistant", content="Hi!"))
    progress.append_message(DEMO, Utterance(role="user", content="I'm 30"))
    progress.append_message(DEMO, Utterance(role="user", content="and 180cm"))

    assert [u.content for u in progress.history(DEMO)] == ["Hi!", "I'm 30", "and 180cm"]
    assert count_user_turns(progress.history(DEMO)) == 2
    assert count_user_turns(progress.history(BIO)) == 0


def test_utterances_are_immutable():
    utterance = Utterance(role="user", content="hello")
    with pytest.raises(Exception):
        utterance.content = "changed"


def test_merge_is_last_write_wins_per_field():
    progress = StageProgress()
    progress.merge_stage_data(DEMO, WellnessData(age=30, location="Berlin"))
    merged = progress.merge_stage_data(DEMO, WellnessData(age=31, gender="female"))

    assert merged.age == 31
    assert merged.gender == "female"
    assert merged.location == "Berlin"
    assert progress.data_for(DEMO) == merged


def test_merge_never_erases_known_values_with_unknowns():
    progress = StageProgress()
    progress.merge_stage_data(DEMO, WellnessData(age=30))
    merged = progress.merge_stage_data(DEMO, WellnessData(age=None, location=""))

    assert merged.age == 30
    assert merged.location is None


def test_merge_keeps_an_explicit_empty_list():
    progress = StageProgress()
    medical = WellnessStage.MEDICAL_HISTORY
    while progress.current_stage != medical:
        progress.advance()

    progress.merge_stage_data(medical, WellnessData(medications=[], injuries=None))
    merged = progress.merge_stage_data(medical, WellnessData(medications=None))

    assert merged.medications == []
    assert merged.injuries is None
    assert merged.known_fields() == {"medications": []}


def test_merge_into_a_future_stage_is_rejected():
    progress = StageProgress()
    with pytest.raises(ValueError):
        progress.merge_stage_data(BIO, WellnessData(daily_steps=5000))


def test_advance_moves_forward_and_records_completed_stage():
    progress = StageProgress()
    assert progress.advance() == BIO
    assert progress.completed_stages == [DEMO]
    assert progress.current_stage not in progress.completed_stages


def test_advance_is_absorbing_at_completed():
    progress = StageProgress()
    while not progress.is_complete:
        progress.advance()

    completed_before = list(progress.completed_stages)
    assert progress.advance() == WellnessStage.COMPLETED
    assert progress.completed_stages == completed_before
    assert WellnessStage.COMPLETED not in progress.completed_stages


def test_progress_round_trips_through_json():
    progress = StageProgress()
    progress.append_message(DEMO, Utterance(role="user", content="I'm 28"))
    progress.merge_stage_data(DEMO, WellnessData(age=28))
    progress.advance()

    restored = StageProgress.model_validate(progress.model_dump(mode="json"))
    assert restored == progress
    assert restored.data_for(DEMO).age == 28
