"""
IntakeSessionService and progress stores
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from wellness_intake.intake.agent import WellnessIntakeAgent
from wellness_intake.intake.errors import ExtractionMalformed
from wellness_intake.intake.extractor import ExtractionAdapter
from wellness_intake.intake.policy import TurnLimitPolicy, count_user_turns
from wellness_intake.intake.questions import QuestionGenerator
from wellness_intake.intake.schema import Utterance, WellnessData
from wellness_intake.intake.stages import WellnessStage
from wellness_intake.intake.state import StageProgress
from wellness_intake.services import (
    InMemoryProgressStore,
    IntakeSessionService,
    SessionNotFound,
    SqlProgressStore,
)

from conftest import ScriptedExtraction

DEMO = WellnessStage.DEMOGRAPHICS_BASELINE
BIO = WellnessStage.BIOMETRICS_HABITS


@pytest.fixture(params=["memory", "sqlite"])
def store(request):
    if request.param == "memory":
        return InMemoryProgressStore()
    return SqlProgressStore.from_url("sqlite:///:memory:")


@pytest.fixture
def service(agent, store):
    return IntakeSessionService(agent, store)


def test_store_round_trip(store):
    progress = StageProgress()
    progress.append_message(DEMO, Utterance(role="user", content="I'm 28"))
    progress.merge_stage_data(DEMO, WellnessData(age=28, nutrition_habits=["vegetables"]))

    store.set("s1", progress)
    loaded = store.get("s1")

    assert loaded == progress
    assert store.get("missing") is None

    progress.advance()
    store.set("s1", progress)
    assert store.get("s1").current_stage == BIO


def test_store_returns_independent_copies(store):
    store.set("s1", StageProgress())
    loaded = store.get("s1")
    loaded.advance()

    assert store.get("s1").current_stage == DEMO


def test_start_session_saves_initial_progress(service, provider):
    session_id, progress, intro = service.start_session()

    assert intro == provider.introduction_message(DEMO)
    assert service.get_progress(session_id) == progress


def test_handle_turn_saves_progress(service, extraction):
    extraction.queue({"age": 28, "weight": 70, "height": 175})
    session_id, _, _ = service.start_session()

    result = service.handle_turn(session_id, "I'm 28, 70kg, 175cm")

    assert result.should_advance
    stored = service.get_progress(session_id)
    assert stored.current_stage == BIO
    assert service.final_data(session_id).bmi == 22.9


def test_failed_turn_leaves_stored_progress_unchanged(service, extraction):
    extraction.queue("garbage", {"age": 28})
    session_id, before, _ = service.start_session()

    with pytest.raises(ExtractionMalformed):
        service.handle_turn(session_id, "I'm 28")
    assert service.get_progress(session_id) == before

    # Retrying the same message works from the unchanged state
    result = service.handle_turn(session_id, "I'm 28")
    assert count_user_turns(result.updated_progress.history(DEMO)) == 1


def test_unknown_session(service):
    with pytest.raises(SessionNotFound):
        service.handle_turn("nope", "hello")
    with pytest.raises(SessionNotFound):
        service.final_data("nope")


class GatedExtraction(ScriptedExtraction):
    """
    Every call announces itself on `entered` and then waits for `release`.
    """

    def __init__(self):
        super().__init__()
        self.entered = threading.Semaphore(0)
        self.release = threading.Event()

    def invoke(self, system_instruction, user_text):
        self.entered.release()
        if not self.release.wait(timeout=5):
            raise RuntimeError("extraction was never released")
        return super().invoke(system_instruction, user_text)


@pytest.fixture
def gated():
    return GatedExtraction()


@pytest.fixture
def gated_service(gated, generation, provider):
    agent = WellnessIntakeAgent(
        extractor=ExtractionAdapter(gated, provider),
        question_generator=QuestionGenerator(generation, provider),
        policy=TurnLimitPolicy(max_turns=2),
        config_provider=provider,
    )
    return IntakeSessionService(agent, InMemoryProgressStore())


def test_turns_on_one_session_are_serialised(gated_service, gated):
    session_id, _, _ = gated_service.start_session()

    with ThreadPoolExecutor(max_workers=2) as pool:
        first = pool.submit(gated_service.handle_turn, session_id, "first")
        assert gated.entered.acquire(timeout=5)

        second = pool.submit(gated_service.handle_turn, session_id, "second")
        # The second turn waits for the session lock, not inside extraction
        assert not gated.entered.acquire(timeout=0.2)

        gated.release.set()
        first_result = first.result(timeout=5)
        second_result = second.result(timeout=5)

    assert first_result.should_advance is False
    # The second turn saw the first one's stored utterance: two turns, ceiling reached
    assert second_result.should_advance is True

    stored = gated_service.get_progress(session_id)
    assert stored.current_stage == BIO
    assert count_user_turns(stored.history(DEMO)) == 2
    assert [u.content for u in stored.history(DEMO) if u.role == "user"] == ["first", "second"]


def test_turns_on_different_sessions_run_in_parallel(gated_service, gated):
    one, _, _ = gated_service.start_session()
    two, _, _ = gated_service.start_session()

    with ThreadPoolExecutor(max_workers=2) as pool:
        futures = [pool.submit(gated_service.handle_turn, sid, "hello") for sid in (one, two)]
        # Both turns are inside extraction at the same time
        assert gated.entered.acquire(timeout=5)
        assert gated.entered.acquire(timeout=5)

        gated.release.set()
        for future in futures:
            future.result(timeout=5)

    for sid in (one, two):
        assert count_user_turns(gated_service.get_progress(sid).history(DEMO)) == 1


def test_session_locks_are_dropped_after_the_turn(gated_service, gated):
    session_id, _, _ = gated_service.start_session()

    with ThreadPoolExecutor(max_workers=1) as pool:
        turn = pool.submit(gated_service.handle_turn, session_id, "hello")
        assert gated.entered.acquire(timeout=5)
        assert session_id in gated_service._locks

        gated.release.set()
        turn.result(timeout=5)

    assert session_id not in gated_service._locks
    assert len(gated_service._locks) == 0


def test_summary_reads_the_stored_progress(service, extraction, generation):
    extraction.queue({"age": 28, "weight": 70, "height": 175})
    session_id, _, _ = service.start_session()
    service.handle_turn(session_id, "I'm 28, 70kg, 175cm")
    generation.queue("Profile: 28 years old, BMI 22.9.")

    assert service.summary(session_id) == "Profile: 28 years old, BMI 22.9."

    instruction, turns = generation.calls[-1]
    assert "wellness data analyst" in instruction
    assert "User: I'm 28, 70kg, 175cm" in turns[-1]["content"]
    assert '"bmi": 22.9' in turns[-1]["content"]

    with pytest.raises(SessionNotFound):
        service.summary("nope")
