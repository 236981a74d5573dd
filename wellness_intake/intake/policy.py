# wellness_intake/intake/policy.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence

from wellness_intake.intake.schema import Utterance, WellnessData, is_filled
from wellness_intake.intake.stages import STAGE_REQUIRED_FIELDS, WellnessStage, is_terminal

DEFAULT_MAX_TURNS = 2


def count_user_turns(messages: Sequence[Utterance]) -> int:
    return sum(1 for m in messages if m.role == "user")


class CompletionPolicy(ABC):
    """
    Decides, after each extraction, whether a stage is done.

    Every policy shares the hard ceiling: once a stage has had `max_turns`
    user turns it is complete whatever the data looks like.
    """

    def __init__(self, max_turns: int = DEFAULT_MAX_TURNS):
        if max_turns < 1:
            raise ValueError("max_turns must be at least 1")
        self.max_turns = max_turns

    def is_complete(
        self,
        stage: WellnessStage,
        stage_data: WellnessData,
        messages: Sequence[Utterance],
    ) -> bool:
        if is_terminal(stage):
            return True

        turns = count_user_turns(messages)
        if turns >= self.max_turns:
            return True
        if turns == 0:
            return False
        return self._has_enough_data(stage, stage_data)

    @abstractmethod
    def _has_enough_data(self, stage: WellnessStage, stage_data: WellnessData) -> bool:
        ...


class TurnLimitPolicy(CompletionPolicy):
    """
    One informative answer closes a stage: at least one user turn and at
    least one known field.
    """

    def _has_enough_data(self, stage: WellnessStage, stage_data: WellnessData) -> bool:
        return len(stage_data.known_fields()) > 0


class RequiredFieldsPolicy(CompletionPolicy):
    """
    A stage closes once every required field is known. Stages without
    required fields need any one field.
    """

    def __init__(
        self,
        max_turns: int = DEFAULT_MAX_TURNS,
        required_fields: Optional[Dict[WellnessStage, List[str]]] = None,
    ):
        super().__init__(max_turns)
        self.required_fields = required_fields or STAGE_REQUIRED_FIELDS

    def _has_enough_data(self, stage: WellnessStage, stage_data: WellnessData) -> bool:
        required = self.required_fields.get(stage, [])
        if not required:
            return len(stage_data.known_fields()) > 0
        return all(is_filled(getattr(stage_data, name, None)) for name in required)


def build_policy(name: str, max_turns: int = DEFAULT_MAX_TURNS) -> CompletionPolicy:
    if name == "turn_limit":
        return TurnLimitPolicy(max_turns)
    if name == "required_fields":
        return RequiredFieldsPolicy(max_turns)
    raise ValueError(f"Unknown completion policy: {name}")
