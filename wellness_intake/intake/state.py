# wellness_intake/intake/state.py
from __future__ import annotations

from datetime import datetime
from typing import Dict, List

from pydantic import BaseModel, Field

from wellness_intake.intake.stages import (
    FIRST_STAGE,
    WellnessStage,
    is_terminal,
    next_stage,
)
from wellness_intake.intake.schema import Utterance, WellnessData, utcnow


class StageProgress(BaseModel):
    """
    Where one user is in the wellness interview.

    The agent never keeps these around itself: the caller owns the object
    and hands it back on every turn (see services.intake_session for the
    stores that hold them between requests).
    """

    current_stage: WellnessStage = FIRST_STAGE
    completed_stages: List[WellnessStage] = Field(default_factory=list)

    # Accumulated extracted fields, per stage
    stage_data: Dict[WellnessStage, WellnessData] = Field(default_factory=dict)

    # Conversation per stage, chronological
    message_history: Dict[WellnessStage, List[Utterance]] = Field(default_factory=dict)

    used_external_extraction: bool = False

    started_at: datetime = Field(default_factory=utcnow)
    last_active_at: datetime = Field(default_factory=utcnow)

    @property
    def is_complete(self) -> bool:
        return is_terminal(self.current_stage)

    def history(self, stage: WellnessStage) -> List[Utterance]:
        return list(self.message_history.get(stage, []))

    def data_for(self, stage: WellnessStage) -> WellnessData:
        return self.stage_data.get(stage) or WellnessData()

    def append_message(self, stage: WellnessStage, utterance: Utterance) -> None:
        self.message_history.setdefault(stage, []).append(utterance)
        self.last_active_at = utcnow()

    def merge_stage_data(self, stage: WellnessStage, partial: WellnessData) -> WellnessData:
        """
        Field-wise overwrite of the stage's data. None and blank strings in
        `partial` never erase something we already know; an explicit empty
        list ("no medications") is kept.
        """
        if stage != self.current_stage and stage not in self.completed_stages:
            raise ValueError(
                f"Cannot write data for stage {stage.value!r} while on {self.current_stage.value!r}"
            )

        merged = self.data_for(stage).model_copy(update=partial.known_fields())
        self.stage_data[stage] = merged
        self.last_active_at = utcnow()
        return merged

    def advance(self) -> WellnessStage:
        """
        Close the current stage and move to its successor.
        """
        if self.is_complete:
            return self.current_stage

        if self.current_stage not in self.completed_stages:
            self.completed_stages.append(self.current_stage)
        self.current_stage = next_stage(self.current_stage)
        self.last_active_at = utcnow()
        return self.current_stage
