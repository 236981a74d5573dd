# wellness_intake/intake/errors.py
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from wellness_intake.intake.stages import WellnessStage
    from wellness_intake.intake.state import StageProgress


class IntakeError(Exception):
    """
    Base class for failures that abort a single interview turn.

    `progress` is filled in by the agent: a copy of the session with the
    user's utterance appended and nothing else changed. Turns after
    completion append nothing, so there it is an unchanged copy.
    """

    def __init__(self, message: str, stage: Optional["WellnessStage"] = None):
        super().__init__(message)
        self.stage = stage
        self.progress: Optional["StageProgress"] = None


class ConfigurationUnavailable(IntakeError):
    """Stage prompts could not be loaded."""


class ExtractionMalformed(IntakeError):
    """The extraction response had no usable payload."""


class ExtractionUnavailable(IntakeError):
    """The extraction call itself failed."""


class GenerationUnavailable(IntakeError):
    """No question/completion text could be generated."""
