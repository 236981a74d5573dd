from .stages import WellnessStage
from .schema import WellnessData, Utterance, ExtractionResult
from .state import StageProgress
from .errors import (
    IntakeError,
    ConfigurationUnavailable,
    ExtractionMalformed,
    ExtractionUnavailable,
    GenerationUnavailable,
)

__all__ = [
    "WellnessStage",
    "WellnessData",
    "Utterance",
    "ExtractionResult",
    "StageProgress",
    "IntakeError",
    "ConfigurationUnavailable",
    "ExtractionMalformed",
    "ExtractionUnavailable",
    "GenerationUnavailable",
]
