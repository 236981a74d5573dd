# wellness_intake/intake/schema.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from wellness_intake.intake.stages import WellnessStage


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_filled(value: Any) -> bool:
    """
    A field counts as known once the user answered it. None and blank
    strings are "not yet known"; an empty list is an explicit "none".
    """
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


_ENUM_FIELDS = (
    "gender",
    "sleep_quality",
    "stress_level",
    "morning_evening_type",
)


class WellnessData(BaseModel):
    """
    Everything we may learn about a user over the interview.

    Every field is optional: absence means "not yet known", never zero/false.
    Units are metric (kg, cm, hours).
    """

    # demographics_baseline
    age: Optional[int] = Field(None, ge=0, le=130)
    gender: Optional[Literal["male", "female", "non-binary"]] = None
    weight: Optional[float] = Field(None, gt=0, description="Weight in kilograms")
    height: Optional[float] = Field(None, gt=0, description="Height in centimetres")
    location: Optional[str] = None
    timezone: Optional[str] = None

    # biometrics_habits
    daily_steps: Optional[int] = Field(None, ge=0)
    sleep_duration: Optional[float] = Field(None, ge=0, le=24, description="Hours per night")
    sleep_quality: Optional[Literal["good", "average", "poor"]] = None
    sleep_regularity: Optional[str] = None
    resting_heart_rate: Optional[int] = Field(None, gt=0)
    stress_level: Optional[Literal["low", "moderate", "high"]] = None
    hydration_level: Optional[str] = None
    nutrition_habits: Optional[List[str]] = None
    caffeine_intake: Optional[str] = None
    alcohol_intake: Optional[str] = None

    # lifestyle_context
    work_schedule: Optional[str] = None
    workload: Optional[str] = None
    business_travel: Optional[bool] = None
    night_shifts: Optional[bool] = None
    cognitive_load: Optional[str] = None
    family_obligations: Optional[List[str]] = None
    recovery_resources: Optional[List[str]] = None

    # medical_history
    chronic_conditions: Optional[List[str]] = None
    injuries: Optional[List[str]] = None
    contraindications: Optional[List[str]] = None
    medications: Optional[List[str]] = None
    supplements: Optional[List[str]] = None

    # goals_preferences
    health_goals: Optional[List[str]] = None
    motivation_level: Optional[str] = None
    morning_evening_type: Optional[Literal["morning", "evening", "flexible"]] = None
    activity_preferences: Optional[List[str]] = None
    coaching_style_preference: Optional[str] = None
    lifestyle_factors: Optional[List[str]] = None
    interests: Optional[List[str]] = None

    # derived
    bmi: Optional[float] = None

    # Allow extra fields from the LLM without crashing
    model_config = ConfigDict(extra="ignore")

    @field_validator(*_ENUM_FIELDS, mode="before")
    @classmethod
    def _lowercase_enums(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    def known_fields(self) -> Dict[str, Any]:
        """Only the fields that actually carry a value."""
        return {
            name: value
            for name, value in self.model_dump().items()
            if is_filled(value)
        }


class Utterance(BaseModel):
    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime = Field(default_factory=utcnow)

    model_config = ConfigDict(frozen=True)


class ExtractionResult(BaseModel):
    stage: WellnessStage
    extracted_data: WellnessData = Field(default_factory=WellnessData)
    confidence: float = Field(..., ge=0, le=100)
    reasoning: str = ""
    # Required fields for the stage still missing after this extraction.
    missing_fields: List[str] = Field(default_factory=list)
