# wellness_intake/intake/stages.py
from enum import Enum
from typing import Dict, List, Tuple


class WellnessStage(str, Enum):
    DEMOGRAPHICS_BASELINE = "demographics_baseline"
    BIOMETRICS_HABITS = "biometrics_habits"
    LIFESTYLE_CONTEXT = "lifestyle_context"
    MEDICAL_HISTORY = "medical_history"
    GOALS_PREFERENCES = "goals_preferences"
    COMPLETED = "completed"


STAGE_ORDER: Tuple[WellnessStage, ...] = tuple(WellnessStage)

FIRST_STAGE = WellnessStage.DEMOGRAPHICS_BASELINE
TERMINAL_STAGE = WellnessStage.COMPLETED

# Stages that still collect data (everything except the terminal one).
DATA_STAGES: Tuple[WellnessStage, ...] = STAGE_ORDER[:-1]

STAGE_PROGRESSION: Dict[WellnessStage, WellnessStage] = {
    WellnessStage.DEMOGRAPHICS_BASELINE: WellnessStage.BIOMETRICS_HABITS,
    WellnessStage.BIOMETRICS_HABITS: WellnessStage.LIFESTYLE_CONTEXT,
    WellnessStage.LIFESTYLE_CONTEXT: WellnessStage.MEDICAL_HISTORY,
    WellnessStage.MEDICAL_HISTORY: WellnessStage.GOALS_PREFERENCES,
    WellnessStage.GOALS_PREFERENCES: WellnessStage.COMPLETED,
    WellnessStage.COMPLETED: WellnessStage.COMPLETED,
}

# Fields each stage is meant to acquire. bmi is derived, never extracted.
STAGE_FIELDS: Dict[WellnessStage, List[str]] = {
    WellnessStage.DEMOGRAPHICS_BASELINE: [
        "age", "gender", "weight", "height", "location", "timezone",
    ],
    WellnessStage.BIOMETRICS_HABITS: [
        "daily_steps", "sleep_duration", "sleep_quality", "sleep_regularity",
        "resting_heart_rate", "stress_level", "hydration_level",
        "nutrition_habits", "caffeine_intake", "alcohol_intake",
    ],
    WellnessStage.LIFESTYLE_CONTEXT: [
        "work_schedule", "workload", "business_travel", "night_shifts",
        "cognitive_load", "family_obligations", "recovery_resources",
    ],
    WellnessStage.MEDICAL_HISTORY: [
        "chronic_conditions", "injuries", "contraindications",
        "medications", "supplements",
    ],
    WellnessStage.GOALS_PREFERENCES: [
        "health_goals", "motivation_level", "morning_evening_type",
        "activity_preferences", "coaching_style_preference",
        "lifestyle_factors", "interests",
    ],
    WellnessStage.COMPLETED: [],
}

# Minimum fields per stage, only consulted by RequiredFieldsPolicy.
# Medical history may legitimately be empty ("no problems").
STAGE_REQUIRED_FIELDS: Dict[WellnessStage, List[str]] = {
    WellnessStage.DEMOGRAPHICS_BASELINE: ["age", "gender"],
    WellnessStage.BIOMETRICS_HABITS: ["sleep_duration"],
    WellnessStage.LIFESTYLE_CONTEXT: ["work_schedule"],
    WellnessStage.MEDICAL_HISTORY: [],
    WellnessStage.GOALS_PREFERENCES: ["health_goals"],
    WellnessStage.COMPLETED: [],
}


def next_stage(current: WellnessStage) -> WellnessStage:
    return STAGE_PROGRESSION[current]


def is_terminal(stage: WellnessStage) -> bool:
    return stage == TERMINAL_STAGE
