# wellness_intake/intake/aggregator.py
from __future__ import annotations

from typing import Any, Dict, Optional

from wellness_intake.intake.schema import WellnessData
from wellness_intake.intake.stages import STAGE_ORDER
from wellness_intake.intake.state import StageProgress


def compute_bmi(weight_kg: Optional[float], height_cm: Optional[float]) -> Optional[float]:
    """
    weight(kg) / height(m)^2, one decimal. None unless both are positive.
    """
    if not weight_kg or not height_cm or weight_kg <= 0 or height_cm <= 0:
        return None
    height_m = height_cm / 100
    return round(weight_kg / (height_m * height_m), 1)


def finalize(progress: StageProgress) -> WellnessData:
    """
    Merge every stage's data into one record, stages in their defined
    order (a later stage wins on a field-name collision), then derive BMI.
    Data of the stage still in progress is included.
    """
    merged: Dict[str, Any] = {}
    for stage in STAGE_ORDER:
        data = progress.stage_data.get(stage)
        if data is not None:
            merged.update(data.known_fields())

    bmi = compute_bmi(merged.get("weight"), merged.get("height"))
    if bmi is not None:
        merged["bmi"] = bmi
    else:
        merged.pop("bmi", None)

    return WellnessData.model_validate(merged)
