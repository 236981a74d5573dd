# wellness_intake/api/schemas.py
from __future__ import annotations

from typing import Optional, List

from pydantic import BaseModel, Field

from wellness_intake.intake.schema import WellnessData


class StartInterviewResponse(BaseModel):
    session_id: str
    first_question: str
    stage: str


class InterviewMessageRequest(BaseModel):
    session_id: str
    message: str = Field(..., min_length=1)


class ExtractionSummary(BaseModel):
    fields: dict
    confidence: float
    reasoning: str
    missing_fields: List[str]


class InterviewMessageResponse(BaseModel):
    bot_response: str
    stage: str
    stage_advanced: bool
    is_complete: bool
    extraction: Optional[ExtractionSummary] = None


class ProgressResponse(BaseModel):
    session_id: str
    current_stage: str
    completed_stages: List[str]
    is_complete: bool
    used_external_extraction: bool


class WellnessResultResponse(WellnessData):
    pass


class WellnessSummaryResponse(BaseModel):
    session_id: str
    current_stage: str
    is_complete: bool
    summary: str
