# wellness_intake/api/routes.py
from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException

from wellness_intake.services import IntakeSessionService, SessionNotFound
from wellness_intake.intake.errors import ExtractionMalformed, IntakeError
from .schemas import (
    ExtractionSummary,
    InterviewMessageRequest,
    InterviewMessageResponse,
    ProgressResponse,
    StartInterviewResponse,
    WellnessResultResponse,
    WellnessSummaryResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@lru_cache(maxsize=1)
def get_session_service() -> IntakeSessionService:
    return IntakeSessionService.from_settings()


def _not_found(session_id: str) -> HTTPException:
    return HTTPException(
        status_code=404,
        detail=f"Session {session_id} not found. Start a new interview.",
    )


@router.post("/wellness/start", response_model=StartInterviewResponse)
def start_interview(
    service: IntakeSessionService = Depends(get_session_service),
) -> StartInterviewResponse:
    session_id, progress, first_question = service.start_session()
    return StartInterviewResponse(
        session_id=session_id,
        first_question=first_question,
        stage=progress.current_stage.value,
    )


@router.post("/wellness/message", response_model=InterviewMessageResponse)
def interview_message(
    payload: InterviewMessageRequest,
    service: IntakeSessionService = Depends(get_session_service),
) -> InterviewMessageResponse:
    try:
        result = service.handle_turn(payload.session_id, payload.message)
    except SessionNotFound:
        raise _not_found(payload.session_id)
    except IntakeError as e:
        logger.error("Turn failed for session %s: %s", payload.session_id, e)
        status = 502 if isinstance(e, ExtractionMalformed) else 503
        raise HTTPException(
            status_code=status,
            detail="Sorry, I couldn't process that just now. Please send your message again.",
        )

    extraction = None
    if result.extraction_result is not None:
        extraction = ExtractionSummary(
            fields=result.extraction_result.extracted_data.known_fields(),
            confidence=result.extraction_result.confidence,
            reasoning=result.extraction_result.reasoning,
            missing_fields=result.extraction_result.missing_fields,
        )

    progress = result.updated_progress
    return InterviewMessageResponse(
        bot_response=result.bot_response,
        stage=progress.current_stage.value,
        stage_advanced=result.should_advance,
        is_complete=progress.is_complete,
        extraction=extraction,
    )


@router.get("/wellness/{session_id}", response_model=ProgressResponse)
def get_progress(
    session_id: str,
    service: IntakeSessionService = Depends(get_session_service),
) -> ProgressResponse:
    try:
        progress = service.get_progress(session_id)
    except SessionNotFound:
        raise _not_found(session_id)

    return ProgressResponse(
        session_id=session_id,
        current_stage=progress.current_stage.value,
        completed_stages=[s.value for s in progress.completed_stages],
        is_complete=progress.is_complete,
        used_external_extraction=progress.used_external_extraction,
    )


@router.get("/wellness/{session_id}/result", response_model=WellnessResultResponse)
def get_result(
    session_id: str,
    service: IntakeSessionService = Depends(get_session_service),
) -> WellnessResultResponse:
    try:
        data = service.final_data(session_id)
    except SessionNotFound:
        raise _not_found(session_id)

    return WellnessResultResponse(**data.model_dump())


@router.get("/wellness/{session_id}/summary", response_model=WellnessSummaryResponse)
def get_summary(
    session_id: str,
    service: IntakeSessionService = Depends(get_session_service),
) -> WellnessSummaryResponse:
    try:
        progress = service.get_progress(session_id)
        summary = service.summary(session_id)
    except SessionNotFound:
        raise _not_found(session_id)
    except IntakeError as e:
        logger.error("Summary failed for session %s: %s", session_id, e)
        raise HTTPException(
            status_code=503,
            detail="The wellness summary is not available right now. Please try again later.",
        )

    return WellnessSummaryResponse(
        session_id=session_id,
        current_stage=progress.current_stage.value,
        is_complete=progress.is_complete,
        summary=summary,
    )
