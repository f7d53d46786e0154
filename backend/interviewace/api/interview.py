"""
Interview API endpoints - answers, transcripts, audio and live events.
"""

import asyncio
import json
import logging
from typing import Optional
from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from fastapi.responses import StreamingResponse

from ..core import AnswerPipeline, SessionLifecycleManager
from ..deps import get_answer_pipeline, get_event_broker, get_session_manager, get_transcription_service
from ..models import (
    AnswerRequest,
    AnswerResult,
    AudioTranscriptResult,
    InterviewSummary,
    TranscriptRequest,
    TranscriptResult,
)
from ..services import SessionEventBroker, TranscriptionService
from ..utils.auth import get_current_user_id, get_stream_user_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/interview", tags=["interview"])

HEARTBEAT_SECONDS = 15.0


@router.post("/answer", response_model=AnswerResult)
async def generate_answer(
    payload: AnswerRequest,
    user_id: str = Depends(get_current_user_id),
    pipeline: AnswerPipeline = Depends(get_answer_pipeline),
):
    """
    Generate an answer to an interview question.

    Costs one credit, charged only when an answer was produced. Returns 402
    when the caller is out of credits and a 5xx with a provider-specific
    message when generation failed.
    """
    return await pipeline.submit_question(
        payload.session_id,
        user_id,
        payload.question,
        payload.context_hints(),
    )


@router.post("/{session_id}/transcript", response_model=TranscriptResult, response_model_exclude_none=True)
async def record_transcript(
    session_id: str,
    payload: TranscriptRequest,
    user_id: str = Depends(get_current_user_id),
    pipeline: AnswerPipeline = Depends(get_answer_pipeline),
):
    """Record a transcribed utterance; questions may be answered automatically."""
    return await pipeline.record_transcript(session_id, user_id, payload.text, speaker=payload.speaker)


@router.post("/{session_id}/audio", response_model=AudioTranscriptResult, response_model_exclude_none=True)
async def record_audio(
    session_id: str,
    audio: UploadFile = File(...),
    language: Optional[str] = Form(None),
    user_id: str = Depends(get_current_user_id),
    pipeline: AnswerPipeline = Depends(get_answer_pipeline),
    transcription: TranscriptionService = Depends(get_transcription_service),
):
    """
    Transcribe an audio chunk of the interviewer and record it.

    Args:
        session_id: Active session
        audio: Audio file (webm, m4a, mp3, wav, ...)
        language: Optional ISO 639-1 language hint
    """
    if not transcription.is_configured():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Speech-to-text is not configured",
        )

    audio_data = await audio.read()
    try:
        transcribed = await transcription.transcribe_audio(
            audio_data,
            filename=audio.filename or "audio.webm",
            language=language,
        )
    except Exception as e:
        logger.error(f"Transcription failed for session {session_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Transcription failed",
        )

    text = (transcribed.get("text") or "").strip()
    if not text:
        return AudioTranscriptResult(is_question=False, text="", language=transcribed.get("language"))

    result = await pipeline.record_transcript(session_id, user_id, text, speaker="interviewer")
    return AudioTranscriptResult(
        **result.model_dump(),
        text=text,
        language=transcribed.get("language"),
    )


@router.get("/{session_id}/events")
async def stream_events(
    session_id: str,
    request: Request,
    user_id: str = Depends(get_stream_user_id),
    manager: SessionLifecycleManager = Depends(get_session_manager),
    broker: SessionEventBroker = Depends(get_event_broker),
):
    """
    Server-Sent Events stream of live session events: ``transcription:result``,
    ``ai:answer``, ``error`` and finally ``session:ended``.
    """
    await manager.get_session(session_id, user_id)

    async def event_generator():
        async with broker.subscribe(session_id) as queue:
            yield f"data: {json.dumps({'type': 'connected', 'session_id': session_id})}\n\n"
            while True:
                if await request.is_disconnected():
                    return
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=HEARTBEAT_SECONDS)
                except asyncio.TimeoutError:
                    yield ": keep-alive\n\n"
                    continue
                yield f"data: {json.dumps(event, ensure_ascii=False, default=str)}\n\n"
                if event.get("type") == "session:ended":
                    return

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        }
    )


@router.get("/summary/{session_id}", response_model=InterviewSummary)
async def get_interview_summary(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    manager: SessionLifecycleManager = Depends(get_session_manager),
):
    """Analyse the session's questions and answers. Not charged."""
    return await manager.summarize_session(session_id, user_id)
