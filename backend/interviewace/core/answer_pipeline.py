"""
Question/Answer Pipeline - turns interview questions into paid answers.

Billing rules:
- the balance is checked before the generator is called, and a caller
  with no credits is turned away without any cost;
- a failed generation is never charged and never recorded;
- a successful generation costs one whole credit, deducted after the
  answer arrived, independently of the time-based charge settled when
  the session ends.

Neither the check nor the charge holds a lock while the generator runs.
"""

import logging
from typing import Any, Dict, Optional

from ..errors import (
    GenerationFailure,
    InsufficientCreditsError,
    InterviewAceError,
    NotFoundError,
    ValidationError,
)
from ..models import AnswerResult, QuestionEvent, QuestionRecord, TranscriptEntry, TranscriptResult
from ..services.events import EventSink, NullEventSink
from ..services.generation import GenerationContext, GenerationGateway, call_with_timeout
from ..services.transcription import QuestionClassifier
from ..storage import SessionRepository, StorageError, validate_owner_id
from .credit_ledger import CreditLedger
from .session_manager import Clock, utc_now

logger = logging.getLogger(__name__)

QUESTION_CHARGE = 1.0


class AnswerPipeline:
    """
    Handles question submissions and transcript events for active sessions.
    """

    def __init__(
        self,
        sessions: SessionRepository,
        ledger: CreditLedger,
        gateway: GenerationGateway,
        classifier: Optional[QuestionClassifier] = None,
        events: Optional[EventSink] = None,
        clock: Clock = utc_now,
        history_window: int = 10,
        generation_timeout: Optional[float] = 30.0,
        auto_answer: bool = True,
    ):
        """
        Args:
            sessions: Session store
            ledger: Credit ledger charged per answered question
            gateway: Answer generator
            classifier: Flags transcribed utterances as questions
            events: Sink for live session events
            clock: Source of "now"; injectable for tests
            history_window: Transcript entries handed to the generator
            generation_timeout: Deadline for one generator call in seconds
            auto_answer: Answer transcribed questions automatically
        """
        self.sessions = sessions
        self.ledger = ledger
        self.gateway = gateway
        self.classifier = classifier or QuestionClassifier()
        self.events = events or NullEventSink()
        self.clock = clock
        self.history_window = history_window
        self.generation_timeout = generation_timeout
        self.auto_answer = auto_answer

    async def submit_question(
        self,
        session_id: Optional[str],
        owner_id: str,
        question: Optional[str],
        context_hints: Optional[Dict[str, Any]] = None,
    ) -> AnswerResult:
        """
        Generate and charge for an answer to ``question``.

        Without a session id the question is answered without conversation
        history and is not recorded anywhere.

        Raises:
            ValidationError: If the question is empty
            NotFoundError: If the session is unknown, foreign or closed
            InsufficientCreditsError: If the owner has no credits left
            GenerationFailure: If the generator failed (nothing is charged)
        """
        validate_owner_id(owner_id)
        if not question or not question.strip():
            raise ValidationError("Question is required")

        event = QuestionEvent(
            question=question.strip(),
            context_hints=context_hints or {},
            timestamp=self.clock(),
        )

        recent_transcript = []
        if session_id is not None:
            session = await self.sessions.get(session_id, owner_id)
            if session is None or not session.is_active:
                raise NotFoundError("Session not found or no longer active", details={"session_id": session_id})
            if self.history_window > 0:
                recent_transcript = session.transcript[-self.history_window:]

        balance = await self.ledger.balance(owner_id)
        if balance <= 0:
            raise InsufficientCreditsError(balance=balance, required=QUESTION_CHARGE)

        try:
            generated = await call_with_timeout(
                self.gateway.generate_answer(
                    event.question,
                    GenerationContext(hints=event.context_hints, recent_transcript=recent_transcript),
                ),
                self.generation_timeout,
            )
        except GenerationFailure as e:
            logger.warning(
                f"Answer generation failed, nothing charged: {e.message}",
                extra={"extra_fields": {
                    "session_id": session_id,
                    "owner_id": owner_id,
                    "kind": e.kind,
                    "provider_id": e.provider_id,
                }}
            )
            raise

        deduction = await self.ledger.deduct(owner_id, QUESTION_CHARGE)
        if deduction.actual <= 0:
            # Balance was drained by a concurrent charge while generating.
            raise InsufficientCreditsError(balance=deduction.remaining, required=QUESTION_CHARGE)

        if session_id is not None:
            record = QuestionRecord(
                question=event.question,
                answer=generated.answer,
                timestamp=self.clock(),
                provider_id=generated.provider_id,
            )
            try:
                await self.sessions.append_question(session_id, owner_id, record)
            except (NotFoundError, StorageError):
                # The charge stands; only the log entry is lost.
                logger.exception(
                    f"Answer charged but not recorded for session {session_id}",
                    extra={"extra_fields": {"session_id": session_id, "owner_id": owner_id}}
                )

        result = AnswerResult(
            answer=generated.answer,
            provider_id=generated.provider_id,
            credits_remaining=deduction.remaining,
        )
        logger.info(
            "Question answered",
            extra={"extra_fields": {
                "session_id": session_id,
                "owner_id": owner_id,
                "provider_id": generated.provider_id,
                "credits_charged": deduction.actual,
                "credits_remaining": deduction.remaining,
            }}
        )
        if session_id is not None:
            await self.events.publish(session_id, {
                "type": "ai:answer",
                "question": event.question,
                **result.model_dump(mode="json"),
            })
        return result

    async def record_transcript(
        self,
        session_id: str,
        owner_id: str,
        text: Optional[str],
        speaker: str = "interviewer",
    ) -> TranscriptResult:
        """
        Append a transcribed utterance to the session.

        Recording is free. When the utterance looks like a question and
        auto-answer is on, it is answered through :meth:`submit_question`;
        a failure there is reported in the result and as an ``error`` event
        rather than raised, because the utterance itself was recorded.

        Raises:
            ValidationError: If the text is empty
            NotFoundError: If the session is unknown, foreign or closed
        """
        validate_owner_id(owner_id)
        if not text or not text.strip():
            raise ValidationError("Transcript text is required")
        text = text.strip()

        flagged = self.classifier.is_question(text)
        entry = TranscriptEntry(timestamp=self.clock(), speaker=speaker, text=text, is_question=flagged)
        await self.sessions.append_transcript(session_id, owner_id, entry)
        await self.events.publish(session_id, {
            "type": "transcription:result",
            "speaker": speaker,
            "text": text,
            "is_question": flagged,
        })

        result = TranscriptResult(is_question=flagged)
        if not (flagged and self.auto_answer):
            return result

        try:
            result.answer = await self.submit_question(session_id, owner_id, text)
        except (InsufficientCreditsError, GenerationFailure, NotFoundError) as e:
            result.error = _auto_answer_message(e)
            await self.events.publish(session_id, {
                "type": "error",
                "error": e.error,
                "message": result.error,
            })
        return result


def _auto_answer_message(error: InterviewAceError) -> str:
    if isinstance(error, InsufficientCreditsError):
        return "Insufficient credits to generate answer"
    return error.message
