"""
Session Lifecycle Manager - creates, closes and settles interview sessions.

A session is created ``active``, collects transcript and question events
while active, and is closed exactly once by :meth:`end_session`, which
charges the owner for the elapsed time:

    requested = ceil(duration_minutes * 2) / 2

i.e. time is billed in half-credit steps, rounded up, so any session longer
than zero seconds costs at least 0.5 credits. When the balance cannot cover
the charge the whole remaining balance is taken and the shortfall is
forgiven.
"""

import logging
import math
import uuid
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from ..errors import NotFoundError, ValidationError
from ..models import (
    CreditsSettlement,
    Deduction,
    EndedSession,
    InterviewSession,
    InterviewSummary,
    Platform,
    SessionStatus,
    SessionSummary,
)
from ..services.events import EventSink, NullEventSink
from ..services.generation import GenerationGateway, call_with_timeout
from ..storage import SessionRepository, StorageError, validate_owner_id
from .credit_ledger import CreditLedger

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def credits_for_duration(duration_seconds: int) -> float:
    """Half-credit steps per started 30 seconds (0.5 credits per minute, rounded up)."""
    if duration_seconds <= 0:
        return 0.0
    return math.ceil(duration_seconds / 30) / 2


def round_minutes(duration_seconds: int) -> float:
    """Minutes rounded half-up to one decimal."""
    return math.floor(duration_seconds / 60 * 10 + 0.5) / 10


def parse_platform(platform: Optional[str]) -> Platform:
    if not platform:
        return Platform.OTHER
    try:
        return Platform(platform.strip().lower())
    except ValueError:
        raise ValidationError(
            f"Unsupported platform: {platform}",
            details={"allowed": [p.value for p in Platform]},
        )


class SessionLifecycleManager:
    """
    Orchestrates create -> active -> completed transitions.
    """

    def __init__(
        self,
        sessions: SessionRepository,
        ledger: CreditLedger,
        gateway: GenerationGateway,
        events: Optional[EventSink] = None,
        clock: Clock = utc_now,
        list_limit: int = 50,
        generation_timeout: Optional[float] = 30.0,
    ):
        """
        Args:
            sessions: Session store
            ledger: Credit ledger that settles time-based charges
            gateway: Generator used for post-interview summaries
            events: Sink for live session events
            clock: Source of "now"; injectable for tests
            list_limit: Maximum number of sessions returned by list_sessions
            generation_timeout: Deadline for summary generation in seconds
        """
        self.sessions = sessions
        self.ledger = ledger
        self.gateway = gateway
        self.events = events or NullEventSink()
        self.clock = clock
        self.list_limit = list_limit
        self.generation_timeout = generation_timeout

    async def create_session(self, owner_id: Optional[str], platform: Optional[str] = None) -> InterviewSession:
        """
        Start a new interview session.

        Raises:
            ValidationError: If the owner is missing or the platform unknown
        """
        validate_owner_id(owner_id)
        session = InterviewSession(
            session_id=str(uuid.uuid4()),
            owner_id=owner_id,
            platform=parse_platform(platform),
            status=SessionStatus.ACTIVE,
            started_at=self.clock(),
        )
        await self.sessions.create(session)

        logger.info(
            f"Session created: {session.session_id}",
            extra={"extra_fields": {
                "session_id": session.session_id,
                "owner_id": owner_id,
                "platform": session.platform.value,
            }}
        )
        return session

    async def get_session(self, session_id: str, owner_id: str) -> InterviewSession:
        """
        Raises:
            NotFoundError: If no such session exists for this owner
        """
        session = await self.sessions.get(session_id, owner_id)
        if session is None:
            raise NotFoundError("Session not found", details={"session_id": session_id})
        return session

    async def list_sessions(self, owner_id: str, limit: Optional[int] = None) -> List[InterviewSession]:
        """The owner's sessions, most recent first."""
        limit = self.list_limit if limit is None else max(0, min(limit, self.list_limit))
        return await self.sessions.list_for_owner(owner_id, limit=limit)

    async def end_session(self, session_id: str, owner_id: str) -> SessionSummary:
        """
        Close an active session and settle its time-based charge.

        The session is closed at most once: a second call, e.g. a retried
        request, finds it terminal and fails instead of charging again.

        Raises:
            NotFoundError: If the session is unknown, foreign or already ended
            StorageError: If the closed session could not be saved. The time
                charge is refunded and the session stays active.
        """
        validate_owner_id(owner_id)

        async def _close(session: InterviewSession) -> Tuple[Deduction, datetime, int]:
            if not session.is_active:
                raise NotFoundError(
                    "Session not found or already ended",
                    details={"session_id": session_id, "status": session.status.value},
                )

            ended_at = self.clock()
            duration_seconds = max(0, math.floor((ended_at - session.started_at).total_seconds()))
            deduction = await self.ledger.deduct(owner_id, credits_for_duration(duration_seconds))
            charged.append(deduction)

            session.status = SessionStatus.COMPLETED
            session.ended_at = ended_at
            session.duration_seconds = duration_seconds
            session.credits_deducted = deduction.actual
            return deduction, ended_at, duration_seconds

        charged: List[Deduction] = []
        try:
            deduction, ended_at, duration_seconds = await self.sessions.update(session_id, owner_id, _close)
        except StorageError:
            # The session is still active on disk, so a retry will bill it again
            if charged and charged[0].actual > 0:
                await self._refund(owner_id, session_id, charged[0].actual)
            raise

        insufficient = deduction.insufficient
        summary = SessionSummary(
            session=EndedSession(
                session_id=session_id,
                status=SessionStatus.COMPLETED,
                duration=duration_seconds,
                duration_minutes=round_minutes(duration_seconds),
                ended_at=ended_at,
            ),
            credits=CreditsSettlement(
                deducted=deduction.actual,
                requested=deduction.requested if insufficient else None,
                remaining=deduction.remaining,
                insufficient=insufficient,
            ),
        )

        log = logger.warning if insufficient else logger.info
        log(
            f"Session ended: {session_id}",
            extra={"extra_fields": {
                "session_id": session_id,
                "owner_id": owner_id,
                "duration_seconds": duration_seconds,
                "credits_requested": deduction.requested,
                "credits_deducted": deduction.actual,
                "insufficient": insufficient,
            }}
        )
        await self.events.publish(session_id, {
            "type": "session:ended",
            "summary": summary.model_dump(mode="json"),
        })
        return summary

    async def _refund(self, owner_id: str, session_id: str, amount: float) -> None:
        try:
            await self.ledger.grant(owner_id, amount)
        except StorageError:
            logger.exception(
                f"Could not refund time charge of failed session close {session_id}",
                extra={"extra_fields": {"session_id": session_id, "owner_id": owner_id, "amount": amount}}
            )
            return
        logger.warning(
            f"Session close not persisted, refunded time charge: {session_id}",
            extra={"extra_fields": {"session_id": session_id, "owner_id": owner_id, "amount": amount}}
        )

    async def summarize_session(self, session_id: str, owner_id: str) -> InterviewSummary:
        """
        Generate (or regenerate) the post-interview analysis and store it on
        the session. Not charged.

        Raises:
            NotFoundError: If no such session exists for this owner
            GenerationFailure: If the generator could not produce a summary
        """
        session = await self.get_session(session_id, owner_id)
        summary = await call_with_timeout(
            self.gateway.summarize_session(session.questions, session.duration_seconds),
            self.generation_timeout,
        )

        async def _store(stored: InterviewSession) -> None:
            stored.summary = summary

        await self.sessions.update(session_id, owner_id, _store)
        return summary
