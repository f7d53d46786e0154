"""
Session Models - Defines structures for interview sessions.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, Field


class SessionStatus(str, Enum):
    """Lifecycle states. Only ``active`` -> ``completed`` is produced today."""
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Platform(str, Enum):
    """Meeting or coding platform the interview runs on."""
    ZOOM = "zoom"
    TEAMS = "teams"
    MEET = "meet"
    HACKERRANK = "hackerrank"
    LEETCODE = "leetcode"
    OTHER = "other"


class TranscriptEntry(BaseModel):
    """One transcribed utterance."""
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    speaker: str
    text: str
    is_question: bool = False


class QuestionRecord(BaseModel):
    """A question that was answered (and paid for)."""
    question: str
    answer: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    provider_id: str


class InterviewSummary(BaseModel):
    """Post-interview analysis."""
    total_questions: int = 0
    total_answers: int = 0
    performance_score: Optional[float] = None
    feedback: Optional[str] = None
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)


class InterviewSession(BaseModel):
    """Full interview session record."""
    session_id: str
    owner_id: str
    platform: Platform = Platform.OTHER
    status: SessionStatus = SessionStatus.ACTIVE
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    ended_at: Optional[datetime] = None
    duration_seconds: int = 0
    credits_deducted: float = 0
    transcript: List[TranscriptEntry] = Field(default_factory=list)
    questions: List[QuestionRecord] = Field(default_factory=list)
    summary: Optional[InterviewSummary] = None

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE


class SessionCreate(BaseModel):
    """Session creation request."""
    platform: Optional[str] = None


class SessionCreated(BaseModel):
    """Session creation response."""
    session_id: str
    platform: Platform
    started_at: datetime


class SessionListItem(BaseModel):
    """Session metadata shown in the session history."""
    session_id: str
    platform: Platform
    status: SessionStatus
    started_at: datetime
    ended_at: Optional[datetime] = None
    duration_seconds: int = 0
    credits_deducted: float = 0
    question_count: int = 0

    @classmethod
    def from_session(cls, session: InterviewSession) -> "SessionListItem":
        return cls(
            session_id=session.session_id,
            platform=session.platform,
            status=session.status,
            started_at=session.started_at,
            ended_at=session.ended_at,
            duration_seconds=session.duration_seconds,
            credits_deducted=session.credits_deducted,
            question_count=len(session.questions),
        )


class SessionList(BaseModel):
    """List of session metadata."""
    sessions: List[SessionListItem]


class EndedSession(BaseModel):
    session_id: str
    status: SessionStatus
    duration: int  # seconds
    duration_minutes: float
    ended_at: datetime


class CreditsSettlement(BaseModel):
    """Outcome of the time-based charge at the end of a session."""
    deducted: float
    requested: Optional[float] = None  # only set when the balance fell short
    remaining: float
    insufficient: bool = False


class SessionSummary(BaseModel):
    """Result of ending a session."""
    session: EndedSession
    credits: CreditsSettlement
