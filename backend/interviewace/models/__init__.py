"""Models module."""

from .user import TokenData
from .session import (
    SessionStatus, Platform, TranscriptEntry, QuestionRecord, InterviewSummary,
    InterviewSession, SessionCreate, SessionCreated, SessionListItem, SessionList,
    EndedSession, CreditsSettlement, SessionSummary
)
from .interview import (
    QuestionEvent, AnswerRequest, AnswerResult, TranscriptRequest, TranscriptResult, AudioTranscriptResult
)
from .credit import CreditAccount, Deduction, CreditBalance

__all__ = [
    'TokenData',
    'SessionStatus', 'Platform', 'TranscriptEntry', 'QuestionRecord', 'InterviewSummary',
    'InterviewSession', 'SessionCreate', 'SessionCreated', 'SessionListItem', 'SessionList',
    'EndedSession', 'CreditsSettlement', 'SessionSummary',
    'QuestionEvent', 'AnswerRequest', 'AnswerResult', 'TranscriptRequest', 'TranscriptResult',
    'AudioTranscriptResult',
    'CreditAccount', 'Deduction', 'CreditBalance',
]
