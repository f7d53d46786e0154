"""
Interview Models - Question, answer and transcript payloads.
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field


class QuestionEvent(BaseModel):
    """A question as accepted by the answer pipeline."""
    question: str
    context_hints: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class AnswerRequest(BaseModel):
    """Manual question submission."""
    question: str
    session_id: Optional[str] = None
    is_coding_question: bool = False
    code_context: Optional[str] = None
    resume_summary: Optional[str] = None

    def context_hints(self) -> Dict[str, Any]:
        hints: Dict[str, Any] = {}
        if self.is_coding_question:
            hints["is_coding_question"] = True
        if self.code_context:
            hints["code_context"] = self.code_context
        if self.resume_summary:
            hints["resume_summary"] = self.resume_summary
        return hints


class AnswerResult(BaseModel):
    """Answer returned to the candidate."""
    answer: str
    provider_id: str
    credits_remaining: float


class TranscriptRequest(BaseModel):
    """A transcribed utterance pushed by the client."""
    text: str
    speaker: str = "interviewer"


class TranscriptResult(BaseModel):
    """Outcome of recording an utterance (and of auto-answering it)."""
    is_question: bool
    answer: Optional[AnswerResult] = None
    error: Optional[str] = None


class AudioTranscriptResult(TranscriptResult):
    """Outcome of transcribing an audio chunk."""
    text: str = ""
    language: Optional[str] = None
