"""Services module - provides external service integrations."""

from .transcription import TranscriptionService, QuestionClassifier, is_question
from .generation import (
    GenerationGateway, GenerationContext, GeneratedAnswer, LLMGenerationGateway, call_with_timeout
)
from .events import EventSink, NullEventSink, SessionEventBroker

__all__ = [
    'TranscriptionService', 'QuestionClassifier', 'is_question',
    'GenerationGateway', 'GenerationContext', 'GeneratedAnswer', 'LLMGenerationGateway', 'call_with_timeout',
    'EventSink', 'NullEventSink', 'SessionEventBroker',
]
