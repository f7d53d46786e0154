"""
Speech-to-Text Transcription Service using OpenAI Whisper API,
plus the heuristic that flags transcribed utterances as questions.
"""

import io
from typing import Optional
from openai import AsyncOpenAI

QUESTION_LEAD_PHRASES = (
    "what", "why", "how", "when", "where", "who",
    "can you", "could you", "would you",
    "tell me", "explain", "describe",
)


def is_question(text: Optional[str]) -> bool:
    """
    Decide whether an utterance is an interview question.

    True when the trimmed text ends with ``?`` or starts with one of
    :data:`QUESTION_LEAD_PHRASES` (case-insensitive). This is a prefix check,
    so "however" counts as starting with "how".
    """
    if not text:
        return False
    lowered = text.strip().lower()
    if not lowered:
        return False
    if lowered.endswith("?"):
        return True
    return lowered.startswith(QUESTION_LEAD_PHRASES)


class QuestionClassifier:
    """Callable wrapper around :func:`is_question` for dependency injection."""

    def is_question(self, text: Optional[str]) -> bool:
        return is_question(text)


class TranscriptionService:
    """
    Service for transcribing audio files to text using OpenAI Whisper API.
    """

    def __init__(self, api_key: Optional[str] = None):
        """
        Initialize transcription service.

        Args:
            api_key: OpenAI API key. Without one the service reports itself
                as not configured.
        """
        self.api_key = api_key
        if self.api_key:
            self.client = AsyncOpenAI(api_key=self.api_key)
        else:
            self.client = None

    async def transcribe_audio(
        self,
        audio_data: bytes,
        filename: str = "audio.webm",
        language: Optional[str] = None,
        prompt: Optional[str] = None
    ) -> dict:
        """
        Transcribe audio file to text using OpenAI Whisper.

        Args:
            audio_data: Raw audio file bytes
            filename: Original filename (helps Whisper detect format)
            language: ISO 639-1 language code (e.g., 'en'); auto-detected if omitted
            prompt: Optional text to guide the model's style or continue a previous segment

        Returns:
            dict with:
                - text: Transcribed text
                - language: Detected language (if auto-detected)
                - duration: Audio duration (if available)

        Raises:
            RuntimeError: If OpenAI API key is not configured
        """
        if not self.client:
            raise RuntimeError(
                "OpenAI API key not configured. Please set OPENAI_API_KEY in environment variables."
            )

        audio_file = io.BytesIO(audio_data)
        audio_file.name = filename

        transcription_params = {
            "model": "whisper-1",
            "file": audio_file,
            "response_format": "verbose_json"
        }
        if language:
            transcription_params["language"] = language
        if prompt:
            transcription_params["prompt"] = prompt

        response = await self.client.audio.transcriptions.create(**transcription_params)

        return {
            "text": response.text,
            "language": getattr(response, 'language', None),
            "duration": getattr(response, 'duration', None)
        }

    def is_configured(self) -> bool:
        """
        Check if the transcription service is properly configured.

        Returns:
            bool: True if API key is set, False otherwise
        """
        return self.client is not None
