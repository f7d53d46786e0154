"""
Tests for question detection, the Whisper transcription service and the
session event broker.
"""

import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock

from interviewace.services import QuestionClassifier, SessionEventBroker, TranscriptionService, is_question


class TestIsQuestion:

    @pytest.mark.parametrize("text", [
        "What is polymorphism",
        "why did you leave your last job",
        "  How would you design Twitter  ",
        "Can you walk me through your resume",
        "Tell me about a conflict",
        "EXPLAIN the CAP theorem",
        "Describe your ideal team",
        "You have used Kafka?",
        "however, that is interesting",
    ])
    def test_questions(self, text):
        assert is_question(text) is True

    @pytest.mark.parametrize("text", [
        "",
        "   ",
        None,
        "I have five years of experience",
        "Great, thanks.",
        "Let's move on to the next part",
    ])
    def test_statements(self, text):
        assert is_question(text) is False

    def test_classifier_delegates(self):
        classifier = QuestionClassifier()
        assert classifier.is_question("Who are you?") is True
        assert classifier.is_question("Nice to meet you") is False


class TestTranscriptionService:

    def test_not_configured_without_key(self):
        service = TranscriptionService(api_key=None)
        assert service.is_configured() is False

    def test_configured_with_key(self):
        service = TranscriptionService(api_key="sk-test")
        assert service.is_configured() is True

    @pytest.mark.asyncio
    async def test_transcribe_without_key_raises(self):
        service = TranscriptionService(api_key=None)
        with pytest.raises(RuntimeError):
            await service.transcribe_audio(b"audio")

    @pytest.mark.asyncio
    async def test_transcribe_audio(self):
        service = TranscriptionService(api_key="sk-test")
        response = MagicMock()
        response.text = "What is your greatest strength?"
        response.language = "english"
        response.duration = 2.5
        service.client = MagicMock()
        service.client.audio.transcriptions.create = AsyncMock(return_value=response)

        result = await service.transcribe_audio(b"fake-bytes", filename="chunk.webm", language="en")

        assert result == {"text": "What is your greatest strength?", "language": "english", "duration": 2.5}
        kwargs = service.client.audio.transcriptions.create.call_args.kwargs
        assert kwargs["model"] == "whisper-1"
        assert kwargs["language"] == "en"
        assert kwargs["file"].name == "chunk.webm"


class TestSessionEventBroker:

    @pytest.mark.asyncio
    async def test_subscriber_receives_events(self):
        broker = SessionEventBroker()
        async with broker.subscribe("s1") as queue:
            await broker.publish("s1", {"type": "ai:answer"})
            event = await asyncio.wait_for(queue.get(), timeout=1)
        assert event["type"] == "ai:answer"
        assert "timestamp" in event

    @pytest.mark.asyncio
    async def test_events_are_scoped_to_session(self):
        broker = SessionEventBroker()
        async with broker.subscribe("s1") as queue:
            await broker.publish("s2", {"type": "ai:answer"})
            assert queue.empty()

    @pytest.mark.asyncio
    async def test_publish_without_subscribers(self):
        broker = SessionEventBroker()
        await broker.publish("nobody", {"type": "error"})
        assert broker.subscriber_count("nobody") == 0

    @pytest.mark.asyncio
    async def test_unsubscribe_on_exit(self):
        broker = SessionEventBroker()
        async with broker.subscribe("s1"):
            assert broker.subscriber_count("s1") == 1
        assert broker.subscriber_count("s1") == 0

    @pytest.mark.asyncio
    async def test_full_queue_drops_oldest(self):
        broker = SessionEventBroker(max_queue_size=2)
        async with broker.subscribe("s1") as queue:
            for i in range(3):
                await broker.publish("s1", {"type": "n", "n": i})
            assert [queue.get_nowait()["n"] for _ in range(2)] == [1, 2]
