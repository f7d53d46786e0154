"""
Unit tests for the LLM-backed generation gateway.
Provider HTTP calls are mocked the same way as in test_llm.py.
"""

import asyncio
import json
import pytest
import httpx
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

from interviewace.errors import (
    GenerationConfigError,
    GenerationTimeoutError,
    QuotaExceededError,
    TransientGenerationError,
)
from interviewace.llm import GroqProvider, LLMResponse
from interviewace.models import QuestionRecord, TranscriptEntry
from interviewace.services import GenerationContext, LLMGenerationGateway, call_with_timeout

URL = "https://api.groq.com/openai/v1/chat/completions"


def _entry(text: str, speaker: str = "interviewer") -> TranscriptEntry:
    return TranscriptEntry(timestamp=datetime.now(timezone.utc), speaker=speaker, text=text)


def _status_error(status_code: int, body=None) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", URL)
    if body is None:
        response = httpx.Response(status_code, request=request)
    else:
        response = httpx.Response(status_code, json=body, request=request)
    return httpx.HTTPStatusError(f"HTTP {status_code}", request=request, response=response)


def _mock_client(mock_client, post_result=None, post_error=None):
    mock_instance = AsyncMock()
    if post_error is not None:
        mock_instance.post.side_effect = post_error
    else:
        mock_instance.post.return_value = post_result
    mock_instance.__aenter__ = AsyncMock(return_value=mock_instance)
    mock_instance.__aexit__ = AsyncMock(return_value=False)
    mock_client.return_value = mock_instance
    return mock_instance


def _ok_response(content: str):
    response = MagicMock()
    response.json.return_value = {
        "choices": [{"message": {"content": content}}],
        "model": "llama-3.1-8b-instant",
        "usage": {"prompt_tokens": 12, "completion_tokens": 30, "total_tokens": 42},
    }
    response.raise_for_status = MagicMock()
    return response


@pytest.fixture
def llm_gateway():
    return LLMGenerationGateway(GroqProvider(api_key="test-key"))


class TestBuildPrompt:

    def test_plain_question(self, llm_gateway):
        prompt = llm_gateway.build_prompt("What is a deadlock?", GenerationContext())
        assert "Question: What is a deadlock?" in prompt
        assert "in en" in prompt
        assert "experience and background" in prompt
        assert "Previous conversation context" not in prompt

    def test_coding_question_includes_code(self, llm_gateway):
        context = GenerationContext(hints={"is_coding_question": True, "code_context": "for i in range(3): pass"})
        prompt = llm_gateway.build_prompt("Optimize this", context)
        assert "coding interview question" in prompt
        assert "for i in range(3): pass" in prompt
        assert "Include code examples" in prompt

    def test_resume_summary_included(self, llm_gateway):
        context = GenerationContext(hints={"resume_summary": "5 years of Go"})
        assert "5 years of Go" in llm_gateway.build_prompt("Why us?", context)

    def test_only_last_five_transcript_lines(self, llm_gateway):
        transcript = [_entry(f"line {i}") for i in range(8)]
        prompt = llm_gateway.build_prompt("Next?", GenerationContext(recent_transcript=transcript))
        assert "interviewer: line 3" in prompt
        assert "interviewer: line 7" in prompt
        assert "line 2" not in prompt

    def test_language_is_configurable(self):
        gateway = LLMGenerationGateway(GroqProvider(api_key="k"), language="de")
        assert "in de" in gateway.build_prompt("Was?", GenerationContext())


class TestGenerateAnswer:

    @pytest.mark.asyncio
    async def test_success(self, llm_gateway):
        with patch("httpx.AsyncClient") as mock_client:
            _mock_client(mock_client, post_result=_ok_response("Use a lock ordering."))
            result = await llm_gateway.generate_answer("How to avoid deadlocks?", GenerationContext())

        assert result.answer == "Use a lock ordering."
        assert result.provider_id == "groq:llama-3.1-8b-instant"

    @pytest.mark.asyncio
    async def test_no_provider_is_config_error(self):
        gateway = LLMGenerationGateway(None)
        with pytest.raises(GenerationConfigError):
            await gateway.generate_answer("Hi?", GenerationContext())

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code,body,expected", [
        (429, {"error": {"message": "rate limited"}}, QuotaExceededError),
        (400, {"error": {"code": "insufficient_quota"}}, QuotaExceededError),
        (401, {"error": {"code": "invalid_api_key"}}, GenerationConfigError),
        (403, None, GenerationConfigError),
        (500, None, TransientGenerationError),
        (503, {"error": "overloaded"}, TransientGenerationError),
    ])
    async def test_http_errors_are_classified(self, llm_gateway, status_code, body, expected):
        with patch("httpx.AsyncClient") as mock_client:
            _mock_client(mock_client, post_error=_status_error(status_code, body))
            with pytest.raises(expected) as exc_info:
                await llm_gateway.generate_answer("Q?", GenerationContext())
        assert exc_info.value.provider_id == "groq:llama-3.1-8b-instant"

    @pytest.mark.asyncio
    async def test_network_error_is_transient(self, llm_gateway):
        with patch("httpx.AsyncClient") as mock_client:
            _mock_client(mock_client, post_error=httpx.ConnectError("connection refused"))
            with pytest.raises(TransientGenerationError):
                await llm_gateway.generate_answer("Q?", GenerationContext())

    @pytest.mark.asyncio
    async def test_http_timeout_is_timeout(self, llm_gateway):
        with patch("httpx.AsyncClient") as mock_client:
            _mock_client(mock_client, post_error=httpx.ReadTimeout("too slow"))
            with pytest.raises(GenerationTimeoutError):
                await llm_gateway.generate_answer("Q?", GenerationContext())

    @pytest.mark.asyncio
    async def test_malformed_response_is_transient(self, llm_gateway):
        response = MagicMock()
        response.json.return_value = {"choices": []}
        response.raise_for_status = MagicMock()
        with patch("httpx.AsyncClient") as mock_client:
            _mock_client(mock_client, post_result=response)
            with pytest.raises(TransientGenerationError):
                await llm_gateway.generate_answer("Q?", GenerationContext())

    @pytest.mark.asyncio
    async def test_empty_answer_is_transient(self, llm_gateway):
        with patch("httpx.AsyncClient") as mock_client:
            _mock_client(mock_client, post_result=_ok_response("   "))
            with pytest.raises(TransientGenerationError):
                await llm_gateway.generate_answer("Q?", GenerationContext())


class TestSummarizeSession:

    def _questions(self):
        now = datetime.now(timezone.utc)
        return [
            QuestionRecord(question="Q1?", answer="A1", timestamp=now, provider_id="groq:m"),
            QuestionRecord(question="Q2?", answer="A2", timestamp=now, provider_id="groq:m"),
        ]

    @pytest.mark.asyncio
    async def test_json_summary_is_parsed(self):
        provider = MagicMock()
        provider.provider_id = "groq:m"
        provider.chat_completion = AsyncMock(return_value=LLMResponse(content="```json\n" + json.dumps({
            "performanceScore": 82,
            "strengths": ["clear", "concise"],
            "improvements": ["more examples"],
            "feedback": "Well done",
        }) + "\n```"))
        gateway = LLMGenerationGateway(provider)

        summary = await gateway.summarize_session(self._questions(), 600)

        assert summary.total_questions == 2
        assert summary.total_answers == 2
        assert summary.performance_score == 82
        assert summary.strengths == ["clear", "concise"]
        assert summary.improvements == ["more examples"]
        assert summary.feedback == "Well done"

    @pytest.mark.asyncio
    async def test_non_json_summary_keeps_text(self):
        provider = MagicMock()
        provider.provider_id = "groq:m"
        provider.chat_completion = AsyncMock(return_value=LLMResponse(content="Solid interview overall."))
        gateway = LLMGenerationGateway(provider)

        summary = await gateway.summarize_session(self._questions(), 60)

        assert summary.total_questions == 2
        assert summary.performance_score is None
        assert summary.feedback == "Solid interview overall."


class TestCallWithTimeout:

    @pytest.mark.asyncio
    async def test_returns_result(self):
        async def quick():
            return 42
        assert await call_with_timeout(quick(), 1.0) == 42

    @pytest.mark.asyncio
    async def test_expired_deadline(self):
        with pytest.raises(GenerationTimeoutError):
            await call_with_timeout(asyncio.sleep(5), 0.01)

    @pytest.mark.asyncio
    async def test_no_deadline(self):
        async def quick():
            return "done"
        assert await call_with_timeout(quick(), None) == "done"
