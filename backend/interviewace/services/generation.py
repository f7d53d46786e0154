"""
Answer Generation Gateway - the boundary to an external answer generator.

The interview core only relies on :class:`GenerationGateway`: give it a
question plus context, get back ``{answer, provider_id}`` or a
:class:`~interviewace.errors.GenerationFailure`. Prompt wording and provider
specifics stay inside the concrete gateway.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Dict, List, Optional, TypeVar

import httpx

from ..errors import (
    GenerationConfigError,
    GenerationTimeoutError,
    QuotaExceededError,
    TransientGenerationError,
)
from ..llm import LLMMessage, LLMProvider
from ..models import InterviewSummary, QuestionRecord, TranscriptEntry

logger = logging.getLogger(__name__)

T = TypeVar("T")

SYSTEM_PROMPT = (
    "You are a helpful interview assistant. Provide clear, professional answers "
    "that help the candidate succeed in their job interview."
)


@dataclass
class GenerationContext:
    """Everything the gateway may use besides the question itself."""
    hints: Dict[str, Any] = field(default_factory=dict)
    recent_transcript: List[TranscriptEntry] = field(default_factory=list)


@dataclass
class GeneratedAnswer:
    answer: str
    provider_id: str


class GenerationGateway(ABC):
    """Abstract answer generator."""

    @abstractmethod
    async def generate_answer(self, question: str, context: GenerationContext) -> GeneratedAnswer:
        """
        Generate an answer to an interview question.

        Raises:
            GenerationFailure: When no answer could be produced
        """
        pass

    @abstractmethod
    async def summarize_session(self, questions: List[QuestionRecord], duration_seconds: int) -> InterviewSummary:
        """
        Analyse a finished interview.

        Raises:
            GenerationFailure: When the generator could not be reached
        """
        pass


class LLMGenerationGateway(GenerationGateway):
    """
    Gateway backed by an OpenAI-compatible chat completion provider.
    """

    def __init__(
        self,
        provider: Optional[LLMProvider],
        language: str = "en",
        prompt_history_window: int = 5,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ):
        """
        Args:
            provider: LLM provider, or None when no API key is configured
            language: Language the answers are written in
            prompt_history_window: How many transcript lines go into the prompt
            temperature: Sampling temperature override
            max_tokens: Completion length override
        """
        self.provider = provider
        self.language = language
        self.prompt_history_window = prompt_history_window
        self.temperature = temperature
        self.max_tokens = max_tokens

    @property
    def provider_id(self) -> Optional[str]:
        return self.provider.provider_id if self.provider else None

    def build_prompt(self, question: str, context: GenerationContext) -> str:
        """Assemble the user prompt for a question."""
        hints = context.hints
        parts = []

        if hints.get("resume_summary"):
            parts.append(f"Based on the following resume information:\n{hints['resume_summary']}\n")

        if hints.get("is_coding_question") and hints.get("code_context"):
            parts.append(f"This is a coding interview question. Here's the code context:\n{hints['code_context']}\n")

        history = context.recent_transcript[-self.prompt_history_window:] if self.prompt_history_window > 0 else []
        if history:
            lines = "\n".join(f"{entry.speaker}: {entry.text}" for entry in history)
            parts.append(f"Previous conversation context:\n{lines}\n")

        parts.append(f"Question: {question}\n")
        instruction = f"Please provide a clear, concise, and professional answer in {self.language}. "
        if hints.get("is_coding_question"):
            instruction += "Include code examples if relevant, and explain your approach."
        else:
            instruction += "If relevant, relate your answer to your experience and background."
        parts.append(instruction)

        return "\n".join(parts)

    async def _complete(self, prompt: str) -> str:
        if self.provider is None:
            raise GenerationConfigError("AI provider API key is not configured. Please contact support.")

        messages = [
            LLMMessage.text("system", SYSTEM_PROMPT),
            LLMMessage.text("user", prompt),
        ]
        try:
            response = await self.provider.chat_completion(
                messages, temperature=self.temperature, max_tokens=self.max_tokens
            )
        except httpx.TimeoutException as e:
            raise GenerationTimeoutError(provider_id=self.provider_id) from e
        except httpx.HTTPStatusError as e:
            raise self._classify_status(e) from e
        except httpx.RequestError as e:
            raise TransientGenerationError(provider_id=self.provider_id) from e
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise TransientGenerationError(
                "AI provider returned an unexpected response. Please try again.",
                provider_id=self.provider_id,
            ) from e

        if not response.content or not response.content.strip():
            raise TransientGenerationError(
                "AI provider returned an empty answer. Please try again.",
                provider_id=self.provider_id,
            )
        return response.content

    def _classify_status(self, error: httpx.HTTPStatusError):
        status_code = error.response.status_code
        error_code = None
        try:
            body = error.response.json()
            if isinstance(body, dict) and isinstance(body.get("error"), dict):
                error_code = body["error"].get("code")
        except ValueError:
            pass

        if status_code == 429 or error_code == "insufficient_quota":
            return QuotaExceededError(provider_id=self.provider_id)
        if status_code in (401, 403) or error_code == "invalid_api_key":
            return GenerationConfigError(provider_id=self.provider_id)
        return TransientGenerationError(provider_id=self.provider_id)

    async def generate_answer(self, question: str, context: GenerationContext) -> GeneratedAnswer:
        answer = await self._complete(self.build_prompt(question, context))
        return GeneratedAnswer(answer=answer, provider_id=self.provider_id)

    async def summarize_session(self, questions: List[QuestionRecord], duration_seconds: int) -> InterviewSummary:
        qa_pairs = [{"question": q.question, "answer": q.answer} for q in questions]
        prompt = (
            "Analyze this interview session and provide:\n"
            "1. Overall performance score (0-100)\n"
            "2. Key strengths (3-5 points)\n"
            "3. Areas for improvement (3-5 points)\n"
            "4. General feedback\n\n"
            f"Questions and answers:\n{json.dumps(qa_pairs, indent=2)}\n\n"
            f"Duration: {duration_seconds} seconds\n\n"
            'Respond with JSON only, using the keys "performanceScore", "strengths", '
            '"improvements" and "feedback".'
        )
        content = await self._complete(prompt)

        summary = InterviewSummary(total_questions=len(questions), total_answers=len(questions))
        try:
            data = json.loads(_strip_code_fence(content))
        except ValueError:
            logger.warning("Interview summary was not valid JSON, returning counts only")
            summary.feedback = content.strip()
            return summary

        if isinstance(data, dict):
            score = data.get("performanceScore")
            summary.performance_score = float(score) if isinstance(score, (int, float)) else None
            summary.feedback = data.get("feedback") if isinstance(data.get("feedback"), str) else None
            if isinstance(data.get("strengths"), list):
                summary.strengths = [str(s) for s in data["strengths"]]
            if isinstance(data.get("improvements"), list):
                summary.improvements = [str(s) for s in data["improvements"]]
        return summary


async def call_with_timeout(awaitable: Awaitable[T], timeout_seconds: Optional[float]) -> T:
    """
    Await a gateway call, turning an expired deadline into a transient
    generation failure.
    """
    if not timeout_seconds or timeout_seconds <= 0:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout_seconds)
    except asyncio.TimeoutError as e:
        raise GenerationTimeoutError() from e


def _strip_code_fence(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()
