"""
Shared test fixtures and configuration.
"""

import pytest
import os
import tempfile
from datetime import datetime, timedelta, timezone

# Set test environment variables before importing app modules
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("LOCAL_STORAGE_PATH", os.path.join(tempfile.gettempdir(), "interviewace_test_data"))
os.environ.setdefault("LOG_FILE_ENABLED", "false")
os.environ.setdefault("LLM_API_KEY", "")
os.environ.setdefault("OPENAI_API_KEY", "")

from interviewace.core import AnswerPipeline, CreditLedger, SessionLifecycleManager
from interviewace.models import InterviewSummary
from interviewace.services import GeneratedAnswer, GenerationGateway, SessionEventBroker
from interviewace.storage import CreditRepository, LocalStorage, SessionRepository


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime = datetime(2026, 1, 5, 9, 0, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeGateway(GenerationGateway):
    """Scripted generator: returns ``answer`` or raises ``error``."""

    def __init__(self, answer: str = "A solid answer.", provider_id: str = "fake:model-1"):
        self.answer = answer
        self.provider_id = provider_id
        self.error = None
        self.calls = []

    async def generate_answer(self, question, context):
        self.calls.append((question, context))
        if self.error is not None:
            raise self.error
        return GeneratedAnswer(answer=self.answer, provider_id=self.provider_id)

    async def summarize_session(self, questions, duration_seconds):
        if self.error is not None:
            raise self.error
        return InterviewSummary(
            total_questions=len(questions),
            total_answers=len(questions),
            performance_score=80,
            feedback="Good",
        )


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(str(tmp_path / "data"))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def events():
    return SessionEventBroker()


@pytest.fixture
def session_repo(storage):
    return SessionRepository(storage)


@pytest.fixture
def ledger(storage):
    return CreditLedger(CreditRepository(storage))


@pytest.fixture
def manager(session_repo, ledger, gateway, events, clock):
    return SessionLifecycleManager(session_repo, ledger, gateway, events=events, clock=clock)


@pytest.fixture
def pipeline(session_repo, ledger, gateway, events, clock):
    return AnswerPipeline(session_repo, ledger, gateway, events=events, clock=clock)
