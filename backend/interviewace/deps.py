"""
Service wiring and FastAPI dependencies.

All collaborators are built once by :func:`build_services` during application
startup and stored on ``app.state.services``. Route handlers reach them
through the ``get_*`` dependencies below, which tests can override.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from .config import Settings
from .core import AnswerPipeline, CreditLedger, SessionLifecycleManager
from .core.session_manager import Clock, utc_now
from .llm import create_llm_provider
from .services import (
    GenerationGateway,
    LLMGenerationGateway,
    QuestionClassifier,
    SessionEventBroker,
    TranscriptionService,
)
from .storage import CreditRepository, LocalStorage, SessionRepository, StorageInterface


@dataclass
class InterviewServices:
    """Everything the API layer needs, wired together."""
    sessions: SessionRepository
    ledger: CreditLedger
    gateway: GenerationGateway
    events: SessionEventBroker
    manager: SessionLifecycleManager
    pipeline: AnswerPipeline
    transcription: TranscriptionService


def build_gateway(config: Settings) -> GenerationGateway:
    """Create the LLM-backed gateway from settings."""
    provider = create_llm_provider(
        provider=config.llm_provider,
        api_key=config.llm_api_key or "",
        model=config.llm_model,
        base_url=config.llm_base_url,
        timeout=config.generation_timeout_seconds,
    )
    return LLMGenerationGateway(
        provider,
        language=config.answer_language,
        prompt_history_window=config.prompt_history_window,
        temperature=config.llm_temperature,
        max_tokens=config.llm_max_tokens,
    )


def build_services(
    config: Settings,
    storage: Optional[StorageInterface] = None,
    gateway: Optional[GenerationGateway] = None,
    transcription: Optional[TranscriptionService] = None,
    clock: Clock = utc_now,
) -> InterviewServices:
    """
    Wire repositories, ledger, gateway, manager and pipeline.

    Args:
        config: Application settings
        storage: Storage backend (defaults to LocalStorage at local_storage_path)
        gateway: Answer generator (defaults to the configured LLM provider)
        transcription: Speech-to-text client (defaults to Whisper)
        clock: Source of "now"
    """
    storage = storage or LocalStorage(config.local_storage_path)
    gateway = gateway or build_gateway(config)
    sessions = SessionRepository(storage)
    ledger = CreditLedger(CreditRepository(storage), initial_credits=config.initial_user_credits)
    events = SessionEventBroker()

    manager = SessionLifecycleManager(
        sessions,
        ledger,
        gateway,
        events=events,
        clock=clock,
        list_limit=config.session_list_limit,
        generation_timeout=config.generation_timeout_seconds,
    )
    pipeline = AnswerPipeline(
        sessions,
        ledger,
        gateway,
        classifier=QuestionClassifier(),
        events=events,
        clock=clock,
        history_window=config.history_window,
        generation_timeout=config.generation_timeout_seconds,
        auto_answer=config.auto_answer_enabled,
    )
    return InterviewServices(
        sessions=sessions,
        ledger=ledger,
        gateway=gateway,
        events=events,
        manager=manager,
        pipeline=pipeline,
        transcription=transcription or TranscriptionService(config.openai_api_key),
    )


def get_services(request: Request) -> InterviewServices:
    return request.app.state.services


def get_session_manager(request: Request) -> SessionLifecycleManager:
    return get_services(request).manager


def get_answer_pipeline(request: Request) -> AnswerPipeline:
    return get_services(request).pipeline


def get_credit_ledger(request: Request) -> CreditLedger:
    return get_services(request).ledger


def get_event_broker(request: Request) -> SessionEventBroker:
    return get_services(request).events


def get_transcription_service(request: Request) -> TranscriptionService:
    return get_services(request).transcription
