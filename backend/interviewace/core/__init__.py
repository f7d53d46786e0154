"""Core module - session lifecycle, credit metering and the answer pipeline."""

from .credit_ledger import CreditLedger
from .session_manager import SessionLifecycleManager, credits_for_duration
from .answer_pipeline import AnswerPipeline

__all__ = ['CreditLedger', 'SessionLifecycleManager', 'credits_for_duration', 'AnswerPipeline']
