"""
Error taxonomy for the interview core.

Each error carries a machine-readable ``error`` code, an HTTP status and a
human-readable message. The API layer turns them into a uniform JSON body.
"""

from typing import Any, Dict, Optional


class InterviewAceError(Exception):
    """Base class for all errors raised by the session and credit core."""

    error: str = "internal_error"
    status_code: int = 500

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.error,
            "message": self.message,
            "code": self.status_code,
            "details": self.details,
        }


class ValidationError(InterviewAceError):
    """Malformed input, e.g. an empty question or a missing owner."""

    error = "validation_error"
    status_code = 400


class NotFoundError(InterviewAceError):
    """Unknown, foreign or no longer active session."""

    error = "not_found"
    status_code = 404


class InsufficientCreditsError(InterviewAceError):
    """The owner has no credits left to pay for an answer."""

    error = "insufficient_credits"
    status_code = 402

    def __init__(self, message: str = "Insufficient credits", *, balance: float, required: float) -> None:
        super().__init__(message, details={"balance": balance, "required": required})
        self.balance = balance
        self.required = required


class GenerationFailure(InterviewAceError):
    """
    The answer generation gateway could not produce an answer.

    Every subclass means the same thing for billing: nothing is charged
    and nothing is recorded. They only differ in the message shown.
    """

    error = "generation_failed"
    status_code = 502
    kind = "unknown"

    def __init__(self, message: str = "Failed to generate answer", *, provider_id: Optional[str] = None) -> None:
        super().__init__(message, details={"kind": self.kind, "provider_id": provider_id})
        self.provider_id = provider_id


class QuotaExceededError(GenerationFailure):
    error = "provider_quota_exceeded"
    status_code = 503
    kind = "quota_exceeded"

    def __init__(
        self,
        message: str = "AI provider quota exceeded. Please try again later or contact support.",
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)


class GenerationConfigError(GenerationFailure):
    error = "provider_configuration_error"
    status_code = 500
    kind = "configuration"

    def __init__(
        self,
        message: str = "AI provider configuration error. Please contact support.",
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)


class TransientGenerationError(GenerationFailure):
    error = "provider_unavailable"
    status_code = 502
    kind = "transient"

    def __init__(
        self,
        message: str = "AI provider is temporarily unavailable. Please try again.",
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)


class GenerationTimeoutError(TransientGenerationError):
    status_code = 504

    def __init__(self, message: str = "AI provider timed out. Please try again.", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
