"""Storage module - provides interface and implementations for data persistence."""

from .interface import StorageInterface, StorageError
from .local_storage import LocalStorage
from .session_repository import SessionRepository, validate_owner_id
from .credit_repository import CreditRepository

__all__ = [
    'StorageInterface', 'StorageError', 'LocalStorage',
    'SessionRepository', 'CreditRepository', 'validate_owner_id',
]
