"""
Credit Repository - Persistent storage for per-owner credit balances.
Stored as ``users/{owner_id}/credits.json``. Callers are responsible for
serializing read-modify-write cycles (see ``core.credit_ledger``).
"""

from typing import Optional

from ..models import CreditAccount
from .interface import StorageError, StorageInterface
from .session_repository import validate_owner_id


class CreditRepository:
    """Loads and stores credit accounts."""

    def __init__(self, storage: StorageInterface):
        self.storage = storage

    def _account_path(self, owner_id: str) -> str:
        return f"users/{owner_id}/credits.json"

    async def get(self, owner_id: str) -> Optional[CreditAccount]:
        validate_owner_id(owner_id)
        content = await self.storage.load(self._account_path(owner_id))
        if content is None:
            return None
        return CreditAccount.model_validate_json(content)

    async def save(self, account: CreditAccount) -> None:
        validate_owner_id(account.owner_id)
        if not await self.storage.save(self._account_path(account.owner_id), account.model_dump_json(indent=2)):
            raise StorageError(f"Failed to persist credit account of {account.owner_id}")
