"""
Credit Models - Ledger balances and deduction results.
"""

from datetime import datetime, timezone
from pydantic import BaseModel, Field


class CreditAccount(BaseModel):
    """Persisted credit balance of one owner."""
    owner_id: str
    balance: float = Field(default=0, ge=0)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Deduction(BaseModel):
    """Result of a clamped deduction."""
    requested: float
    actual: float
    remaining: float

    @property
    def insufficient(self) -> bool:
        return self.actual < self.requested


class CreditBalance(BaseModel):
    """Balance as shown to the owner."""
    owner_id: str
    balance: float
