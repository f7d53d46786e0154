"""
Credit Ledger - Per-owner credit balances with clamped, serialized deductions.

Every read-modify-write of a balance runs under that owner's lock, so two
charges for the same owner (a question racing an end-of-session settlement,
or two sessions open in parallel) can never both spend the same credit.
"""

import asyncio
import logging
import weakref
from datetime import datetime, timezone

from ..errors import ValidationError
from ..models import CreditAccount, Deduction
from ..storage import CreditRepository

logger = logging.getLogger(__name__)


class CreditLedger:
    """Holds owners' credit balances. Balances never go below zero."""

    def __init__(self, repository: CreditRepository, initial_credits: float = 0):
        """
        Args:
            repository: Where balances are persisted
            initial_credits: Balance given to an owner the first time their
                account is touched
        """
        self.repository = repository
        self.initial_credits = max(0.0, float(initial_credits))
        # Entries vanish once no coroutine holds or waits on the lock
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _lock_for(self, owner_id: str) -> asyncio.Lock:
        lock = self._locks.get(owner_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[owner_id] = lock
        return lock

    async def _load_or_create(self, owner_id: str) -> CreditAccount:
        account = await self.repository.get(owner_id)
        if account is not None:
            return account

        account = CreditAccount(owner_id=owner_id, balance=self.initial_credits)
        await self.repository.save(account)
        logger.info(
            f"Created credit account for owner {owner_id} with initial balance={self.initial_credits}"
        )
        return account

    async def balance(self, owner_id: str) -> float:
        """Read-only snapshot of the owner's balance."""
        async with self._lock_for(owner_id):
            account = await self._load_or_create(owner_id)
        return account.balance

    async def deduct(self, owner_id: str, amount: float) -> Deduction:
        """
        Deduct up to ``amount`` credits.

        The actual charge is ``min(amount, balance)``; a shortfall is simply
        absorbed and not recorded as debt.

        Args:
            owner_id: Account owner
            amount: Requested charge, must be >= 0

        Returns:
            Deduction: requested amount, amount actually charged and the
            balance left afterwards
        """
        if amount < 0:
            raise ValidationError("Deduction amount must not be negative", details={"amount": amount})

        async with self._lock_for(owner_id):
            account = await self._load_or_create(owner_id)
            actual = min(float(amount), account.balance)
            if actual > 0:
                account.balance = max(0.0, account.balance - actual)
                account.updated_at = datetime.now(timezone.utc)
                await self.repository.save(account)
            remaining = account.balance

        logger.info(
            "Credits deducted",
            extra={"extra_fields": {
                "owner_id": owner_id,
                "requested": amount,
                "actual": actual,
                "remaining": remaining,
            }}
        )
        return Deduction(requested=amount, actual=actual, remaining=remaining)

    async def grant(self, owner_id: str, amount: float) -> float:
        """
        Add credits to an owner's balance.

        Returns:
            float: The new balance
        """
        if amount <= 0:
            raise ValidationError("Grant amount must be positive", details={"amount": amount})

        async with self._lock_for(owner_id):
            account = await self._load_or_create(owner_id)
            account.balance += float(amount)
            account.updated_at = datetime.now(timezone.utc)
            await self.repository.save(account)
            balance = account.balance

        logger.info(f"Granted {amount} credits to owner {owner_id}, balance={balance}")
        return balance
