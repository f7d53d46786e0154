"""
Credits API endpoints.
"""

from fastapi import APIRouter, Depends

from ..core import CreditLedger
from ..deps import get_credit_ledger
from ..models import CreditBalance
from ..utils.auth import get_current_user_id

router = APIRouter(prefix="/credits", tags=["credits"])


@router.get("/me", response_model=CreditBalance)
async def get_my_credits(
    user_id: str = Depends(get_current_user_id),
    ledger: CreditLedger = Depends(get_credit_ledger),
):
    """Current credit balance of the caller."""
    return CreditBalance(owner_id=user_id, balance=await ledger.balance(user_id))
