"""
User Model - Identity payload carried by access tokens.
"""

from typing import Optional
from pydantic import BaseModel


class TokenData(BaseModel):
    """Token payload data."""
    user_id: Optional[str] = None
    email: Optional[str] = None
