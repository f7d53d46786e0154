"""API module."""

from .sessions import router as session_router
from .interview import router as interview_router
from .credits import router as credits_router

__all__ = ['session_router', 'interview_router', 'credits_router']
