"""
Session API endpoints - create, inspect, list and end interview sessions.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query

from ..core import SessionLifecycleManager
from ..deps import get_session_manager
from ..models import (
    InterviewSession,
    SessionCreate,
    SessionCreated,
    SessionList,
    SessionListItem,
    SessionSummary,
)
from ..utils.auth import get_current_user_id

router = APIRouter(prefix="/session", tags=["session"])


@router.post("/create", response_model=SessionCreated)
async def create_session(
    payload: Optional[SessionCreate] = None,
    user_id: str = Depends(get_current_user_id),
    manager: SessionLifecycleManager = Depends(get_session_manager),
):
    """
    Start a new interview session.

    Args:
        payload: Optional platform tag (zoom, teams, meet, hackerrank, leetcode, other)
        user_id: Current user ID from token

    Returns:
        SessionCreated: id, platform and start time
    """
    session = await manager.create_session(user_id, payload.platform if payload else None)
    return SessionCreated(
        session_id=session.session_id,
        platform=session.platform,
        started_at=session.started_at,
    )


@router.get("", response_model=SessionList)
async def list_sessions(
    limit: Optional[int] = Query(None, ge=1, description="Maximum number of sessions"),
    user_id: str = Depends(get_current_user_id),
    manager: SessionLifecycleManager = Depends(get_session_manager),
):
    """List the caller's sessions, most recent first."""
    sessions = await manager.list_sessions(user_id, limit=limit)
    return SessionList(sessions=[SessionListItem.from_session(s) for s in sessions])


@router.get("/{session_id}", response_model=InterviewSession)
async def get_session(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    manager: SessionLifecycleManager = Depends(get_session_manager),
):
    """Get a session with its transcript and answered questions."""
    return await manager.get_session(session_id, user_id)


@router.post("/{session_id}/end", response_model=SessionSummary, response_model_exclude_none=True)
async def end_session(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    manager: SessionLifecycleManager = Depends(get_session_manager),
):
    """
    End a session and charge its duration.

    Time is billed at 0.5 credits per minute, rounded up to the next half
    credit. If the balance cannot cover the charge, whatever is left is
    taken and ``credits.insufficient`` is set.
    """
    return await manager.end_session(session_id, user_id)
