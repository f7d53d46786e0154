"""
Session Repository - Persistent storage for interview sessions.

Each session is a JSON document at ``users/{owner_id}/sessions/{session_id}.json``.
Mutations go through :meth:`SessionRepository.update`, which serializes
read-modify-write cycles per session so concurrent appends never lose each
other.
"""

import asyncio
import logging
import re
import uuid
import weakref
from typing import Awaitable, Callable, List, Optional, TypeVar

from ..errors import NotFoundError, ValidationError
from ..models import InterviewSession, QuestionRecord, TranscriptEntry
from .interface import StorageError, StorageInterface

logger = logging.getLogger(__name__)

T = TypeVar("T")

_OWNER_ID_RE = re.compile(r"^[A-Za-z0-9_.@-]{1,128}$")


def validate_owner_id(owner_id: Optional[str]) -> str:
    """Reject absent owner ids and ids that are not safe as a path segment."""
    if not owner_id or not owner_id.strip():
        raise ValidationError("Owner id is required")
    if not _OWNER_ID_RE.match(owner_id) or owner_id in (".", ".."):
        raise ValidationError("Owner id contains invalid characters")
    return owner_id


def _is_session_id(session_id: str) -> bool:
    try:
        uuid.UUID(session_id)
    except (ValueError, TypeError, AttributeError):
        return False
    return True


class SessionRepository:
    """
    Manages persistent storage of interview sessions.
    """

    def __init__(self, storage: StorageInterface):
        """
        Initialize session repository.

        Args:
            storage: StorageInterface implementation (typically LocalStorage)
        """
        self.storage = storage
        # Entries vanish once no coroutine holds or waits on the lock
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _session_path(self, session_id: str, owner_id: str) -> str:
        return f"users/{owner_id}/sessions/{session_id}.json"

    def _lock_for(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    async def _write(self, session: InterviewSession) -> None:
        path = self._session_path(session.session_id, session.owner_id)
        if not await self.storage.save(path, session.model_dump_json(indent=2)):
            raise StorageError(f"Failed to persist session {session.session_id}")

    async def create(self, session: InterviewSession) -> InterviewSession:
        """Persist a freshly created session."""
        validate_owner_id(session.owner_id)
        async with self._lock_for(session.session_id):
            await self._write(session)
        return session

    async def get(self, session_id: str, owner_id: str) -> Optional[InterviewSession]:
        """
        Get a session owned by ``owner_id``.

        Returns:
            Optional[InterviewSession]: The session, or None if it does not
            exist or belongs to somebody else
        """
        validate_owner_id(owner_id)
        if not _is_session_id(session_id):
            return None
        content = await self.storage.load(self._session_path(session_id, owner_id))
        if content is None:
            return None
        return InterviewSession.model_validate_json(content)

    async def list_for_owner(self, owner_id: str, limit: int = 50) -> List[InterviewSession]:
        """List an owner's sessions, most recent first."""
        validate_owner_id(owner_id)
        files = await self.storage.list(f"users/{owner_id}/sessions", pattern="*.json")
        sessions = []
        for file_path in files:
            content = await self.storage.load(file_path)
            if content is None:
                continue
            try:
                sessions.append(InterviewSession.model_validate_json(content))
            except ValueError:
                logger.warning(f"Skipping unreadable session file {file_path}")
        sessions.sort(key=lambda s: s.started_at, reverse=True)
        return sessions[:limit]

    async def update(
        self,
        session_id: str,
        owner_id: str,
        mutate: Callable[[InterviewSession], Awaitable[T]],
    ) -> T:
        """
        Await ``mutate`` on the stored session and persist the result.

        The load, the mutation and the write happen under the session's lock.
        If ``mutate`` raises, nothing is written.

        Raises:
            NotFoundError: If the session does not exist for this owner
            StorageError: If the updated session could not be written
        """
        async with self._lock_for(session_id):
            session = await self.get(session_id, owner_id)
            if session is None:
                raise NotFoundError("Session not found")
            result = await mutate(session)
            await self._write(session)
            return result

    async def append_transcript(self, session_id: str, owner_id: str, entry: TranscriptEntry) -> None:
        """Append an utterance to an active session."""
        async def _append(session: InterviewSession) -> None:
            _require_active(session)
            session.transcript.append(entry)

        await self.update(session_id, owner_id, _append)

    async def append_question(self, session_id: str, owner_id: str, record: QuestionRecord) -> None:
        """Append an answered question to an active session."""
        async def _append(session: InterviewSession) -> None:
            _require_active(session)
            session.questions.append(record)

        await self.update(session_id, owner_id, _append)


def _require_active(session: InterviewSession) -> None:
    if not session.is_active:
        raise NotFoundError(
            "Session is no longer active",
            details={"session_id": session.session_id, "status": session.status.value},
        )
