"""
At most one live chat session per client, created on demand.

    NONE --ensure_session--> ACTIVE --update_status--> ACTIVE | CLOSED | EXPIRED | ...
      ^                        |
      +--------- clear --------+
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Union

from trade_assistant.cache import ChatCache
from trade_assistant.chat_api import ChatAPI
from trade_assistant.errors import (
    FetchError,
    NoActiveSessionError,
    SessionCreationError,
    SessionUpdateError,
)
from trade_assistant.models.session import ChatSession, SessionStatus, SessionType

logger = logging.getLogger(__name__)


class SessionManager:
    def __init__(self, api: ChatAPI, cache: ChatCache):
        self._api = api
        self._cache = cache
        self._create_lock = asyncio.Lock()

    async def ensure_session(
        self,
        user_id: Optional[int],
        session_type: Union[str, SessionType],
        language: str = "ko",
        session_data: Optional[str] = None,
        epoch: Optional[int] = None,
    ) -> Optional[ChatSession]:
        """Return the cached session, creating one remotely if there is none.

        Concurrent callers share a single create call. Returns None if the cache
        was cleared after ``epoch`` (default: the epoch at call time), whether
        the caller was still queued on the create or the create was in flight;
        a session created in between is dropped.

        Raises:
            SessionCreationError: no authenticated user, or the create call failed.
                The cache is left untouched.
        """
        if epoch is None:
            epoch = self._cache.epoch
        existing = self._cache.current_session
        if existing is not None and epoch == self._cache.epoch:
            return existing
        if not user_id:
            raise SessionCreationError("Cannot create a chat session without an authenticated user")

        async with self._create_lock:
            if epoch != self._cache.epoch:
                logger.info("Chat was cleared while waiting to create a session")
                return None
            # Another caller may have created it while we waited for the lock
            existing = self._cache.current_session
            if existing is not None:
                return existing

            self._cache.begin()
            try:
                try:
                    session = await self._api.create_session(user_id, session_type, language, session_data)
                except Exception as e:
                    raise SessionCreationError(
                        f"Failed to create chat session: {e}",
                        details={"user_id": user_id, "session_type": str(getattr(session_type, "value", session_type))},
                    ) from e

                if not self._cache.is_current(epoch, None):
                    logger.warning("Discarding session %s created after the chat was cleared", session.id)
                    return None
                self._cache.set_session(session)
                logger.info("Created chat session %s (%s)", session.id, session.session_type.value)
                return session
            finally:
                self._cache.finish(epoch)

    async def load_existing(self, session_id: int) -> Optional[ChatSession]:
        """Fetch a session by id and make it the current one (resume).

        Messages of the previously cached session are dropped. Returns None if
        the cache was cleared while the fetch was in flight.
        """
        epoch = self._cache.begin()
        previous_id = self._cache.current_session_id
        try:
            try:
                session = await self._api.get_session(session_id)
            except Exception as e:
                raise FetchError(f"Failed to load chat session {session_id}: {e}") from e

            if not self._cache.is_current(epoch, previous_id):
                logger.warning("Discarding loaded session %s; chat state changed meanwhile", session_id)
                return None
            self._cache.set_session(session, keep_messages=session.id == previous_id)
            logger.info("Loaded chat session %s (status %s)", session.id, session.status.value)
            return session
        finally:
            self._cache.finish(epoch)

    async def update_status(
        self, status: Union[str, SessionStatus], session_data: Optional[str] = None,
    ) -> Optional[ChatSession]:
        """Ask the server to move the current session to ``status``.

        The server's answer replaces the cached session, whatever status it reports.
        """
        current = self._cache.current_session
        if current is None:
            raise NoActiveSessionError("Cannot update status: no active chat session")

        epoch = self._cache.begin()
        try:
            try:
                updated = await self._api.update_session(current.id, status, session_data)
            except Exception as e:
                raise SessionUpdateError(
                    f"Failed to update chat session {current.id}: {e}", details={"session_id": current.id},
                ) from e

            if not self._cache.is_current(epoch, current.id):
                logger.warning("Discarding status update for abandoned session %s", current.id)
                return None
            self._cache.set_session(updated, keep_messages=True)
            logger.info("Chat session %s is now %s", updated.id, updated.status.value)
            return updated
        finally:
            self._cache.finish(epoch)

    async def list_active(
        self, user_id: int, session_type: Optional[Union[str, SessionType]] = None,
    ) -> list[ChatSession]:
        """Server-side active sessions for a user. Does not touch the cache."""
        try:
            return await self._api.list_active_sessions(user_id, session_type)
        except Exception as e:
            raise FetchError(f"Failed to list active sessions for user {user_id}: {e}") from e

    def clear(self) -> None:
        """Forget the current session and its messages. Never waits on in-flight work."""
        session_id = self._cache.current_session_id
        self._cache.reset()
        if session_id is not None:
            logger.info("Cleared chat session %s", session_id)
