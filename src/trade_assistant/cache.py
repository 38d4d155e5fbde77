"""
The client's single record of chat state:

    { current_session, messages, is_loading, last_error }

Presentation code reads ``snapshot()``. Only SessionManager and MessagePipeline
call the mutators below.

Every async operation registers with ``begin()`` and gets back the current
epoch. ``reset()`` (logout) bumps the epoch, so an operation that resumes after
a reset sees ``is_current(...)`` go false and must drop whatever it was about
to write.
"""

import logging
from typing import Any, Optional

from pydantic import BaseModel

from trade_assistant.errors import TradeAssistantError
from trade_assistant.models.message import ChatMessage
from trade_assistant.models.session import ChatSession
from trade_assistant.persistence import SessionStore

logger = logging.getLogger(__name__)


class ChatState(BaseModel):
    """Read-only view of the cache at one instant."""

    current_session: Optional[ChatSession] = None
    messages: tuple[ChatMessage, ...] = ()
    is_loading: bool = False
    last_error: Optional[TradeAssistantError] = None

    model_config = {"frozen": True, "arbitrary_types_allowed": True}


class ChatCache:
    def __init__(self, store: Optional[SessionStore] = None):
        self._store = store
        self._session: Optional[ChatSession] = store.load() if store else None
        self._messages: list[ChatMessage] = []
        self._in_flight = 0
        self._last_error: Optional[TradeAssistantError] = None
        self._epoch = 0

    # -- reads ------------------------------------------------------------

    @property
    def current_session(self) -> Optional[ChatSession]:
        return self._session

    @property
    def current_session_id(self) -> Optional[int]:
        return self._session.id if self._session else None

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return tuple(self._messages)

    @property
    def is_loading(self) -> bool:
        return self._in_flight > 0

    @property
    def last_error(self) -> Optional[TradeAssistantError]:
        return self._last_error

    @property
    def epoch(self) -> int:
        return self._epoch

    def snapshot(self) -> ChatState:
        return ChatState(
            current_session=self._session,
            messages=tuple(self._messages),
            is_loading=self.is_loading,
            last_error=self._last_error,
        )

    def is_current(self, epoch: int, session_id: Any = None) -> bool:
        """True if no reset happened since ``epoch`` and ``session_id`` is still the cached one."""
        return epoch == self._epoch and self.current_session_id == session_id

    # -- in-flight bookkeeping -------------------------------------------

    def begin(self) -> int:
        self._in_flight += 1
        return self._epoch

    def finish(self, epoch: int) -> None:
        # reset() already zeroed the counter for operations from older epochs
        if epoch == self._epoch and self._in_flight > 0:
            self._in_flight -= 1

    # -- mutations ----------------------------------------------------------

    def set_session(self, session: ChatSession, *, keep_messages: bool = False) -> None:
        if not keep_messages:
            self._messages = []
        self._session = session
        if self._store:
            self._store.save(session)

    def append_message(self, message: ChatMessage) -> None:
        self._messages.append(message)

    def replace_messages(self, messages: list[ChatMessage]) -> None:
        self._messages = list(messages)

    def record_error(self, error: TradeAssistantError) -> None:
        self._last_error = error

    def acknowledge_error(self) -> None:
        self._last_error = None

    def reset(self) -> None:
        self._epoch += 1
        self._session = None
        self._messages = []
        self._in_flight = 0
        self._last_error = None
        if self._store:
            self._store.clear()
        logger.debug("Chat cache reset (epoch %d)", self._epoch)
