"""
AsyncTradeAssistant / TradeAssistant — main SDK clients.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Optional, Union

import httpx

from trade_assistant.cache import ChatCache, ChatState
from trade_assistant.chat import MessagePipeline, TurnResult
from trade_assistant.chat_api import ChatAPI
from trade_assistant.errors import NoActiveSessionError
from trade_assistant.models.message import ChatMessage
from trade_assistant.models.session import ChatSession, ConversationContext, SessionStatus, SessionType
from trade_assistant.persistence import DEFAULT_SESSION_FILE, SessionStore
from trade_assistant.sessions import SessionManager
from trade_assistant.transport.http import DEFAULT_BASE_URL, DEFAULT_TIMEOUT_S, HttpClient

logger = logging.getLogger(__name__)


class AsyncTradeAssistant:
    """Async chat assistant client (primary)."""

    def __init__(
        self,
        user_id: Optional[int] = None,
        session_type: Union[str, SessionType] = SessionType.SELLER_PRODUCT_INQUIRY,
        language: str = "ko",
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_S,
        session_file: Path = DEFAULT_SESSION_FILE,
        persist_session: bool = True,
        api: Optional[ChatAPI] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._context = ConversationContext(
            user_id=user_id, session_type=SessionType(session_type), language=language,
        )
        self.http = HttpClient(base_url=base_url, timeout=timeout, transport=transport)
        self.chat = api or ChatAPI(self.http)
        self.cache = ChatCache(SessionStore(session_file) if persist_session else None)
        self.sessions = SessionManager(self.chat, self.cache)
        self.pipeline = MessagePipeline(self.chat, self.cache, self.sessions)
        saved = self.cache.current_session
        if saved is not None and not self._owns(saved):
            logger.info(
                "Saved session %s (user %s, %s) does not match this client; clearing",
                saved.id, saved.user_id, saved.session_type.value,
            )
            self.sessions.clear()

    def _owns(self, session: ChatSession) -> bool:
        # No user yet: login() decides once one is bound
        if self._context.user_id is not None and session.user_id != self._context.user_id:
            return False
        return session.session_type == self._context.session_type

    @property
    def context(self) -> ConversationContext:
        return self._context

    @property
    def state(self) -> ChatState:
        return self.cache.snapshot()

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return self.cache.messages

    @property
    def current_session(self) -> Optional[ChatSession]:
        return self.cache.current_session

    def login(self, user_id: int, language: Optional[str] = None) -> None:
        """Bind the client to an authenticated user. A different user drops the cached session."""
        current = self.cache.current_session
        if current is not None and current.user_id != user_id:
            logger.info("Session %s belongs to user %s; clearing for user %s", current.id, current.user_id, user_id)
            self.sessions.clear()
        self._context = self._context.model_copy(
            update={"user_id": user_id, "language": language or self._context.language},
        )

    def logout(self) -> None:
        """Forget the user and the conversation. Wins over any in-flight turn."""
        self.sessions.clear()
        self._context = self._context.model_copy(update={"user_id": None})

    def clear(self) -> None:
        self.sessions.clear()

    def acknowledge_error(self) -> None:
        self.cache.acknowledge_error()

    async def ensure_session(self, session_data: Optional[str] = None) -> Optional[ChatSession]:
        """Open the widget: make sure a session exists for the current context."""
        ctx = self._context
        return await self.sessions.ensure_session(
            ctx.user_id, ctx.session_type, ctx.language, session_data or ctx.session_data,
        )

    async def start_conversation(
        self, session_type: Union[str, SessionType], session_data: Optional[str] = None,
    ) -> Optional[ChatSession]:
        """Switch purpose. A cached session for another purpose is cleared first."""
        session_type = SessionType(session_type)
        current = self.cache.current_session
        if current is not None and current.session_type != session_type:
            self.sessions.clear()
        self._context = self._context.model_copy(
            update={"session_type": session_type, "session_data": session_data},
        )
        return await self.ensure_session()

    async def submit_user_turn(self, text: str) -> TurnResult:
        return await self.pipeline.submit_user_turn(text, self._context)

    async def submit_suggested_action(self, action_text: str, metadata: Optional[str] = None) -> TurnResult:
        return await self.pipeline.submit_suggested_action(action_text, self._context, metadata)

    async def load_existing(self, session_id: int) -> Optional[ChatSession]:
        """Resume a known session: load it, then refetch its messages."""
        session = await self.sessions.load_existing(session_id)
        if session is not None:
            await self.pipeline.refresh_messages()
        return session

    async def resume(self) -> Optional[ChatSession]:
        """Pick up the persisted session, if any. Messages are always refetched, never restored."""
        session = self.cache.current_session
        if session is None:
            return None
        await self.pipeline.refresh_messages()
        return self.cache.current_session

    async def refresh_messages(self) -> tuple[ChatMessage, ...]:
        return await self.pipeline.refresh_messages()

    async def update_status(
        self, status: Union[str, SessionStatus], session_data: Optional[str] = None,
    ) -> Optional[ChatSession]:
        return await self.sessions.update_status(status, session_data)

    async def list_active_sessions(self) -> list[ChatSession]:
        if not self._context.user_id:
            raise NoActiveSessionError("Not logged in")
        return await self.sessions.list_active(self._context.user_id, self._context.session_type)

    async def close(self) -> None:
        await self.http.close()


class TradeAssistant:
    """Sync wrapper around AsyncTradeAssistant. Runs the event loop internally."""

    def __init__(self, **kwargs: Any):
        self._async = AsyncTradeAssistant(**kwargs)
        self._loop = asyncio.new_event_loop()

    def _run(self, coro: Any) -> Any:
        return self._loop.run_until_complete(coro)

    @property
    def state(self) -> ChatState:
        return self._async.state

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return self._async.messages

    @property
    def current_session(self) -> Optional[ChatSession]:
        return self._async.current_session

    def login(self, user_id: int, language: Optional[str] = None) -> None:
        self._async.login(user_id, language)

    def logout(self) -> None:
        self._async.logout()

    def acknowledge_error(self) -> None:
        self._async.acknowledge_error()

    def ensure_session(self, session_data: Optional[str] = None) -> Optional[ChatSession]:
        return self._run(self._async.ensure_session(session_data))

    def start_conversation(self, session_type: Union[str, SessionType], session_data: Optional[str] = None) -> Optional[ChatSession]:
        return self._run(self._async.start_conversation(session_type, session_data))

    def submit_user_turn(self, text: str) -> TurnResult:
        return self._run(self._async.submit_user_turn(text))

    def submit_suggested_action(self, action_text: str, metadata: Optional[str] = None) -> TurnResult:
        return self._run(self._async.submit_suggested_action(action_text, metadata))

    def load_existing(self, session_id: int) -> Optional[ChatSession]:
        return self._run(self._async.load_existing(session_id))

    def resume(self) -> Optional[ChatSession]:
        return self._run(self._async.resume())

    def update_status(self, status: Union[str, SessionStatus], session_data: Optional[str] = None) -> Optional[ChatSession]:
        return self._run(self._async.update_status(status, session_data))

    def close(self) -> None:
        self._run(self._async.close())
        self._loop.close()
