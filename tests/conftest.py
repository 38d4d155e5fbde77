"""
Shared fixtures: an in-memory chat backend with failure injection and gates.

``service.fail["generate_ai_response"] = TransportError(...)`` makes that call
fail; ``service.gates["send_message"] = asyncio.Event()`` parks the call until
the test sets the event, which is how interleavings are staged.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import pytest

from trade_assistant.cache import ChatCache
from trade_assistant.chat import MessagePipeline
from trade_assistant.errors import TransportError
from trade_assistant.models.message import ChatMessage, MessageType, SenderType
from trade_assistant.models.session import ChatSession, ConversationContext, SessionStatus, SessionType
from trade_assistant.sessions import SessionManager

EPOCH = datetime(2025, 1, 1, tzinfo=timezone.utc)


class FakeChatService:
    def __init__(self) -> None:
        self.sessions: dict[int, ChatSession] = {}
        self.messages: dict[int, list[ChatMessage]] = {}
        self.calls: list[str] = []
        self.fail: dict[str, Exception] = {}
        self.gates: dict[str, asyncio.Event] = {}
        self.reply_text = "HS 8517.62 most likely applies."
        self._next_session_id = 7
        self._next_message_id = 1
        self._clock = 0

    async def _enter(self, name: str) -> None:
        self.calls.append(name)
        gate = self.gates.get(name)
        if gate is not None:
            await gate.wait()
        else:
            await asyncio.sleep(0)
        error = self.fail.get(name)
        if error is not None:
            raise error

    def _now(self) -> str:
        self._clock += 1
        return (EPOCH + timedelta(seconds=self._clock)).isoformat()

    def add_message(
        self, session_id: int, sender: SenderType, content: str,
        message_type: Any = MessageType.TEXT, metadata: Optional[str] = None,
    ) -> ChatMessage:
        msg = ChatMessage(
            id=self._next_message_id, session_id=session_id, sender_type=sender,
            content=content, message_type=message_type, metadata=metadata, created_at=self._now(),
        )
        self._next_message_id += 1
        self.messages.setdefault(session_id, []).append(msg)
        return msg

    def count(self, name: str) -> int:
        return self.calls.count(name)

    async def create_session(self, user_id, session_type, language, session_data=None) -> ChatSession:
        await self._enter("create_session")
        session = ChatSession(
            id=self._next_session_id, user_id=user_id, session_type=session_type,
            language=language, session_data=session_data, created_at=self._now(),
        )
        self._next_session_id += 1
        self.sessions[session.id] = session
        self.messages[session.id] = []
        return session

    async def get_session(self, session_id) -> ChatSession:
        await self._enter("get_session")
        if session_id not in self.sessions:
            raise TransportError(f"HTTP 404: session {session_id} not found", status_code=404)
        return self.sessions[session_id]

    async def list_active_sessions(self, user_id, session_type=None) -> list[ChatSession]:
        await self._enter("list_active_sessions")
        return [
            s for s in self.sessions.values()
            if s.user_id == user_id and s.status == SessionStatus.ACTIVE
            and (session_type is None or s.session_type == session_type)
        ]

    async def update_session(self, session_id, status, session_data=None) -> ChatSession:
        await self._enter("update_session")
        updated = self.sessions[session_id].model_copy(
            update={"status": SessionStatus(status), "session_data": session_data, "updated_at": self._now()},
        )
        self.sessions[session_id] = updated
        return updated

    async def send_message(self, session_id, sender_type, content, message_type=MessageType.TEXT, metadata=None):
        await self._enter("send_message")
        return self.add_message(session_id, SenderType(sender_type), content, MessageType(message_type), metadata)

    async def generate_ai_response(self, session_id, user_message) -> ChatMessage:
        await self._enter("generate_ai_response")
        return self.add_message(session_id, SenderType.ASSISTANT, self.reply_text)

    async def list_all_messages(self, session_id) -> list[ChatMessage]:
        await self._enter("list_all_messages")
        return list(self.messages.get(session_id, []))


async def wait_for_call(service: FakeChatService, name: str, count: int = 1) -> None:
    """Yield to the loop until ``service`` has seen ``name`` called ``count`` times."""
    for _ in range(1000):
        if service.count(name) >= count:
            return
        await asyncio.sleep(0)
    raise AssertionError(f"{name} was never called")


@pytest.fixture
def service() -> FakeChatService:
    return FakeChatService()


@pytest.fixture
def cache() -> ChatCache:
    return ChatCache()


@pytest.fixture
def sessions(service, cache) -> SessionManager:
    return SessionManager(service, cache)


@pytest.fixture
def pipeline(service, cache, sessions) -> MessagePipeline:
    return MessagePipeline(service, cache, sessions)


@pytest.fixture
def context() -> ConversationContext:
    return ConversationContext(user_id=42, session_type=SessionType.SELLER_PRODUCT_INQUIRY, language="ko")
