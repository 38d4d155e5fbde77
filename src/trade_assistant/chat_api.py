"""
Chat REST API — the remote chat service the session manager and pipeline talk to.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional, Union

from trade_assistant.models.message import ChatMessage, ChatMessagePage, MessageType, SenderType
from trade_assistant.models.session import ChatSession, SessionStatus, SessionType
from trade_assistant.transport.http import HttpClient


def _value(v: Union[str, SessionType, SessionStatus, SenderType, MessageType]) -> str:
    return v.value if isinstance(v, Enum) else str(v)


class ChatAPI:
    def __init__(self, http: HttpClient):
        self._http = http

    async def create_session(
        self,
        user_id: int,
        session_type: Union[str, SessionType],
        language: str,
        session_data: Optional[str] = None,
    ) -> ChatSession:
        """Create a chat session."""
        body: dict[str, Any] = {
            "userId": user_id,
            "sessionType": _value(session_type),
            "language": language,
        }
        if session_data is not None:
            body["sessionData"] = session_data
        return ChatSession.model_validate(await self._http.post("/chat/sessions", body))

    async def get_session(self, session_id: int) -> ChatSession:
        return ChatSession.model_validate(await self._http.get(f"/chat/sessions/{session_id}"))

    async def list_active_sessions(
        self, user_id: int, session_type: Optional[Union[str, SessionType]] = None,
    ) -> list[ChatSession]:
        """Active sessions for a user, optionally narrowed to one purpose."""
        params: dict[str, Any] = {"userId": user_id}
        if session_type:
            params["sessionType"] = _value(session_type)
        data = await self._http.get("/chat/sessions", params=params)
        return [ChatSession.model_validate(s) for s in data or []]

    async def update_session(
        self,
        session_id: int,
        status: Union[str, SessionStatus],
        session_data: Optional[str] = None,
    ) -> ChatSession:
        """Request a status change. The returned session is authoritative."""
        params: dict[str, Any] = {"status": _value(status)}
        if session_data:
            params["sessionData"] = session_data
        return ChatSession.model_validate(await self._http.put(f"/chat/sessions/{session_id}", params=params))

    async def send_message(
        self,
        session_id: int,
        sender_type: Union[str, SenderType],
        content: str,
        message_type: Union[str, MessageType] = MessageType.TEXT,
        metadata: Optional[str] = None,
    ) -> ChatMessage:
        body: dict[str, Any] = {
            "sessionId": session_id,
            "senderType": _value(sender_type),
            "messageContent": content,
            "messageType": _value(message_type),
        }
        if metadata is not None:
            body["metadata"] = metadata
        return ChatMessage.model_validate(await self._http.post(f"/chat/sessions/{session_id}/messages", body))

    async def get_messages(
        self, session_id: int, page: int = 0, size: int = 20, sort: str = "createdAt,asc",
    ) -> ChatMessagePage:
        """One page of a session's messages."""
        data = await self._http.get(
            f"/chat/sessions/{session_id}/messages",
            params={"page": page, "size": size, "sort": sort},
        )
        return ChatMessagePage.model_validate(data or {})

    async def list_all_messages(self, session_id: int) -> list[ChatMessage]:
        """Every message of a session, oldest first."""
        data = await self._http.get(f"/chat/sessions/{session_id}/messages/all")
        return [ChatMessage.model_validate(m) for m in data or []]

    async def generate_ai_response(self, session_id: int, user_message: str) -> ChatMessage:
        """Have the assistant answer ``user_message``; blocks until the reply exists."""
        data = await self._http.post(
            f"/chat/sessions/{session_id}/ai-response",
            params={"userMessage": user_message},
        )
        return ChatMessage.model_validate(data)

    async def cleanup_expired_data(self, expired_hours: int = 24) -> int:
        """Admin: purge sessions idle longer than ``expired_hours``. Returns the purge count."""
        data = await self._http.post("/chat/cleanup", params={"expiredHours": expired_hours})
        return int(data or 0)
