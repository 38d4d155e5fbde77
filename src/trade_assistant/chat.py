"""
Message pipeline — one user turn against the chat backend.

A turn spans three independent remote calls, each one a suspension point:

1. send: post the user message, append the server's copy
2. generate: ask for the assistant reply, append it
3. reconcile: refetch every message and replace the cached list

Step 3 runs whether or not step 2 succeeded and is what keeps the cache equal
to the server's list. A send failure ends the turn on the spot. Whatever was
appended before a failure stays in the cache.

Only one turn may be in flight; a second submit while the cache is loading is
rejected with BusyError rather than queued.
"""

import logging
from typing import Optional

from trade_assistant.cache import ChatCache
from trade_assistant.chat_api import ChatAPI
from trade_assistant.errors import (
    BusyError,
    FetchError,
    GenerationError,
    NoActiveSessionError,
    SendError,
    SessionCreationError,
    TradeAssistantError,
)
from trade_assistant.models.message import ChatMessage, MessageType, SenderType
from trade_assistant.models.session import ConversationContext
from trade_assistant.sessions import SessionManager

logger = logging.getLogger(__name__)


class TurnResult:
    __slots__ = ("session_id", "user_message", "assistant_message", "messages", "error", "abandoned")

    def __init__(self, session_id: Optional[int] = None):
        self.session_id = session_id
        self.user_message: Optional[ChatMessage] = None
        self.assistant_message: Optional[ChatMessage] = None
        self.messages: Optional[tuple[ChatMessage, ...]] = None
        self.error: Optional[TradeAssistantError] = None
        self.abandoned = False

    @property
    def completed(self) -> bool:
        return not self.abandoned and self.error is None

    def __repr__(self) -> str:
        state = "abandoned" if self.abandoned else (self.error.code if self.error else "ok")
        return f"TurnResult(session_id={self.session_id!r}, state={state!r})"


class MessagePipeline:
    def __init__(self, api: ChatAPI, cache: ChatCache, sessions: SessionManager):
        self._api = api
        self._cache = cache
        self._sessions = sessions

    async def submit_user_turn(self, text: str, context: Optional[ConversationContext] = None) -> TurnResult:
        """Send free text, get the assistant's reply, reconcile."""
        return await self._submit(text, MessageType.TEXT, context)

    async def submit_suggested_action(
        self,
        action_text: str,
        context: Optional[ConversationContext] = None,
        metadata: Optional[str] = None,
    ) -> TurnResult:
        """Same as submit_user_turn, but the message is tagged as a clicked action."""
        return await self._submit(action_text, MessageType.BUTTON, context, metadata)

    async def refresh_messages(self) -> tuple[ChatMessage, ...]:
        """Replace the cached messages with the server's full list for the current session."""
        session_id = self._cache.current_session_id
        if session_id is None:
            raise NoActiveSessionError("Cannot refresh messages: no active chat session")
        epoch = self._cache.begin()
        try:
            try:
                messages = await self._api.list_all_messages(session_id)
            except Exception as e:
                raise FetchError(f"Failed to fetch messages for session {session_id}: {e}") from e
            if self._cache.is_current(epoch, session_id):
                self._cache.replace_messages(messages)
            return tuple(messages)
        finally:
            self._cache.finish(epoch)

    async def _submit(
        self,
        content: str,
        message_type: MessageType,
        context: Optional[ConversationContext],
        metadata: Optional[str] = None,
    ) -> TurnResult:
        if not content or not content.strip():
            raise ValueError("Message content must not be empty")
        # Checked and registered before the first await, so overlapping submits can't both pass
        if self._cache.is_loading:
            raise BusyError()
        epoch = self._cache.begin()
        try:
            return await self._run_turn(epoch, content, message_type, context, metadata)
        finally:
            self._cache.finish(epoch)

    async def _run_turn(
        self,
        epoch: int,
        content: str,
        message_type: MessageType,
        context: Optional[ConversationContext],
        metadata: Optional[str],
    ) -> TurnResult:
        session = self._cache.current_session
        if session is None:
            try:
                session = await self._ensure(context, epoch)
            except SessionCreationError as e:
                if self._cache.epoch != epoch:
                    return _abandoned(TurnResult())
                return self._fail(TurnResult(), e)
            if session is None:
                return _abandoned(TurnResult())

        session_id = session.id
        result = TurnResult(session_id)

        # 1. send
        logger.debug("Session %s: sending %s message", session_id, message_type.value)
        try:
            sent = await self._api.send_message(session_id, SenderType.USER, content, message_type, metadata)
        except Exception as e:
            if not self._cache.is_current(epoch, session_id):
                return _abandoned(result)
            error = SendError(f"Failed to send message: {e}", details={"session_id": session_id})
            error.__cause__ = e
            return self._fail(result, error)
        if not self._cache.is_current(epoch, session_id):
            return _abandoned(result)
        self._cache.append_message(sent)
        result.user_message = sent

        # 2. generate
        logger.debug("Session %s: requesting assistant reply", session_id)
        try:
            reply = await self._api.generate_ai_response(session_id, content)
        except Exception as e:
            if not self._cache.is_current(epoch, session_id):
                return _abandoned(result)
            error = GenerationError(f"Failed to generate assistant reply: {e}", details={"session_id": session_id})
            error.__cause__ = e
            self._fail(result, error)
        else:
            if not self._cache.is_current(epoch, session_id):
                return _abandoned(result)
            self._cache.append_message(reply)
            result.assistant_message = reply

        # 3. reconcile
        logger.debug("Session %s: reconciling message list", session_id)
        try:
            messages = await self._api.list_all_messages(session_id)
        except Exception as e:
            if not self._cache.is_current(epoch, session_id):
                return _abandoned(result)
            if result.error is not None:
                logger.warning("Session %s: reconciliation after failed reply also failed: %s", session_id, e)
                return result
            error = FetchError(f"Failed to refetch messages: {e}", details={"session_id": session_id})
            error.__cause__ = e
            return self._fail(result, error)
        if not self._cache.is_current(epoch, session_id):
            return _abandoned(result)
        self._cache.replace_messages(messages)
        result.messages = tuple(messages)
        return result

    async def _ensure(self, context: Optional[ConversationContext], epoch: int):
        if context is None:
            raise SessionCreationError("No conversation context to create a chat session with")
        return await self._sessions.ensure_session(
            context.user_id, context.session_type, context.language, context.session_data, epoch=epoch,
        )

    def _fail(self, result: TurnResult, error: TradeAssistantError) -> TurnResult:
        logger.warning("Chat turn failed (%s): %s", error.code, error)
        self._cache.record_error(error)
        result.error = error
        return result


def _abandoned(result: TurnResult) -> TurnResult:
    logger.info("Chat was cleared mid-turn; dropping result for session %s", result.session_id)
    result.abandoned = True
    return result
