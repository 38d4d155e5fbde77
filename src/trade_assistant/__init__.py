"""
trade-assistant — chat assistant SDK for the trade storefront.

Session lifecycle, message pipeline and local cache for the storefront's
AI trade assistant, over the backend's REST chat API.
"""

from trade_assistant.client import TradeAssistant, AsyncTradeAssistant
from trade_assistant.cache import ChatCache, ChatState
from trade_assistant.chat import MessagePipeline, TurnResult
from trade_assistant.chat_api import ChatAPI
from trade_assistant.sessions import SessionManager
from trade_assistant.errors import (
    TradeAssistantError,
    TransportError,
    SessionError,
    SessionCreationError,
    NoActiveSessionError,
    SessionUpdateError,
    PipelineError,
    SendError,
    GenerationError,
    FetchError,
    BusyError,
)
from trade_assistant.models.message import ChatMessage, MessageType, SenderType
from trade_assistant.models.session import ChatSession, ConversationContext, SessionStatus, SessionType

__version__ = "0.1.0"
__all__ = [
    "TradeAssistant",
    "AsyncTradeAssistant",
    "ChatCache",
    "ChatState",
    "MessagePipeline",
    "TurnResult",
    "ChatAPI",
    "SessionManager",
    "TradeAssistantError",
    "TransportError",
    "SessionError",
    "SessionCreationError",
    "NoActiveSessionError",
    "SessionUpdateError",
    "PipelineError",
    "SendError",
    "GenerationError",
    "FetchError",
    "BusyError",
    "ChatMessage",
    "MessageType",
    "SenderType",
    "ChatSession",
    "ConversationContext",
    "SessionStatus",
    "SessionType",
]
