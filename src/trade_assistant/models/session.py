"""
Chat session models.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class SessionType(str, Enum):
    """Conversation purpose. Opaque to the client; the backend owns its meaning."""

    SELLER_PRODUCT_INQUIRY = "SELLER_PRODUCT_INQUIRY"
    BUYER_PURCHASE_INQUIRY = "BUYER_PURCHASE_INQUIRY"


class SessionStatus(str, Enum):
    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"
    EXPIRED = "EXPIRED"
    # Terminal statuses reported by the current backend
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class ChatSession(BaseModel):
    id: int
    user_id: int
    user_name: Optional[str] = None
    session_type: SessionType
    language: str = "ko"
    status: SessionStatus = SessionStatus.ACTIVE
    session_data: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""

    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE


class ConversationContext(BaseModel):
    """Who is talking and about what. Used to create a session lazily."""

    user_id: Optional[int] = None
    session_type: SessionType = SessionType.SELLER_PRODUCT_INQUIRY
    language: str = "ko"
    session_data: Optional[str] = None
