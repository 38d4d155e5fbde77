"""
Chat message models.

BUTTON / BUTTON_GROUP messages carry their call-to-action in ``metadata`` as a
JSON string: either a list of strings, a list of ``{"label", "value"}``
objects, or a single such object.
"""

import json
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class SenderType(str, Enum):
    USER = "USER"
    ASSISTANT = "AI"


class MessageType(str, Enum):
    TEXT = "TEXT"
    BUTTON = "BUTTON"
    BUTTON_GROUP = "BUTTON_GROUP"


class ChatMessage(BaseModel):
    id: int
    session_id: int
    sender_type: SenderType
    content: str = Field(default="", alias="messageContent")
    message_type: MessageType = MessageType.TEXT
    metadata: Optional[str] = None
    created_at: str = ""

    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    @property
    def is_user(self) -> bool:
        return self.sender_type == SenderType.USER

    def suggested_actions(self) -> list[str]:
        """Reply texts offered by a BUTTON / BUTTON_GROUP message, in display order."""
        if self.message_type == MessageType.TEXT or not self.metadata:
            return []
        try:
            raw = json.loads(self.metadata)
        except ValueError:
            return []
        items = raw if isinstance(raw, list) else [raw]
        return [text for text in (_action_text(item) for item in items) if text]


def _action_text(item: Any) -> Optional[str]:
    if isinstance(item, str):
        return item
    if isinstance(item, dict):
        value = item.get("value") or item.get("label") or item.get("text")
        return str(value) if value else None
    return None


class ChatMessagePage(BaseModel):
    """One page of ``GET /chat/sessions/{id}/messages``."""

    content: list[ChatMessage] = []
    total_elements: int = 0
    total_pages: int = 0
    number: int = 0
    size: int = 0
    first: bool = True
    last: bool = True

    model_config = {"alias_generator": to_camel, "populate_by_name": True}
