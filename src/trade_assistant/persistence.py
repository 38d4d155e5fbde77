"""
The current session is the only piece of chat state that survives a restart.
"""

import logging
from pathlib import Path
from typing import Optional

from trade_assistant.models.session import ChatSession

DEFAULT_SESSION_FILE = Path.home() / ".trade-assistant" / "session.json"

logger = logging.getLogger(__name__)


class SessionStore:
    def __init__(self, path: Path = DEFAULT_SESSION_FILE):
        self._path = Path(path)

    def load(self) -> Optional[ChatSession]:
        try:
            return ChatSession.model_validate_json(self._path.read_text())
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable session file %s: %s", self._path, e)
            return None

    def save(self, session: ChatSession) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(session.model_dump_json(by_alias=True))
        except OSError as e:
            logger.warning("Could not persist session %s to %s: %s", session.id, self._path, e)

    def clear(self) -> None:
        try:
            self._path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove session file %s: %s", self._path, e)
