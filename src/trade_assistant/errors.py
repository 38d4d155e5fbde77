"""
Trade assistant error types.

Remote failures are wrapped where the call is made; pipeline failures end up
in the cache's ``last_error`` rather than being raised to the caller.
"""

from typing import Any, Optional


class TradeAssistantError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class TransportError(TradeAssistantError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__("http_error", message, {"status_code": status_code} if status_code else None)
        self.status_code = status_code


class SessionError(TradeAssistantError):
    def __init__(self, message: str, code: str = "session_error", details: Optional[dict[str, Any]] = None):
        super().__init__(code, message, details)


class SessionCreationError(SessionError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message, "session_creation_error", details)


class NoActiveSessionError(SessionError):
    def __init__(self, message: str = "No active chat session"):
        super().__init__(message, "no_active_session")


class SessionUpdateError(SessionError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message, "session_update_error", details)


class PipelineError(TradeAssistantError):
    def __init__(self, message: str, code: str = "pipeline_error", details: Optional[dict[str, Any]] = None):
        super().__init__(code, message, details)


class SendError(PipelineError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message, "send_error", details)


class GenerationError(PipelineError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message, "generation_error", details)


class FetchError(PipelineError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message, "fetch_error", details)


class BusyError(TradeAssistantError):
    """A turn was submitted while another operation is still in flight."""

    def __init__(self, message: str = "Another chat operation is still in flight"):
        super().__init__("busy", message)
