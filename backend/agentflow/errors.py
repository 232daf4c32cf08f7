from typing import Any, Dict, Optional

GENERIC_ERROR = "Unexpected server error."


class AgentFlowError(Exception):
    """Base error rendered to callers as ``{"error": ...}``."""

    status_code = 500

    def __init__(self, message: str = GENERIC_ERROR, *, status_code: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.payload = payload

    def to_body(self) -> Dict[str, Any]:
        return {"error": self.payload if self.payload is not None else self.message}

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return None

    @property
    def public_message(self) -> str:
        return self.message


class ValidationError(AgentFlowError):
    status_code = 400


class ConfigurationError(AgentFlowError):
    status_code = 500


class UpstreamError(AgentFlowError):
    """Non-success answer from the chat-completion API; status and payload are relayed as-is."""


class TransportError(AgentFlowError):
    status_code = 500

    def to_body(self) -> Dict[str, Any]:
        # Never leak network internals
        return {"error": GENERIC_ERROR}

    @property
    def public_message(self) -> str:
        return GENERIC_ERROR


class SizeLimitError(AgentFlowError):
    status_code = 413

    def __init__(self, message: str = "Request too large"):
        super().__init__(message)

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return {"Connection": "close"}
