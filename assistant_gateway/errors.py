from __future__ import annotations
from typing import Optional


class GatewayError(Exception):
    """Base class for everything the gateway raises on its own account."""


class AssistantSetupError(GatewayError):
    """No usable backend client for the requested operation."""

    def __init__(self, message: str = "Assistant client not setup") -> None:
        super().__init__(message)


class AiServiceError(GatewayError):
    """Direct endpoint call failed (non-2xx status or transport exception)."""

    def __init__(self, backend: str, status: Optional[int], message: str) -> None:
        self.backend = backend
        self.status = status
        self.message = message
        super().__init__(f"{backend} error: {status if status is not None else 'Unknown'} - {message}")


class AssistantClientError(GatewayError):
    """Vendor assistant call failed: non-2xx status, transport error, or unreadable response."""

    def __init__(self, status: Optional[int], message: str) -> None:
        self.status = status
        self.message = message
        super().__init__(f"AI assistant service error: {status if status is not None else 'Unknown'} - {message}")
