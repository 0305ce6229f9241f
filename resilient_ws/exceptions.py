"""
Custom exception hierarchy for the resilient WebSocket client.

Connection failures that are part of normal operation (a dropped socket,
a connect timeout) are not exceptions: they drive the reconnect state machine
and surface as events. The classes here cover caller mistakes and the few
conditions a caller must be told about directly.
"""

from typing import Optional


class ResilientWSError(Exception):
    """Base exception for all resilient_ws errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        original_error: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.original_error = original_error

    def __str__(self) -> str:
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message


class ConfigurationError(ResilientWSError):
    """Raised when client options or environment settings are invalid."""

    pass


class ValidationError(ResilientWSError):
    """Raised when input validation fails."""

    pass


class NotConnectedError(ResilientWSError):
    """Raised when data is sent while the connection is not OPEN."""

    def __init__(self, message: str = "WebSocket is not in OPEN state"):
        super().__init__(message, error_code="NOT_CONNECTED")


class ReconnectExhaustedError(ResilientWSError):
    """
    Describes a reconnect budget that has run out.

    The client never raises this itself; an instance travels inside the
    ``reconnectFailed`` event so listeners can raise or record it.
    """

    def __init__(self, attempts: int, max_attempts: int):
        super().__init__(
            f"Reconnect budget of {max_attempts} attempt(s) exhausted",
            error_code="RECONNECT_EXHAUSTED",
        )
        self.attempts = attempts
        self.max_attempts = max_attempts
