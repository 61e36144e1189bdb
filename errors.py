"""Exceptions raised by browser sessions."""

from typing import Optional


class SessionError(Exception):
    """Base class for session errors."""


class LaunchError(SessionError):
    """Raised when the browser process or its page cannot be started."""


class ClosedSessionError(SessionError):
    """Raised when an operation is invoked on a closed session."""

    def __init__(self, operation: str, username: Optional[str] = None):
        self.operation = operation
        self.username = username
        owner = f" of {username}" if username else ""
        super().__init__(f"{operation} called on closed session{owner}")


class WaitTimeoutError(SessionError, TimeoutError):
    """Raised when a bounded wait does not complete in time."""

    def __init__(self, operation: str, timeout: int, target: Optional[str] = None):
        self.operation = operation
        self.timeout = timeout
        self.target = target
        call = f"{operation}({target})" if target else operation
        super().__init__(f"timeout of {timeout}ms for {call} elapsed")
