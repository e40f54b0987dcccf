"""
Exception taxonomy for the authentication bridge.

Every failure is terminal for the process. Each error carries the problem
code reported to the caller in an init message; ``reported`` is set once the
problem has been sent so it is never emitted twice.
"""

from typing import Dict, Optional

from authbridge.constants import (
    DENIED_TOKEN_RESULTS,
    PROBLEM_AUTHENTICATION_FAILED,
    PROBLEM_INTERNAL_ERROR,
    PROBLEM_UNKNOWN_HOST,
)


class BridgeError(Exception):
    """Base exception for authentication bridge failures."""

    problem = PROBLEM_INTERNAL_ERROR

    def __init__(self, message: str = "", auth_results: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.auth_results = auth_results
        self.reported = False


class FramingError(BridgeError):
    """Raised when a frame header or body is malformed or truncated."""

    pass


class ProtocolViolation(BridgeError):
    """Raised when a well-framed message has the wrong shape or content."""

    pass


class InvalidReply(ProtocolViolation):
    """Raised when an authorize reply cannot be parsed or lacks required fields."""

    pass


class BackendFault(BridgeError):
    """Raised when the trust-validation backend cannot be reached or misbehaves."""

    pass


class AuthenticationFailed(BridgeError):
    """Raised when the backend rejects the authorization token."""

    problem = PROBLEM_AUTHENTICATION_FAILED

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, auth_results=dict(DENIED_TOKEN_RESULTS))


class UnknownHost(BridgeError):
    """Raised when the backend does not recognize the target host."""

    problem = PROBLEM_UNKNOWN_HOST
