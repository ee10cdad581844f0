"""
Session registry exceptions.

These indicate a caller bug (the registry contract was violated). They are
still raised as regular exceptions so the UI layer can report them.
"""

from .base import PosEngineException


class SessionException(PosEngineException):
    """Base exception for session registry errors."""
    pass


class SessionNotFoundException(SessionException):
    """Raised when a session id is unknown to the registry."""

    def __init__(self, session_id: str):
        super().__init__(
            f"Session {session_id} not found",
            details={'session_id': session_id}
        )
        self.session_id = session_id


class CannotCloseLastSessionException(SessionException):
    """Raised when closing the only remaining session."""

    def __init__(self, session_id: str):
        super().__init__(
            f"Session {session_id} is the last remaining session and cannot be closed",
            details={'session_id': session_id}
        )
        self.session_id = session_id


class SessionBusyException(SessionException):
    """Raised when closing a session whose payment submission is still outstanding."""

    def __init__(self, session_id: str, reason: str):
        super().__init__(
            f"Session {session_id} is busy: {reason}",
            details={'session_id': session_id, 'reason': reason}
        )
        self.session_id = session_id
        self.reason = reason
