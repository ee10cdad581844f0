"""
Collaborator service exceptions.
"""

from .base import PosEngineException


class ServiceException(PosEngineException):
    """Base exception for failures talking to an external collaborator."""
    pass


class NetworkFailureException(ServiceException):
    """Raised when a collaborator service cannot be reached or answers garbage."""

    def __init__(self, service: str, reason: str):
        super().__init__(
            f"{service} unavailable: {reason}",
            details={'service': service, 'reason': reason}
        )
        self.service = service
        self.reason = reason
