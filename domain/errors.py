"""Domain Errors

Every failure a front-desk operation can report. Each error carries a
``kind`` tag and a human-readable ``message`` that the UI shows verbatim.
They subclass ``ValueError`` so callers that only know about ``ValueError``
still treat them as rejected input rather than crashes.
"""
from typing import Optional


class FrontDeskError(ValueError):
    """Base class for recoverable front-desk errors"""

    kind = "FrontDeskError"

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        payload = {"error": self.kind, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class NotFound(FrontDeskError):
    kind = "NotFound"


class InvalidTransition(FrontDeskError):
    kind = "InvalidTransition"


class RoomUnavailable(FrontDeskError):
    kind = "RoomUnavailable"


class BalanceNotZero(FrontDeskError):
    kind = "BalanceNotZero"


class ValidationError(FrontDeskError):
    kind = "ValidationError"


class ConcurrentModification(FrontDeskError):
    kind = "ConcurrentModification"


class Forbidden(FrontDeskError):
    kind = "Forbidden"
