"""Error taxonomy for the case aggregation layer."""

from __future__ import annotations

from typing import Optional


class PortalError(Exception):
    """Base class for errors raised while talking to the judicial portal."""


class ValidationFailure(PortalError, ValueError):
    """Raised when a case number fails the shape check, before any network call."""

    def __init__(self, case_number: object):
        self.case_number = case_number
        super().__init__(f"Invalid case number: {case_number!r}")


class TransportFailure(PortalError):
    """Network error, timeout or unexpected HTTP status from the portal."""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class NotFound:
    """Result of a primary lookup that matched no case.

    This is a value, not an exception: a missing case is an expected outcome.
    """

    _instance: Optional["NotFound"] = None

    def __new__(cls) -> "NotFound":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_FOUND"


NOT_FOUND = NotFound()
