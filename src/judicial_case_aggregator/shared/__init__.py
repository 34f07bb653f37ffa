"""
Shared Layer - Judicial Case Aggregator

Cross-cutting concerns used by every layer: constants, the error taxonomy
and logging setup. No business logic lives here.
"""

from .constants import NOT_AVAILABLE, PAGE_SIZE
from .errors import NOT_FOUND, NotFound, PortalError, TransportFailure, ValidationFailure

__all__ = [
    "NOT_AVAILABLE",
    "PAGE_SIZE",
    "NOT_FOUND",
    "NotFound",
    "PortalError",
    "TransportFailure",
    "ValidationFailure",
]
