"""Case aggregation package.

Turns the portal's separate lookups into one consolidated case record and
serves the pieces a consumer pages through afterwards.

Modules:
- aggregator: Primary lookup, concurrent auxiliary lookups, normalization.
- history_cache: Fixed-size history pages with a full-list cache.
- attachments: Per-event attachment listing and download.
- session: Selected-case context with last-query-wins semantics.
"""

from .aggregator import CaseAggregator, normalize_case
from .attachments import AttachmentFetcher
from .history_cache import HistoryPaginationCache
from .session import CaseSession, SelectedCase

__all__ = [
    "CaseAggregator",
    "normalize_case",
    "AttachmentFetcher",
    "HistoryPaginationCache",
    "CaseSession",
    "SelectedCase",
]
