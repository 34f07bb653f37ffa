"""
Selected-case session.

Holds the state a consumer keeps while one case is open: the aggregated
record, its history cache and its attachment fetcher. Every query bumps a
generation counter, and results of older queries are dropped on arrival so a
slow response never overwrites a newer selection.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from loguru import logger

from judicial_case_aggregator.case_aggregation.aggregator import CaseAggregator
from judicial_case_aggregator.case_aggregation.attachments import AttachmentFetcher
from judicial_case_aggregator.case_aggregation.history_cache import HistoryPaginationCache
from judicial_case_aggregator.shared.errors import NotFound
from judicial_case_aggregator.types.ids.case_number import require_valid
from judicial_case_aggregator.types.schemas.models import (
    Attachment,
    HistoryPage,
    NormalizedCase,
    ProceduralEvent,
)


@dataclass
class SelectedCase:
    """Context for the currently selected case."""

    case_number: str
    generation: int
    history: HistoryPaginationCache
    attachments: AttachmentFetcher
    record: Optional[NormalizedCase] = None


class CaseSession:
    """Entry point for consumers: consult a case, page its history, open attachments."""

    def __init__(self, client):
        self.client = client
        self.aggregator = CaseAggregator(client)
        self.selected: Optional[SelectedCase] = None
        self._generation = 0

    def select(self, case_number: str) -> SelectedCase:
        """Make ``case_number`` the selected case with fresh, empty state."""
        case_number = require_valid(case_number)
        if self.selected is not None:
            self.selected.history.clear()
        self._generation += 1
        self.selected = SelectedCase(
            case_number=case_number,
            generation=self._generation,
            history=HistoryPaginationCache(case_number, self.client),
            attachments=AttachmentFetcher(self.client, case_number),
        )
        return self.selected

    def deselect(self) -> None:
        if self.selected is not None:
            self.selected.history.clear()
        self._generation += 1
        self.selected = None

    def is_current(self, context: SelectedCase) -> bool:
        return self.selected is context and context.generation == self._generation

    def _context_for(self, case_number: str) -> SelectedCase:
        case_number = require_valid(case_number)
        if self.selected is None or self.selected.case_number != case_number:
            return self.select(case_number)
        return self.selected

    async def consult(
        self, case_number: str, active_only: bool = False
    ) -> Optional[Union[NormalizedCase, NotFound]]:
        """Select ``case_number`` and aggregate it.

        Returns:
            The aggregated case or ``NOT_FOUND``; None if another query was
            started before this one finished (its result is discarded)
        """
        context = self.select(case_number)
        result = await self.aggregator.aggregate(context.case_number, active_only)
        if not self.is_current(context):
            logger.info(f"Discarding stale result for {context.case_number}")
            return None
        if isinstance(result, NormalizedCase):
            context.record = result
            # An empty history may mean the lookup failed; leave the cache
            # Empty so the first page request tries again.
            if result.history.events or result.history.server_paging is not None:
                context.history.seed(result.history)
        return result

    async def get_page(self, case_number: str, page: int) -> HistoryPage:
        """History page for ``case_number``; reselects if it is not the selected case."""
        context = self._context_for(case_number)
        return await context.history.get_page(context.case_number, page)

    async def list_attachments(self, event: ProceduralEvent) -> List[Attachment]:
        if self.selected is None:
            raise RuntimeError("No case selected")
        return await self.selected.attachments.list_attachments(event)

    async def download(self, attachment: Attachment, dest_dir: Optional[Path] = None) -> Path:
        if self.selected is None:
            raise RuntimeError("No case selected")
        return await self.selected.attachments.download(attachment, dest_dir)
