"""
Pagination cache for one case's procedural history.

The history endpoint sometimes returns the whole list in one response and
sometimes only one server-side page. The first response decides which mode the
cache is in, and the mode is kept as an explicit state:

    Empty -> Fetching -> Cached(events)   every page is sliced locally
                      -> ServerPaged      every page is one remote call
                      -> Empty            the fetch failed; the next request retries

A cache belongs to exactly one case number. Discard it (or ``clear()`` it)
when the selected case changes.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Dict, Optional, Tuple, Union

from loguru import logger

from judicial_case_aggregator.shared.constants import PAGE_SIZE
from judicial_case_aggregator.shared.errors import TransportFailure
from judicial_case_aggregator.types.schemas.models import (
    HistoryPage,
    HistoryResponse,
    PageWindow,
    ProceduralEvent,
)


@dataclass(frozen=True)
class Empty:
    pass


@dataclass(frozen=True)
class Fetching:
    task: "asyncio.Future[Optional[HistoryResponse]]"


@dataclass(frozen=True)
class Cached:
    events: Tuple[ProceduralEvent, ...]


@dataclass(frozen=True)
class ServerPaged:
    first_window: Optional[PageWindow] = None


CacheState = Union[Empty, Fetching, Cached, ServerPaged]

EMPTY = Empty()


def empty_page(page: int, page_size: int = PAGE_SIZE) -> HistoryPage:
    return HistoryPage(events=[], window=PageWindow.from_total(page, 0, page_size))


class HistoryPaginationCache:
    """Serves fixed-size history pages for one case, fetching as little as possible."""

    def __init__(self, case_number: str, client, page_size: int = PAGE_SIZE):
        self.case_number = case_number.strip()
        self.client = client
        self.page_size = page_size
        self.state: CacheState = EMPTY
        self._inflight: Dict[int, "asyncio.Future[HistoryPage]"] = {}

    def __repr__(self) -> str:
        return f"HistoryPaginationCache({self.case_number!r}, state={type(self.state).__name__})"

    # ------------------------------------------------------------------ #
    # State transitions                                                   #
    # ------------------------------------------------------------------ #

    def _settle(self, response: HistoryResponse) -> CacheState:
        if response.is_complete:
            logger.debug(
                f"History for {self.case_number} complete ({len(response.events)} events); caching"
            )
            return Cached(tuple(response.events))
        logger.debug(f"History for {self.case_number} is server-paged: {response.server_paging}")
        return ServerPaged(first_window=response.server_paging)

    def seed(self, response: HistoryResponse) -> None:
        """Adopt a page-1 response fetched elsewhere (e.g. during aggregation)."""
        if isinstance(self.state, Fetching):
            return
        self.state = self._settle(response)

    def clear(self) -> None:
        """Return to Empty. In-flight fetches finish but no longer write here."""
        self.state = EMPTY
        self._inflight.clear()

    def _owns_state(self, task: Optional[asyncio.Future]) -> bool:
        return isinstance(self.state, Fetching) and self.state.task is task

    async def _run_initial_fetch(self) -> Optional[HistoryResponse]:
        task = asyncio.current_task()
        response = None
        try:
            response = await self.client.fetch_history(self.case_number, 1)
        except (TransportFailure, asyncio.TimeoutError) as e:
            logger.warning(f"History for {self.case_number} unavailable: {e}")
        finally:
            if self._owns_state(task):
                self.state = EMPTY if response is None else self._settle(response)
        return response

    async def _initial_fetch(self) -> Optional[HistoryResponse]:
        if isinstance(self.state, Empty):
            self.state = Fetching(asyncio.ensure_future(self._run_initial_fetch()))
        # shield: a cancelled waiter must not cancel the fetch other waiters share
        return await asyncio.shield(self.state.task)

    # ------------------------------------------------------------------ #
    # Page serving                                                        #
    # ------------------------------------------------------------------ #

    def _slice(self, events: Tuple[ProceduralEvent, ...], page: int) -> HistoryPage:
        start = (page - 1) * self.page_size
        return HistoryPage(
            events=list(events[start:start + self.page_size]),
            window=PageWindow.from_total(page, len(events), self.page_size),
        )

    def _server_window(self, response: HistoryResponse, page: int) -> PageWindow:
        if response.server_paging is not None:
            return response.server_paging
        # Server-paged mode but this response carried no descriptor.
        known = self.state.first_window if isinstance(self.state, ServerPaged) else None
        total_pages = known.total_pages if known else page
        return PageWindow(
            page=page,
            page_size=self.page_size,
            total_items=known.total_items if known else len(response.events),
            total_pages=total_pages,
            has_prev=page > 1,
            has_next=page < total_pages,
        )

    async def _fetch_server_page(self, page: int) -> HistoryPage:
        try:
            response = await self.client.fetch_history(self.case_number, page)
        except (TransportFailure, asyncio.TimeoutError) as e:
            logger.warning(f"History page {page} for {self.case_number} unavailable: {e}")
            return empty_page(page, self.page_size)
        return HistoryPage(events=response.events, window=self._server_window(response, page))

    def _forget(self, page: int, task: asyncio.Future) -> None:
        if self._inflight.get(page) is task:
            del self._inflight[page]

    async def _server_page(self, page: int) -> HistoryPage:
        task = self._inflight.get(page)
        if task is None:
            task = asyncio.ensure_future(self._fetch_server_page(page))
            self._inflight[page] = task
            task.add_done_callback(lambda t, p=page: self._forget(p, t))
        return await asyncio.shield(task)

    async def get_page(self, case_number: str, page: int) -> HistoryPage:
        """Return page ``page`` (1-based) of this case's history.

        Transport failures produce an empty page instead of an exception.

        Raises:
            ValueError: ``case_number`` is not this cache's case, or ``page < 1``
        """
        if case_number.strip() != self.case_number:
            raise ValueError(
                f"Cache for {self.case_number} cannot serve history of {case_number}"
            )
        if page < 1:
            raise ValueError(f"Page numbers start at 1, got {page}")

        if isinstance(self.state, (Empty, Fetching)):
            initial = await self._initial_fetch()
            if initial is None:
                return empty_page(page, self.page_size)
            if page == 1 and not initial.is_complete:
                # The fetch that decided the mode already is page 1.
                return HistoryPage(events=initial.events, window=self._server_window(initial, 1))

        state = self.state
        if isinstance(state, Cached):
            logger.debug(f"History page {page} for {self.case_number} served from cache")
            return self._slice(state.events, page)
        if isinstance(state, ServerPaged):
            return await self._server_page(page)
        # Cleared while the initial fetch was running.
        return empty_page(page, self.page_size)
