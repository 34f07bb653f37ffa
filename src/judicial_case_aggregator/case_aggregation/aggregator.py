"""
Case aggregation: one consolidated record from the portal's separate lookups.

The primary lookup decides whether a case exists and must succeed. History
and subjects are fetched afterwards, concurrently, and each degrades to an
empty slice on failure so the case still renders.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, List, Optional, TypeVar, Union

from loguru import logger

from judicial_case_aggregator.api.portal.client import AsyncPortalClient
from judicial_case_aggregator.extractors.party_extractor import extract_parties
from judicial_case_aggregator.shared.constants import (
    CASE_STATUS_ACTIVE,
    NOT_AVAILABLE,
    PROVENANCE_PORTAL,
)
from judicial_case_aggregator.shared.errors import NOT_FOUND, NotFound, TransportFailure
from judicial_case_aggregator.types.ids.case_number import require_valid
from judicial_case_aggregator.types.schemas.models import (
    HistoryResponse,
    NormalizedCase,
    PartySubject,
    RawCaseRecord,
    date_only,
)

T = TypeVar("T")


async def degrade(call: Awaitable[T], fallback: T, what: str) -> T:
    """Await an auxiliary call, turning transport failures into ``fallback``."""
    try:
        return await call
    except (TransportFailure, asyncio.TimeoutError) as e:
        logger.warning(f"{what} unavailable, continuing without it: {e}")
        return fallback


def _text_or_sentinel(value) -> str:
    if value is None or not str(value).strip():
        return NOT_AVAILABLE
    return str(value).strip()


def normalize_case(
    case_number: str,
    raw: RawCaseRecord,
    history: HistoryResponse,
    subjects: List[PartySubject],
    portal_url: Optional[str] = None,
) -> NormalizedCase:
    """Merge a primary record and its auxiliary slices into a ``NormalizedCase``.

    Pure: identical inputs give identical output.
    """
    parties = extract_parties(raw.parties_text)
    # tipoProceso is usually absent; the department stands in for it.
    process_type = raw.process_type or raw.department
    return NormalizedCase(
        case_number=raw.case_key or case_number,
        process_id=raw.process_id,
        filing_date=date_only(raw.filed_at),
        last_activity_date=date_only(raw.last_activity_at),
        court=_text_or_sentinel(raw.court),
        department=raw.department,
        process_type=_text_or_sentinel(process_type),
        plaintiff=parties.plaintiff,
        defendant=parties.defendant,
        parties_text=raw.parties_text,
        folio_count=raw.folio_count,
        is_private=raw.is_private,
        status=CASE_STATUS_ACTIVE,
        provenance=PROVENANCE_PORTAL,
        portal_url=portal_url,
        subjects=subjects,
        history=history,
    )


class CaseAggregator:
    """Sequences the portal lookups for one case number."""

    def __init__(self, client: AsyncPortalClient):
        self.client = client

    async def aggregate(
        self, case_number: str, active_only: bool = False
    ) -> Union[NormalizedCase, NotFound]:
        """Build the consolidated record for ``case_number``.

        Args:
            case_number: Case number to look up; validated before any I/O
            active_only: Restrict the primary lookup to active cases

        Returns:
            The ``NormalizedCase``, or ``NOT_FOUND`` when the primary lookup
            matched nothing (no further calls are made in that case)

        Raises:
            ValidationFailure: The case number is malformed
            TransportFailure: The primary lookup failed
        """
        case_number = require_valid(case_number)
        raw = await self.client.fetch_primary(case_number, active_only)
        if raw is None:
            return NOT_FOUND

        history, subjects = await asyncio.gather(
            degrade(self.client.fetch_history(case_number, 1), HistoryResponse(), "History"),
            degrade(self.client.fetch_subjects(case_number), [], "Subjects"),
        )
        case = normalize_case(
            case_number,
            raw,
            history,
            subjects,
            portal_url=self.client.portal_url(case_number),
        )
        logger.info(
            f"Aggregated case {case.case_number}: {len(history.events)} events, "
            f"{len(subjects)} subjects"
        )
        return case
