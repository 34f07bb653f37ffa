"""On-demand attachment listing and download for procedural events."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import List, Optional

from loguru import logger

from judicial_case_aggregator.shared.errors import TransportFailure
from judicial_case_aggregator.types.schemas.models import Attachment, ProceduralEvent


class AttachmentFetcher:
    """Lists and downloads the files linked to one case's events.

    Nothing is cached: each ``list_attachments`` call is a fresh lookup.
    """

    def __init__(self, client, case_number: str):
        self.client = client
        self.case_number = case_number.strip()

    async def list_attachments(self, event: ProceduralEvent) -> List[Attachment]:
        """Files for ``event``; empty when it declares none or the lookup fails."""
        if not event.has_attachments:
            return []
        key = event.attachment_key
        if key is None:
            logger.warning(
                f"Event {event.sequence} of {self.case_number} has attachments but no id"
            )
            return []
        if not event.attachment_group_id:
            # TODO: drop this fallback once idRegActuacion is confirmed on every row
            logger.debug(f"Event {key} has no attachment group id; using its event id")
        try:
            return await self.client.fetch_attachments_for_event(self.case_number, key)
        except (TransportFailure, asyncio.TimeoutError) as e:
            logger.warning(f"Attachments for event {key} of {self.case_number} unavailable: {e}")
            return []

    async def download(self, attachment: Attachment, dest_dir: Optional[Path] = None) -> Path:
        """Save one attachment to disk. Transport failures propagate."""
        return await self.client.download_attachment(
            attachment.attachment_id, attachment.display_name, dest_dir
        )
