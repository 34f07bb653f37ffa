"""
Judicial portal HTTP/JSON client.

This module contains only the low-level calls to the portal's endpoints and
the parsing of their payloads into the package's models. It keeps no state
between calls; failure tolerance is decided by the callers.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from loguru import logger
from pydantic import BaseModel, ValidationError

from judicial_case_aggregator.api.base_api_client import BaseAPIClient
from judicial_case_aggregator.config import PortalConfig
from judicial_case_aggregator.shared.constants import EXPORT_FORMATS
from judicial_case_aggregator.shared.errors import TransportFailure
from judicial_case_aggregator.types.schemas.models import (
    Attachment,
    HistoryResponse,
    PageWindow,
    PartySubject,
    ProceduralEvent,
    RawCaseRecord,
)
from judicial_case_aggregator.utils.http_utils import safe_async_download, safe_async_request

M = TypeVar("M", bound=BaseModel)

# Browser-like headers; the portal rejects requests without a matching origin.
DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept-Language": "es-ES,es;q=0.9,en;q=0.8",
}


def build_endpoints(config: PortalConfig) -> Dict[str, str]:
    """Endpoint table for the configured portal hosts."""
    api = config.api_url.rstrip("/")
    base = config.base_url.rstrip("/")
    return {
        "primary": f"{api}/Procesos/Consulta/NumeroRadicacion",
        "history": f"{api}/Proceso/Actuaciones",
        "details": f"{api}/Proceso/Detalle",
        "download": f"{api}/Descarga/Documento",
        "export": f"{api}/Descarga",
        "subjects": f"{base}/api/v1/Process/GetSujetosProcesales",
        "attachments": f"{base}/api/Process/GetDocumentos",
        "portal": f"{base}/Procesos/NumeroRadicacion",
    }


def safe_filename(name: str, fallback: str) -> str:
    """Make a filesystem-safe file name, keeping the extension."""
    cleaned = re.sub(r"[^\w.\- ]+", "_", Path(name).name).strip(" ._")
    return cleaned or fallback


def _rows(data: Any) -> List[Dict[str, Any]]:
    """Extract ``lsData`` rows from a legacy ``{isSuccess, lsData}`` envelope."""
    if not isinstance(data, dict) or not data.get("isSuccess"):
        return []
    rows = data.get("lsData")
    return rows if isinstance(rows, list) else []


def parse_rows(model: Type[M], rows: List[Any], url: str) -> List[M]:
    """Validate portal rows into ``model``; a malformed row fails the whole payload."""
    try:
        return [model.model_validate(row) for row in rows]
    except ValidationError as e:
        raise TransportFailure(
            f"Malformed {model.__name__} payload from {url}: {e.error_count()} errors", url=url
        ) from e


class AsyncPortalClient(BaseAPIClient):
    """Async client for the judicial consultation portal."""

    def __init__(
        self,
        config: PortalConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the client with portal configuration.

        Args:
            config: Portal configuration (hosts, timeouts, retries)
            transport: Optional httpx transport, e.g. ``httpx.MockTransport`` in tests
        """
        super().__init__(config)
        self.logger = logger.bind(client="portal")
        self.endpoints = build_endpoints(config)
        self._http = httpx.AsyncClient(
            headers=self._build_headers(),
            follow_redirects=True,
            timeout=httpx.Timeout(config.timeout),
            transport=transport,
        )

    def _build_headers(self) -> Dict[str, str]:
        headers = super()._build_headers()
        headers.update(DEFAULT_HEADERS)
        headers["Referer"] = f"{self.config.base_url}/"
        headers["Origin"] = self.config.base_url
        return headers

    async def __aenter__(self) -> "AsyncPortalClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Optional[Any]:
        return await safe_async_request(
            self._http,
            method,
            url,
            params=params,
            json=json,
            max_attempts=self.config.max_attempts,
            backoff=self.config.retry_backoff,
            rate_limit=self.config.rate_limit,
        )

    async def fetch_primary(
        self, case_number: str, active_only: bool = False
    ) -> Optional[RawCaseRecord]:
        """Primary lookup by case number.

        Returns None when the portal reports no match. Transport problems and
        a record that does not parse raise ``TransportFailure``.
        """
        params = {
            "numero": case_number.strip(),
            "SoloActivos": str(bool(active_only)).lower(),
            "pagina": 1,
        }
        data = await self._request("GET", self.endpoints["primary"], params=params)
        cases = data.get("procesos") if isinstance(data, dict) else None
        if not cases:
            self.logger.info(f"No case found for {case_number}")
            return None
        if len(cases) > 1:
            self.logger.debug(f"{len(cases)} records for {case_number}; using the first")
        return parse_rows(RawCaseRecord, cases[:1], self.endpoints["primary"])[0]

    async def fetch_history(self, case_number: str, page: int = 1) -> HistoryResponse:
        """Procedural history, either the full list or one server page.

        The portal may answer with ``{actuaciones, paginacion}`` or with a bare
        list; both are passed through without truncation.
        """
        params = {"numero": case_number.strip(), "pagina": page}
        url = self.endpoints["history"]
        data = await self._request("GET", url, params=params)
        if isinstance(data, list):
            return HistoryResponse(events=parse_rows(ProceduralEvent, data, url))
        if not isinstance(data, dict):
            return HistoryResponse()
        events = parse_rows(ProceduralEvent, data.get("actuaciones") or [], url)
        paging = data.get("paginacion")
        server_paging = None
        if isinstance(paging, dict):
            try:
                server_paging = PageWindow.from_portal(paging, requested_page=page)
            except (TypeError, ValueError) as e:
                raise TransportFailure(
                    f"Malformed paginacion from {url}: {paging!r}", url=url
                ) from e
        return HistoryResponse(events=events, server_paging=server_paging)

    async def fetch_subjects(self, case_number: str) -> List[PartySubject]:
        """Party list; empty when the portal reports no data."""
        data = await self._request(
            "POST",
            self.endpoints["subjects"],
            json={"lsNroRadicacion": case_number.strip()},
        )
        return parse_rows(PartySubject, _rows(data), self.endpoints["subjects"])

    async def fetch_attachments_for_event(
        self, case_number: str, event_key: int
    ) -> List[Attachment]:
        """Files linked to one procedural event; empty on no data."""
        data = await self._request(
            "POST",
            self.endpoints["attachments"],
            json={"lsNroRadicacion": case_number.strip(), "lnIdActuacion": event_key},
        )
        return parse_rows(Attachment, _rows(data), self.endpoints["attachments"])

    async def fetch_details(self, process_id: int) -> Optional[Dict[str, Any]]:
        """Detail sheet for a process id. Display-only, so failures yield None."""
        try:
            data = await self._request("GET", f"{self.endpoints['details']}/{process_id}")
        except TransportFailure as e:
            self.logger.warning(f"Could not fetch details for process {process_id}: {e}")
            return None
        return data if isinstance(data, dict) else None

    async def download_attachment(
        self,
        attachment_id: int,
        suggested_name: str,
        dest_dir: Optional[Path] = None,
    ) -> Path:
        """Stream one attachment to disk and return the written path."""
        dest_dir = Path(dest_dir) if dest_dir is not None else self.config.download_dir
        filename = safe_filename(suggested_name, f"Documento_{attachment_id}.pdf")
        return await safe_async_download(
            self._http,
            f"{self.endpoints['download']}/{attachment_id}",
            dest_dir / filename,
            max_attempts=self.config.max_attempts,
            backoff=self.config.retry_backoff,
        )

    async def export_case(
        self,
        case_number: str,
        fmt: str = "docx",
        active_only: bool = False,
        dest_dir: Optional[Path] = None,
    ) -> Path:
        """Download the portal's DOCX or CSV export of a case."""
        fmt = fmt.lower()
        if fmt not in EXPORT_FORMATS:
            raise ValueError(f"Unknown export format: {fmt}. Must be one of {sorted(EXPORT_FORMATS)}")
        case_number = case_number.strip()
        dest_dir = Path(dest_dir) if dest_dir is not None else self.config.download_dir
        return await safe_async_download(
            self._http,
            f"{self.endpoints['export']}/{fmt.upper()}/Procesos/NumeroRadicacion",
            dest_dir / f"Proceso_{case_number}.{fmt}",
            params={"numero": case_number, "SoloActivos": str(bool(active_only)).lower(), "pagina": 1},
            headers={"Accept": EXPORT_FORMATS[fmt]},
            max_attempts=self.config.max_attempts,
            backoff=self.config.retry_backoff,
        )

    def portal_url(self, case_number: str) -> str:
        """Public portal link for a case."""
        return f"{self.endpoints['portal']}?numeroRadicacion={case_number.strip()}"
