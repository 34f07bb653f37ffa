# conftest.py  (tests root)
import asyncio
import sys
from pathlib import Path

import httpx
import pytest

ROOT = Path(__file__).parent.parent.resolve()
SRC = ROOT / "src"

# Add src directory to Python path for proper imports
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from judicial_case_aggregator.config import PortalConfig  # noqa: E402
from judicial_case_aggregator.types.schemas.models import (  # noqa: E402
    HistoryResponse,
    PageWindow,
    ProceduralEvent,
    RawCaseRecord,
)

CASE_A = "11001310300120230012300"
CASE_B = "05001400300220220045600"


def make_events(count, start=0, case_number=CASE_A):
    """Procedural events numbered in reverse, as the portal sends them."""
    return [
        ProceduralEvent.model_validate(
            {
                "consActuacion": 1000 - (start + i),
                "fechaActuacion": "2023-05-10T00:00:00",
                "actuacion": f"{case_number} event {start + i}",
                "anotacion": None,
                "conDocumentos": (start + i) % 2 == 0,
                "idActuacion": 5000 + start + i,
                "idRegActuacion": 9000 + start + i,
            }
        )
        for i in range(count)
    ]


def full_history(total):
    """History callable answering with the complete list on every call."""

    def respond(case_number, page):
        return HistoryResponse(events=make_events(total, case_number=case_number))

    return respond


def server_paged_history(total, page_size=30):
    """History callable answering one server page per call."""
    total_pages = -(-total // page_size)

    def respond(case_number, page):
        start = (page - 1) * page_size
        count = max(0, min(page_size, total - start))
        return HistoryResponse(
            events=make_events(count, start=start, case_number=case_number),
            server_paging=PageWindow(
                page=page,
                total_items=total,
                total_pages=total_pages,
                has_prev=page > 1,
                has_next=page < total_pages,
            ),
        )

    return respond


RAW_CASE = {
    "idProceso": 123456,
    "idConexion": 263,
    "llaveProceso": CASE_A,
    "fechaProceso": "2023-01-15T00:00:00",
    "fechaUltimaActuacion": "2024-02-01T10:31:00",
    "despacho": "JUZGADO 001 CIVIL DEL CIRCUITO DE BOGOTÁ",
    "departamento": "BOGOTÁ",
    "sujetosProcesales": "Demandante: JUAN PEREZ | Demandado: MARIA LOPEZ | Apoderado: LUIS GOMEZ",
    "cantFilas": 12,
    "esPrivado": False,
}


def routed_transport(routes):
    """MockTransport answering each endpoint by path suffix; unknown paths get 404."""

    def handler(request):
        for suffix, payload in routes.items():
            if request.url.path.endswith(suffix):
                return httpx.Response(200, json=payload)
        return httpx.Response(404)

    return httpx.MockTransport(handler)


class FakePortalClient:
    """In-memory stand-in for AsyncPortalClient that records every call."""

    def __init__(
        self,
        primary=None,
        history=None,
        subjects=None,
        attachments=None,
        errors=None,
        delay=0.0,
        primary_delays=None,
    ):
        self.primary = primary
        self.history = history if history is not None else HistoryResponse()
        self.subjects = subjects or []
        self.attachments = attachments or []
        self.errors = errors or {}
        self.delay = delay
        self.primary_delays = primary_delays or {}
        self.calls = []
        self.closed = False

    def count(self, name):
        return sum(1 for call in self.calls if call[0] == name)

    def _maybe_raise(self, name):
        if name in self.errors:
            raise self.errors[name]

    async def fetch_primary(self, case_number, active_only=False):
        self.calls.append(("primary", case_number, active_only))
        await asyncio.sleep(self.primary_delays.get(case_number, 0))
        self._maybe_raise("primary")
        if callable(self.primary):
            return self.primary(case_number)
        return self.primary

    async def fetch_history(self, case_number, page=1):
        self.calls.append(("history", case_number, page))
        await asyncio.sleep(self.delay)
        self._maybe_raise("history")
        if callable(self.history):
            return self.history(case_number, page)
        return self.history

    async def fetch_subjects(self, case_number):
        self.calls.append(("subjects", case_number))
        self._maybe_raise("subjects")
        return list(self.subjects)

    async def fetch_attachments_for_event(self, case_number, event_key):
        self.calls.append(("attachments", case_number, event_key))
        self._maybe_raise("attachments")
        return list(self.attachments)

    async def download_attachment(self, attachment_id, suggested_name, dest_dir=None):
        self.calls.append(("download", attachment_id, suggested_name))
        self._maybe_raise("download")
        return Path(dest_dir or ".") / suggested_name

    async def export_case(self, case_number, fmt="docx", active_only=False, dest_dir=None):
        self.calls.append(("export", case_number, fmt))
        return Path(dest_dir or ".") / f"Proceso_{case_number}.{fmt}"

    def portal_url(self, case_number):
        return f"https://portal.test/Procesos/NumeroRadicacion?numeroRadicacion={case_number}"

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.closed = True


@pytest.fixture
def raw_case():
    return RawCaseRecord.model_validate(RAW_CASE)


@pytest.fixture
def test_config(tmp_path):
    return PortalConfig(
        api_url="https://portal.test:448/api/v2",
        base_url="https://portal.test",
        timeout=5.0,
        max_attempts=2,
        retry_backoff=0.0,
        download_dir=tmp_path / "downloads",
    )
