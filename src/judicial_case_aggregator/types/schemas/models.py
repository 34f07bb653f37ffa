"""
Pydantic models for the judicial portal data contracts.

Raw payloads from the portal use Spanish camelCase keys and, for the older
endpoints, ``ls``/``ln``-prefixed keys. Every model accepts those keys through
validation aliases and also its own Python field names, so fixtures and the
wire format parse the same way.
"""

from __future__ import annotations

import math
from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from judicial_case_aggregator.shared.constants import (
    CASE_STATUS_ACTIVE,
    NOT_AVAILABLE,
    PAGE_SIZE,
    PROVENANCE_LOCAL,
    PROVENANCE_PORTAL,
)


# --------------------------------------------------------------------------- #
# Base Types                                                                  #
# --------------------------------------------------------------------------- #


class PortalRecord(BaseModel):
    """Base class for payloads received from the portal.

    Unknown keys are kept; the portal adds fields without notice.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)


class StrictBase(BaseModel):
    """Base class for models this package produces."""

    model_config = ConfigDict(extra="forbid", frozen=True)


def _alias(*names: str) -> AliasChoices:
    return AliasChoices(*names)


def date_only(value: Optional[str]) -> Optional[str]:
    """Drop the time-of-day part of an ISO timestamp (``2023-01-15T00:00:00`` -> ``2023-01-15``)."""
    if not value:
        return None
    return value.split("T")[0].strip() or None


# --------------------------------------------------------------------------- #
# Raw Portal Types                                                            #
# --------------------------------------------------------------------------- #


class RawCaseRecord(PortalRecord):
    """One entry of ``procesos`` from the primary lookup."""

    process_id: Optional[int] = Field(None, validation_alias=_alias("idProceso", "process_id"))
    connection_id: Optional[int] = Field(None, validation_alias=_alias("idConexion", "connection_id"))
    case_key: Optional[str] = Field(None, validation_alias=_alias("llaveProceso", "case_key"))
    filed_at: Optional[str] = Field(None, validation_alias=_alias("fechaProceso", "filed_at"))
    last_activity_at: Optional[str] = Field(
        None, validation_alias=_alias("fechaUltimaActuacion", "last_activity_at")
    )
    court: Optional[str] = Field(None, validation_alias=_alias("despacho", "court"))
    department: Optional[str] = Field(None, validation_alias=_alias("departamento", "department"))
    process_type: Optional[str] = Field(None, validation_alias=_alias("tipoProceso", "process_type"))
    parties_text: Optional[str] = Field(
        None, validation_alias=_alias("sujetosProcesales", "parties_text")
    )
    folio_count: int = Field(0, validation_alias=_alias("cantFilas", "folio_count"))
    is_private: bool = Field(False, validation_alias=_alias("esPrivado", "is_private"))

    @field_validator("folio_count", mode="before")
    @classmethod
    def _none_folios(cls, v: Any) -> Any:
        return 0 if v is None else v

    @field_validator("is_private", mode="before")
    @classmethod
    def _none_private(cls, v: Any) -> Any:
        return False if v is None else v


class ProceduralEvent(PortalRecord):
    """One row of a case's procedural history (an *actuación*)."""

    sequence: Optional[int] = Field(None, validation_alias=_alias("consActuacion", "sequence"))
    event_date: Optional[str] = Field(None, validation_alias=_alias("fechaActuacion", "event_date"))
    label: str = Field("", validation_alias=_alias("actuacion", "label"))
    annotation: Optional[str] = Field(None, validation_alias=_alias("anotacion", "annotation"))
    term_start: Optional[str] = Field(
        None, validation_alias=_alias("fechaInicial", "fechaInicioTermino", "term_start")
    )
    term_end: Optional[str] = Field(
        None, validation_alias=_alias("fechaFinal", "fechaFinalizaTermino", "term_end")
    )
    registered_at: Optional[str] = Field(
        None, validation_alias=_alias("fechaRegistro", "registered_at")
    )
    has_attachments: bool = Field(
        False, validation_alias=_alias("conDocumentos", "has_attachments")
    )
    event_id: Optional[int] = Field(None, validation_alias=_alias("idActuacion", "event_id"))
    attachment_group_id: Optional[int] = Field(
        None, validation_alias=_alias("idRegActuacion", "attachment_group_id")
    )

    @field_validator("label", mode="before")
    @classmethod
    def _none_label(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("has_attachments", mode="before")
    @classmethod
    def _none_attachments(cls, v: Any) -> Any:
        return False if v is None else v

    @property
    def attachment_key(self) -> Optional[int]:
        """Identifier used to list this event's files.

        Some portal rows omit ``idRegActuacion``; the event id is used then.
        """
        if self.attachment_group_id:
            return self.attachment_group_id
        return self.event_id


class PartySubject(PortalRecord):
    """One row of the party list (*sujeto procesal*)."""

    name: str = Field(
        NOT_AVAILABLE, validation_alias=_alias("nombreRazonSocial", "lsNombreSujeto", "name")
    )
    role: Optional[str] = Field(None, validation_alias=_alias("tipoSujeto", "lsTipoSujeto", "role"))
    identification: Optional[str] = Field(
        None, validation_alias=_alias("identificacion", "lsIdentificacion", "identification")
    )
    identification_type: Optional[str] = Field(
        None, validation_alias=_alias("tipoIdentificacion", "lsTipoIdentificacion", "identification_type")
    )
    counsel: Optional[str] = Field(None, validation_alias=_alias("apoderado", "lsApoderado", "counsel"))
    is_summoned: Optional[bool] = Field(None, validation_alias=_alias("esEmplazado", "is_summoned"))

    @field_validator("name", mode="before")
    @classmethod
    def _blank_name(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return NOT_AVAILABLE
        return v.strip() if isinstance(v, str) else v

    @field_validator("identification", mode="before")
    @classmethod
    def _stringify_identification(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v


class Attachment(PortalRecord):
    """One file linked to a procedural event."""

    attachment_id: int = Field(..., validation_alias=_alias("idRegDocumento", "lnIdDocumento", "attachment_id"))
    name: Optional[str] = Field(None, validation_alias=_alias("nombre", "lsNombreArchivo", "name"))
    description: Optional[str] = Field(
        None, validation_alias=_alias("descripcion", "lsTipoDocumento", "description")
    )
    document_date: Optional[str] = Field(
        None, validation_alias=_alias("fechaDocumento", "ldFechaDocumento", "document_date")
    )
    extension: Optional[str] = Field(
        None, validation_alias=_alias("extension", "lsExtensionArchivo")
    )
    size_bytes: Optional[int] = Field(
        None, validation_alias=_alias("tamano", "lnTamanoArchivo", "size_bytes")
    )

    @property
    def display_name(self) -> str:
        if self.name and self.name.strip():
            return self.name.strip()
        return f"Documento_{self.attachment_id}.pdf"


# --------------------------------------------------------------------------- #
# Pagination Types                                                            #
# --------------------------------------------------------------------------- #


class PageWindow(StrictBase):
    """Pagination metadata describing one slice of a list."""

    page: int = Field(1, ge=1)
    page_size: int = PAGE_SIZE
    total_items: int = Field(0, ge=0)
    total_pages: int = Field(0, ge=0)
    has_prev: bool = False
    has_next: bool = False

    @classmethod
    def from_total(cls, page: int, total_items: int, page_size: int = PAGE_SIZE) -> "PageWindow":
        """Compute a window locally from the size of a fully cached list."""
        total_pages = math.ceil(total_items / page_size) if total_items else 0
        return cls(
            page=page,
            page_size=page_size,
            total_items=total_items,
            total_pages=total_pages,
            has_prev=page > 1,
            has_next=page < total_pages,
        )

    @classmethod
    def from_portal(cls, data: Dict[str, Any], requested_page: int = 1) -> "PageWindow":
        """Build a window from the portal's ``paginacion`` descriptor."""
        page = int(data.get("paginaActual") or requested_page)
        total_pages = int(data.get("cantPaginas") or 0)
        has_prev = data.get("anteriorPagina")
        has_next = data.get("siguientePagina")
        # Leave total_items unset when the portal omits it; is_complete checks for that.
        extra = {}
        if data.get("cantRegistros") is not None:
            extra["total_items"] = int(data["cantRegistros"])
        return cls(
            page=max(page, 1),
            total_pages=total_pages,
            **extra,
            has_prev=bool(has_prev) if has_prev is not None else page > 1,
            has_next=bool(has_next) if has_next is not None else page < total_pages,
        )


class HistoryResponse(StrictBase):
    """What one call to the history endpoint returned, untruncated."""

    events: List[ProceduralEvent] = Field(default_factory=list)
    server_paging: Optional[PageWindow] = None

    @property
    def is_complete(self) -> bool:
        """True when the response carries the whole history.

        The portal does not document this; it is inferred from the response
        shape: no pagination descriptor, a single page, or a descriptor whose
        reported total does not exceed what was returned. A multi-page
        descriptor without a total is treated as server-paged.
        """
        paging = self.server_paging
        if paging is None:
            return True
        if paging.total_pages <= 1:
            return True
        if "total_items" not in paging.model_fields_set:
            return False
        return paging.total_items <= len(self.events)


class HistoryPage(StrictBase):
    """One page of procedural history as served to consumers."""

    events: List[ProceduralEvent] = Field(default_factory=list)
    window: PageWindow


# --------------------------------------------------------------------------- #
# Output Types                                                                #
# --------------------------------------------------------------------------- #


class NormalizedCase(StrictBase):
    """The consolidated case record produced by the aggregator."""

    case_number: str
    process_id: Optional[int] = None
    filing_date: Optional[str] = None
    last_activity_date: Optional[str] = None
    court: str = NOT_AVAILABLE
    department: Optional[str] = None
    process_type: str = NOT_AVAILABLE
    plaintiff: str = NOT_AVAILABLE
    defendant: str = NOT_AVAILABLE
    parties_text: Optional[str] = None
    folio_count: int = 0
    is_private: bool = False
    status: str = CASE_STATUS_ACTIVE
    provenance: Literal[PROVENANCE_PORTAL, PROVENANCE_LOCAL] = PROVENANCE_PORTAL
    portal_url: Optional[str] = None
    subjects: List[PartySubject] = Field(default_factory=list)
    history: HistoryResponse = Field(default_factory=HistoryResponse)
