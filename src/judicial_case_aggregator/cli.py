"""Command-line interface for consulting cases on the judicial portal."""

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from judicial_case_aggregator.api.portal.client import AsyncPortalClient
from judicial_case_aggregator.case_aggregation.session import CaseSession
from judicial_case_aggregator.config import load_config
from judicial_case_aggregator.extractors.party_extractor import extract_labeled_segments
from judicial_case_aggregator.shared.constants import EXPORT_FORMATS
from judicial_case_aggregator.shared.errors import TransportFailure, ValidationFailure
from judicial_case_aggregator.shared.logging_utils import setup_logging
from judicial_case_aggregator.types.ids.case_number import require_valid
from judicial_case_aggregator.types.schemas.models import NormalizedCase, ProceduralEvent

app = typer.Typer(no_args_is_help=True, help="Judicial portal case consultation CLI")
console = Console()


def _run(coro_factory):
    """Run ``coro_factory(client)`` with a configured client, mapping errors to exit codes."""
    config = load_config()
    setup_logging(level=config.log_level, log_file=config.log_file)

    async def runner():
        async with AsyncPortalClient(config) as client:
            return await coro_factory(client)

    try:
        return asyncio.run(runner())
    except ValidationFailure as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(2)
    except TransportFailure as e:
        logger.error(f"Portal request failed: {e}")
        console.print("[red]The judicial portal could not be reached. Try again later.[/red]")
        raise typer.Exit(1)


def _print_case(case: NormalizedCase) -> None:
    table = Table(title=f"Case {case.case_number}", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for label, value in [
        ("Court", case.court),
        ("Department", case.department or ""),
        ("Process type", case.process_type),
        ("Filed", case.filing_date or ""),
        ("Last activity", case.last_activity_date or ""),
        ("Plaintiff", case.plaintiff),
        ("Defendant", case.defendant),
        ("Folios", str(case.folio_count)),
        ("Private", "yes" if case.is_private else "no"),
        ("Status", case.status),
        ("Portal", case.portal_url or ""),
    ]:
        table.add_row(label, value)
    for label, value in extract_labeled_segments(case.parties_text).items():
        if label not in ("demandante", "demandado"):
            table.add_row(label.capitalize(), value)
    console.print(table)

    if case.subjects:
        subjects = Table(title="Parties")
        for column in ("Name", "Role", "Identification", "Counsel"):
            subjects.add_column(column)
        for s in case.subjects:
            subjects.add_row(s.name, s.role or "", s.identification or "", s.counsel or "")
        console.print(subjects)


def _print_events(events, title: str) -> None:
    table = Table(title=title)
    for column in ("#", "Date", "Event", "Annotation", "Files", "Key"):
        table.add_column(column)
    for e in events:
        table.add_row(
            str(e.sequence or ""),
            (e.event_date or "").split("T")[0],
            e.label,
            e.annotation or "",
            "yes" if e.has_attachments else "",
            str(e.attachment_key or ""),
        )
    console.print(table)


@app.command()
def consult(
    case_number: str = typer.Argument(..., help="23-digit case number"),
    active_only: bool = typer.Option(False, "--active-only", help="Only active cases"),
    as_json: bool = typer.Option(False, "--json", help="Print the record as JSON"),
):
    """Consult a case and show its consolidated record."""

    async def go(client):
        session = CaseSession(client)
        result = await session.consult(case_number, active_only)
        if not isinstance(result, NormalizedCase):
            return result, None
        return result, await session.get_page(case_number, 1)

    case, first_page = _run(go)
    if not isinstance(case, NormalizedCase):
        console.print(f"[yellow]No record for case number {case_number}[/yellow]")
        raise typer.Exit(1)
    if as_json:
        typer.echo(json.dumps(case.model_dump(mode="json"), indent=2, ensure_ascii=False))
        return
    _print_case(case)
    w = first_page.window
    _print_events(first_page.events, f"History (page {w.page} of {max(w.total_pages, 1)}, {w.total_items} events)")


@app.command()
def history(
    case_number: str = typer.Argument(..., help="23-digit case number"),
    page: int = typer.Option(1, "--page", "-p", min=1, help="Page number (30 events per page)"),
):
    """Show one page of a case's procedural history."""

    async def go(client):
        return await CaseSession(client).get_page(case_number, page)

    result = _run(go)
    w = result.window
    _print_events(result.events, f"History (page {w.page} of {max(w.total_pages, 1)}, {w.total_items} events)")


@app.command()
def attachments(
    case_number: str = typer.Argument(..., help="23-digit case number"),
    event_key: int = typer.Argument(..., help="Event attachment key (idRegActuacion)"),
):
    """List the files linked to one procedural event."""

    async def go(client):
        session = CaseSession(client)
        session.select(case_number)
        event = ProceduralEvent(has_attachments=True, attachment_group_id=event_key)
        return await session.list_attachments(event)

    files = _run(go)
    if not files:
        console.print("[yellow]No attachments available for this event[/yellow]")
        return
    table = Table(title=f"Attachments of event {event_key}")
    for column in ("Id", "Name", "Description", "Date"):
        table.add_column(column)
    for a in files:
        table.add_row(str(a.attachment_id), a.display_name, a.description or "", a.document_date or "")
    console.print(table)


@app.command()
def download(
    attachment_id: int = typer.Argument(..., help="Attachment id (idRegDocumento)"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="File name to save as"),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", "-o", help="Directory to save to"),
):
    """Download one attachment."""

    async def go(client):
        return await client.download_attachment(
            attachment_id, name or f"Documento_{attachment_id}.pdf", output_dir
        )

    path = _run(go)
    console.print(f"[green]Saved {path}[/green]")


@app.command()
def export(
    case_number: str = typer.Argument(..., help="23-digit case number"),
    fmt: str = typer.Option("docx", "--format", "-f", help="docx or csv"),
    active_only: bool = typer.Option(False, "--active-only", help="Only active cases"),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", "-o", help="Directory to save to"),
):
    """Download the portal's DOCX or CSV export of a case."""
    if fmt.lower() not in EXPORT_FORMATS:
        logger.error(f"Invalid format: {fmt}. Must be one of {', '.join(EXPORT_FORMATS)}")
        raise typer.Exit(2)

    async def go(client):
        return await client.export_case(require_valid(case_number), fmt, active_only, output_dir)

    path = _run(go)
    console.print(f"[green]Saved {path}[/green]")


if __name__ == "__main__":
    app()
