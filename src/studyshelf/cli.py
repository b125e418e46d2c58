"""CLI entry point for the StudyShelf tools.

Provides commands:
  - browse: Folder tree of approved materials (course / branch / semester)
  - filter: Flat table of materials matching the filters (approved by default)
  - courses: List the course catalog and its branches
  - import: Load a JSON export of the materials table into SQLite
  - add: Validate a new upload and store it for review
  - review: Approve or reject a pending upload
  - status: Display material counts by review status
  - tui: Launch the interactive browser
"""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from studyshelf.browse import (
    BrowseSession,
    ExpansionState,
    FilterCriteria,
    FolderNode,
    group_materials,
)
from studyshelf.config import ShelfConfig, load_config
from studyshelf.constants import ALL, COURSE_BRANCHES
from studyshelf.database import Database
from studyshelf.models import Material, MaterialStatus, MaterialType
from studyshelf.schemas import MaterialDecodeError, MaterialDraft
from studyshelf.services import CatalogError, LibraryService

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="StudyShelf - Browse past-year questions and notes by course, branch, and semester",
    rich_markup_mode="rich",
    no_args_is_help=True,
)
console = Console()

_TYPE_CHOICES = (ALL, MaterialType.PYQ.value, MaterialType.NOTES.value)


@app.callback()
def app_callback(
    ctx: typer.Context,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to config JSON"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log debug output to stderr"),
    ] = False,
) -> None:
    """Load settings shared by every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        ctx.obj = load_config(config_path)
    except (OSError, ValueError) as e:
        console.print(f"[red]Error:[/red] Failed to load config: {e}")
        raise typer.Exit(code=1)


def _config(ctx: typer.Context) -> ShelfConfig:
    return ctx.obj if isinstance(ctx.obj, ShelfConfig) else load_config()


def _resolve_db(ctx: typer.Context, db_path: Path | None) -> Path:
    """Command-line --db wins over the configured path."""
    return db_path if db_path is not None else _config(ctx).db_path


def _require_db(db_path: Path) -> None:
    if not db_path.exists():
        console.print(
            f"[yellow]Database not found:[/yellow] {db_path}\n"
            "Run [bold]studyshelf import materials.json[/bold] first."
        )
        raise typer.Exit(code=1)


def _load_materials(
    db_path: Path, status: MaterialStatus = MaterialStatus.APPROVED
) -> list[Material]:
    _require_db(db_path)
    try:
        return asyncio.run(LibraryService(str(db_path)).fetch_materials(status))
    except CatalogError as e:
        console.print(f"[red]Error loading materials:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)


def _criteria(
    query: str,
    material_type: str,
    course: str,
    branch: str,
    semester: str,
) -> FilterCriteria:
    material_type = material_type.lower()
    if material_type not in _TYPE_CHOICES:
        console.print(
            f"[red]Error:[/red] Unknown type '{material_type}'. "
            f"Choose one of: {', '.join(_TYPE_CHOICES)}"
        )
        raise typer.Exit(code=1)
    if branch != ALL and course == ALL:
        console.print("[red]Error:[/red] --branch needs --course")
        raise typer.Exit(code=1)
    return FilterCriteria(
        query=query,
        material_type=material_type,
        course=course,
        branch=branch,
        semester=semester,
    )


def _type_badge(material: Material) -> str:
    color = "cyan" if material.material_type is MaterialType.PYQ else "green"
    return f"[{color}]{material.material_type.label}[/{color}]"


def _folder_text(node: FolderNode) -> str:
    marker = "▾" if node.expanded else "▸"
    style = "bold" if node.level == 1 else ""
    label = f"[{style}]{escape(node.label)}[/{style}]" if style else escape(node.label)
    return f"{marker} {label} [dim]{node.caption}[/dim]"


def _render_tree(folders: list[FolderNode]) -> Tree:
    root = Tree("[bold]Study Materials[/bold]")
    for folder in folders:
        top = root.add(_folder_text(folder))
        for semester in folder.children:
            sem = top.add(_folder_text(semester))
            for m in semester.materials:
                color = "cyan" if m.material_type is MaterialType.PYQ else "green"
                leaf = Text(m.title)
                leaf.append(f"  {m.material_type.label}", style=color)
                leaf.append(f"  {m.subject}", style="dim")
                sem.add(leaf)
    return root


@app.command()
def browse(
    ctx: typer.Context,
    query: Annotated[
        str,
        typer.Option("--query", "-q", help="Match title, subject, or description"),
    ] = "",
    material_type: Annotated[
        str,
        typer.Option("--type", "-t", help="pyq, notes, or all"),
    ] = ALL,
    course: Annotated[
        str,
        typer.Option("--course", help="Exact course, e.g. B.Tech"),
    ] = ALL,
    branch: Annotated[
        str,
        typer.Option("--branch", help="Exact branch within the course"),
    ] = ALL,
    semester: Annotated[
        str,
        typer.Option("--semester", "-s", help="Exact semester number"),
    ] = ALL,
    expand: Annotated[
        list[str] | None,
        typer.Option(
            "--expand",
            "-e",
            help='Folder key to open, e.g. "B.Tech/CSE" or "B.Tech/CSE/Sem 3" (repeatable)',
        ),
    ] = None,
    expand_all: Annotated[
        bool,
        typer.Option("--all", "-a", help="Open every folder"),
    ] = False,
    db_path: Annotated[
        Path | None,
        typer.Option("--db", "-d", help="Path to SQLite database"),
    ] = None,
) -> None:
    """Show approved materials as a course / branch / semester folder tree.

    Folders start collapsed. Open them by key:
      studyshelf browse --course B.Tech
      studyshelf browse -e "B.Tech/CSE" -e "B.Tech/CSE/Sem 3"
      studyshelf browse --query dbms --all
    """
    criteria = _criteria(query, material_type, course, branch, semester)
    session = BrowseSession(
        _load_materials(_resolve_db(ctx, db_path)),
        criteria=criteria,
        expansion=ExpansionState(expand or ()),
    )

    if expand_all:
        keys: set[str] = set()
        for path in group_materials(session.visible()):
            keys.update((path.group_key, path.key))
        session.expansion = ExpansionState(keys)

    folders = session.render()
    if not folders:
        console.print("[yellow]No materials found.[/yellow]")
        if not criteria.is_empty():
            console.print(f"[dim]Filters: {escape(criteria.describe())}[/dim]")
        return

    console.print(_render_tree(folders))
    total = sum(f.count for f in folders)
    console.print(
        f"\n[dim]{total} material(s) in {len(folders)} folder(s). "
        f"Filters: {escape(criteria.describe())}[/dim]"
    )
    if not any(f.expanded for f in folders):
        console.print('[dim]Open a folder: studyshelf browse -e "<course>/<branch>"[/dim]')


@app.command(name="filter")
def filter_cmd(
    ctx: typer.Context,
    query: Annotated[
        str,
        typer.Option("--query", "-q", help="Match title, subject, or description"),
    ] = "",
    material_type: Annotated[
        str,
        typer.Option("--type", "-t", help="pyq, notes, or all"),
    ] = ALL,
    course: Annotated[
        str,
        typer.Option("--course", help="Exact course, e.g. B.Tech"),
    ] = ALL,
    branch: Annotated[
        str,
        typer.Option("--branch", help="Exact branch within the course"),
    ] = ALL,
    semester: Annotated[
        str,
        typer.Option("--semester", "-s", help="Exact semester number"),
    ] = ALL,
    status: Annotated[
        MaterialStatus,
        typer.Option("--status", help="Review status to list, e.g. pending for the review queue"),
    ] = MaterialStatus.APPROVED,
    limit: Annotated[
        int,
        typer.Option("--limit", "-l", help="Max results (0 = no limit)"),
    ] = 50,
    db_path: Annotated[
        Path | None,
        typer.Option("--db", "-d", help="Path to SQLite database"),
    ] = None,
) -> None:
    """List materials matching the filters, newest first.

    Only approved materials are listed unless --status picks another
    review state. The ID column is what ``review`` takes.

    Examples:
      studyshelf filter --type pyq --course B.Tech --branch CSE
      studyshelf filter -q "data structures" -s 3
      studyshelf filter --status pending
    """
    criteria = _criteria(query, material_type, course, branch, semester)
    session = BrowseSession(_load_materials(_resolve_db(ctx, db_path), status), criteria=criteria)
    results = session.visible()

    if not results:
        console.print("[yellow]No materials match the given filters.[/yellow]")
        return

    shown = results[:limit] if limit > 0 else results
    table = Table(title=f"Filter: {escape(criteria.describe())}", show_header=True)
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Title", style="cyan", no_wrap=True)
    table.add_column("Type")
    table.add_column("Subject", style="bold")
    table.add_column("Course")
    table.add_column("Branch")
    table.add_column("Sem", justify="right")
    table.add_column("Year", justify="right", style="green")

    for m in shown:
        table.add_row(
            escape(m.id),
            escape(m.title),
            _type_badge(m),
            escape(m.subject),
            escape(m.course or ""),
            escape(m.branch or ""),
            m.semester or "",
            m.year or "",
        )

    console.print(table)
    console.print(f"\n[dim]Found {len(results)} material(s) matching filters.[/dim]")
    if len(shown) < len(results):
        console.print(f"[dim]Showing first {len(shown)}; use --limit 0 for all.[/dim]")


@app.command()
def courses() -> None:
    """List the courses and the branches offered for each."""
    table = Table(title="Courses", show_header=True)
    table.add_column("Course", style="bold cyan")
    table.add_column("Branches")
    for course, branches in COURSE_BRANCHES.items():
        table.add_row(course, ", ".join(branches))
    console.print(table)


@app.command(name="import")
def import_cmd(
    ctx: typer.Context,
    source: Annotated[
        Path,
        typer.Argument(
            help="JSON file: a list of material rows, or an object with a 'materials' list",
            exists=True,
            dir_okay=False,
        ),
    ],
    db_path: Annotated[
        Path | None,
        typer.Option("--db", "-d", help="Path to SQLite database"),
    ] = None,
) -> None:
    """Import rows exported from the materials table into the local snapshot.

    Rows are upserted by id. A single malformed row aborts the import
    before anything is written.
    """
    try:
        with open(source, encoding="utf-8") as f:
            payload = json.load(f)
    except json.JSONDecodeError as e:
        console.print(f"[red]Error:[/red] {source} is not valid JSON: {e}")
        raise typer.Exit(code=1)

    rows = payload.get("materials") if isinstance(payload, dict) else payload
    if not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows):
        console.print("[red]Error:[/red] Expected a list of material objects")
        raise typer.Exit(code=1)

    db = _resolve_db(ctx, db_path)
    try:
        count = asyncio.run(LibraryService(str(db)).import_rows(rows))
    except MaterialDecodeError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)
    except CatalogError as e:
        console.print(f"[red]Import failed:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)

    console.print(f"[green]✓[/green] Imported {count} material(s) into {db}")


@app.command()
def add(
    ctx: typer.Context,
    file_name: Annotated[
        str,
        typer.Argument(help="Name of the uploaded file, e.g. dbms-2023.pdf"),
    ],
    subject: Annotated[
        str,
        typer.Option("--subject", help="Subject name (2-100 characters)"),
    ],
    material_type: Annotated[
        MaterialType,
        typer.Option("--type", "-t", help="pyq or notes"),
    ] = MaterialType.PYQ,
    title: Annotated[
        str | None,
        typer.Option("--title", help="Defaults to the file name without extension"),
    ] = None,
    description: Annotated[
        str | None,
        typer.Option("--description", help="Free-text description"),
    ] = None,
    year: Annotated[
        str | None,
        typer.Option("--year", "-y", help="Exam or academic year"),
    ] = None,
    semester: Annotated[
        str | None,
        typer.Option("--semester", "-s", help="Semester 1-8"),
    ] = None,
    course: Annotated[
        str | None,
        typer.Option("--course", help="One of the catalog courses"),
    ] = None,
    branch: Annotated[
        str | None,
        typer.Option("--branch", help="Branch offered for the course"),
    ] = None,
    uploaded_by: Annotated[
        str,
        typer.Option("--by", help="Uploader name or email"),
    ] = "Unknown",
    db_path: Annotated[
        Path | None,
        typer.Option("--db", "-d", help="Path to SQLite database"),
    ] = None,
) -> None:
    """Validate a new upload and store it as pending review."""
    try:
        draft = MaterialDraft(
            subject=subject,
            material_type=material_type,
            file_name=file_name,
            title=title,
            description=description,
            year=year,
            semester=semester,
            course=course,
            branch=branch,
        )
    except ValidationError as e:
        for err in e.errors():
            where = ".".join(str(part) for part in err["loc"]) or "upload"
            console.print(f"[red]Error:[/red] {where}: {escape(err['msg'])}")
        raise typer.Exit(code=1)

    material_id = str(uuid.uuid4())
    material = draft.to_material(
        material_id,
        file_path=f"uploads/{material_id}/{draft.file_name}",
        uploaded_by=uploaded_by,
    )
    with Database(_resolve_db(ctx, db_path)) as db:
        db.upsert_material(material)

    logger.info("material submitted id=%s subject=%s", material_id, draft.subject)
    console.print(
        f"[green]✓[/green] Submitted [bold]{escape(material.title)}[/bold] "
        f"for review (id: {material_id})"
    )


@app.command()
def review(
    ctx: typer.Context,
    material_id: Annotated[
        str,
        typer.Argument(help="Id of the material to review"),
    ],
    approve: Annotated[
        bool,
        typer.Option("--approve", help="Publish the material"),
    ] = False,
    reject: Annotated[
        bool,
        typer.Option("--reject", help="Hide the material"),
    ] = False,
    db_path: Annotated[
        Path | None,
        typer.Option("--db", "-d", help="Path to SQLite database"),
    ] = None,
) -> None:
    """Approve or reject an uploaded material. Only approved ones are browsable."""
    if approve == reject:
        console.print("[red]Error:[/red] Pass exactly one of --approve or --reject")
        raise typer.Exit(code=1)

    db = _resolve_db(ctx, db_path)
    _require_db(db)
    status = MaterialStatus.APPROVED if approve else MaterialStatus.REJECTED
    with Database(db) as conn:
        updated = conn.set_status(material_id, status)

    if not updated:
        console.print(f"[red]Error:[/red] No material with id '{escape(material_id)}'")
        raise typer.Exit(code=1)
    console.print(f"[green]✓[/green] {material_id} is now {status.value}")


@app.command()
def status(
    ctx: typer.Context,
    db_path: Annotated[
        Path | None,
        typer.Option("--db", "-d", help="Path to SQLite database"),
    ] = None,
) -> None:
    """Display material counts by review status."""
    db = _resolve_db(ctx, db_path)
    _require_db(db)

    with Database(db) as conn:
        total = conn.get_material_count()
        status_counts = conn.get_status_counts()

    console.print(Panel(f"Database: [bold]{db}[/bold]", title="StudyShelf Status"))

    table = Table(title="Materials by Status")
    table.add_column("Status", style="bold")
    table.add_column("Count", justify="right")
    for s in MaterialStatus:
        count = status_counts.get(s.value, 0)
        style = {"pending": "yellow", "approved": "green", "rejected": "red"}[s.value]
        table.add_row(s.value, f"[{style}]{count}[/{style}]")
    console.print(table)

    console.print(f"\n[bold]Total materials:[/bold] {total}")


@app.command()
def tui(
    ctx: typer.Context,
    db_path: Annotated[
        Path | None,
        typer.Option("--db", "-d", help="Path to SQLite database"),
    ] = None,
) -> None:
    """Launch the interactive TUI for browsing materials."""
    from studyshelf.tui import run_tui

    config = _config(ctx)
    if db_path is not None:
        config.db_path = db_path
    run_tui(config)


if __name__ == "__main__":
    app()
