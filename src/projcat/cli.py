"""Command-line interface for projcat."""

import asyncio
import json
import logging
import sys
from contextlib import contextmanager
from dataclasses import replace
from pathlib import Path
from typing import Iterator, List, Optional

import typer
from rich import print
from rich.console import Console
from rich.table import Table

from . import __version__
from .catalog import ProjectCatalog
from .config import ConfigManager
from .models import CatalogError, Project, ProjectType, ScanResult

app = typer.Typer(
    name="projcat",
    help="Find the projects on your disk and jump back to the ones you use most.",
    rich_markup_mode="rich",
)
console = Console()

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def version_callback(value: bool):
    """Show version and exit."""
    if value:
        print(f"[cyan]projcat[/cyan] version [green]{__version__}[/green]")
        raise typer.Exit()


def _setup_logging(verbose: int, log_file: Optional[Path]):
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose >= 2:
        level = logging.DEBUG

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers)


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        None,
        "--version",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Log more (-v for info, -vv for debug).",
    ),
    db: Optional[Path] = typer.Option(
        None,
        "--db",
        help="Catalog database to use instead of the configured one.",
    ),
    log_file: bool = typer.Option(
        False,
        "--log-file",
        help="Also write logs to the projcat state directory.",
    ),
):
    """
    Projcat - project discovery and frecency ranking.

    Scan directories for project roots, then query them by name, best first.
    """
    config_manager = ConfigManager()
    _setup_logging(verbose, config_manager.log_file if log_file else None)
    ctx.obj = {"config_manager": config_manager, "db": db}


@contextmanager
def _open_catalog(ctx: typer.Context) -> Iterator[ProjectCatalog]:
    """Open the catalog, turning projcat errors into a red message and exit code 1."""
    state = ctx.obj or {}
    catalog = None
    try:
        catalog = ProjectCatalog.open(
            db_path=state.get("db"),
            config_manager=state.get("config_manager"),
        )
        yield catalog
    except CatalogError as e:
        logger.debug("Command failed", exc_info=True)
        print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    finally:
        if catalog is not None:
            catalog.close()


def _project_table(projects: List[Project], title: str) -> Table:
    table = Table(title=title)
    table.add_column("Path", style="cyan", overflow="fold")
    table.add_column("Type", style="green")
    table.add_column("Indicators")

    for project in projects:
        table.add_row(
            str(project.path),
            project.project_type.label,
            ", ".join(str(indicator) for indicator in project.indicators),
        )
    return table


def _parse_type(value: Optional[str]) -> Optional[ProjectType]:
    if value is None:
        return None
    try:
        return ProjectType.parse(value)
    except ValueError:
        names = ", ".join(member.label for member in ProjectType)
        print(f"[red]Error:[/red] Unknown project type '{value}' (expected one of: {names})")
        raise typer.Exit(1)


@app.command(name="scan", help="Scan directories for projects")
def scan(
    ctx: typer.Context,
    paths: Optional[List[Path]] = typer.Argument(
        None,
        help="Directories to scan (defaults to current directory)",
    ),
    max_depth: Optional[int] = typer.Option(
        None,
        "--max-depth",
        help="Deepest directory level to descend to.",
    ),
    no_save: bool = typer.Option(
        False,
        "--no-save",
        help="Report what was found without updating the catalog.",
    ),
    incremental: bool = typer.Option(
        False,
        "--incremental",
        help="Skip roots that were scanned recently.",
    ),
    max_age: Optional[float] = typer.Option(
        None,
        "--max-age",
        help="With --incremental, hours a scan stays fresh (defaults to the freshness_hours setting).",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON."),
):
    """Scan one or more directory trees and store the projects found."""
    roots = paths or [Path.cwd()]

    with _open_catalog(ctx) as catalog:
        config = catalog.config
        if max_depth is not None:
            config = replace(config, max_depth=max_depth)

        if incremental:
            if max_age is None:
                max_age = ctx.obj["config_manager"].load_settings().freshness_hours if ctx.obj else 24.0
            results = asyncio.run(catalog.incremental_scan(roots, max_age, config=config))
        else:
            results = asyncio.run(catalog.scan_many(roots, config=config, persist=not no_save))

    if as_json:
        typer.echo(json.dumps([result.to_dict() for result in results], indent=2))
        return

    if not results:
        print("[cyan]Everything was scanned recently, nothing to do[/cyan]")
        return

    for result in results:
        _print_scan_result(result)

    if no_save:
        print("[yellow]Results not saved (--no-save)[/yellow]")


def _print_scan_result(result: ScanResult):
    if result.projects:
        console.print(_project_table(result.projects, f"Projects in {result.root_path}"))
    print(
        f"[green]Found {len(result.projects)} project(s)[/green] in {result.root_path} "
        f"({result.dirs_scanned} dirs, {len(result.excluded_dirs)} excluded, {result.duration_ms}ms)"
    )
    for error in result.errors:
        print(f"[yellow]Warning:[/yellow] {error}")


@app.command(name="list", help="List catalogued projects")
def list_projects(
    ctx: typer.Context,
    project_type: Optional[str] = typer.Option(None, "--type", "-t", help="Only show this project type."),
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Only paths containing this text."),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Show at most this many."),
    as_json: bool = typer.Option(False, "--json", help="Print projects as JSON."),
):
    """List the projects in the catalog."""
    wanted_type = _parse_type(project_type)

    with _open_catalog(ctx) as catalog:
        if search:
            projects = catalog.search(search)
            if wanted_type is not None:
                projects = [p for p in projects if p.project_type is wanted_type]
        else:
            projects = catalog.list_projects(wanted_type)

    if limit is not None:
        projects = projects[:limit]

    if as_json:
        typer.echo(json.dumps([project.to_dict() for project in projects], indent=2))
        return

    if not projects:
        print("[yellow]No projects found[/yellow]")
        return

    console.print(_project_table(projects, "Projects"))
    print(f"[cyan]{len(projects)} project(s)[/cyan]")


@app.command(name="search", help="Search projects by path")
def search_projects(
    ctx: typer.Context,
    pattern: str = typer.Argument(..., help="Text to look for in project paths"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Show at most this many."),
    as_json: bool = typer.Option(False, "--json", help="Print projects as JSON."),
):
    """Search the catalog for paths containing PATTERN, shortest first."""
    with _open_catalog(ctx) as catalog:
        projects = catalog.search(pattern, limit)

    if as_json:
        typer.echo(json.dumps([project.to_dict() for project in projects], indent=2))
        return

    if not projects:
        print(f"[yellow]No projects match '{pattern}'[/yellow]")
        return

    console.print(_project_table(projects, f"Projects matching '{pattern}'"))


@app.command(name="query", help="Print the best matching project paths, one per line")
def query(
    ctx: typer.Context,
    pattern: str = typer.Argument("", help="Text to match (empty for the most used projects)"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Number of paths to print."),
):
    """Rank projects by frecency for shell integration."""
    with _open_catalog(ctx) as catalog:
        if limit is None:
            limit = ctx.obj["config_manager"].load_settings().query_limit if ctx.obj else 10
        paths = catalog.query(pattern, limit)

    for path in paths:
        typer.echo(str(path))

    if not paths:
        raise typer.Exit(1)


@app.command(name="access", help="Record a visit to a project")
def record_access(
    ctx: typer.Context,
    path: Optional[Path] = typer.Argument(
        None,
        help="Project directory (defaults to current directory)",
    ),
):
    """Bump the frecency score of a catalogued project."""
    path = path or Path.cwd()
    with _open_catalog(ctx) as catalog:
        recorded = catalog.record_access(path)

    if recorded:
        logger.info(f"Recorded access to {path}")
    else:
        print(f"[yellow]Not a catalogued project:[/yellow] {path}")


@app.command(name="score", help="Show the frecency score of a project")
def show_score(
    ctx: typer.Context,
    path: Optional[Path] = typer.Argument(
        None,
        help="Project directory (defaults to current directory)",
    ),
):
    """Print the current, decayed frecency score."""
    path = path or Path.cwd()
    with _open_catalog(ctx) as catalog:
        score = catalog.current_score(path)

    if score is None:
        print(f"[red]Error:[/red] Not a catalogued project: {path}")
        raise typer.Exit(1)
    print(f"[cyan]{path}[/cyan]: [green]{score:.3f}[/green]")


@app.command(name="stats", help="Show catalog statistics")
def show_stats(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", help="Print statistics as JSON."),
):
    """Show totals and a per-type breakdown."""
    with _open_catalog(ctx) as catalog:
        if json_output:
            typer.echo(catalog.export_statistics_json())
            return
        stats = catalog.statistics()
        counts = catalog.project_counts()

    table = Table(title="Catalog")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="green")
    table.add_row("Projects", str(stats.total_projects))
    table.add_row("Scans", str(stats.total_scans))
    table.add_row("Directories scanned", str(stats.total_dirs_scanned))
    table.add_row("Errors", str(stats.total_errors))
    last = stats.last_scan_at.astimezone().strftime("%Y-%m-%d %H:%M") if stats.last_scan_at else "never"
    table.add_row("Last scan", last)
    console.print(table)

    if counts:
        by_type = Table(title="By type")
        by_type.add_column("Type", style="cyan")
        by_type.add_column("Projects", justify="right", style="green")
        for project_type, count in sorted(counts.items(), key=lambda item: (-item[0].priority, item[0].value)):
            by_type.add_row(project_type.label, str(count))
        console.print(by_type)


@app.command(name="scans", help="Show recent scans")
def show_scans(
    ctx: typer.Context,
    limit: int = typer.Option(10, "--limit", "-n", help="Number of scans to show."),
):
    """List the most recent entries of the scan log."""
    with _open_catalog(ctx) as catalog:
        scans = catalog.recent_scans(limit)

    if not scans:
        print("[yellow]No scans recorded[/yellow]")
        return

    table = Table(title="Recent Scans")
    table.add_column("ID", justify="right")
    table.add_column("When", style="cyan")
    table.add_column("Root", overflow="fold")
    table.add_column("Projects", justify="right", style="green")
    table.add_column("Dirs", justify="right")
    table.add_column("Errors", justify="right", style="red")
    table.add_column("Time", justify="right")

    for summary in scans:
        table.add_row(
            str(summary.id),
            summary.scanned_at.astimezone().strftime("%Y-%m-%d %H:%M"),
            str(summary.root_path),
            str(summary.project_count),
            str(summary.dirs_scanned),
            str(summary.error_count),
            f"{summary.duration_ms}ms",
        )
    console.print(table)


@app.command(name="cleanup", help="Remove old scans and stale projects")
def cleanup(
    ctx: typer.Context,
    max_age_days: float = typer.Option(30, "--max-age-days", help="Age after which scans and unseen projects are dropped."),
    missing: bool = typer.Option(False, "--missing", help="Remove projects whose directory no longer exists instead."),
    dry_run: bool = typer.Option(False, "--dry-run", help="With --missing, only list what would be removed."),
):
    """Clean up the catalog."""
    with _open_catalog(ctx) as catalog:
        if missing:
            removed = catalog.prune_missing(dry_run=dry_run)
            for path in removed:
                print(f"[yellow]{'Would remove' if dry_run else 'Removed'}:[/yellow] {path}")
            if removed:
                print(f"[green]{len(removed)} missing project(s){' found' if dry_run else ' removed'}[/green]")
            else:
                print("[cyan]No missing projects found[/cyan]")
            return

        projects = catalog.cleanup_orphaned_projects(max_age_days)
        scans = catalog.clean_old_scans(max_age_days)

    print(f"[green]Removed {scans} old scan(s) and {projects} stale project(s)[/green]")


@app.command(name="config", help="Show the effective settings")
def show_config(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Print settings as JSON."),
):
    """Show settings and where projcat keeps its files."""
    config_manager: ConfigManager = ctx.obj["config_manager"] if ctx.obj else ConfigManager()
    try:
        settings = config_manager.load_settings()
        db_path = ctx.obj.get("db") if ctx.obj else None
        db_path = db_path or config_manager.db_path(settings)
    except CatalogError as e:
        print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if as_json:
        data = settings.model_dump(mode="json")
        data["db_path"] = str(db_path)
        typer.echo(json.dumps(data, indent=2))
        return

    console.print(f"[bold]Config file:[/bold] {config_manager.config_file}")
    console.print(f"[bold]Database:[/bold] {db_path}")
    console.print(f"[bold]Log file:[/bold] {config_manager.log_file}")
    console.print(f"[cyan]Max depth:[/cyan] {settings.max_depth if settings.max_depth is not None else 'unlimited'}")
    console.print(f"[cyan]Follow symlinks:[/cyan] {settings.follow_symlinks}")
    console.print(f"[cyan]Exclude patterns:[/cyan] {', '.join(settings.exclude_patterns)}")
    console.print(f"[cyan]Project indicators:[/cyan] {', '.join(settings.project_indicators)}")
    console.print(f"[cyan]Query limit:[/cyan] {settings.query_limit}")
    console.print(f"[cyan]Incremental window:[/cyan] {settings.freshness_hours}h")


@app.command(name="backup", help="Write the catalog to an SQL file")
def backup(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Backup file to write"),
):
    """Dump the whole catalog as SQL."""
    with _open_catalog(ctx) as catalog:
        catalog.backup(file)
    print(f"[green]Catalog backed up to[/green] {file}")


@app.command(name="restore", help="Replace the catalog with an SQL backup")
def restore(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Backup file to read"),
):
    """Restore the catalog from a backup made with 'projcat backup'."""
    with _open_catalog(ctx) as catalog:
        catalog.restore(file)
    print(f"[green]Catalog restored from[/green] {file}")


if __name__ == "__main__":
    app()
