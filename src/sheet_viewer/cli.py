"""CLI entry point for sheet-viewer."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from sheet_viewer import DEFAULT_API_URL, __version__
from sheet_viewer.client import ApiClient
from sheet_viewer.columns import all_columns
from sheet_viewer.config import API_URL_ENV, TIMEOUT_ENV, ViewerConfig
from sheet_viewer.errors import ConfigurationError
from sheet_viewer.export import export_filename
from sheet_viewer.render import build_table
from sheet_viewer.session import ViewerSession
from sheet_viewer.utils import configure_logging

app = typer.Typer(
    name="sviewer",
    help="sheet-viewer — Browse, filter and re-export spreadsheets held by a parsing service.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()
logger = logging.getLogger(__name__)


def _noop(*_args: object, **_kwargs: object) -> None:
    return None


def _printer(quiet: bool) -> Callable[..., None]:
    return _noop if quiet else console.print


def _err(msg: str) -> None:
    console.print(f"[red]x[/red] {escape(msg)}")


# ── Helpers ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"sheet-viewer v{__version__}")
        raise typer.Exit()


def _parse_labels(raw: list[str] | None) -> dict[str, str]:
    """Parse ``--label column=Label`` pairs into ``{column: label}``."""
    if not raw:
        return {}
    labels: dict[str, str] = {}
    for item in raw:
        if "=" not in item:
            raise ValueError(f"Invalid --label value: {item!r}  (expected column=Label)")
        column, label = item.split("=", 1)
        column = column.strip()
        if not column or not label.strip():
            raise ValueError("--label entries must have a non-empty column and label")
        labels[column] = label.strip()
    return labels


def _config(ctx: typer.Context) -> ViewerConfig:
    config = ctx.obj
    if isinstance(config, ViewerConfig):
        return config
    return ViewerConfig.from_env()


def _session(ctx: typer.Context) -> ViewerSession:
    return ViewerSession(ApiClient(_config(ctx)))


def _fail_on_error(session: ViewerSession) -> None:
    exc = session.last_error
    if exc is None:
        return
    _err(str(exc))
    if exc.retryable:
        console.print(f"  Is the service running at {_describe_api(session)}?")
    raise typer.Exit(code=1)


def _describe_api(session: ViewerSession) -> str:
    return escape(session.client.config.api_url)


def _print_names(names: Sequence[str], *, empty: str) -> None:
    if not names:
        console.print(f"  [dim]{escape(empty)}[/dim]")
        return
    for idx, name in enumerate(names, start=1):
        console.print(f"  {idx}. {escape(name)}")


def _require(name: str, options: Sequence[str], what: str) -> None:
    if name in options:
        return
    _err(f"Unknown {what}: {name!r}")
    if options:
        console.print(f"  Available: {escape(', '.join(options))}")
    raise typer.Exit(code=2)


def _open_sheet(ctx: typer.Context, file: str, sheet: str) -> ViewerSession:
    """Walk the session to DATA_LOADED (or SHEET_SELECTED for an empty sheet)."""
    session = _session(ctx).start()
    _fail_on_error(session)
    _require(file, session.files, "file")

    session.select_file(file)
    _fail_on_error(session)
    _require(sheet, session.sheets, "sheet")

    session.select_sheet(sheet)
    _fail_on_error(session)
    return session


def _export(session: ViewerSession, out_dir: Path, *, visible_only: bool, quiet: bool) -> Path:
    echo = _printer(quiet)
    echo(f"[blue]>[/blue] Writing {escape(export_filename(session.selected_sheet))} …")
    path = session.export(out_dir, visible_only=visible_only)
    if path is None:
        _err("No rows to export.")
        raise typer.Exit(code=2)
    echo(f"  {len(session.rows)} rows x {_export_width(session, visible_only)} columns")
    console.print(f"  Export -> {escape(str(path))}")
    return path


def _export_width(session: ViewerSession, visible_only: bool) -> int:
    if visible_only:
        return len(session.visible_columns)
    return len(all_columns(session.rows))


# ── Callbacks ────────────────────────────────────────────────────


@app.callback()
def main(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    api: str = typer.Option(
        DEFAULT_API_URL, "--api",
        envvar=API_URL_ENV,
        help="Base address of the parsing service.",
    ),
    timeout: float | None = typer.Option(
        None, "--timeout",
        envvar=TIMEOUT_ENV,
        help="Request timeout in seconds (default: wait indefinitely).",
    ),
    verbose: int = typer.Option(
        0, "--verbose", "-v",
        count=True,
        help="Log more (-v info, -vv debug).",
    ),
) -> None:
    """sheet-viewer CLI."""
    configure_logging(verbose)
    try:
        ctx.obj = ViewerConfig(api_url=api, timeout=timeout)
    except ConfigurationError as exc:
        _err(str(exc))
        raise typer.Exit(code=2)
    logger.debug("Using API at %s", ctx.obj.api_url)


# ── files / sheets ───────────────────────────────────────────────


@app.command()
def files(ctx: typer.Context) -> None:
    """List the files stored on the service."""
    session = _session(ctx).start()
    _fail_on_error(session)
    console.print(f"[bold]Files[/bold] ({len(session.files)})")
    _print_names(session.files, empty="No files uploaded yet.")


@app.command()
def sheets(
    ctx: typer.Context,
    file: str = typer.Option(..., "--file", "-f", help="Stored file name."),
) -> None:
    """List the sheets of a stored file."""
    session = _session(ctx)
    session.select_file(file)
    _fail_on_error(session)
    console.print(f"[bold]Sheets in {escape(file)}[/bold] ({len(session.sheets)})")
    _print_names(session.sheets, empty="No sheets found.")


# ── upload ───────────────────────────────────────────────────────


@app.command()
def upload(
    ctx: typer.Context,
    input_file: Path = typer.Option(
        ..., "--input", "-i",
        help="Spreadsheet to upload.",
        exists=True, readable=True, dir_okay=False,
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Do not print the refreshed file list.",
    ),
) -> None:
    """Upload a spreadsheet, then show the refreshed file list."""
    session = _session(ctx)
    with console.status("Uploading…"):
        ok = session.upload(input_file)
    if not ok:
        _fail_on_error(session)
    console.print(f"[green]Uploaded[/green] {escape(input_file.name)}")
    if not quiet:
        console.print(f"[bold]Files[/bold] ({len(session.files)})")
        _print_names(session.files, empty="No files uploaded yet.")


# ── show ─────────────────────────────────────────────────────────


@app.command()
def show(
    ctx: typer.Context,
    file: str = typer.Option(..., "--file", "-f", help="Stored file name."),
    sheet: str = typer.Option(..., "--sheet", "-s", help="Sheet name."),
    label: list[str] | None = typer.Option(
        None, "--label", "-l",
        help="Header label override: column=Label. E.g. --label hari1='Day 1'",
    ),
) -> None:
    """Show a sheet as a table, hiding columns that are empty in every row."""
    try:
        labels = _parse_labels(label)
    except ValueError as exc:
        _err(str(exc))
        raise typer.Exit(code=2)

    session = _open_sheet(ctx, file, sheet)
    table = build_table(session.rows, labels, title=f"{file} / {sheet}")
    if table is None:
        console.print("[yellow]![/yellow] Sheet has no rows.")
        return
    console.print(table)
    hidden = len(all_columns(session.rows)) - len(session.visible_columns)
    if hidden > 0:
        console.print(f"  [dim]{hidden} column(s) hidden[/dim]")


# ── export ───────────────────────────────────────────────────────


@app.command()
def export(
    ctx: typer.Context,
    file: str = typer.Option(..., "--file", "-f", help="Stored file name."),
    sheet: str = typer.Option(..., "--sheet", "-s", help="Sheet name."),
    out_dir: Path = typer.Option(
        Path("."), "--out-dir", "-o",
        help="Directory to write <sheet>.xlsx into.",
    ),
    visible_only: bool = typer.Option(
        False, "--visible-only/--all-columns",
        help="Drop columns that are empty in every row (default: keep all).",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Only print the output path.",
    ),
) -> None:
    """Download a sheet as <sheet>.xlsx."""
    session = _open_sheet(ctx, file, sheet)
    _export(session, out_dir, visible_only=visible_only, quiet=quiet)


# ── browse ───────────────────────────────────────────────────────


def _choose(title: str, options: Sequence[str]) -> str | None:
    """Prompt for one of *options* by number; 0 returns ``None``."""
    console.print(f"[bold]{escape(title)}[/bold]")
    _print_names(options, empty="(none)")
    while True:
        picked = typer.prompt(f"{title} (0 to quit)", type=int)
        if picked == 0:
            return None
        if 1 <= picked <= len(options):
            return options[picked - 1]
        _err(f"Pick a number between 1 and {len(options)}.")


@app.command()
def browse(
    ctx: typer.Context,
    out_dir: Path = typer.Option(
        Path("."), "--out-dir", "-o",
        help="Directory for downloads.",
    ),
    visible_only: bool = typer.Option(
        False, "--visible-only/--all-columns",
        help="Drop columns that are empty in every row when downloading.",
    ),
) -> None:
    """Pick a file and sheet interactively, view it, optionally download it."""
    session = _session(ctx).start()
    _fail_on_error(session)
    if not session.files:
        console.print("[yellow]![/yellow] No files uploaded yet. Use 'sviewer upload'.")
        return

    console.print(Panel(
        f"[bold]sheet-viewer[/bold] v{__version__}\nAPI: {_describe_api(session)}",
        title="Browse", border_style="blue",
    ))

    file = _choose("Pick a file", session.files)
    if file is None:
        return
    session.select_file(file)
    _fail_on_error(session)
    if not session.sheets:
        console.print("[yellow]![/yellow] File has no sheets.")
        return

    sheet = _choose("Pick a sheet", session.sheets)
    if sheet is None:
        return
    session.select_sheet(sheet)
    _fail_on_error(session)

    table = build_table(session.rows, title=f"{file} / {sheet}")
    if table is None:
        console.print("[yellow]![/yellow] Sheet has no rows.")
        return
    console.print(table)

    if typer.confirm(f"Download as {export_filename(sheet)}?", default=False):
        _export(session, out_dir, visible_only=visible_only, quiet=False)
