"""ASNINFO CLI built with Typer + Rich."""

from __future__ import annotations

import asyncio
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from asninfo import __version__
from asninfo.core.config import Config, load_config
from asninfo.core.errors import ConfigError, FetchError, UploadError
from asninfo.core.models import DatasetMode, DatasetSnapshot
from asninfo.providers import ProviderAdapter
from asninfo.reporting import ExportFormat, detect_format, export_snapshot
from asninfo.utils.helpers import parse_bind
from asninfo.utils.logger import configure_logging, get_logger

app = typer.Typer(
    name="asninfo",
    help="[bold cyan]ASNINFO[/]: merged Autonomous System metadata exports and lookup API",
    rich_markup_mode="rich",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)
logger = get_logger(__name__)

EXIT_LOAD_FAILURE = 1
EXIT_BIND_FAILURE = 6
EXIT_SERVER_ERROR = 7


def _load(config_file: Optional[str]) -> Config:
    """Load configuration, exiting with status 1 when it is invalid."""
    try:
        return load_config(config_file)
    except ConfigError as exc:
        err_console.print(f"[red]Configuration error:[/] {escape(str(exc))}")
        raise typer.Exit(EXIT_LOAD_FAILURE) from exc


def _setup(config_file: Optional[str], verbose: bool) -> Config:
    """Load configuration and configure logging from it."""
    cfg = _load(config_file)
    configure_logging(
        log_file=cfg.general.log_file,
        verbose=verbose or cfg.general.verbose,
    )
    return cfg


def _load_snapshot(cfg: Config, mode: DatasetMode) -> DatasetSnapshot:
    """Fetch all sources once, exiting with status 1 on failure."""
    adapter = ProviderAdapter(cfg.sources)
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=err_console,
        transient=True,
    ) as progress:
        progress.add_task(f"Loading {mode.value} ASN dataset…", total=None)
        try:
            return asyncio.run(adapter.fetch(mode))
        except FetchError as exc:
            logger.error("Failed to load ASN dataset: %s", exc)
            raise typer.Exit(EXIT_LOAD_FAILURE) from exc


# ---------------------------------------------------------------------------
# generate command
# ---------------------------------------------------------------------------


@app.command()
def generate(
    path: Optional[str] = typer.Argument(
        None, help="Export file path; format from the extension (.jsonl/.csv/.json, optional .gz/.bz2)"
    ),
    simplified: bool = typer.Option(False, "--simplified", help="Export the flat record schema only"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    config_file: Optional[str] = typer.Option(None, "--config", help="Custom config file"),
) -> None:
    """[bold]Build the dataset and write it to a file.[/]

    Uploads the file when ASNINFO_UPLOAD_PATH is set, then pings
    ASNINFO_HEARTBEAT_URL if configured.

    Examples:

        asninfo generate

        asninfo generate asninfo.csv

        asninfo generate asninfo.json.gz --simplified
    """
    cfg = _setup(config_file, verbose)
    output = path or cfg.export.path

    try:
        fmt = detect_format(output)
    except ValueError as exc:
        err_console.print(f"[red]{exc}[/]")
        raise typer.Exit(EXIT_LOAD_FAILURE) from exc

    simplified = simplified or cfg.export.simplified or fmt is ExportFormat.CSV
    mode = DatasetMode.SIMPLIFIED if simplified else DatasetMode.FULL

    upload_path = cfg.export.upload_path
    if upload_path:
        from asninfo.integrations.upload import s3_env_check

        try:
            s3_env_check(cfg.s3)
        except UploadError as exc:
            err_console.print(f"[red]{exc}[/]")
            raise typer.Exit(exc.exit_code) from exc

    snapshot = _load_snapshot(cfg, mode)
    export_snapshot(snapshot, output, simplified=simplified)
    console.print(
        f"[bold green]✓[/] Wrote [bold]{len(snapshot)}[/] records to [bold]{output}[/] ({fmt})"
    )

    if upload_path:
        _upload(cfg, output, upload_path)


def _upload(cfg: Config, output: str, upload_path: str) -> None:
    """Upload *output* and send the heartbeat, mapping failures to exit codes."""
    from asninfo.integrations.upload import send_heartbeat, upload_file

    try:
        target = upload_file(output, upload_path, cfg.s3)
        console.print(f"[bold green]✓[/] Uploaded to [bold]{target}[/]")
        if cfg.export.heartbeat_url:
            asyncio.run(send_heartbeat(cfg.export.heartbeat_url))
    except UploadError as exc:
        logger.error("%s", exc)
        raise typer.Exit(exc.exit_code) from exc


# ---------------------------------------------------------------------------
# serve command
# ---------------------------------------------------------------------------


@app.command()
def serve(
    bind: Optional[str] = typer.Option(None, "--bind", "-b", help="Bind address host:port (default 0.0.0.0:8080)"),
    refresh_secs: Optional[int] = typer.Option(
        None, "--refresh-secs", help="Dataset refresh interval in seconds (minimum 3600)"
    ),
    simplified: bool = typer.Option(False, "--simplified", help="Serve the simplified dataset"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    config_file: Optional[str] = typer.Option(None, "--config", help="Custom config file"),
) -> None:
    """[bold]Start the lookup API server.[/]

    Examples:

        asninfo serve

        asninfo serve --bind 127.0.0.1:3000 --refresh-secs 7200
    """
    cfg = _setup(config_file, verbose)
    server = cfg.server

    updates = {}
    if bind:
        try:
            updates["host"], updates["port"] = parse_bind(bind)
        except ValueError as exc:
            err_console.print(f"[red]{exc}[/]")
            raise typer.Exit(EXIT_BIND_FAILURE) from exc
    if refresh_secs is not None:
        updates["refresh_secs"] = refresh_secs
    if simplified:
        updates["simplified"] = True
    if updates:
        server = server.model_copy(update=updates)

    console.print(
        f"[bold green]►[/] Starting ASNINFO API at [bold]http://{server.host}:{server.port}[/] "
        f"(refresh={server.refresh_secs}s, max_asns={server.max_asns})"
    )

    from asninfo.api.server import run_server

    try:
        run_server(server, cfg.sources)
    except FetchError as exc:
        logger.error("Failed to load initial ASN dataset: %s", exc)
        raise typer.Exit(EXIT_LOAD_FAILURE) from exc
    except OSError as exc:
        logger.error("Failed to bind %s:%d: %s", server.host, server.port, exc)
        raise typer.Exit(EXIT_BIND_FAILURE) from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("Server error: %s", exc)
        raise typer.Exit(EXIT_SERVER_ERROR) from exc


# ---------------------------------------------------------------------------
# config command
# ---------------------------------------------------------------------------


@app.command()
def config(
    config_file: Optional[str] = typer.Option(None, "--config", help="Config file path"),
) -> None:
    """[bold]Show the effective configuration (secrets redacted).[/]"""
    cfg = _load(config_file)
    console.print_json(data=cfg.redacted())


# ---------------------------------------------------------------------------
# sources command
# ---------------------------------------------------------------------------


@app.command()
def sources(
    config_file: Optional[str] = typer.Option(None, "--config", help="Config file path"),
) -> None:
    """[bold]List the upstream datasets and where they are fetched from.[/]"""
    cfg = _load(config_file)
    src = cfg.sources

    table = Table(title="Upstream sources", header_style="bold magenta", border_style="dim")
    table.add_column("Source", style="cyan", no_wrap=True)
    table.add_column("Required", justify="center")
    table.add_column("Location")
    rows = [
        ("asnames", True, src.asnames_url),
        ("as2org", True, src.as2org_url),
        ("hegemony (IPv4)", False, src.hegemony_ipv4_url),
        ("hegemony (IPv6)", False, src.hegemony_ipv6_url),
        ("peeringdb", False, src.peeringdb_url),
        ("population", False, src.population_url),
    ]
    for name, required, url in rows:
        table.add_row(name, "[green]yes[/]" if required else "[dim]full mode[/]", url)
    console.print(table)


# ---------------------------------------------------------------------------
# version command
# ---------------------------------------------------------------------------


@app.command()
def version() -> None:
    """[bold]Show ASNINFO version information.[/]"""
    console.print(f"[bold cyan]ASNINFO[/] version [bold]{__version__}[/]")


def main() -> None:
    """Entry point registered in pyproject.toml."""
    load_dotenv()
    app()
