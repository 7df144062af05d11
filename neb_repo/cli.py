"""Command-line interface for neb-repo."""

import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, MofNCompleteColumn, Progress
from rich.table import Table

from . import __version__
from .catalog import IngestParseError, read_catalog
from .config import DEFAULT_REPO_URL, ConfigError, WebConfig
from .downloader import FetchError, fetch as fetch_catalog
from .extractor import (
    DocumentExtractionError,
    extract_cmdline,
    extract_files,
    extract_mod_flags,
    sha256_manifest,
    total_size,
)
from .record import ModRecord
from .service import QueryService
from .store import Store, StoreError
from .sync import Synchronizer

console = Console()
err_console = Console(stderr=True)


def _fail(message: str) -> None:
    err_console.print(f"[red]Error:[/red] {message}", highlight=False, soft_wrap=True)
    sys.exit(1)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )


def _open_query_service(repo: Path, case_sensitive: bool = False) -> QueryService:
    try:
        return QueryService(Store.open_read_only(repo, case_sensitive_search=case_sensitive))
    except StoreError as e:
        _fail(str(e))


def _get_mod(repo: Path, mid: str, version: str | None) -> ModRecord | None:
    service = _open_query_service(repo)
    try:
        record = service.get(mid, version)
    except StoreError as e:
        _fail(str(e))
    if record is None:
        click.echo("Not found")
    return record


@click.group()
@click.version_option(__version__, prog_name="neb-repo")
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging")
@click.option(
    "--url",
    envvar="NEB_REPO_URL",
    default=DEFAULT_REPO_URL,
    show_default=True,
    help="Remote repo.json URL (or set NEB_REPO_URL env var)",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, url: str) -> None:
    """Keep a local, searchable mirror of the Nebula mod repository."""
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["url"] = url


@main.command()
@click.argument("json_path", metavar="JSON", type=click.Path(path_type=Path))
@click.pass_context
def fetch(ctx: click.Context, json_path: Path) -> None:
    """
    Download the remote repo json file.

    Skips the download when the server reports the same ETag as last time.
    """
    console.print("[bold]==> Fetching Nebula repo file...[/bold]")
    try:
        downloaded = fetch_catalog(json_path, url=ctx.obj["url"])
    except FetchError as e:
        _fail(str(e))

    if not downloaded:
        console.print("Already most recent version.")


@main.command()
@click.argument("repo", type=click.Path(path_type=Path))
@click.argument("json_path", metavar="JSON", type=click.Path(path_type=Path))
def update(repo: Path, json_path: Path) -> None:
    """
    Update the repo database from a repo json file.

    REPO may be ':memory:' for a temporary in-memory database.
    """
    console.print("[bold]==> Reading Nebula repo file...[/bold]")
    try:
        entries = read_catalog(json_path)
    except IngestParseError as e:
        _fail(str(e))

    try:
        store = Store.open_read_write(repo)
    except StoreError as e:
        _fail(str(e))

    console.print("[bold]==> Updating local mods database...[/bold]")

    def on_event(line: str) -> None:
        console.print(line, markup=False, highlight=False)

    with store, Progress(
        BarColumn(bar_width=None),
        MofNCompleteColumn(),
        console=console,
        transient=True,
    ) as progress:
        task_id = progress.add_task("sync", total=len(entries), visible=False)

        def on_progress(done: int, total: int) -> None:
            progress.update(task_id, completed=done, visible=True)

        synchronizer = Synchronizer(store, on_event=on_event, on_progress=on_progress)
        try:
            report = synchronizer.sync(entries)
        except (IngestParseError, StoreError) as e:
            _fail(str(e))

    if report.is_noop:
        console.print("[green]Everything is up to date![/green]")
    else:
        console.print(
            f"[green]Added {report.inserted_count}, updated {report.updated_count}, "
            f"deleted {report.deleted_count}.[/green]"
        )


@main.command(name="fetch-update")
@click.argument("repo", type=click.Path(path_type=Path))
@click.argument("json_path", metavar="JSON", type=click.Path(path_type=Path))
@click.pass_context
def fetch_update(ctx: click.Context, repo: Path, json_path: Path) -> None:
    """Same as 'fetch' followed by 'update'."""
    ctx.invoke(fetch, json_path=json_path)
    ctx.invoke(update, repo=repo, json_path=json_path)


@main.command(name="list")
@click.argument("repo", type=click.Path(path_type=Path))
def list_mods(repo: Path) -> None:
    """Print the list of mods as titles in plain text."""
    service = _open_query_service(repo)
    try:
        mods = service.list()
    except StoreError as e:
        _fail(str(e))

    for m in mods:
        click.echo(m.title)


@main.command(name="list-json")
@click.argument("repo", type=click.Path(path_type=Path))
def list_json(repo: Path) -> None:
    """Print the list of mods as JSON."""
    service = _open_query_service(repo)
    try:
        mods = service.list()
    except StoreError as e:
        _fail(str(e))

    payload = {
        "mods": [{"mid": m.mid, "title": m.title, "poster_url": m.tile} for m in mods]
    }
    click.echo(json.dumps(payload, ensure_ascii=False))


@main.command()
@click.argument("repo", type=click.Path(path_type=Path))
@click.argument("query")
@click.option("--case-sensitive", is_flag=True, help="Match QUERY case-sensitively")
def search(repo: Path, query: str, case_sensitive: bool) -> None:
    """Print mod ids and titles of mods whose title contains QUERY."""
    service = _open_query_service(repo, case_sensitive)
    try:
        results = service.search(query)
    except StoreError as e:
        _fail(str(e))

    width = max([15] + [len(m.mid) for m in results])
    for m in results:
        click.echo(f"{m.mid:<{width}}  {m.title}")


@main.command()
@click.argument("repo", type=click.Path(path_type=Path))
@click.argument("mid")
def versions(repo: Path, mid: str) -> None:
    """Print the versions of a mod id, newest first."""
    service = _open_query_service(repo)
    try:
        for v in service.versions(mid):
            click.echo(v)
    except StoreError as e:
        _fail(str(e))


@main.command(name="json")
@click.argument("repo", type=click.Path(path_type=Path))
@click.argument("mid")
@click.argument("version", required=False)
def mod_json(repo: Path, mid: str, version: str | None) -> None:
    """Print the mod.json of a mod (default: latest version)."""
    record = _get_mod(repo, mid, version)
    if record is None:
        return
    try:
        document = record.document
    except ValueError as e:
        _fail(f"Invalid mod.json for {mid}: {e}")
    click.echo(json.dumps(document, indent=2, ensure_ascii=False))


@main.command()
@click.argument("repo", type=click.Path(path_type=Path))
@click.argument("mid")
@click.argument("version", required=False)
def cmdline(repo: Path, mid: str, version: str | None) -> None:
    """Print the command-line options of a mod."""
    record = _get_mod(repo, mid, version)
    if record is None:
        return
    try:
        click.echo(extract_cmdline(record))
    except DocumentExtractionError as e:
        _fail(str(e))


@main.command(name="mod")
@click.argument("repo", type=click.Path(path_type=Path))
@click.argument("mid")
@click.argument("version", required=False)
def modline(repo: Path, mid: str, version: str | None) -> None:
    """Print the -mod parameter of a mod."""
    record = _get_mod(repo, mid, version)
    if record is None:
        return
    try:
        click.echo(extract_mod_flags(record))
    except DocumentExtractionError as e:
        _fail(str(e))


@main.command()
@click.argument("repo", type=click.Path(path_type=Path))
@click.argument("mid")
@click.argument("version", required=False)
def sha256sum(repo: Path, mid: str, version: str | None) -> None:
    """Print sha256sums of a mod's files."""
    record = _get_mod(repo, mid, version)
    if record is None:
        return
    try:
        click.echo(sha256_manifest(extract_files(record)))
    except DocumentExtractionError as e:
        _fail(str(e))


@main.command()
@click.argument("repo", type=click.Path(path_type=Path))
@click.argument("mid")
@click.argument("version", required=False)
def dlsize(repo: Path, mid: str, version: str | None) -> None:
    """Print the download size of a mod's files."""
    record = _get_mod(repo, mid, version)
    if record is None:
        return
    try:
        files = extract_files(record)
    except DocumentExtractionError as e:
        _fail(str(e))

    table = Table(title=f"{record.title} ({record.version})")
    table.add_column("File", style="cyan")
    table.add_column("Size", justify="right")

    for f in files:
        table.add_row(f.name, str(f.size_bytes))
    table.add_section()
    table.add_row("[bold]TOTAL[/bold]", f"[bold]{total_size(files)}[/bold]")

    console.print(table)


@main.command()
@click.argument("repo", type=click.Path(path_type=Path))
@click.option("--case-sensitive", is_flag=True, help="Make title search case-sensitive")
def web(repo: Path, case_sensitive: bool) -> None:
    """
    Start a web server to view mod info.

    The listen address comes from the BIND and PORT environment variables
    (default 127.0.0.1:3200).
    """
    from .web import create_and_run

    try:
        config = WebConfig.from_env()
        store = Store.open_read_only(repo, case_sensitive_search=case_sensitive)
    except (ConfigError, StoreError) as e:
        _fail(str(e))

    console.print(f"Running server at {config.url}")
    create_and_run(store, config)


if __name__ == "__main__":
    main()
