"""Command line interface for picture-db."""

from __future__ import annotations

import copy
import difflib
import logging
from pathlib import Path
from typing import Any

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax
from rich.table import Table

import picturedb
from picturedb.config import ConfigError, ConfigManager, PictureDBConfig, resolve_with_precedence
from picturedb.config.models import LoggingSettings
from picturedb.ingestion import (
    DirectoryScanner,
    IncrementalIndexer,
    IndexResult,
    IngestionError,
    build_extractor,
)
from picturedb.store import IndexStore, StoreError
from picturedb.sync import (
    AlbumReconciler,
    PhotoPrismClient,
    SqlGroupingQuery,
    SyncError,
    SyncResult,
    group_by_album,
)

console = Console()
LOGGER = logging.getLogger(__name__)


def _configure_logging(settings: LoggingSettings) -> None:
    """Route log records through Rich, honoring the configured level.

    Verbose mode lowers only the ``picturedb`` loggers to DEBUG so library
    loggers (SQLAlchemy, urllib3) keep the configured level.
    """

    level = logging.getLevelName(settings.level.upper())
    if not isinstance(level, int):
        raise click.ClickException(f"Unknown logging level '{settings.level}'.")
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    logging.getLogger("picturedb").setLevel(logging.DEBUG if settings.verbose else level)


def _load_config(ctx: click.Context, overrides: dict[str, Any] | None = None) -> PictureDBConfig:
    """Resolve configuration for a command and configure logging.

    Args:
        ctx: Click context carrying the global options.
        overrides: Additional dotted-key overrides from command options.

    Returns:
        PictureDBConfig: Effective configuration.

    Raises:
        click.ClickException: If the configuration cannot be loaded.
    """

    options = ctx.find_root().obj or {}
    cli_overrides: dict[str, Any] = {}
    if options.get("db_path"):
        cli_overrides["database.path"] = options["db_path"]
    if options.get("verbose"):
        cli_overrides["logging.verbose"] = True
    cli_overrides.update(overrides or {})

    try:
        config = ConfigManager(options.get("config_path")).load(cli_overrides=cli_overrides)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    _configure_logging(config.logging)
    return config


def _format_summary_line(command: str, target: Path | str, metrics: dict[str, Any]) -> str:
    """Return a consistent summary line for CLI commands.

    Args:
        command: Command name to include in the summary.
        target: Root path or album set the command worked on.
        metrics: Ordered mapping of metric names to values.

    Returns:
        str: Rich-formatted summary string.
    """

    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {target}: {parts}.[/green]"


def _emit_index_result(root: str, result: IndexResult) -> None:
    if result.errors:
        console.print("[red]Errors encountered:[/red]")
        for entry in result.errors:
            console.print(f"  - {entry}")
    console.print(_format_summary_line("Index", root, result.counts()))


def _sync_table(result: SyncResult) -> Table:
    table = Table(title="PhotoPrism albums")
    for column in ("Album", "Created", "Added", "Present", "Missing", "Removed", "Extras"):
        table.add_column(column, justify="left" if column == "Album" else "right")
    for album in result.albums:
        table.add_row(
            album.title,
            "yes" if album.created else "",
            str(len(album.added)),
            str(len(album.already_present)),
            str(len(album.missing)),
            str(len(album.removed)),
            str(len(album.extras)),
        )
    return table


def _assign_nested(target: dict[str, Any], path: list[str], value: Any) -> None:
    """Assign a nested value within a dictionary for a dotted path.

    Raises:
        ConfigError: If a non-mapping value is encountered along the path.
    """

    node = target
    for segment in path[:-1]:
        existing = node.setdefault(segment, {})
        if not isinstance(existing, dict):
            raise ConfigError(
                f"Cannot assign into '{segment}' because it is not a mapping in the config file."
            )
        node = existing
    node[path[-1]] = value


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(picturedb.__version__, prog_name=picturedb.DISTRIBUTION)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Configuration file (YAML or JSON).",
)
@click.option("-v", "--verbose", is_flag=True, help="Verbose output.")
@click.option("--db-path", type=str, help="SQLite database file.")
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, verbose: bool, db_path: str | None) -> None:
    """picture-db indexes picture metadata and syncs PhotoPrism albums from SQL queries."""

    ctx.ensure_object(dict)
    ctx.obj.update(config_path=config_path, verbose=verbose, db_path=db_path)


@cli.command()
@click.argument("paths", nargs=-1, type=str)
@click.option("-r", "--reindex", "force_reindex", is_flag=True, help="Force reindex.")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing the results.")
@click.pass_context
def index(
    ctx: click.Context, paths: tuple[str, ...], force_reindex: bool, json_output: bool
) -> None:
    """Index pictures below PATHS (defaults to the current directory).

    Files whose record is newer than the file are skipped unless --reindex is
    given; records of files no longer on disk are removed.

    Raises:
        click.ClickException: If a directory cannot be walked or the database fails.
    """

    config = _load_config(ctx)
    roots = list(paths) or ["."]
    scanner = DirectoryScanner(
        extensions=config.index.extensions,
        follow_symlinks=config.index.follow_symlinks,
    )

    try:
        with IndexStore(config.database.path, echo=config.database.echo) as store:
            with build_extractor(config.index.extractor) as extractor:
                indexer = IncrementalIndexer(store, scanner, extractor)
                result = indexer.run(roots, force_reindex=force_reindex)
    except (IngestionError, StoreError) as exc:
        raise click.ClickException(str(exc)) from exc

    if json_output:
        console.print_json(data={"roots": roots, **result.model_dump(mode="json")})
    else:
        _emit_index_result(", ".join(roots), result)


@cli.command()
@click.argument("query")
@click.option("--url", type=str, help="PhotoPrism URL.")
@click.option("--user", type=str, help="Username.")
@click.option("--pass", "password", type=str, help="Password.")
@click.option(
    "--delete", "delete_extras", is_flag=True, help="Delete extra pictures from albums."
)
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing the results.")
@click.pass_context
def photoprism(
    ctx: click.Context,
    query: str,
    url: str | None,
    user: str | None,
    password: str | None,
    delete_extras: bool,
    json_output: bool,
) -> None:
    """Create and fill PhotoPrism albums as selected by the SQL QUERY.

    QUERY must return an ``album`` and a ``path`` column and may return a
    ``photoprism_path`` column overriding the path searched in PhotoPrism.

    Raises:
        click.ClickException: If credentials are missing or any request fails.
    """

    overrides: dict[str, Any] = {}
    for key, value in (("url", url), ("user", user), ("password", password)):
        if value:
            overrides[f"photoprism.{key}"] = value
    if delete_extras:
        overrides["photoprism.delete_from_album"] = True
    config = _load_config(ctx, overrides)
    settings = config.photoprism

    if not settings.url:
        raise click.ClickException("missing PhotoPrism URL")
    if not settings.user:
        raise click.ClickException("missing PhotoPrism username")
    if not settings.password:
        raise click.ClickException("missing PhotoPrism password")

    try:
        with IndexStore(config.database.path, echo=config.database.echo) as store:
            pairs = SqlGroupingQuery(store, query).pairs()

        client = PhotoPrismClient(settings.url, timeout=settings.timeout_seconds)
        client.authenticate(settings.user, settings.password)
        reconciler = AlbumReconciler(
            client,
            delete_extras=settings.delete_from_album,
            member_limit=settings.member_limit,
        )
        result = reconciler.reconcile(group_by_album(pairs))
    except (StoreError, SyncError) as exc:
        raise click.ClickException(str(exc)) from exc

    if json_output:
        console.print_json(data=result.model_dump(mode="json"))
        return

    if result.albums:
        console.print(_sync_table(result))
    console.print(_format_summary_line("PhotoPrism", settings.url, result.counts()))


@cli.command("sql")
@click.argument("statement")
@click.pass_context
def sql_command(ctx: click.Context, statement: str) -> None:
    """Run a SQL STATEMENT against the picture database and print the rows.

    Raises:
        click.ClickException: If the statement fails.
    """

    config = _load_config(ctx)
    try:
        with IndexStore(config.database.path, echo=config.database.echo) as store:
            result = store.execute(statement)
    except StoreError as exc:
        raise click.ClickException(str(exc)) from exc

    if not result.columns:
        return
    table = Table(*result.columns, box=None, header_style="bold")
    for row in result.rows:
        table.add_row(*("NULL" if value is None else str(value) for value in row))
    console.print(table)


@cli.group()
def config() -> None:
    """Manage picture-db configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
@click.pass_context
def config_view(ctx: click.Context, no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """

    manager = ConfigManager(ctx.find_root().obj.get("config_path"))
    try:
        loaded = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    data = loaded.model_dump(mode="python")
    if data["photoprism"].get("password"):
        data["photoprism"]["password"] = "********"
    yaml_text = yaml.safe_dump(data, sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Raises:
        click.ClickException: If parsing, assignment, or validation fails.
    """

    config_path = ctx.find_root().obj.get("config_path")
    manager = ConfigManager(config_path)
    if config_path is None:
        manager.ensure_exists()

    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException("KEY must specify a dotted path such as 'database.path'.")

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    try:
        previous = manager.load_file_overrides()
        file_data = copy.deepcopy(previous)
        _assign_nested(file_data, segments, parsed_value)
        resolve_with_precedence(defaults=PictureDBConfig(), file_overrides=file_data)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    if file_data == previous:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    before = manager.read_text().splitlines()
    manager.save(file_data)
    after = manager.read_text().splitlines()

    diff = difflib.unified_diff(
        before,
        after,
        fromfile="config.yaml (before)",
        tofile="config.yaml (after)",
        lineterm="",
    )
    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
