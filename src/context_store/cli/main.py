"""CLI entry point for context-store.

Invoked as::

    context-store [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m context_store.cli.main

Commands
--------
- version     — Show version information
- contexts    — List all stored contexts
- keys        — List the keys of a context
- get         — Print the value stored under a key
- set         — Store a value (parsed as YAML) under a key
- delete      — Delete a whole context
- delete-key  — Delete one key from a context
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import NoReturn

import click
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from context_store.config import StoreSettings
from context_store.debuglog import DebugLogger
from context_store.errors import StorageFailure
from context_store.storage.filesystem import FileContextStore
from context_store.values import encode_value

console = Console()


def _make_store(data_dir: str | None, storage_dir: str | None) -> FileContextStore:
    """Build and initialize a FileContextStore from CLI options and env."""
    settings = StoreSettings.from_env(
        data_folder=Path(data_dir) if data_dir else None,
        storage_directory_name=storage_dir,
    )
    return FileContextStore.from_settings(settings)


def _store(ctx: click.Context) -> FileContextStore:
    obj = ctx.ensure_object(dict)
    if "store" not in obj:
        try:
            obj["store"] = _make_store(obj.get("data_dir"), obj.get("storage_dir"))
        except ValidationError as exc:
            console.print(f"[red]Invalid settings:[/red] {escape(str(exc))}")
            sys.exit(1)
        except StorageFailure as exc:
            _fail(exc)
    return obj["store"]


def _fail(exc: StorageFailure) -> NoReturn:
    console.print(f"[red]Storage error ({exc.kind.value}):[/red] {escape(str(exc))}")
    sys.exit(1)


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="context-store")
@click.option(
    "--data-dir",
    default=None,
    envvar="CONTEXT_STORE_DATA_DIR",
    help="Application data directory (default: ~/.context-store).",
)
@click.option(
    "--storage-dir",
    default=None,
    help="Name of the storage sub-directory (default: storage).",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(
    ctx: click.Context,
    data_dir: str | None,
    storage_dir: str | None,
    verbose: bool,
) -> None:
    """Two-level context/key value storage"""
    ctx.ensure_object(dict)
    ctx.obj["data_dir"] = data_dir
    ctx.obj["storage_dir"] = storage_dir
    if verbose:
        logging.basicConfig(level=logging.DEBUG)
    ctx.obj["debug"] = DebugLogger("context-store", enabled=verbose)


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show version information."""
    from context_store import __version__

    console.print(f"[bold]context-store[/bold] v{__version__}")


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


@cli.command(name="contexts")
@click.pass_context
def contexts_command(ctx: click.Context) -> None:
    """List all stored contexts."""
    store = _store(ctx)
    try:
        contexts = store.list_contexts()
        key_counts = {name: len(store.list_keys(name)) for name in contexts}
    except StorageFailure as exc:
        _fail(exc)

    if not contexts:
        console.print("[yellow]No contexts stored.[/yellow]")
        return

    table = Table(title=f"Contexts in {store.base_directory}")
    table.add_column("Context", style="bold cyan")
    table.add_column("Keys", justify="right")
    for name in sorted(contexts):
        table.add_row(name, str(key_counts[name]))
    console.print(table)


@cli.command(name="keys")
@click.argument("context")
@click.pass_context
def keys_command(ctx: click.Context, context: str) -> None:
    """List the keys stored in CONTEXT."""
    store = _store(ctx)
    try:
        keys = store.list_keys(context)
    except StorageFailure as exc:
        _fail(exc)

    if not keys:
        console.print(f"[yellow]No keys in context:[/yellow] {context}")
        return
    for key in sorted(keys):
        console.print(key)


# ---------------------------------------------------------------------------
# Values
# ---------------------------------------------------------------------------


@cli.command(name="get")
@click.argument("context")
@click.argument("key")
@click.pass_context
def get_command(ctx: click.Context, context: str, key: str) -> None:
    """Print the value stored under KEY in CONTEXT as YAML."""
    store = _store(ctx)
    try:
        value = store.load(context, key)
    except StorageFailure as exc:
        _fail(exc)

    if value is None:
        console.print(f"[red]Not found:[/red] {context}/{key}")
        sys.exit(1)
    rendered = yaml.safe_dump(
        encode_value(value), default_flow_style=False, allow_unicode=True
    )
    click.echo(rendered.rstrip().removesuffix("\n..."))


@cli.command(name="set")
@click.argument("context")
@click.argument("key")
@click.argument("value")
@click.pass_context
def set_command(ctx: click.Context, context: str, key: str, value: str) -> None:
    """Store VALUE (parsed as YAML) under KEY in CONTEXT."""
    store = _store(ctx)
    try:
        parsed = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        console.print(f"[red]Invalid YAML value:[/red] {escape(str(exc))}")
        sys.exit(1)

    ctx.obj["debug"].debug("setting %s/%s", context, key)
    try:
        store.save(context, key, parsed)
    except StorageFailure as exc:
        _fail(exc)
    console.print(f"[green]Saved:[/green] {context}/{key}")


@cli.command(name="delete")
@click.argument("context")
@click.pass_context
def delete_command(ctx: click.Context, context: str) -> None:
    """Delete CONTEXT and all its keys."""
    store = _store(ctx)
    ctx.obj["debug"].debug("deleting context %s", context)
    try:
        store.delete(context)
    except StorageFailure as exc:
        _fail(exc)
    console.print(f"[green]Deleted context:[/green] {context}")


@cli.command(name="delete-key")
@click.argument("context")
@click.argument("key")
@click.pass_context
def delete_key_command(ctx: click.Context, context: str, key: str) -> None:
    """Delete KEY from CONTEXT."""
    store = _store(ctx)
    ctx.obj["debug"].debug("deleting key %s/%s", context, key)
    try:
        store.delete_key(context, key)
    except StorageFailure as exc:
        _fail(exc)
    console.print(f"[green]Deleted:[/green] {context}/{key}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


if __name__ == "__main__":
    cli()
