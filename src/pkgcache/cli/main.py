"""Main CLI entry point for pkgcache.

Provides the command-line interface over a repository's catalog and fetch
cache. Data goes to stdout; status lines and errors go to stderr.
"""

import logging
import os
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import click
from rich.console import Console
from rich.markup import escape

from pkgcache.config import RepositoryConfig
from pkgcache.errors import (
    BulkFetchPartialFailure,
    RepositoryNotFound,
    UnknownPackage,
)
from pkgcache.repository import Repository, find_root, init_repository

# Diagnostics console; stdout is reserved for command output
console = Console(stderr=True, soft_wrap=True)


def find_start_dir(ctx_repo: Optional[str] = None) -> Path:
    """Find the directory repository discovery starts from.

    Priority:
    1. Explicit --repo/-C flag
    2. PKGCACHE_START_DIR environment variable
    3. Current working directory

    Raises:
        RepositoryNotFound: If an explicit directory does not exist
    """
    if ctx_repo:
        path = Path(ctx_repo)
        if path.is_dir():
            return path
        raise RepositoryNotFound(f"Directory not found: {ctx_repo}")

    env_start = os.environ.get("PKGCACHE_START_DIR")
    if env_start:
        path = Path(env_start)
        if path.is_dir():
            return path
        raise RepositoryNotFound(
            f"Directory not found (from PKGCACHE_START_DIR): {env_start}"
        )

    return Path.cwd()


def fail(error: Exception) -> None:
    """Report an error on stderr and exit with its exit code."""
    console.print(f"[red]✗[/red] Error: {escape(str(error))}", style="red")
    sys.exit(getattr(error, "exit_code", 1))


@contextmanager
def locked_repository(ctx) -> Iterator[Repository]:
    """Open the repository for the command and hold its lock throughout."""
    repo = Repository.open(
        find_start_dir(ctx.obj.get("repo")),
        ctx.obj["config"],
        ctx.obj.get("transport"),
    )
    with repo.locked():
        yield repo


@click.group()
@click.option(
    "--repo",
    "-C",
    type=click.Path(),
    help="Directory to start repository discovery from (default: current directory or PKGCACHE_START_DIR env var)",
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr")
@click.pass_context
def cli(ctx, repo, verbose):
    """pkgcache - Catalog and cache build-time downloads.

    Use --repo/-C to choose where to look for the repository, or set the
    PKGCACHE_START_DIR environment variable.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )
    ctx.ensure_object(dict)
    ctx.obj["repo"] = repo
    ctx.obj.setdefault("config", RepositoryConfig.from_env())


# ==================== Repository Commands ====================


@cli.command("init")
@click.argument("import_source", type=click.Path(exists=True, dir_okay=False), required=False)
@click.pass_context
def init(ctx, import_source):
    """Create a repository, optionally importing a catalog file.

    Example:
        pkgcache init
        pkgcache init third_party.catalog
    """
    try:
        repo = init_repository(
            find_start_dir(ctx.obj.get("repo")),
            import_source,
            ctx.obj["config"],
            ctx.obj.get("transport"),
        )
        console.print(f"[green]✓[/green] Initialized repository at {escape(str(repo.root))}")
        if import_source:
            console.print(f"  Imported {len(repo.catalog.names())} entries")
        click.echo(str(repo.root))
    except Exception as e:
        fail(e)


@cli.command("locate-root")
@click.pass_context
def locate_root(ctx):
    """Print the repository root, if there is one.

    Example:
        pkgcache locate-root
    """
    try:
        root = find_root(find_start_dir(ctx.obj.get("repo")), ctx.obj["config"])
    except Exception as e:
        fail(e)

    if root is None:
        console.print("[yellow]No repository found[/yellow]")
        sys.exit(RepositoryNotFound.exit_code)

    click.echo(str(root))


# ==================== Catalog Commands ====================


@cli.command("catalog-list")
@click.pass_context
def catalog_list(ctx):
    """Dump the raw catalog."""
    try:
        with locked_repository(ctx) as repo:
            click.echo(repo.catalog.read_text(), nl=False)
    except Exception as e:
        fail(e)


@cli.command("catalog-add")
@click.argument("name")
@click.argument("url")
@click.argument("checksum")
@click.pass_context
def catalog_add(ctx, name, url, checksum):
    """Add an entry to the catalog.

    CHECKSUM is either 'none' or ALGO:hexdigest.

    Example:
        pkgcache catalog-add zlib https://zlib.net/zlib-1.3.tar.gz MD5:60373b133d630f74f4a1f94c1185a53f
    """
    try:
        with locked_repository(ctx) as repo:
            repo.catalog.add(name, url, checksum)
        console.print(f"[green]✓[/green] Added '{escape(name)}'")
    except Exception as e:
        fail(e)


@cli.command("catalog-remove")
@click.argument("name")
@click.pass_context
def catalog_remove(ctx, name):
    """Remove an entry from the catalog (no-op if absent)."""
    try:
        with locked_repository(ctx) as repo:
            removed = repo.catalog.remove(name)
        if removed:
            console.print(f"[green]✓[/green] Removed '{escape(name)}'")
        else:
            console.print(f"[yellow]'{escape(name)}' was not in the catalog[/yellow]")
    except Exception as e:
        fail(e)


@cli.command("catalog-get")
@click.argument("name")
@click.pass_context
def catalog_get(ctx, name):
    """Print the catalog entry for NAME."""
    try:
        with locked_repository(ctx) as repo:
            entry = repo.catalog.lookup(name)
        if entry is None:
            raise UnknownPackage(name)
        click.echo(entry.to_line())
    except Exception as e:
        fail(e)


@cli.command("catalog-import")
@click.argument("source", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def catalog_import(ctx, source):
    """Import every entry of SOURCE, all or nothing.

    SOURCE has one 'name url checksum' entry per line; blank lines and lines
    starting with '#' are ignored.
    """
    try:
        with locked_repository(ctx) as repo:
            names = repo.catalog.import_file(Path(source))
        for name in names:
            click.echo(name)
        console.print(f"[green]✓[/green] Imported {len(names)} entries")
    except Exception as e:
        fail(e)


# ==================== Fetch Commands ====================


@cli.command("fetch")
@click.argument("name")
@click.pass_context
def fetch(ctx, name):
    """Fetch NAME if needed and print its local path."""
    try:
        with locked_repository(ctx) as repo:
            path = repo.fetch_cache.get(name)
        click.echo(str(path))
    except Exception as e:
        fail(e)


@cli.command("fetch-all")
@click.argument("names", nargs=-1)
@click.pass_context
def fetch_all(ctx, names):
    """Fetch NAMES (default: the whole catalog), continuing past failures.

    Prints the local path of every fetched package.

    Example:
        pkgcache fetch-all
        pkgcache fetch-all zlib openssl
    """
    try:
        with locked_repository(ctx) as repo:
            try:
                fetched = repo.fetch_cache.load_all(list(names) or None)
            except BulkFetchPartialFailure as e:
                for path in e.fetched.values():
                    click.echo(str(path))
                for name, cause in e.failures.items():
                    console.print(f"[red]✗[/red] {escape(name)}: {escape(str(cause))}")
                raise

        for path in fetched.values():
            click.echo(str(path))
    except Exception as e:
        fail(e)


if __name__ == "__main__":
    cli()
