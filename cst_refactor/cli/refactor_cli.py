"""
Refactor CLI commands: query, rename, delete, replace, insert.

Each command loads one Python file into a RefactorSession, applies the
operation, and prints the resulting source (or writes it back with --write).

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

# mypy: ignore-errors

import logging
from pathlib import Path

import click

from ..core import RefactorConfig, RefactorError, RefactorSession
from ..cst_query import QueryParseError

logger = logging.getLogger(__name__)

_FILE = click.argument(
    "file",
    type=click.Path(exists=True, file_okay=True, dir_okay=False, path_type=Path),
)
_WRITE = click.option(
    "--write",
    "-w",
    is_flag=True,
    help="Write the result back to FILE instead of printing it",
)


def _open_session(ctx: click.Context, file: Path) -> RefactorSession:
    config = (ctx.obj or {}).get("config") or RefactorConfig()
    source = file.read_text(encoding="utf-8")
    logger.debug(f"Loaded {file} ({len(source)} chars)")
    return RefactorSession(source, config)


def _emit(session: RefactorSession, file: Path, write: bool) -> None:
    session.commit()
    code = session.generate()
    if write:
        file.write_text(code, encoding="utf-8")
        click.echo(f"Updated {file}")
    else:
        click.echo(code, nl=False)


@click.command(name="query")
@_FILE
@click.argument("selector")
@click.pass_context
def query(ctx: click.Context, file: Path, selector: str) -> None:
    """Print nodes of FILE matching SELECTOR."""
    try:
        session = _open_session(ctx, file)
        nodes = session.query(selector)
    except (RefactorError, QueryParseError) as e:
        raise click.ClickException(str(e))
    for node in nodes:
        snippet = session.generate(node).strip().splitlines()
        click.echo(f"{type(node).__name__}: {snippet[0] if snippet else ''}")
    click.echo(f"{len(nodes)} match(es)")


@click.command(name="rename")
@_FILE
@click.argument("selector")
@click.argument("new_name")
@_WRITE
@click.pass_context
def rename(ctx: click.Context, file: Path, selector: str, new_name: str, write: bool) -> None:
    """Rename the variables behind SELECTOR to NEW_NAME."""
    if not new_name.isidentifier():
        raise click.ClickException(f"Not a valid identifier: {new_name}")
    try:
        session = _open_session(ctx, file)
        session.rename(selector, new_name)
        _emit(session, file, write)
    except (RefactorError, QueryParseError) as e:
        raise click.ClickException(str(e))


@click.command(name="delete")
@_FILE
@click.argument("selector")
@_WRITE
@click.pass_context
def delete(ctx: click.Context, file: Path, selector: str, write: bool) -> None:
    """Delete nodes matching SELECTOR."""
    try:
        session = _open_session(ctx, file)
        session.delete(selector)
        _emit(session, file, write)
    except (RefactorError, QueryParseError) as e:
        raise click.ClickException(str(e))


@click.command(name="replace")
@_FILE
@click.argument("selector")
@click.argument("code")
@click.option(
    "--recursive",
    "-r",
    is_flag=True,
    help="Repeat until the selector stops producing replacements",
)
@_WRITE
@click.pass_context
def replace(
    ctx: click.Context, file: Path, selector: str, code: str, recursive: bool, write: bool
) -> None:
    """Replace nodes matching SELECTOR with CODE."""
    try:
        session = _open_session(ctx, file)
        if recursive:
            session.replace_recursive(selector, code)
        else:
            count = session.replace(selector, code)
            logger.info(f"Queued {count} replacement(s)")
        _emit(session, file, write)
    except (RefactorError, QueryParseError) as e:
        raise click.ClickException(str(e))


@click.command(name="insert")
@_FILE
@click.argument("selector")
@click.argument("code")
@click.option("--after", is_flag=True, help="Insert after the anchor (default: before)")
@_WRITE
@click.pass_context
def insert(
    ctx: click.Context, file: Path, selector: str, code: str, after: bool, write: bool
) -> None:
    """Insert CODE before (or after) statements matching SELECTOR."""
    try:
        session = _open_session(ctx, file)
        if after:
            session.append(selector, code)
        else:
            session.prepend(selector, code)
        _emit(session, file, write)
    except (RefactorError, QueryParseError) as e:
        raise click.ClickException(str(e))
