"""
Main CLI entry point for cst-refactor.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

# mypy: ignore-errors

from pathlib import Path
from typing import Optional

import click

from ..core import ConfigurationError, load_config
from ..logging import configure_logging
from .refactor_cli import delete, insert, query, rename, replace


@click.group()
@click.option(
    "--config",
    "-c",
    "config_path",
    help="JSON configuration file for the session",
    type=click.Path(exists=True, file_okay=True, dir_okay=False, path_type=Path),
)
@click.option("--verbose", "-v", count=True, help="Increase log verbosity (-v, -vv)")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], verbose: int) -> None:
    """Select, rename, and rewrite Python code with CSS-like selectors."""
    configure_logging("DEBUG" if verbose > 1 else "INFO" if verbose else "WARNING")
    ctx.ensure_object(dict)
    if config_path is not None:
        try:
            ctx.obj["config"] = load_config(config_path)
        except ConfigurationError as e:
            raise click.ClickException(str(e))


cli.add_command(query)
cli.add_command(rename)
cli.add_command(delete)
cli.add_command(replace)
cli.add_command(insert)


if __name__ == "__main__":
    cli()
