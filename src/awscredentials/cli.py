# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Main CLI entry point for awscredentials."""

from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from awscredentials import __version__
from awscredentials.commands.credentials import credentials_app
from awscredentials.core.config import DEFAULT_ROLE_SESSION_NAME, get_config_dir

app = typer.Typer(
    name="awscredentials",
    help="AWS credentials store with STS role assumption and environment binding",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
console = Console()

app.add_typer(credentials_app, name="credentials", help="Manage and bind AWS credentials")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(
        None, "--version", "-v", help="Show version information"
    ),
    verbose: Optional[bool] = typer.Option(
        False, "--verbose", "-V", help="Enable verbose logging"
    ),
) -> None:
    """AWS credentials store with STS role assumption and environment binding."""
    if verbose:
        import logging
        logging.basicConfig(level=logging.DEBUG)

    if version:
        table = Table(title="awscredentials Information")
        table.add_column("Property", style="cyan", no_wrap=True)
        table.add_column("Value", style="magenta")

        table.add_row("Version", __version__)
        table.add_row("Config directory", str(get_config_dir()))
        table.add_row("Default session name", DEFAULT_ROLE_SESSION_NAME)

        console.print(table)
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit()


if __name__ == "__main__":
    app()
