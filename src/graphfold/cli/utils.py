"""
graphfold CLI utilities.

Shared helpers used across CLI modules.
"""

import logging
import os
import platform

import typer

from graphfold._version import get_version

LOG_LEVEL_ENV = "GRAPHFOLD_LOG_LEVEL"


def configure_logging(verbose: bool = False) -> None:
    """Configure root logging from ``--verbose`` or the GRAPHFOLD_LOG_LEVEL env var."""
    level_name = "DEBUG" if verbose else os.getenv(LOG_LEVEL_ENV, "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def version_callback(value: bool) -> None:
    """Display version and environment information."""
    if value:
        typer.echo(f"graphfold version {get_version()}")
        typer.echo("")
        typer.echo("Environment:")
        typer.echo(
            f"  Python:        {platform.python_implementation()} {platform.python_version()}"
        )
        typer.echo(f"  Platform:      {platform.system()} {platform.release()}")
        raise typer.Exit()
