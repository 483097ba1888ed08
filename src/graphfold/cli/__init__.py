"""
graphfold CLI package.

- project.py: compose / validate commands
- utils.py: version and logging helpers
"""

import typer

from graphfold.cli.project import compose_command, validate_command
from graphfold.cli.utils import version_callback

app = typer.Typer(
    help="""graphfold - compose GraphQL subgraph schemas

Commands operate on a graphfold.toml manifest listing the services
to compose, in composition order.
""",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and environment information",
    ),
) -> None:
    """graphfold CLI main callback for global options."""
    pass


app.command(name="compose")(compose_command)
app.command(name="validate")(validate_command)


def main() -> None:
    app()


__all__ = ["app", "main"]
