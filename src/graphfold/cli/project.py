"""
Project commands: compose and validate the services listed in graphfold.toml.
"""

import json
from pathlib import Path

import typer
from graphql import print_schema

from graphfold.core.composer import CompositionResult, compose_services
from graphfold.core.errors import CompositionError, GraphfoldError, ParseError
from graphfold.core.manifest import (
    DEFAULT_MANIFEST_NAME,
    ProjectManifest,
    load_manifest,
    load_service_definitions,
)

from .utils import configure_logging


def _print_human_diagnostics(errors: list[CompositionError]) -> None:
    """Print diagnostics in human-readable format."""
    if errors:
        typer.echo("Composition failed:\n", err=True)
        for error in errors:
            typer.echo(f"ERROR: {error}", err=True)
    else:
        typer.echo("OK: services compose cleanly.", err=True)


def _errors_payload(errors: list[CompositionError]) -> list[dict[str, str]]:
    return [error.to_dict() for error in errors]


def _compose_project(manifest: str) -> tuple[Path, ProjectManifest, CompositionResult]:
    manifest_path = Path(manifest).resolve()
    root = manifest_path.parent

    mf = load_manifest(manifest_path)
    services = load_service_definitions(root, mf)
    return root, mf, compose_services(services)


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def compose_command(
    manifest: str = typer.Option(
        DEFAULT_MANIFEST_NAME, "--manifest", "-m", help="Path to graphfold.toml"
    ),
    output: Path | None = typer.Option(  # noqa: B008
        None, "--output", "-o", help="Write the composed SDL here (overrides [output] schema)"
    ),
    metadata: Path | None = typer.Option(  # noqa: B008
        None,
        "--metadata",
        help="Write ownership metadata JSON here (overrides [output] metadata)",
    ),
    format: str = typer.Option("human", "--format", "-f", help="Output format: 'human' or 'json'"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
) -> None:
    """
    Compose every service in the manifest into one schema.

    Prints the composed SDL (or writes it to the configured file) and
    reports composition errors. Exits 1 on errors when
    [output] fail_on_errors is set.
    """
    configure_logging(verbose)

    try:
        root, mf, result = _compose_project(manifest)
    except ParseError as e:
        typer.echo(f"Parse error: {e}", err=True)
        raise typer.Exit(code=1)
    except GraphfoldError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    sdl = print_schema(result.graph.schema)
    metadata_dict = result.graph.metadata_dict()

    schema_path = output or (root / mf.output.schema if mf.output.schema else None)
    metadata_path = metadata or (root / mf.output.metadata if mf.output.metadata else None)

    if schema_path:
        _write(schema_path, sdl + "\n")
    if metadata_path:
        _write(metadata_path, json.dumps(metadata_dict, indent=2) + "\n")

    if format == "json":
        payload = {
            "project": mf.name,
            "schema": None if schema_path else sdl,
            "metadata": None if metadata_path else metadata_dict,
            "errors": _errors_payload(result.errors),
        }
        typer.echo(json.dumps(payload, indent=2))
    else:
        if not schema_path:
            typer.echo(sdl)
        _print_human_diagnostics(result.errors)

    if result.errors and mf.output.fail_on_errors:
        raise typer.Exit(code=1)


def validate_command(
    manifest: str = typer.Option(
        DEFAULT_MANIFEST_NAME, "--manifest", "-m", help="Path to graphfold.toml"
    ),
    format: str = typer.Option("human", "--format", "-f", help="Output format: 'human' or 'json'"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
) -> None:
    """
    Compose every service in the manifest and report diagnostics only.

    Exits 1 when composition reports any error.
    """
    configure_logging(verbose)

    try:
        _, _, result = _compose_project(manifest)
    except ParseError as e:
        typer.echo(f"Parse error: {e}", err=True)
        raise typer.Exit(code=1)
    except GraphfoldError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    if format == "json":
        typer.echo(json.dumps({"errors": _errors_payload(result.errors)}, indent=2))
    else:
        _print_human_diagnostics(result.errors)

    if result.errors:
        raise typer.Exit(code=1)
