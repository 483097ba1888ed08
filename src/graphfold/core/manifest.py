import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from . import ir
from .errors import ManifestError

logger = logging.getLogger(__name__)

DEFAULT_MANIFEST_NAME = "graphfold.toml"


@dataclass
class ServiceConfig:
    """One subgraph service: its name and the SDL file it is read from."""

    name: str
    path: str  # Relative to the project root


@dataclass
class OutputConfig:
    """Where composition results go."""

    schema: str | None = None  # Composed SDL; stdout when unset
    metadata: str | None = None  # Ownership metadata JSON
    fail_on_errors: bool = True  # Exit non-zero when composition reports errors


@dataclass
class ProjectManifest:
    """
    Project manifest loaded from graphfold.toml.

    Services are kept in file order, which is the composition order.
    """

    name: str
    project_root: str
    services: list[ServiceConfig] = field(default_factory=list)
    output: OutputConfig = field(default_factory=OutputConfig)


def load_manifest(path: Path) -> ProjectManifest:
    """
    Load a graphfold.toml manifest.

    Raises:
        ManifestError: If the file is not valid TOML or lists no usable services
    """
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ManifestError(f"Manifest not found: {path}") from e
    except tomllib.TOMLDecodeError as e:
        raise ManifestError(f"Invalid TOML in {path}: {e}") from e

    project = data.get("project", {})
    output_data = data.get("output", {})

    services: list[ServiceConfig] = []
    seen: set[str] = set()
    for entry in data.get("services", []):
        name = entry.get("name")
        service_path = entry.get("path")
        if not name or not service_path:
            raise ManifestError(f"Each [[services]] entry in {path} needs a name and a path")
        if name in seen:
            raise ManifestError(f"Duplicate service name '{name}' in {path}")
        seen.add(name)
        services.append(ServiceConfig(name=name, path=service_path))

    if not services:
        raise ManifestError(f"No [[services]] defined in {path}")

    output = OutputConfig(
        schema=output_data.get("schema"),
        metadata=output_data.get("metadata"),
        fail_on_errors=output_data.get("fail_on_errors", True),
    )

    return ProjectManifest(
        name=project.get("name", path.parent.name),
        project_root=str(path.parent),
        services=services,
        output=output,
    )


def load_service_definitions(
    root: Path, manifest: ProjectManifest
) -> list[ir.ServiceDefinition]:
    """
    Read and parse every service's SDL file, in manifest order.

    Raises:
        ManifestError: If a service file does not exist
        ParseError: If a service file is not valid SDL
    """
    services = []
    for service in manifest.services:
        sdl_path = root / service.path
        if not sdl_path.is_file():
            raise ManifestError(f"SDL file for service '{service.name}' not found: {sdl_path}")

        logger.debug("Reading service %s from %s", service.name, sdl_path)
        services.append(
            ir.ServiceDefinition.from_sdl(
                service.name, sdl_path.read_text(encoding="utf-8"), file=sdl_path
            )
        )
    return services
