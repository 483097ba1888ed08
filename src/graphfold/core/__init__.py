"""Core graphfold functionality: IR, selections, merging, schema building, validation."""

from . import ir
from .builder import BuildResult, build_schema_from_definitions_and_extensions
from .collector import CollectedService, collect_service
from .composer import CompositionResult, compose_services
from .errors import (
    CompositionError,
    CompositionErrorCode,
    ErrorContext,
    GraphfoldError,
    ManifestError,
    ParseError,
    SelectionParseError,
)
from .lint import validate_composition, validate_services
from .manifest import ProjectManifest, load_manifest, load_service_definitions
from .merge import CompositionMaps, build_maps_from_services
from .metadata import build_federation_metadata
from .selection_parser import parse_selections
from .subgraph import build_subgraph_schema, print_subgraph_sdl

__all__ = [
    "ir",
    "BuildResult",
    "build_schema_from_definitions_and_extensions",
    "CollectedService",
    "collect_service",
    "CompositionResult",
    "compose_services",
    "CompositionError",
    "CompositionErrorCode",
    "ErrorContext",
    "GraphfoldError",
    "ManifestError",
    "ParseError",
    "SelectionParseError",
    "validate_composition",
    "validate_services",
    "ProjectManifest",
    "load_manifest",
    "load_service_definitions",
    "CompositionMaps",
    "build_maps_from_services",
    "build_federation_metadata",
    "parse_selections",
    "build_subgraph_schema",
    "print_subgraph_sdl",
]
