"""
graphfold - compose GraphQL subgraph schemas into one federated graph.

    from graphfold import ServiceDefinition, compose_services

    result = compose_services([
        ServiceDefinition.from_sdl("accounts", accounts_sdl),
        ServiceDefinition.from_sdl("reviews", reviews_sdl),
    ])
"""

from graphfold._version import __version__
from graphfold.core.composer import CompositionResult, compose_services
from graphfold.core.errors import (
    CompositionError,
    CompositionErrorCode,
    GraphfoldError,
    ManifestError,
    ParseError,
    SelectionParseError,
)
from graphfold.core.ir import ComposedGraph, ServiceDefinition
from graphfold.core.subgraph import build_subgraph_schema, print_subgraph_sdl

__all__ = [
    "__version__",
    "compose_services",
    "CompositionResult",
    "ComposedGraph",
    "ServiceDefinition",
    "CompositionError",
    "CompositionErrorCode",
    "GraphfoldError",
    "ManifestError",
    "ParseError",
    "SelectionParseError",
    "build_subgraph_schema",
    "print_subgraph_sdl",
]
