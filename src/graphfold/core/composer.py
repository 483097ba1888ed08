"""
Composition entry point.

    services = [
        ServiceDefinition.from_sdl("accounts", accounts_sdl),
        ServiceDefinition.from_sdl("reviews", reviews_sdl),
    ]
    result = compose_services(services)
    if result.errors:
        ...
    result.graph.field_ownership("User", "reviews").service_name  # "reviews"
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from . import ir
from .builder import build_schema_from_definitions_and_extensions
from .errors import CompositionError
from .lint import validate_composition, validate_services
from .merge import build_maps_from_services
from .metadata import build_federation_metadata
from .validator import CompositionState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompositionResult:
    """
    The composed graph and every problem found while composing it.

    A non-empty ``errors`` list does not mean the graph is missing; deciding
    whether errors are fatal is up to the caller.
    """

    graph: ir.ComposedGraph
    errors: list[CompositionError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def compose_services(services: list[ir.ServiceDefinition]) -> CompositionResult:
    """
    Compose service documents into one graph with ownership metadata.

    Composition is deterministic: the same ordered input always produces the
    same graph and the same ordered errors. Input documents are not modified.

    Args:
        services: Services in caller order (order decides ownership tie-breaks)

    Returns:
        CompositionResult with the graph and errors ordered as pre-composition,
        collection, schema build, then post-composition validation
    """
    errors: list[CompositionError] = []

    errors.extend(validate_services(services))

    maps = build_maps_from_services(services)
    errors.extend(maps.errors)

    build = build_schema_from_definitions_and_extensions(maps)
    errors.extend(build.errors)

    errors.extend(validate_composition(CompositionState(maps=maps, schema=build.schema)))

    graph = ir.ComposedGraph(
        schema=build.schema,
        types=build_federation_metadata(build.schema, maps, maps.external_fields),
    )

    logger.info(
        "Composed %d services into %d types with %d errors",
        len(services),
        len(graph.types),
        len(errors),
    )
    return CompositionResult(graph=graph, errors=errors)
