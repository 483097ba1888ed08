"""
Graph builder: turns the merged definition and extension maps into one
``GraphQLSchema``.

The schema is built in two passes, base definitions first and extension
fragments second. Each pass is validated against the composition rules
before it is applied; validation errors are recorded and the build carries
on, so a composition always yields a schema.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from copy import copy
from dataclasses import dataclass, field
from typing import Any

from graphql import (
    BREAK,
    DefinitionNode,
    DocumentNode,
    EnumTypeExtensionNode,
    GraphQLError,
    GraphQLNamedType,
    GraphQLSchema,
    InputObjectTypeExtensionNode,
    InterfaceTypeExtensionNode,
    NamedTypeNode,
    Node,
    ObjectTypeExtensionNode,
    PossibleTypeExtensionsRule,
    ScalarTypeExtensionNode,
    UnionTypeExtensionNode,
    UniqueEnumValueNamesRule,
    UniqueFieldDefinitionNamesRule,
    UniqueTypeNamesRule,
    Visitor,
    extend_schema,
    is_enum_type,
    is_input_object_type,
    is_interface_type,
    is_object_type,
    is_scalar_type,
    is_union_type,
    specified_directives,
    visit,
)
from graphql.validation.specified_rules import specified_sdl_rules
from graphql.validation.validate import validate_sdl

from .collector import DEFAULT_ROOT_TYPE_NAMES
from .directives import federation_directives
from .errors import CompositionError, CompositionErrorCode, log_service_and_type
from .merge import CompositionMaps, ExtensionEntry

logger = logging.getLogger(__name__)

# Several services legitimately declare the same type, field or enum value, and
# extension kinds are checked by the builder itself.
_OMITTED_SDL_RULES = (
    UniqueTypeNamesRule,
    UniqueEnumValueNamesRule,
    UniqueFieldDefinitionNamesRule,
    PossibleTypeExtensionsRule,
)

composition_rules = tuple(rule for rule in specified_sdl_rules if rule not in _OMITTED_SDL_RULES)

_EXTENSION_KINDS: dict[type, tuple[str, Callable[[Any], bool]]] = {
    ObjectTypeExtensionNode: ("object", is_object_type),
    InterfaceTypeExtensionNode: ("interface", is_interface_type),
    UnionTypeExtensionNode: ("union", is_union_type),
    EnumTypeExtensionNode: ("enum", is_enum_type),
    InputObjectTypeExtensionNode: ("input object", is_input_object_type),
    ScalarTypeExtensionNode: ("scalar", is_scalar_type),
}


@dataclass(frozen=True)
class BuildResult:
    """The composed schema and the errors met while building it."""

    schema: GraphQLSchema
    errors: list[CompositionError] = field(default_factory=list)


def create_empty_schema() -> GraphQLSchema:
    """An empty schema seeded with the standard and federation directives."""
    return GraphQLSchema(query=None, directives=[*specified_directives, *federation_directives])


def _dedupe_interfaces(node: Any, declared: set[str]) -> Any:
    """Drop interfaces already in ``declared`` from a node, recording the rest."""
    interfaces = getattr(node, "interfaces", None)
    if not interfaces:
        return node

    unique = []
    for interface in interfaces:
        name = interface.name.value
        if name not in declared:
            declared.add(name)
            unique.append(interface)

    if len(unique) == len(interfaces):
        return node
    deduped = copy(node)
    deduped.interfaces = tuple(unique)
    return deduped


def _declared_interfaces(type_: GraphQLNamedType | None) -> set[str]:
    if type_ is not None and (is_object_type(type_) or is_interface_type(type_)):
        return {interface.name for interface in type_.interfaces}  # type: ignore[union-attr]
    return set()


class _NodeFinder(Visitor):
    """Stops at the first node whose identity is in ``targets``."""

    def __init__(self, targets: set[int]) -> None:
        super().__init__()
        self.targets = targets
        self.found = False

    def enter(self, node: Node, *_args: Any) -> Any:
        if id(node) in self.targets:
            self.found = True
            return BREAK
        return None


def _definitions_with_unknown_types(
    definitions: list[DefinitionNode], errors: list[GraphQLError]
) -> list[DefinitionNode]:
    """Top-level definitions holding a type reference that ``errors`` reports."""
    targets = {
        id(node)
        for error in errors
        for node in error.nodes or ()
        if isinstance(node, NamedTypeNode)
    }
    if not targets:
        return []

    reported = []
    for definition in definitions:
        finder = _NodeFinder(targets)
        visit(definition, finder)
        if finder.found:
            reported.append(definition)
    return reported


def _left_out_error(definition: DefinitionNode, phase: str) -> CompositionError:
    type_name = definition.name.value  # type: ignore[attr-defined]
    return CompositionError(
        code=CompositionErrorCode.SCHEMA_BUILD_FAILED,
        message=f"Could not apply {phase}: left out {type_name}, "
        "which references an undefined type",
        type_name=type_name,
    )


def _apply_document(
    schema: GraphQLSchema, document: DocumentNode, phase: str
) -> tuple[GraphQLSchema, list[CompositionError]]:
    """
    Validate ``document`` against ``schema`` and extend the schema with it.

    When the document as a whole cannot be applied, definitions referencing
    an unknown type are left out and the rest is applied without them.
    Definitions referencing a left-out type are then left out in turn.
    """
    validation_errors = validate_sdl(document, schema, composition_rules)
    errors = [
        CompositionError(code=CompositionErrorCode.SDL_VALIDATION_ERROR, message=error.message)
        for error in validation_errors
    ]

    definitions = list(document.definitions)
    left_out: list[DefinitionNode] = []

    while True:
        try:
            extended = extend_schema(
                schema, DocumentNode(definitions=tuple(definitions)), assume_valid_sdl=True
            )
        except (GraphQLError, TypeError) as e:
            reported = _definitions_with_unknown_types(definitions, validation_errors)
            if not reported:
                logger.warning("Could not apply %s: %s", phase, e)
                errors.append(
                    CompositionError(
                        code=CompositionErrorCode.SCHEMA_BUILD_FAILED,
                        message=f"Could not apply {phase}: {e}",
                    )
                )
                return schema, errors

            logger.warning("Leaving %d definitions out of %s: %s", len(reported), phase, e)
            left_out.extend(reported)
            definitions = [d for d in definitions if all(d is not r for r in reported)]
            validation_errors = validate_sdl(
                DocumentNode(definitions=tuple(definitions)), schema, composition_rules
            )
            continue

        errors.extend(_left_out_error(definition, phase) for definition in left_out)
        return extended, errors


def build_definitions_document(maps: CompositionMaps) -> DocumentNode:
    """Flatten every base definition, in map and service order."""
    definitions = [
        _dedupe_interfaces(entry.definition, set())
        for entries in maps.definitions.values()
        for entry in entries
    ]
    return DocumentNode(definitions=tuple(definitions))


def build_extensions_document(
    schema: GraphQLSchema, extensions: dict[str, list[ExtensionEntry]]
) -> tuple[DocumentNode, list[CompositionError]]:
    """
    Flatten every extension fragment that fits its base type.

    Fragments whose kind differs from the base type built in the first pass
    are reported and left out. Interfaces the type already implements, or
    that an earlier fragment added, are dropped from later fragments.
    """
    fragments = []
    errors: list[CompositionError] = []

    for type_name, entries in extensions.items():
        base = schema.get_type(type_name)
        declared = _declared_interfaces(base)

        for entry in entries:
            node = entry.definition
            kind, matches = _EXTENSION_KINDS[type(node)]
            if base is not None and not matches(base):
                logger.warning(
                    "Skipping %s extension of %s from %s", kind, type_name, entry.service_name
                )
                errors.append(
                    CompositionError(
                        code=CompositionErrorCode.EXTENSION_KIND_MISMATCH,
                        message=log_service_and_type(entry.service_name, type_name)
                        + f"cannot apply a {kind} extension to {type_name}, "
                        "which is defined with a different kind",
                        service_name=entry.service_name,
                        type_name=type_name,
                    )
                )
                continue
            fragments.append(_dedupe_interfaces(node, declared))

    return DocumentNode(definitions=tuple(fragments)), errors


def with_root_types(schema: GraphQLSchema) -> GraphQLSchema:
    """Rebuild the schema with its root operation types resolved by name."""
    roots: dict[str, Any] = {}
    for operation, type_name in DEFAULT_ROOT_TYPE_NAMES.items():
        root = schema.get_type(type_name)
        roots[operation.value] = root if is_object_type(root) else None

    return GraphQLSchema(**{**schema.to_kwargs(), **roots})


def build_schema_from_definitions_and_extensions(maps: CompositionMaps) -> BuildResult:
    """
    Build the composed schema from the merged maps.

    Args:
        maps: Merged definitions and extensions (placeholders already added)

    Returns:
        BuildResult with the composed schema and any SDL/build errors
    """
    errors: list[CompositionError] = []

    schema, phase_errors = _apply_document(
        create_empty_schema(), build_definitions_document(maps), "base definitions"
    )
    errors.extend(phase_errors)

    extensions_document, kind_errors = build_extensions_document(schema, maps.extensions)
    errors.extend(kind_errors)

    schema, phase_errors = _apply_document(schema, extensions_document, "type extensions")
    errors.extend(phase_errors)

    schema = with_root_types(schema)
    logger.debug(
        "Built schema with %d types (%d build errors)", len(schema.type_map), len(errors)
    )
    return BuildResult(schema=schema, errors=errors)


__all__ = [
    "BuildResult",
    "build_schema_from_definitions_and_extensions",
    "composition_rules",
    "create_empty_schema",
]
