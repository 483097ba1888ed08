"""
Per-service definition collection.

Produces a stripped copy of a service document: ``@external`` fields are
removed from object and interface types (and recorded separately), ``@key``
selections are parsed, and non-default root operation type names are
normalised to ``Query``/``Mutation``/``Subscription``.
"""

from __future__ import annotations

import logging
from copy import copy
from dataclasses import dataclass, field
from typing import Any

from graphql import (
    DocumentNode,
    InterfaceTypeDefinitionNode,
    InterfaceTypeExtensionNode,
    NamedTypeNode,
    NameNode,
    ObjectTypeDefinitionNode,
    ObjectTypeExtensionNode,
    OperationType,
    SchemaDefinitionNode,
    SchemaExtensionNode,
    TypeDefinitionNode,
    TypeExtensionNode,
    Visitor,
    visit,
)

from . import ir
from .directives import EXTERNAL, KEY, find_directives, get_fields_argument, has_directive
from .errors import (
    CompositionError,
    CompositionErrorCode,
    SelectionParseError,
    log_service_and_type,
)
from .selection_parser import parse_selections

logger = logging.getLogger(__name__)

DEFAULT_ROOT_TYPE_NAMES: dict[OperationType, str] = {
    OperationType.QUERY: "Query",
    OperationType.MUTATION: "Mutation",
    OperationType.SUBSCRIPTION: "Subscription",
}

FieldOwningNode = (
    ObjectTypeDefinitionNode
    | ObjectTypeExtensionNode
    | InterfaceTypeDefinitionNode
    | InterfaceTypeExtensionNode
)


@dataclass(frozen=True)
class KeyEntry:
    """One parsed ``@key`` occurrence."""

    type_name: str
    selections: ir.SelectionSet


@dataclass(frozen=True)
class CollectedService:
    """
    Result of collecting one service.

    Attributes:
        name: Service name
        document: Stripped copy of the service document
        external_fields: Fields removed because they were marked ``@external``
        key_entries: Parsed ``@key`` selections, in document order
        errors: Key selections that could not be parsed
    """

    name: str
    document: DocumentNode
    external_fields: list[ir.ExternalFieldRecord] = field(default_factory=list)
    key_entries: list[KeyEntry] = field(default_factory=list)
    errors: list[CompositionError] = field(default_factory=list)


class _RootTypeRenamer(Visitor):
    """Renames root operation types, and every reference to them."""

    def __init__(self, renames: dict[str, str]):
        super().__init__()
        self.renames = renames

    def _renamed(self, node: Any) -> Any:
        new_name = self.renames.get(node.name.value)
        if new_name is None:
            return None
        renamed = copy(node)
        renamed.name = NameNode(value=new_name, loc=node.name.loc)
        return renamed

    def enter_named_type(self, node: NamedTypeNode, *_args: Any) -> Any:
        return self._renamed(node)

    def enter_object_type_definition(self, node: ObjectTypeDefinitionNode, *_args: Any) -> Any:
        return self._renamed(node)

    def enter_object_type_extension(self, node: ObjectTypeExtensionNode, *_args: Any) -> Any:
        return self._renamed(node)


def get_root_type_renames(document: DocumentNode) -> dict[str, str]:
    """Map non-default root operation type names to their default names."""
    renames: dict[str, str] = {}
    for definition in document.definitions:
        if not isinstance(definition, (SchemaDefinitionNode, SchemaExtensionNode)):
            continue
        for operation_type in definition.operation_types or ():
            declared = operation_type.type.name.value
            default = DEFAULT_ROOT_TYPE_NAMES[operation_type.operation]
            if declared != default:
                renames[declared] = default
    return renames


def _strip_external_fields(
    node: FieldOwningNode, service_name: str
) -> tuple[FieldOwningNode, list[ir.ExternalFieldRecord]]:
    kept = []
    externals: list[ir.ExternalFieldRecord] = []
    for field_node in node.fields or ():
        if has_directive(field_node, EXTERNAL):
            externals.append(
                ir.ExternalFieldRecord(
                    parent_type_name=node.name.value,
                    field_name=field_node.name.value,
                    service_name=service_name,
                    field_node=field_node,
                )
            )
        else:
            kept.append(field_node)

    if not externals:
        return node, externals

    stripped = copy(node)
    stripped.fields = tuple(kept)
    return stripped, externals


def _collect_keys(
    node: FieldOwningNode, service_name: str
) -> tuple[list[KeyEntry], list[CompositionError]]:
    type_name = node.name.value
    entries: list[KeyEntry] = []
    errors: list[CompositionError] = []

    for directive in find_directives(node, KEY):
        source = get_fields_argument(directive)
        if source is None:
            continue
        try:
            entries.append(KeyEntry(type_name=type_name, selections=parse_selections(source)))
        except SelectionParseError as e:
            errors.append(
                CompositionError(
                    code=CompositionErrorCode.SELECTION_PARSE_ERROR,
                    message=log_service_and_type(service_name, type_name)
                    + f'@key(fields: "{source}") could not be parsed: {e.message}',
                    service_name=service_name,
                    type_name=type_name,
                )
            )

    return entries, errors


def collect_service(service: ir.ServiceDefinition) -> CollectedService:
    """
    Collect the definitions of one service.

    The caller's document is left untouched; a new, stripped document is
    returned along with the external field records and key entries.

    Args:
        service: Service to collect

    Returns:
        CollectedService for the service
    """
    document = service.document
    renames = get_root_type_renames(document)
    if renames:
        logger.debug("Service %s renames root types %s", service.name, renames)
        document = visit(document, _RootTypeRenamer(renames))

    definitions = []
    external_fields: list[ir.ExternalFieldRecord] = []
    key_entries: list[KeyEntry] = []
    errors: list[CompositionError] = []

    for definition in document.definitions:
        if isinstance(definition, (SchemaDefinitionNode, SchemaExtensionNode)):
            continue

        if isinstance(
            definition,
            (
                ObjectTypeDefinitionNode,
                ObjectTypeExtensionNode,
                InterfaceTypeDefinitionNode,
                InterfaceTypeExtensionNode,
            ),
        ):
            definition, stripped = _strip_external_fields(definition, service.name)
            external_fields.extend(stripped)

            entries, key_errors = _collect_keys(definition, service.name)
            key_entries.extend(entries)
            errors.extend(key_errors)

        if isinstance(definition, (TypeDefinitionNode, TypeExtensionNode)):
            definitions.append(definition)

    logger.debug(
        "Collected service %s: %d definitions, %d external fields, %d keys",
        service.name,
        len(definitions),
        len(external_fields),
        len(key_entries),
    )

    return CollectedService(
        name=service.name,
        document=DocumentNode(definitions=tuple(definitions)),
        external_fields=external_fields,
        key_entries=key_entries,
        errors=errors,
    )
