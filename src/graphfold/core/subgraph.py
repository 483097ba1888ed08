"""
Subgraph schema builder.

Turns one service document into the schema that service exposes to the
gateway: the document's own types plus the federation entry points

    scalar _Any
    type _Service { sdl: String }
    union _Entity = <every object type with a @key>

    type Query {
      _entities(representations: [_Any!]!): [_Entity]!
      _service: _Service!
      ...
    }

Only the schema shape is built; resolving ``_entities`` and ``_service`` is
left to the server hosting the schema.
"""

from __future__ import annotations

import logging
from copy import copy

from graphql import (
    DocumentNode,
    GraphQLSchema,
    NameNode,
    ObjectTypeDefinitionNode,
    ObjectTypeExtensionNode,
    OperationType,
    SchemaDefinitionNode,
    extend_schema,
    parse,
    print_ast,
)

from .builder import create_empty_schema, with_root_types
from .collector import DEFAULT_ROOT_TYPE_NAMES
from .directives import KEY, has_directive

logger = logging.getLogger(__name__)

ANY_TYPE_NAME = "_Any"
SERVICE_TYPE_NAME = "_Service"
ENTITY_TYPE_NAME = "_Entity"

_SERVICE_TYPES_SDL = f"""
scalar {ANY_TYPE_NAME}

type {SERVICE_TYPE_NAME} {{
  sdl: String
}}
"""

_ENTITIES_FIELD_SDL = (
    f"_entities(representations: [{ANY_TYPE_NAME}!]!): [{ENTITY_TYPE_NAME}]!"
)
_SERVICE_FIELD_SDL = f"_service: {SERVICE_TYPE_NAME}!"


def get_query_type_name(document: DocumentNode) -> str:
    """Name of the query root: declared in ``schema { query: ... }``, else ``Query``."""
    for definition in document.definitions:
        if isinstance(definition, SchemaDefinitionNode):
            for operation_type in definition.operation_types:
                if operation_type.operation == OperationType.QUERY:
                    return operation_type.type.name.value
    return DEFAULT_ROOT_TYPE_NAMES[OperationType.QUERY]


def get_entity_type_names(document: DocumentNode) -> list[str]:
    """Object types (definitions or extensions) carrying ``@key``, in document order."""
    names: list[str] = []
    for definition in document.definitions:
        if not isinstance(definition, (ObjectTypeDefinitionNode, ObjectTypeExtensionNode)):
            continue
        name = definition.name.value
        if has_directive(definition, KEY) and name not in names:
            names.append(name)
    return names


def _federation_query_fields(has_entities: bool) -> tuple:
    fields = [_SERVICE_FIELD_SDL]
    if has_entities:
        fields.insert(0, _ENTITIES_FIELD_SDL)
    query = parse(f"type Query {{ {' '.join(fields)} }}", no_location=True)
    return query.definitions[0].fields  # type: ignore[attr-defined]


def augment_subgraph_document(document: DocumentNode) -> DocumentNode:
    """
    Add the federation types and root fields to a service document.

    The input document is not modified.
    """
    entity_names = get_entity_type_names(document)
    query_name = get_query_type_name(document)
    federation_fields = _federation_query_fields(bool(entity_names))

    definitions = list(parse(_SERVICE_TYPES_SDL, no_location=True).definitions)
    if entity_names:
        definitions.extend(
            parse(
                f"union {ENTITY_TYPE_NAME} = {' | '.join(entity_names)}", no_location=True
            ).definitions
        )

    has_query_definition = False
    for definition in document.definitions:
        if (
            not has_query_definition
            and isinstance(definition, ObjectTypeDefinitionNode)
            and definition.name.value == query_name
        ):
            has_query_definition = True
            definition = copy(definition)
            definition.fields = (*federation_fields, *(definition.fields or ()))
        definitions.append(definition)

    if not has_query_definition:
        definitions.insert(
            0,
            ObjectTypeDefinitionNode(
                name=NameNode(value=query_name),
                directives=(),
                interfaces=(),
                fields=federation_fields,
            ),
        )

    return DocumentNode(definitions=tuple(definitions))


def build_subgraph_schema(document: DocumentNode) -> GraphQLSchema:
    """
    Build the schema one service exposes, federation entry points included.

    Args:
        document: The service's SDL document

    Returns:
        GraphQLSchema with ``_Any``, ``_Service``, ``_Entity`` (when the
        service has entities) and the ``_entities``/``_service`` query fields

    Raises:
        TypeError: If the document is not valid SDL
    """
    schema = extend_schema(create_empty_schema(), augment_subgraph_document(document))

    # Without a schema definition, root types are found by their default names
    if schema.query_type is None:
        schema = with_root_types(schema)

    logger.debug("Built subgraph schema with query root %s", schema.query_type)
    return schema


def print_subgraph_sdl(document: DocumentNode) -> str:
    """The SDL a service reports through ``_service { sdl }``: its own document, printed."""
    return print_ast(document)
