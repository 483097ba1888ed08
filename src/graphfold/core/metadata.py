"""
Ownership metadata for the composed schema.

The records are built once per type from the fully merged maps and kept in a
plain mapping next to the schema; graphql-core objects are never annotated.
"""

from __future__ import annotations

import logging

from graphql import GraphQLSchema, is_object_type

from . import ir
from .directives import PROVIDES, REQUIRES
from .merge import CompositionMaps
from .validator import dependency_selection, field_owner

logger = logging.getLogger(__name__)


def _group_externals(
    external_fields: list[ir.ExternalFieldRecord],
) -> dict[str, dict[str, list[ir.ExternalFieldRecord]]]:
    """Type name -> service name -> external records, in declaration order."""
    grouped: dict[str, dict[str, list[ir.ExternalFieldRecord]]] = {}
    for record in external_fields:
        grouped.setdefault(record.parent_type_name, {}).setdefault(
            record.service_name, []
        ).append(record)
    return grouped


def build_federation_metadata(
    schema: GraphQLSchema,
    maps: CompositionMaps,
    external_fields: list[ir.ExternalFieldRecord],
) -> dict[str, ir.TypeOwnership]:
    """
    Build the ownership record of every contributed type found in the schema.

    Args:
        schema: Composed schema
        maps: Merged composition maps (type owners and keys)
        external_fields: External field records from every service

    Returns:
        Type name to TypeOwnership, in type-owner map order
    """
    externals = _group_externals(external_fields)
    types: dict[str, ir.TypeOwnership] = {}

    for type_name, owner in maps.type_owners.items():
        named_type = schema.get_type(type_name)
        if named_type is None:
            logger.debug("Type %s missing from composed schema, no metadata", type_name)
            continue

        fields: dict[str, ir.FieldOwnership] = {}
        if is_object_type(named_type):
            for field_name, field in named_type.fields.items():  # type: ignore[union-attr]
                fields[field_name] = ir.FieldOwnership(
                    service_name=field_owner(maps, type_name, field_name),
                    provides=dependency_selection(field, PROVIDES),
                    requires=dependency_selection(field, REQUIRES),
                )

        types[type_name] = ir.TypeOwnership(
            service_name=owner.service_name,
            keys={
                service: tuple(selections)
                for service, selections in maps.keys.get(type_name, {}).items()
            },
            externals={
                service: tuple(records)
                for service, records in externals.get(type_name, {}).items()
            },
            fields=fields,
        )

    return types
