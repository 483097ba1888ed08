"""
Ownership IR types.

These records are the only contract handed to the query planner. They are
kept alongside the composed ``GraphQLSchema`` rather than attached to its
type objects, and serialise with the camelCase names the planner expects:

    {
      "serviceName": "products",
      "keys": {"products": [{"selections": [{"name": "upc", ...}]}]},
      "externals": {},
      "fields": {"reviews": {"serviceName": "reviews"}}
    }
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from graphql import FieldDefinitionNode, GraphQLSchema
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .selections import SelectionSet

_OWNERSHIP_CONFIG = ConfigDict(
    frozen=True,
    alias_generator=to_camel,
    populate_by_name=True,
    arbitrary_types_allowed=True,
)


class ExternalFieldRecord(BaseModel):
    """
    A field marked ``@external`` and stripped from its service's document.

    Attributes:
        parent_type_name: Type (or type extension) declaring the field
        field_name: Name of the external field
        service_name: Service that declared it
        field_node: The original field definition node (not serialised)
    """

    parent_type_name: str
    field_name: str
    service_name: str
    field_node: FieldDefinitionNode = Field(exclude=True)

    model_config = _OWNERSHIP_CONFIG


class FieldOwnership(BaseModel):
    """
    Ownership of a single field of a composed object type.

    Attributes:
        service_name: Service resolving the field (extension owner, else type owner)
        provides: Parsed ``@provides`` selection on the field, if any
        requires: Parsed ``@requires`` selection on the field, if any
    """

    service_name: str | None = None
    provides: SelectionSet | None = None
    requires: SelectionSet | None = None

    model_config = _OWNERSHIP_CONFIG


class TypeOwnership(BaseModel):
    """
    Ownership of a composed type.

    Attributes:
        service_name: Service owning the base definition (None for placeholders)
        keys: Key selections per declaring service, in declaration order
        externals: External field records per declaring service
        fields: Per-field ownership (object types only)
    """

    service_name: str | None = None
    keys: dict[str, tuple[SelectionSet, ...]] = Field(default_factory=dict)
    externals: dict[str, tuple[ExternalFieldRecord, ...]] = Field(default_factory=dict)
    fields: dict[str, FieldOwnership] = Field(default_factory=dict)

    model_config = _OWNERSHIP_CONFIG


@dataclass(frozen=True)
class ComposedGraph:
    """
    The composed schema plus its ownership metadata.

    Attributes:
        schema: Composed graphql-core schema
        types: Type name to ownership record, for every type a service contributed
    """

    schema: GraphQLSchema
    types: dict[str, TypeOwnership] = field(default_factory=dict)

    def type_ownership(self, type_name: str) -> TypeOwnership | None:
        return self.types.get(type_name)

    def field_ownership(self, type_name: str, field_name: str) -> FieldOwnership | None:
        ownership = self.types.get(type_name)
        if ownership is None:
            return None
        return ownership.fields.get(field_name)

    def metadata_dict(self) -> dict[str, Any]:
        """Serialise all ownership records with their stable camelCase names."""
        return {
            name: ownership.model_dump(mode="json", by_alias=True)
            for name, ownership in self.types.items()
        }
