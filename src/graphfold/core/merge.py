"""
Merge engine: folds every service's stripped definitions into the maps the
graph builder and the validators work from.

Service order is significant. When several services define the same base
type, the last one in input order becomes its owner; when several services
extend the same field, the last one wins the field (the collision itself is
reported by the validation pipeline).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from graphql import (
    EnumTypeDefinitionNode,
    EnumTypeExtensionNode,
    InputObjectTypeDefinitionNode,
    InputObjectTypeExtensionNode,
    InterfaceTypeDefinitionNode,
    InterfaceTypeExtensionNode,
    NameNode,
    ObjectTypeDefinitionNode,
    ObjectTypeExtensionNode,
    ScalarTypeDefinitionNode,
    ScalarTypeExtensionNode,
    TypeDefinitionNode,
    TypeExtensionNode,
    UnionTypeDefinitionNode,
    UnionTypeExtensionNode,
)

from . import ir
from .collector import CollectedService, KeyEntry, collect_service
from .errors import CompositionError

logger = logging.getLogger(__name__)

# Placeholder base definition to synthesise for each extension kind, with its
# collection attributes empty (graphql-core leaves unset node attributes as None)
_PLACEHOLDER_KINDS: dict[type[TypeExtensionNode], tuple[type[TypeDefinitionNode], dict]] = {
    ObjectTypeExtensionNode: (ObjectTypeDefinitionNode, {"interfaces": (), "fields": ()}),
    InterfaceTypeExtensionNode: (InterfaceTypeDefinitionNode, {"interfaces": (), "fields": ()}),
    UnionTypeExtensionNode: (UnionTypeDefinitionNode, {"types": ()}),
    EnumTypeExtensionNode: (EnumTypeDefinitionNode, {"values": ()}),
    InputObjectTypeExtensionNode: (InputObjectTypeDefinitionNode, {"fields": ()}),
    ScalarTypeExtensionNode: (ScalarTypeDefinitionNode, {}),
}


@dataclass(frozen=True)
class DefinitionEntry:
    """A base type definition and the service that declared it (None for placeholders)."""

    definition: TypeDefinitionNode
    service_name: str | None


@dataclass(frozen=True)
class ExtensionEntry:
    """An extension fragment and the service that declared it."""

    definition: TypeExtensionNode
    service_name: str


@dataclass
class TypeOwner:
    """
    Ownership of one type name.

    Attributes:
        service_name: Service of the most recent base definition (None until one
            is seen, and for extension-only types)
        extension_field_owners: Field (or enum value) name to extending service
    """

    service_name: str | None = None
    extension_field_owners: dict[str, str] = field(default_factory=dict)


@dataclass
class CompositionMaps:
    """
    Aggregate maps built from all services.

    Every map is an insertion-ordered dict, and iteration order is part of
    the composition result.
    """

    definitions: dict[str, list[DefinitionEntry]] = field(default_factory=dict)
    extensions: dict[str, list[ExtensionEntry]] = field(default_factory=dict)
    type_owners: dict[str, TypeOwner] = field(default_factory=dict)
    keys: dict[str, dict[str, list[ir.SelectionSet]]] = field(default_factory=dict)
    external_fields: list[ir.ExternalFieldRecord] = field(default_factory=list)

    # Problems found while collecting services (malformed @key selections)
    errors: list[CompositionError] = field(default_factory=list)

    def add_definition(self, definition: TypeDefinitionNode, service_name: str) -> None:
        """Record a base definition; the latest definition's service owns the type."""
        type_name = definition.name.value
        owner = self.type_owners.setdefault(type_name, TypeOwner())
        owner.service_name = service_name
        self.definitions.setdefault(type_name, []).append(
            DefinitionEntry(definition=definition, service_name=service_name)
        )

    def add_extension(self, definition: TypeExtensionNode, service_name: str) -> None:
        """Record an extension fragment and the fields (or enum values) it contributes."""
        type_name = definition.name.value
        owner = self.type_owners.setdefault(type_name, TypeOwner())

        if isinstance(definition, (ObjectTypeExtensionNode, InputObjectTypeExtensionNode)):
            for field_node in definition.fields or ():
                owner.extension_field_owners[field_node.name.value] = service_name
        elif isinstance(definition, EnumTypeExtensionNode):
            for value_node in definition.values or ():
                owner.extension_field_owners[value_node.name.value] = service_name

        self.extensions.setdefault(type_name, []).append(
            ExtensionEntry(definition=definition, service_name=service_name)
        )

    def add_key(self, entry: KeyEntry, service_name: str) -> None:
        self.keys.setdefault(entry.type_name, {}).setdefault(service_name, []).append(
            entry.selections
        )

    def add_service(self, collected: CollectedService) -> None:
        """Fold one collected service into the maps."""
        self.external_fields.extend(collected.external_fields)
        self.errors.extend(collected.errors)

        for entry in collected.key_entries:
            self.add_key(entry, collected.name)

        for definition in collected.document.definitions:
            if isinstance(definition, TypeDefinitionNode):
                self.add_definition(definition, collected.name)
            elif isinstance(definition, TypeExtensionNode):
                self.add_extension(definition, collected.name)

    def add_placeholders(self) -> None:
        """
        Synthesise an empty base definition for every extension-only type.

        The placeholder has the same kind as the first extension and no owning
        service: once fragments from several services are folded together
        there is no single "first extending service" to credit.
        """
        for type_name, extensions in self.extensions.items():
            if type_name in self.definitions:
                continue

            definition_kind, collections = _PLACEHOLDER_KINDS[type(extensions[0].definition)]
            placeholder = definition_kind(
                name=NameNode(value=type_name), directives=(), **collections
            )
            self.definitions[type_name] = [
                DefinitionEntry(definition=placeholder, service_name=None)
            ]
            self.type_owners[type_name].service_name = None
            logger.debug("Synthesised placeholder %s for extension-only type", type_name)


def build_maps_from_services(services: list[ir.ServiceDefinition]) -> CompositionMaps:
    """
    Collect every service and fold the results into the composition maps.

    Args:
        services: Services in caller order (order decides ownership tie-breaks)

    Returns:
        CompositionMaps with placeholders synthesised for extension-only types
    """
    maps = CompositionMaps()

    for service in services:
        maps.add_service(collect_service(service))

    maps.add_placeholders()

    logger.debug(
        "Merged %d services: %d types, %d extended types, %d external fields",
        len(services),
        len(maps.definitions),
        len(maps.extensions),
        len(maps.external_fields),
    )
    return maps
