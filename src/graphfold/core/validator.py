"""
Semantic validation for service documents and composed graphs.

Pre-composition checks look at one raw service document at a time.
Post-composition checks receive the merged maps and the composed schema.
Every check returns its own list of CompositionErrors and never raises.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from graphql import (
    EnumTypeDefinitionNode,
    EnumTypeExtensionNode,
    GraphQLField,
    GraphQLNamedType,
    GraphQLSchema,
    InputObjectTypeExtensionNode,
    ObjectTypeDefinitionNode,
    ObjectTypeExtensionNode,
    ScalarTypeDefinitionNode,
    get_named_type,
    is_interface_type,
    is_introspection_type,
    is_object_type,
)

from . import ir
from .directives import EXTERNAL, PROVIDES, REQUIRES, has_directive, parse_directive_selection
from .errors import (
    CompositionError,
    CompositionErrorCode,
    SelectionParseError,
    log_service_and_type,
)
from .merge import CompositionMaps

DEPENDENCY_DIRECTIVES = (PROVIDES, REQUIRES)


@dataclass(frozen=True)
class CompositionState:
    """Everything a post-composition check may look at."""

    maps: CompositionMaps
    schema: GraphQLSchema


# =============================================================================
# Helpers
# =============================================================================


def iter_fields(schema: GraphQLSchema) -> Iterator[tuple[GraphQLNamedType, str, GraphQLField]]:
    """Yield ``(type, field_name, field)`` for every object and interface field."""
    for named_type in schema.type_map.values():
        if is_introspection_type(named_type):
            continue
        if is_object_type(named_type) or is_interface_type(named_type):
            for field_name, field in named_type.fields.items():  # type: ignore[union-attr]
                yield named_type, field_name, field


def field_owner(maps: CompositionMaps, type_name: str, field_name: str) -> str | None:
    """Service resolving a field: its extension owner, else the type's owner."""
    owner = maps.type_owners.get(type_name)
    if owner is None:
        return None
    return owner.extension_field_owners.get(field_name, owner.service_name)


def dependency_selection(field: GraphQLField, directive_name: str) -> ir.SelectionSet | None:
    """
    Parsed ``@provides``/``@requires`` selection of a composed field.

    Malformed selections yield None here; ``check_dependency_selections``
    reports them.
    """
    try:
        return parse_directive_selection(field.ast_node, directive_name)
    except SelectionParseError:
        return None


# =============================================================================
# Pre-composition checks (one raw service document)
# =============================================================================


def check_external_used_on_base(service: ir.ServiceDefinition) -> list[CompositionError]:
    """``@external`` belongs on extension fields, never on a base type definition."""
    errors = []
    for definition in service.document.definitions:
        if not isinstance(definition, ObjectTypeDefinitionNode):
            continue
        type_name = definition.name.value
        for field_node in definition.fields or ():
            if has_directive(field_node, EXTERNAL):
                field_name = field_node.name.value
                errors.append(
                    CompositionError(
                        code=CompositionErrorCode.EXTERNAL_USED_ON_BASE,
                        message=log_service_and_type(service.name, type_name, field_name)
                        + "Found extraneous @external directive. "
                        "@external cannot be used on base types.",
                        service_name=service.name,
                        type_name=type_name,
                        field_name=field_name,
                    )
                )
    return errors


def check_duplicate_enum_or_scalar(service: ir.ServiceDefinition) -> list[CompositionError]:
    """An enum or scalar may be defined only once within a single service."""
    errors = []
    seen: set[str] = set()

    for definition in service.document.definitions:
        if isinstance(definition, EnumTypeDefinitionNode):
            code, kind = CompositionErrorCode.DUPLICATE_ENUM_DEFINITION, "enum"
        elif isinstance(definition, ScalarTypeDefinitionNode):
            code, kind = CompositionErrorCode.DUPLICATE_SCALAR_DEFINITION, "scalar"
        else:
            continue

        name = definition.name.value
        if name in seen:
            errors.append(
                CompositionError(
                    code=code,
                    message=log_service_and_type(service.name, name)
                    + f"The {kind}, `{name}` was defined multiple times in this service. "
                    f"Remove one of the definitions for `{name}`",
                    service_name=service.name,
                    type_name=name,
                )
            )
        seen.add(name)

    return errors


# =============================================================================
# Post-composition checks
# =============================================================================


def check_enums_for_matches(state: CompositionState) -> list[CompositionError]:
    """
    Enums defined by several services must declare the same set of values.

    Value order is not significant. A name declared as an enum by some
    services and as another kind by others is reported separately.
    """
    errors = []

    for name, entries in state.maps.definitions.items():
        enum_entries = [e for e in entries if isinstance(e.definition, EnumTypeDefinitionNode)]
        if not enum_entries:
            continue

        if len(enum_entries) < len(entries):
            with_enum = [e.service_name for e in enum_entries if e.service_name]
            without_enum = [
                e.service_name or "unknown"
                for e in entries
                if not isinstance(e.definition, EnumTypeDefinitionNode)
            ]
            errors.append(
                CompositionError(
                    code=CompositionErrorCode.ENUM_MISMATCH_TYPE,
                    message=log_service_and_type(with_enum[0] if with_enum else None, name)
                    + f"{name} is an enum in [{', '.join(with_enum)}], "
                    f"but not in [{', '.join(without_enum)}]",
                    service_name=with_enum[0] if with_enum else None,
                    type_name=name,
                )
            )
            continue

        # like {"BOOK,FURNITURE": ["serviceA", "serviceB"]}
        groups: dict[str, list[str]] = {}
        for entry in enum_entries:
            if entry.service_name is None:
                continue
            values = sorted(value.name.value for value in entry.definition.values or ())
            groups.setdefault(",".join(values), []).append(entry.service_name)

        if len(groups) > 1:
            described = ", ".join(f"[{', '.join(services)}]" for services in groups.values())
            errors.append(
                CompositionError(
                    code=CompositionErrorCode.ENUM_MISMATCH,
                    message="Enums do not have the same values across services. "
                    f"Groups of services with matching enum values are: {described}",
                    type_name=name,
                )
            )

    return errors


def _is_provided(state: CompositionState, type_name: str, field_name: str) -> bool:
    """Some field returning ``type_name`` lists ``field_name`` in its ``@provides``."""
    for _, _, field in iter_fields(state.schema):
        if get_named_type(field.type).name != type_name:
            continue
        provides = dependency_selection(field, PROVIDES)
        if provides is not None and provides.includes(field_name):
            return True
    return False


def _is_required(
    state: CompositionState, type_name: str, field_name: str, service_name: str
) -> bool:
    """A field of ``type_name`` resolved by ``service_name`` requires ``field_name``."""
    parent = state.schema.get_type(type_name)
    if not is_object_type(parent):
        return False
    for name, field in parent.fields.items():  # type: ignore[union-attr]
        if field_owner(state.maps, type_name, name) != service_name:
            continue
        requires = dependency_selection(field, REQUIRES)
        if requires is not None and requires.includes(field_name):
            return True
    return False


def check_external_unused(state: CompositionState) -> list[CompositionError]:
    """Every ``@external`` field must be used by a ``@key``, ``@provides`` or ``@requires``."""
    errors = []

    for record in state.maps.external_fields:
        type_name, field_name, service_name = (
            record.parent_type_name,
            record.field_name,
            record.service_name,
        )

        service_keys = state.maps.keys.get(type_name, {}).get(service_name, [])
        used = (
            any(selection.includes(field_name) for selection in service_keys)
            or _is_provided(state, type_name, field_name)
            or _is_required(state, type_name, field_name, service_name)
        )

        if not used:
            errors.append(
                CompositionError(
                    code=CompositionErrorCode.EXTERNAL_UNUSED,
                    message=log_service_and_type(service_name, type_name, field_name)
                    + "is marked as @external but is not used by a @requires, @key, "
                    "or @provides directive.",
                    service_name=service_name,
                    type_name=type_name,
                    field_name=field_name,
                )
            )

    return errors


def check_external_missing_on_base(state: CompositionState) -> list[CompositionError]:
    """An ``@external`` field must exist on the composed type it refers to."""
    errors = []

    for record in state.maps.external_fields:
        parent = state.schema.get_type(record.parent_type_name)
        has_field = (
            is_object_type(parent) or is_interface_type(parent)
        ) and record.field_name in parent.fields  # type: ignore[union-attr]
        if has_field:
            continue

        errors.append(
            CompositionError(
                code=CompositionErrorCode.EXTERNAL_MISSING_ON_BASE,
                message=log_service_and_type(
                    record.service_name, record.parent_type_name, record.field_name
                )
                + "is marked as @external but is not defined on the base service of "
                f"{record.parent_type_name}.",
                service_name=record.service_name,
                type_name=record.parent_type_name,
                field_name=record.field_name,
            )
        )

    return errors


def check_field_ownership_conflicts(state: CompositionState) -> list[CompositionError]:
    """
    A field, or enum value, may be added by extensions from only one service.

    Ownership still goes to the last extending service; the collision is
    reported so it is not resolved silently.
    """
    errors = []

    for type_name, entries in state.maps.extensions.items():
        claims: dict[str, list[str]] = {}
        for entry in entries:
            if isinstance(
                entry.definition, (ObjectTypeExtensionNode, InputObjectTypeExtensionNode)
            ):
                claimed = entry.definition.fields or ()
            elif isinstance(entry.definition, EnumTypeExtensionNode):
                claimed = entry.definition.values or ()
            else:
                continue
            for node in claimed:
                services = claims.setdefault(node.name.value, [])
                if entry.service_name not in services:
                    services.append(entry.service_name)

        for field_name, services in claims.items():
            if len(services) < 2:
                continue
            winner = services[-1]
            errors.append(
                CompositionError(
                    code=CompositionErrorCode.FIELD_OWNERSHIP_CONFLICT,
                    message=log_service_and_type(winner, type_name, field_name)
                    + f"is added by extensions in multiple services [{', '.join(services)}]; "
                    f"it is resolved by [{winner}].",
                    service_name=winner,
                    type_name=type_name,
                    field_name=field_name,
                )
            )

    return errors


def check_dependency_selections(state: CompositionState) -> list[CompositionError]:
    """Every ``@provides``/``@requires`` selection must parse."""
    errors = []

    for parent, field_name, field in iter_fields(state.schema):
        for directive_name in DEPENDENCY_DIRECTIVES:
            try:
                parse_directive_selection(field.ast_node, directive_name)
            except SelectionParseError as e:
                service_name = field_owner(state.maps, parent.name, field_name)
                errors.append(
                    CompositionError(
                        code=CompositionErrorCode.SELECTION_PARSE_ERROR,
                        message=log_service_and_type(service_name, parent.name, field_name)
                        + f"@{directive_name} selection could not be parsed: {e.message}",
                        service_name=service_name,
                        type_name=parent.name,
                        field_name=field_name,
                    )
                )

    return errors
