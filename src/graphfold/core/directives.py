"""
Federation directive declarations and helpers for reading them off AST nodes.

    directive @key(fields: String!) repeatable on OBJECT | INTERFACE
    directive @external on FIELD_DEFINITION
    directive @requires(fields: String!) on FIELD_DEFINITION
    directive @provides(fields: String!) on FIELD_DEFINITION
"""

from __future__ import annotations

from graphql import (
    DirectiveLocation,
    DirectiveNode,
    GraphQLArgument,
    GraphQLDirective,
    GraphQLNonNull,
    GraphQLString,
    Node,
    StringValueNode,
)

from .ir import SelectionSet
from .selection_parser import parse_selections

KEY = "key"
EXTERNAL = "external"
REQUIRES = "requires"
PROVIDES = "provides"

FIELDS_ARGUMENT = "fields"

KeyDirective = GraphQLDirective(
    name=KEY,
    locations=[DirectiveLocation.OBJECT, DirectiveLocation.INTERFACE],
    args={FIELDS_ARGUMENT: GraphQLArgument(GraphQLNonNull(GraphQLString))},
    is_repeatable=True,
)

ExternalDirective = GraphQLDirective(
    name=EXTERNAL,
    locations=[DirectiveLocation.FIELD_DEFINITION],
)

RequiresDirective = GraphQLDirective(
    name=REQUIRES,
    locations=[DirectiveLocation.FIELD_DEFINITION],
    args={FIELDS_ARGUMENT: GraphQLArgument(GraphQLNonNull(GraphQLString))},
)

ProvidesDirective = GraphQLDirective(
    name=PROVIDES,
    locations=[DirectiveLocation.FIELD_DEFINITION],
    args={FIELDS_ARGUMENT: GraphQLArgument(GraphQLNonNull(GraphQLString))},
)

federation_directives: tuple[GraphQLDirective, ...] = (
    KeyDirective,
    ExternalDirective,
    RequiresDirective,
    ProvidesDirective,
)


def find_directives(node: Node | None, name: str) -> list[DirectiveNode]:
    """Return every directive called ``name`` on a type or field node, in order."""
    if node is None:
        return []
    directives = getattr(node, "directives", None) or ()
    return [directive for directive in directives if directive.name.value == name]


def has_directive(node: Node | None, name: str) -> bool:
    return bool(find_directives(node, name))


def get_fields_argument(directive: DirectiveNode) -> str | None:
    """Return the string value of a directive's ``fields`` argument, if it is a string."""
    for argument in directive.arguments or ():
        if argument.name.value == FIELDS_ARGUMENT and isinstance(
            argument.value, StringValueNode
        ):
            return argument.value.value
    return None


def parse_directive_selection(node: Node | None, name: str) -> SelectionSet | None:
    """
    Parse the selection of the first ``@provides``/``@requires`` on a field node.

    Returns:
        The parsed selection, or None when the directive (or a string
        ``fields`` argument) is absent

    Raises:
        SelectionParseError: If the selection string is malformed
    """
    directives = find_directives(node, name)
    if not directives:
        return None
    source = get_fields_argument(directives[0])
    return parse_selections(source) if source is not None else None
