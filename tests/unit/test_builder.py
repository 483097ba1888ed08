"""Tests for the two-phase schema builder."""

import pytest
from graphql import (
    is_enum_type,
    is_input_object_type,
    is_interface_type,
    is_object_type,
    is_union_type,
)
from graphql.validation.validate import validate_sdl

from graphfold.core.builder import (
    build_definitions_document,
    build_schema_from_definitions_and_extensions,
    composition_rules,
    create_empty_schema,
)
from graphfold.core.errors import CompositionErrorCode
from graphfold.core.merge import build_maps_from_services


def _build(*services):
    return build_schema_from_definitions_and_extensions(build_maps_from_services(list(services)))


class TestEmptySchema:
    def test_seeded_with_federation_directives(self):
        schema = create_empty_schema()
        for name in ("key", "external", "requires", "provides", "include", "skip"):
            assert schema.get_directive(name) is not None

    def test_key_is_repeatable(self):
        assert create_empty_schema().get_directive("key").is_repeatable

    def test_composition_rules_allow_shared_types(self):
        names = {rule.__name__ for rule in composition_rules}
        assert "UniqueTypeNamesRule" not in names
        assert "KnownTypeNamesRule" in names


class TestBuildSchema:
    """Test building the composed schema."""

    def test_applies_definitions_then_extensions(self, federated_services):
        result = _build(*federated_services)

        assert result.errors == []
        user = result.schema.get_type("User")
        assert list(user.fields) == ["id", "name", "username", "reviews"]

    def test_query_root_resolved_by_name(self, federated_services):
        schema = _build(*federated_services).schema
        assert schema.query_type is schema.get_type("Query")
        assert list(schema.query_type.fields) == ["me", "topProducts"]
        assert schema.mutation_type is None

    def test_non_default_root_becomes_query(self, make_service):
        schema = _build(
            make_service("a", "schema { query: RootQuery } type RootQuery { me: String }")
        ).schema
        assert schema.query_type.name == "Query"
        assert schema.get_type("RootQuery") is None

    def test_extension_only_type_gets_placeholder(self, make_service):
        result = _build(make_service("a", "extend type Thing { f: Int }"))
        thing = result.schema.get_type("Thing")
        assert is_object_type(thing)
        assert list(thing.fields) == ["f"]

    def test_extension_only_enum(self, make_service):
        result = _build(make_service("a", "extend enum Color { RED }"))
        color = result.schema.get_type("Color")
        assert is_enum_type(color)
        assert list(color.values) == ["RED"]

    def test_interfaces_deduplicated_across_fragments(self, make_service):
        result = _build(
            make_service("a", "interface Named { name: String } type Product { upc: String! }"),
            make_service("b", "extend type Product implements Named { name: String }"),
            make_service("c", "extend type Product implements Named { price: Int }"),
        )
        product = result.schema.get_type("Product")
        assert [i.name for i in product.interfaces] == ["Named"]

    def test_interfaces_deduplicated_against_base(self, make_service):
        result = _build(
            make_service(
                "a",
                "interface Named { name: String } type Product implements Named { name: String }",
            ),
            make_service("b", "extend type Product implements Named { price: Int }"),
        )
        assert [i.name for i in result.schema.get_type("Product").interfaces] == ["Named"]


class TestBuildErrors:
    """Test non-fatal build errors."""

    def test_unknown_type_is_reported(self, make_service):
        result = _build(make_service("a", "type Query { me: Missing }"))

        codes = [e.code for e in result.errors]
        assert CompositionErrorCode.SDL_VALIDATION_ERROR in codes
        assert any("Missing" in e.message for e in result.errors)
        assert result.schema is not None

    def test_unknown_directive_is_reported(self, make_service):
        result = _build(make_service("a", "type Query { me: String @cached }"))
        (error,) = result.errors
        assert error.code == CompositionErrorCode.SDL_VALIDATION_ERROR
        assert "cached" in error.message

    def test_extension_kind_mismatch_is_skipped(self, make_service):
        result = _build(
            make_service("a", "enum Color { RED }"),
            make_service("b", "extend type Color { hex: String }"),
        )
        (error,) = result.errors
        assert error.code == CompositionErrorCode.EXTENSION_KIND_MISMATCH
        assert error.service_name == "b"
        assert is_enum_type(result.schema.get_type("Color"))

    def test_undefined_reference_leaves_out_only_that_type(self, make_service):
        result = _build(
            make_service("products", 'type Product @key(fields: "upc") { upc: String! }'),
            make_service("reviews", "type Review { author: Usr }"),
        )

        assert [e.code for e in result.errors] == [
            CompositionErrorCode.SDL_VALIDATION_ERROR,
            CompositionErrorCode.SCHEMA_BUILD_FAILED,
        ]
        assert result.errors[1].type_name == "Review"
        assert list(result.schema.get_type("Product").fields) == ["upc"]
        assert result.schema.get_type("Review") is None

    def test_types_referencing_a_left_out_type_are_left_out(self, make_service):
        result = _build(
            make_service("a", "type Query { top: Review } type Money { amount: Int }"),
            make_service("b", "type Review { author: Usr }"),
        )

        left_out = [
            e.type_name for e in result.errors if e.code == CompositionErrorCode.SCHEMA_BUILD_FAILED
        ]
        assert sorted(left_out) == ["Query", "Review"]
        assert result.schema.get_type("Money") is not None


class TestExtensionOnlyTypes:
    """Extension-only types of every kind build through a placeholder base."""

    @pytest.mark.parametrize(
        "sdl, type_name, is_kind",
        [
            ("extend type Query { search(term: String): [String] }", "Query", is_object_type),
            ("extend interface Node { id: ID }", "Node", is_interface_type),
            ("extend enum Color { RED GREEN }", "Color", is_enum_type),
            ("type Book { title: String } extend union Result = Book", "Result", is_union_type),
            ("extend input Filter { limit: Int }", "Filter", is_input_object_type),
        ],
    )
    def test_builds_without_errors(self, make_service, sdl, type_name, is_kind):
        result = _build(make_service("a", sdl))

        assert result.errors == []
        assert is_kind(result.schema.get_type(type_name))

    def test_placeholders_pass_sdl_validation(self, make_service):
        maps = build_maps_from_services(
            [
                make_service("a", "extend type Query { search(term: String): [String] }"),
                make_service("b", "extend interface Node { id: ID }"),
                make_service("c", "extend enum Color { RED }"),
                make_service("d", "extend input Filter { limit: Int }"),
            ]
        )
        document = build_definitions_document(maps)

        assert validate_sdl(document, create_empty_schema(), composition_rules) == []

    def test_extension_arguments_are_kept(self, make_service):
        schema = _build(
            make_service("a", "extend type Query { search(term: String, limit: Int): [String] }")
        ).schema
        assert list(schema.query_type.fields["search"].args) == ["term", "limit"]
