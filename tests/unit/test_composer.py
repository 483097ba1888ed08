"""End-to-end tests for compose_services."""

from graphql import print_ast, print_schema

from graphfold.core.composer import compose_services
from graphfold.core.errors import CompositionErrorCode


class TestComposeServices:
    """Test composition of a realistic set of services."""

    def test_clean_composition(self, federated_services):
        result = compose_services(federated_services)

        assert result.ok
        assert result.errors == []
        schema = result.graph.schema
        assert list(schema.query_type.fields) == ["me", "topProducts"]
        assert list(schema.get_type("Product").fields) == ["upc", "name", "price", "reviews"]

    def test_idempotent(self, federated_services):
        """Composing the same input twice yields identical graphs and errors."""
        first = compose_services(federated_services)
        second = compose_services(federated_services)

        assert print_schema(first.graph.schema) == print_schema(second.graph.schema)
        assert first.graph.metadata_dict() == second.graph.metadata_dict()
        assert first.errors == second.errors

    def test_input_documents_are_not_mutated(self, federated_services):
        before = [print_ast(service.document) for service in federated_services]
        compose_services(federated_services)
        assert [print_ast(service.document) for service in federated_services] == before

    def test_last_base_definition_wins_ownership(self, make_service):
        result = compose_services(
            [
                make_service("a", "type Money { amount: Int }"),
                make_service("b", "type Money { amount: Int }"),
            ]
        )
        assert result.graph.type_ownership("Money").service_name == "b"


class TestCompositionErrors:
    """Test errors reported by a composition."""

    def test_enum_order_does_not_matter(self, make_service):
        result = compose_services(
            [make_service("x", "enum T { A B }"), make_service("y", "enum T { B A }")]
        )
        assert result.errors == []

    def test_enum_mismatch_has_two_groups(self, make_service):
        result = compose_services(
            [make_service("x", "enum T { A B }"), make_service("y", "enum T { A }")]
        )
        (error,) = result.errors
        assert error.code == CompositionErrorCode.ENUM_MISMATCH
        assert error.message.endswith("[x], [y]")

    def test_enum_mismatch_type_names_both_services(self, make_service):
        result = compose_services(
            [make_service("x", "enum T { A }"), make_service("y", "type T { f: Int }")]
        )
        (error,) = result.errors
        assert error.code == CompositionErrorCode.ENUM_MISMATCH_TYPE
        assert "[x]" in error.message and "[y]" in error.message

    def test_external_unused(self, make_service):
        result = compose_services(
            [
                make_service("accounts", 'type User @key(fields: "id") { id: ID! name: String }'),
                make_service(
                    "reviews",
                    'extend type User @key(fields: "id") '
                    "{ id: ID! @external name: String @external }",
                ),
            ]
        )
        assert [(e.code, e.field_name) for e in result.errors] == [
            (CompositionErrorCode.EXTERNAL_UNUSED, "name")
        ]

    def test_malformed_key_does_not_abort(self, make_service):
        result = compose_services(
            [make_service("products", 'type Product @key(fields: "upc {") { upc: String! }')]
        )
        assert [e.code for e in result.errors] == [CompositionErrorCode.SELECTION_PARSE_ERROR]
        assert result.graph.type_ownership("Product").keys == {}
        assert result.graph.schema.get_type("Product") is not None

    def test_field_ownership_conflict(self, make_service):
        result = compose_services(
            [
                make_service("a", "type Product { upc: String }"),
                make_service("b", "extend type Product { price: Int }"),
                make_service("c", "extend type Product { price: Int }"),
            ]
        )
        assert [e.code for e in result.errors] == [CompositionErrorCode.FIELD_OWNERSHIP_CONFLICT]
        assert result.graph.field_ownership("Product", "price").service_name == "c"

    def test_undefined_reference_keeps_unrelated_types(self, make_service):
        result = compose_services(
            [
                make_service("products", 'type Product @key(fields: "upc") { upc: String! }'),
                make_service("reviews", "type Review { author: Usr }"),
            ]
        )

        assert [e.code for e in result.errors] == [
            CompositionErrorCode.SDL_VALIDATION_ERROR,
            CompositionErrorCode.SCHEMA_BUILD_FAILED,
        ]
        assert result.graph.schema.get_type("Product") is not None
        assert result.graph.type_ownership("Product").service_name == "products"
        assert result.graph.field_ownership("Product", "upc").service_name == "products"

    def test_error_order(self, make_service):
        """Pre-composition errors come first, then collection, then validation."""
        result = compose_services(
            [
                make_service("x", "enum T { A }"),
                make_service("y", "enum T { B }"),
                make_service(
                    "z",
                    'type Product @key(fields: "{") { upc: String! @external }',
                ),
            ]
        )
        assert [e.code for e in result.errors] == [
            CompositionErrorCode.EXTERNAL_USED_ON_BASE,
            CompositionErrorCode.SELECTION_PARSE_ERROR,
            CompositionErrorCode.ENUM_MISMATCH,
            CompositionErrorCode.EXTERNAL_UNUSED,
            CompositionErrorCode.EXTERNAL_MISSING_ON_BASE,
        ]


class TestExtensionsAndInterfaces:
    def test_extension_without_base(self, make_service):
        """An extension-only type gets an unowned placeholder; its fields keep their owner."""
        result = compose_services([make_service("x", "extend type T { f: Int }")])

        assert result.errors == []
        assert list(result.graph.schema.get_type("T").fields) == ["f"]
        assert result.graph.type_ownership("T").service_name is None
        assert result.graph.field_ownership("T", "f").service_name == "x"

    def test_interface_implemented_once(self, make_service):
        result = compose_services(
            [
                make_service("a", "interface I { id: ID } type T { id: ID }"),
                make_service("b", "extend type T implements I { x: Int }"),
                make_service("c", "extend type T implements I { y: Int }"),
            ]
        )
        assert [i.name for i in result.graph.schema.get_type("T").interfaces] == ["I"]
