"""Shared pytest fixtures for graphfold tests."""

from collections.abc import Callable

import pytest

from graphfold.core import ir

ACCOUNTS_SDL = """
extend type Query {
  me: User
}

type User @key(fields: "id") {
  id: ID!
  name: String
  username: String
}
"""

PRODUCTS_SDL = """
extend type Query {
  topProducts(first: Int = 5): [Product]
}

type Product @key(fields: "upc") {
  upc: String!
  name: String
  price: Int
}
"""

REVIEWS_SDL = """
type Review @key(fields: "id") {
  id: ID!
  body: String
  author: User @provides(fields: "username")
  product: Product
}

extend type User @key(fields: "id") {
  id: ID! @external
  username: String @external
  reviews: [Review]
}

extend type Product @key(fields: "upc") {
  upc: String! @external
  reviews: [Review]
}
"""


@pytest.fixture
def make_service() -> Callable[[str, str], ir.ServiceDefinition]:
    """Return a factory building a ServiceDefinition from SDL text."""

    def _make(name: str, sdl: str) -> ir.ServiceDefinition:
        return ir.ServiceDefinition.from_sdl(name, sdl)

    return _make


@pytest.fixture
def federated_services(make_service) -> list[ir.ServiceDefinition]:
    """Return the accounts/products/reviews services, in composition order."""
    return [
        make_service("accounts", ACCOUNTS_SDL),
        make_service("products", PRODUCTS_SDL),
        make_service("reviews", REVIEWS_SDL),
    ]
