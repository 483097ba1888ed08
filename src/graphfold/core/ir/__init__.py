"""
graphfold Intermediate Representation (IR) types.

All types are re-exported from this package.
"""

# Ownership metadata handed to the query planner
from .ownership import (
    ComposedGraph,
    ExternalFieldRecord,
    FieldOwnership,
    TypeOwnership,
)

# Field selections (@key / @provides / @requires)
from .selections import (
    FieldSelection,
    SelectionSet,
)

# Service input
from .services import (
    ServiceDefinition,
)

__all__ = [
    "ComposedGraph",
    "ExternalFieldRecord",
    "FieldOwnership",
    "TypeOwnership",
    "FieldSelection",
    "SelectionSet",
    "ServiceDefinition",
]
