"""
Field-selection IR types.

A selection set is the parsed form of the small selection language used by
``@key``, ``@provides`` and ``@requires``:

    @key(fields: "sku upc color { id value }")

parses to the top-level fields ``sku``, ``upc`` and ``color``, where
``color`` carries its own nested selection of ``id`` and ``value``.
"""

from __future__ import annotations

from collections.abc import Iterator

from pydantic import BaseModel, ConfigDict


class FieldSelection(BaseModel):
    """
    A single selected field.

    Attributes:
        name: Field name
        selections: Nested selection, empty for a leaf field
    """

    name: str
    selections: tuple[FieldSelection, ...] = ()

    model_config = ConfigDict(frozen=True)

    @property
    def is_leaf(self) -> bool:
        return not self.selections

    def __str__(self) -> str:
        if self.is_leaf:
            return self.name
        inner = " ".join(str(selection) for selection in self.selections)
        return f"{self.name} {{ {inner} }}"


class SelectionSet(BaseModel):
    """
    An ordered sequence of selected fields.

    Equality is structural and order-sensitive (``==``); containment checks
    through ``includes`` ignore order.
    """

    selections: tuple[FieldSelection, ...] = ()

    model_config = ConfigDict(frozen=True)

    @property
    def field_names(self) -> list[str]:
        """Names of the top-level fields, in declaration order."""
        return [selection.name for selection in self.selections]

    def includes(self, field_name: str) -> bool:
        """Check whether ``field_name`` is selected at the top level."""
        return any(selection.name == field_name for selection in self.selections)

    def get(self, field_name: str) -> FieldSelection | None:
        """Return the top-level selection for ``field_name`` if present."""
        for selection in self.selections:
            if selection.name == field_name:
                return selection
        return None

    def __str__(self) -> str:
        return " ".join(str(selection) for selection in self.selections)

    def __iter__(self) -> Iterator[FieldSelection]:  # type: ignore[override]
        return iter(self.selections)

    def __len__(self) -> int:
        return len(self.selections)
