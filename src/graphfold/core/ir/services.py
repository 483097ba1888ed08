"""
Service-level IR types.

A service definition is one independently authored SDL document together
with the name it is composed under.
"""

from __future__ import annotations

from pathlib import Path

from graphql import DocumentNode, GraphQLSyntaxError, parse
from pydantic import BaseModel, ConfigDict

from ..errors import make_parse_error


class ServiceDefinition(BaseModel):
    """
    One subgraph contributed to the composition.

    Attributes:
        name: Service name, used for ownership and in diagnostics
        document: Parsed SDL document (never mutated by the composer)
    """

    name: str
    document: DocumentNode

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @classmethod
    def from_sdl(cls, name: str, sdl: str, file: Path | None = None) -> ServiceDefinition:
        """
        Parse SDL text into a service definition.

        Raises:
            ParseError: If the SDL is not syntactically valid
        """
        try:
            document = parse(sdl)
        except GraphQLSyntaxError as e:
            location = e.locations[0] if e.locations else None
            raise make_parse_error(
                e.message,
                source=sdl,
                line=location.line if location else 1,
                column=location.column if location else 1,
                file=file,
                service=name,
            ) from e
        return cls(name=name, document=document)
