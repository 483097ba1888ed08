"""
Error types for graphfold parsing, configuration, and composition.

Exceptions are reserved for input that cannot be read at all (malformed SDL,
malformed selection strings, broken manifests). Everything the composer finds
wrong with otherwise readable input is reported as ``CompositionError`` data.
"""

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Optional


class GraphfoldError(Exception):
    """Base exception for all graphfold errors."""

    def __init__(self, message: str, context: Optional["ErrorContext"] = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}\n{self.message}"
        return self.message


class ParseError(GraphfoldError):
    """
    Raised when SDL or directive arguments cannot be parsed.

    Examples:
    - Invalid SDL syntax in a service document
    - Unbalanced braces in a ``@key(fields: ...)`` selection
    """

    pass


class SelectionParseError(ParseError):
    """Raised when a field-selection string is malformed."""

    pass


class ManifestError(GraphfoldError):
    """
    Raised when the project manifest cannot be used.

    Examples:
    - Missing ``[[services]]`` entries
    - Duplicate service names
    - Service SDL file not found
    """

    pass


@dataclass
class ErrorContext:
    """
    Location of an error inside a source text.

    Attributes:
        source: The text being parsed (a selection string or an SDL document)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        file: Optional path of the file the text came from
        service: Optional name of the service the text belongs to
    """

    source: str
    line: int
    column: int
    file: Path | None = None
    service: str | None = None

    def format(self) -> str:
        """
        Format error context as a human-readable string.

        Returns:
            Formatted string like: "accounts.graphql:3:9 in service accounts"
        """
        location = f"{self.file or '<selection>'}:{self.line}:{self.column}"
        if self.service:
            location += f" in service {self.service}"
        return f"{location}\n{self._format_snippet()}"

    def _format_snippet(self) -> str:
        """Show the offending line with a marker under the error column."""
        lines = self.source.split("\n")
        if not 1 <= self.line <= len(lines):
            return ""

        prefix = f"{self.line:4d} | "
        marker_pos = len(prefix) + self.column - 1
        return f"{prefix}{lines[self.line - 1]}\n{' ' * marker_pos}^^^"


def make_parse_error(
    message: str,
    source: str,
    line: int,
    column: int,
    file: Path | None = None,
    service: str | None = None,
) -> ParseError:
    """
    Helper to create a ParseError with context.

    Args:
        message: Error description
        source: Text that failed to parse
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        file: Optional source file path
        service: Optional service name

    Returns:
        ParseError with context attached
    """
    context = ErrorContext(source=source, line=line, column=column, file=file, service=service)
    return ParseError(message, context)


# =============================================================================
# Composition diagnostics
# =============================================================================


class CompositionErrorCode(StrEnum):
    """Codes attached to every composition diagnostic."""

    ENUM_MISMATCH = "ENUM_MISMATCH"
    ENUM_MISMATCH_TYPE = "ENUM_MISMATCH_TYPE"
    EXTERNAL_UNUSED = "EXTERNAL_UNUSED"
    EXTERNAL_MISSING_ON_BASE = "EXTERNAL_MISSING_ON_BASE"
    EXTERNAL_USED_ON_BASE = "EXTERNAL_USED_ON_BASE"
    DUPLICATE_ENUM_DEFINITION = "DUPLICATE_ENUM_DEFINITION"
    DUPLICATE_SCALAR_DEFINITION = "DUPLICATE_SCALAR_DEFINITION"
    FIELD_OWNERSHIP_CONFLICT = "FIELD_OWNERSHIP_CONFLICT"
    SELECTION_PARSE_ERROR = "SELECTION_PARSE_ERROR"
    EXTENSION_KIND_MISMATCH = "EXTENSION_KIND_MISMATCH"
    SDL_VALIDATION_ERROR = "SDL_VALIDATION_ERROR"
    SCHEMA_BUILD_FAILED = "SCHEMA_BUILD_FAILED"


@dataclass(frozen=True)
class CompositionError:
    """
    A single problem found while composing services.

    Attributes:
        code: Machine-readable error code
        message: Human-readable description
        service_name: Service the problem was found in, when known
        type_name: Type the problem concerns, when known
        field_name: Field the problem concerns, when known
    """

    code: CompositionErrorCode
    message: str
    service_name: str | None = None
    type_name: str | None = None
    field_name: str | None = None

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict[str, str]:
        """Serialise to the ``{code, message}`` wire shape plus any known context."""
        data = {"code": str(self.code), "message": self.message}
        for key in ("service_name", "type_name", "field_name"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


def log_service_and_type(
    service_name: str | None, type_name: str, field_name: str | None = None
) -> str:
    """Prefix used by every composition message, e.g. ``[accounts] User.id -> ``."""
    target = f"{type_name}.{field_name}" if field_name else type_name
    return f"[{service_name or 'unknown'}] {target} -> "
