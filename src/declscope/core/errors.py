"""declscope error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Syntax (parsing, positions)
- 4xxx: Declaration (walker, selection)
- 5xxx: Workspace (solution graph, documents)
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Syntax (3xxx)
    PARSE_ERROR = 3001
    POSITION_OUT_OF_RANGE = 3002
    EMPTY_DOCUMENT = 3003

    # Declaration (4xxx)
    NOT_IN_METHOD = 4001
    MISSING_ENCLOSING_TYPE = 4002
    INVALID_SELECTION = 4003
    SELECTION_MISMATCH = 4004  # diagnostic only
    INCOMPLETE_DECLARATION = 4005

    # Workspace (5xxx)
    WORKSPACE_LOAD_ERROR = 5001
    DOCUMENT_NOT_FOUND = 5002
    AMBIGUOUS_DOCUMENT_MATCH = 5003  # diagnostic only


@dataclass(frozen=True, slots=True)
class DeclScopeError(Exception):
    """Base error with structured context for resolution outcomes."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'NOT_IN_METHOD')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(DeclScopeError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


# =============================================================================
# Syntax
# =============================================================================


class ParseError(DeclScopeError):
    """Source text could not be turned into a syntax tree at all."""

    @classmethod
    def undecodable(cls, path: str, reason: str) -> "ParseError":
        return cls(
            code=ErrorCode.PARSE_ERROR,
            message=f"Cannot decode {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def unsupported_language(cls, path: str, language: str) -> "ParseError":
        return cls(
            code=ErrorCode.PARSE_ERROR,
            message=f"No grammar available for {path} (language: {language or 'unknown'})",
            details={"path": path, "language": language},
        )


class PositionOutOfRange(DeclScopeError):
    """Caret offset lies outside the document."""

    @classmethod
    def for_offset(cls, offset: int, length: int) -> "PositionOutOfRange":
        return cls(
            code=ErrorCode.POSITION_OUT_OF_RANGE,
            message=f"Offset {offset} is outside the document (length {length})",
            details={"offset": offset, "length": length},
        )

    @classmethod
    def for_line_col(cls, line: int, column: int) -> "PositionOutOfRange":
        return cls(
            code=ErrorCode.POSITION_OUT_OF_RANGE,
            message=f"Line {line}, column {column} is outside the document",
            details={"line": line, "column": column},
        )


class EmptyDocument(DeclScopeError):
    """Document has no tokens to resolve against."""

    @classmethod
    def for_path(cls, path: str) -> "EmptyDocument":
        return cls(
            code=ErrorCode.EMPTY_DOCUMENT,
            message=f"Document is empty: {path}",
            details={"path": path},
        )


# =============================================================================
# Declaration
# =============================================================================


class NotInMethod(DeclScopeError):
    """No method declaration encloses the caret."""

    @classmethod
    def at(cls, path: str, offset: int) -> "NotInMethod":
        return cls(
            code=ErrorCode.NOT_IN_METHOD,
            message="The caret is not inside a method declaration.",
            details={"path": path, "offset": offset},
        )


class MissingEnclosingType(DeclScopeError):
    """The enclosing method is not declared inside a recognized type."""

    @classmethod
    def for_method(cls, method_name: str | None) -> "MissingEnclosingType":
        return cls(
            code=ErrorCode.MISSING_ENCLOSING_TYPE,
            message=f"Method '{method_name or '?'}' is not declared inside a class.",
            details={"method": method_name},
        )


class InvalidSelection(DeclScopeError):
    """Selected text cannot be a method name."""

    @classmethod
    def empty(cls) -> "InvalidSelection":
        return cls(
            code=ErrorCode.INVALID_SELECTION,
            message="Select a method name before running the command.",
            details={},
        )

    @classmethod
    def not_identifier(cls, selection: str) -> "InvalidSelection":
        return cls(
            code=ErrorCode.INVALID_SELECTION,
            message=f"Selection '{selection}' does not start with a letter.",
            details={"selection": selection},
        )


class IncompleteDeclaration(DeclScopeError):
    """Syntax errors outside the method make its enclosing scopes unreliable."""

    @classmethod
    def around_method(
        cls, path: str, method_name: str | None, error_offset: int
    ) -> "IncompleteDeclaration":
        return cls(
            code=ErrorCode.INCOMPLETE_DECLARATION,
            message=(
                f"Syntax errors around method '{method_name or '?'}' hide its enclosing "
                "declarations. Fix them and try again."
            ),
            details={"path": path, "method": method_name, "error_offset": error_offset},
        )


# =============================================================================
# Workspace
# =============================================================================


class WorkspaceLoadError(DeclScopeError):
    """Solution or project graph could not be loaded."""

    @classmethod
    def not_found(cls, path: str) -> "WorkspaceLoadError":
        return cls(
            code=ErrorCode.WORKSPACE_LOAD_ERROR,
            message=f"Solution not found: {path}",
            details={"path": path},
        )

    @classmethod
    def unparsable(cls, path: str, reason: str) -> "WorkspaceLoadError":
        return cls(
            code=ErrorCode.WORKSPACE_LOAD_ERROR,
            message=f"Failed to load solution {path}: {reason}",
            details={"path": path, "reason": reason},
        )


class DocumentNotFound(DeclScopeError):
    """No project in the solution contains the document."""

    @classmethod
    def in_solution(cls, file_path: str, solution_path: str) -> "DocumentNotFound":
        return cls(
            code=ErrorCode.DOCUMENT_NOT_FOUND,
            message=f"{file_path} is not part of any project in {solution_path}",
            details={"path": file_path, "solution": solution_path},
        )

    @classmethod
    def unreadable(cls, file_path: str, reason: str) -> "DocumentNotFound":
        return cls(
            code=ErrorCode.DOCUMENT_NOT_FOUND,
            message=f"Cannot read {file_path}: {reason}",
            details={"path": file_path, "reason": reason},
        )


@dataclass(frozen=True)
class Diagnostic:
    """Non-fatal finding attached to a successful resolution."""

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ambiguous_document(cls, path: str, projects: list[str]) -> "Diagnostic":
        return cls(
            code=ErrorCode.AMBIGUOUS_DOCUMENT_MATCH,
            message=f"{path} belongs to {len(projects)} projects; using '{projects[0]}'",
            details={"path": path, "projects": projects},
        )

    @classmethod
    def selection_mismatch(cls, selection: str, resolved: str | None) -> "Diagnostic":
        return cls(
            code=ErrorCode.SELECTION_MISMATCH,
            message=f"Selection '{selection}' differs from enclosing method '{resolved}'",
            details={"selection": selection, "resolved": resolved},
        )

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code.value, "error": self.code.name, "message": self.message}
