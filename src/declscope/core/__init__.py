"""Core module exports."""

from declscope.core.errors import (
    ConfigError,
    DeclScopeError,
    Diagnostic,
    DocumentNotFound,
    EmptyDocument,
    ErrorCode,
    IncompleteDeclaration,
    InvalidSelection,
    MissingEnclosingType,
    NotInMethod,
    ParseError,
    PositionOutOfRange,
    WorkspaceLoadError,
)
from declscope.core.logging import (
    clear_request_id,
    configure_logging,
    get_log_file_path,
    get_request_id,
    set_request_id,
)

__all__ = [
    # Errors
    "DeclScopeError",
    "ErrorCode",
    "ConfigError",
    "ParseError",
    "PositionOutOfRange",
    "EmptyDocument",
    "NotInMethod",
    "MissingEnclosingType",
    "InvalidSelection",
    "WorkspaceLoadError",
    "DocumentNotFound",
    "IncompleteDeclaration",
    "Diagnostic",
    # Logging
    "clear_request_id",
    "configure_logging",
    "get_log_file_path",
    "get_request_id",
    "set_request_id",
]
