"""Resolve module - caret position to enclosing declaration.

This module provides:
- Syntactic layer: Tree-sitter parsing with a version-keyed tree cache
- Position resolution: caret offset to token, boundary tie-breaks
- Declaration walk: innermost method, its type, and the namespace chain
- Workspace: solution/project graph loading with single-flight caching

Public API is in `declscope.resolve.ops`:
- DeclarationResolver: end-to-end resolution
- ResolutionSession: supersede-on-submit command context

Internal implementations are in `declscope.resolve._internal/`.
"""

from declscope.resolve._internal.naming import build_qualified_name, is_method_selection
from declscope.resolve._internal.parsing import (
    CacheStats,
    LanguagePack,
    SyntaxTreeCache,
    TreeSitterParser,
    TreeSitterSyntaxTree,
)
from declscope.resolve._internal.position import offset_from_line_col, resolve_token
from declscope.resolve._internal.walker import enclosing_declaration
from declscope.resolve._internal.workspace import (
    WorkspaceResolver,
    load_workspace_index,
    read_source_document,
)
from declscope.resolve.models import (
    EnclosingDeclaration,
    InvocationDescriptor,
    NodeKind,
    ProjectDocument,
    ProjectInfo,
    QualifiedName,
    ResolutionOutcome,
    ResolutionRequest,
    ResolvedDocument,
    ResolvedLocation,
    SourceDocument,
    Span,
    SyntaxNode,
    SyntaxTree,
    WorkspaceIndex,
    normalize_path,
)
from declscope.resolve.ops import DeclarationResolver, ResolutionSession

__all__ = [
    # Operations
    "DeclarationResolver",
    "ResolutionSession",
    "build_qualified_name",
    "is_method_selection",
    "enclosing_declaration",
    "resolve_token",
    "offset_from_line_col",
    # Components
    "SyntaxTreeCache",
    "CacheStats",
    "TreeSitterParser",
    "TreeSitterSyntaxTree",
    "LanguagePack",
    "WorkspaceResolver",
    "load_workspace_index",
    "read_source_document",
    # Models
    "EnclosingDeclaration",
    "InvocationDescriptor",
    "NodeKind",
    "ProjectDocument",
    "ProjectInfo",
    "QualifiedName",
    "ResolutionOutcome",
    "ResolutionRequest",
    "ResolvedDocument",
    "ResolvedLocation",
    "SourceDocument",
    "Span",
    "SyntaxNode",
    "SyntaxTree",
    "WorkspaceIndex",
    "normalize_path",
]
