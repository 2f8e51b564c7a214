"""Value objects for position-to-declaration resolution.

Everything here is immutable. Documents are replaced, never edited: a new
buffer state is a new ``SourceDocument`` with a new ``version``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from declscope.core.errors import Diagnostic


class NodeKind(str, Enum):
    """Structural role of a syntax node."""

    METHOD = "method"
    TYPE = "type"
    NAMESPACE = "namespace"  # namespace or module
    TOKEN = "token"
    OTHER = "other"


@dataclass(frozen=True, order=True)
class Span:
    """Half-open ``[start, end)`` character-offset range."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid span [{self.start}, {self.end})")

    def __len__(self) -> int:
        return self.end - self.start

    def contains(self, offset: int) -> bool:
        return self.start <= offset < self.end

    def covers(self, other: Span) -> bool:
        return self.start <= other.start and other.end <= self.end


@dataclass(frozen=True)
class SourceDocument:
    """A document's text at one version."""

    path: Path
    text: str
    version: int
    language: str = "csharp"

    @property
    def length(self) -> int:
        return len(self.text)


@dataclass(frozen=True)
class SyntaxNode:
    """A node of a parsed document, in character offsets.

    ``handle`` is the backend's own node object and is excluded from
    equality so that two wrappers of the same node compare equal.
    """

    kind: NodeKind
    span: Span
    node_type: str
    identifier: str | None = None
    is_error: bool = False
    handle: Any = field(default=None, compare=False, repr=False)


class SyntaxTree(Protocol):
    """Capability interface the resolver needs from a parsed document.

    Any grammar front-end can implement this; the position resolver and
    declaration walker only go through these members.
    """

    @property
    def document(self) -> SourceDocument: ...

    @property
    def length(self) -> int: ...

    def token_at(self, offset: int) -> SyntaxNode | None: ...

    def parent(self, node: SyntaxNode) -> SyntaxNode | None: ...

    def kind(self, node: SyntaxNode) -> NodeKind: ...

    def span(self, node: SyntaxNode) -> Span: ...

    def error_spans(self) -> tuple[Span, ...]: ...


@dataclass(frozen=True)
class ResolvedLocation:
    """A caret offset inside a specific document version."""

    document: SourceDocument
    offset: int

    def __post_init__(self) -> None:
        if not (0 <= self.offset <= self.document.length):
            raise ValueError(
                f"Offset {self.offset} outside document of length {self.document.length}"
            )


@dataclass(frozen=True)
class EnclosingDeclaration:
    """Declarations enclosing a caret, innermost method first."""

    namespace_path: tuple[str, ...] = ()
    type_name: str | None = None
    method_name: str | None = None


@dataclass(frozen=True)
class QualifiedName:
    """Namespace, type and method identity handed to the analyzer.

    ``method_name`` is the validated selection; ``resolved_method_name`` is
    what the walker found around the caret. They usually match.
    """

    namespace_path: tuple[str, ...]
    type_name: str
    method_name: str
    resolved_method_name: str | None = None

    @property
    def method_matches(self) -> bool:
        return self.method_name == self.resolved_method_name

    def dotted_namespace(self, separator: str = ".") -> str:
        return separator.join(self.namespace_path)

    def to_dict(self) -> dict[str, Any]:
        return {
            "namespace_path": list(self.namespace_path),
            "type_name": self.type_name,
            "method_name": self.method_name,
            "resolved_method_name": self.resolved_method_name,
        }


@dataclass(frozen=True)
class ResolutionRequest:
    """Snapshot of the editing surface taken when the command fires.

    ``document_text``/``document_version`` carry an unsaved editor buffer;
    when absent the document is read from disk.
    """

    solution_path: Path
    document_path: Path
    caret_offset: int
    selection_text: str
    document_text: str | None = None
    document_version: int | None = None

    def __post_init__(self) -> None:
        if self.document_text is not None and self.document_version is None:
            raise ValueError("document_version is required when document_text is given")


@dataclass(frozen=True)
class InvocationDescriptor:
    """Arguments for the external call-graph analyzer."""

    solution_path: str
    namespace_path: str
    type_name: str
    method_name: str

    def to_args(self) -> list[str]:
        """Positional argument order expected by the analyzer."""
        return [self.solution_path, self.namespace_path, self.type_name, self.method_name]

    def to_dict(self) -> dict[str, str]:
        return {
            "solution_path": self.solution_path,
            "namespace_path": self.namespace_path,
            "type_name": self.type_name,
            "method_name": self.method_name,
        }


@dataclass(frozen=True)
class ProjectDocument:
    """A source file claimed by one project."""

    project_name: str
    project_path: Path
    path: Path


@dataclass(frozen=True)
class ProjectInfo:
    """A project declared by a solution, in declaration order."""

    name: str
    path: Path
    documents: tuple[Path, ...] = ()
    # SDK-style project that picks up every source file under its directory
    default_compile_items: bool = False


@dataclass(frozen=True)
class WorkspaceIndex:
    """Loaded project graph for one solution state.

    ``documents`` maps a normalized path (see ``normalize_path``) to every
    project document at that path, in solution declaration order.
    """

    solution_path: Path
    modified_ns: int
    projects: tuple[ProjectInfo, ...]
    documents: dict[str, tuple[ProjectDocument, ...]]
    # project file path -> st_mtime_ns when loaded
    project_stamps: dict[str, int] = field(default_factory=dict)

    @property
    def document_count(self) -> int:
        return len(self.documents)


@dataclass(frozen=True)
class ResolvedDocument:
    """Document picked for a path, with any ambiguity diagnostics."""

    document: SourceDocument
    project_name: str
    diagnostics: tuple[Diagnostic, ...] = ()


@dataclass(frozen=True)
class ResolutionOutcome:
    """All-or-nothing result of a resolution request."""

    descriptor: InvocationDescriptor | None = None
    qualified_name: QualifiedName | None = None
    error: str | None = None
    diagnostics: tuple[Diagnostic, ...] = ()

    @property
    def ok(self) -> bool:
        return self.descriptor is not None

    @classmethod
    def failure(
        cls, reason: str, diagnostics: tuple[Diagnostic, ...] = ()
    ) -> ResolutionOutcome:
        return cls(error=reason, diagnostics=diagnostics)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "descriptor": self.descriptor.to_dict() if self.descriptor else None,
            "args": self.descriptor.to_args() if self.descriptor else None,
            "qualified_name": self.qualified_name.to_dict() if self.qualified_name else None,
            "error": self.error,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


def normalize_path(path: Path | str) -> str:
    """Absolute, separator-normalized, case-folded path key."""
    return os.path.normcase(os.path.abspath(os.fspath(path))).replace("\\", "/").casefold()
