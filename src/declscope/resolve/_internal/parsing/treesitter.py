"""Tree-sitter backed syntax trees.

This module provides:
- ``TreeSitterParser``: grammar loading (cached per grammar) and parsing of
  a ``SourceDocument`` into a ``TreeSitterSyntaxTree``
- ``TreeSitterSyntaxTree``: the ``SyntaxTree`` capability over a parsed
  tree, in character offsets

Tree-sitter works in UTF-8 byte offsets; callers work in character
offsets. ``_OffsetMap`` converts between the two.

Malformed source still parses: tree-sitter produces ERROR and missing
nodes, which are surfaced through ``SyntaxNode.is_error``,
``TreeSitterSyntaxTree.error_count`` and ``error_spans()``.
"""

from __future__ import annotations

import importlib
import threading
from bisect import bisect_left
from dataclasses import dataclass, field
from itertools import accumulate
from typing import Any

import structlog
import tree_sitter

from declscope.core.errors import ParseError
from declscope.resolve._internal.parsing.packs import LanguagePack, get_pack
from declscope.resolve.models import NodeKind, SourceDocument, Span, SyntaxNode

logger = structlog.get_logger()


def _utf8_width(char: str) -> int:
    cp = ord(char)
    if cp < 0x80:
        return 1
    if cp < 0x800:
        return 2
    if cp < 0x10000:
        return 3
    return 4


class _OffsetMap:
    """Character <-> UTF-8 byte offset conversion for one text."""

    __slots__ = ("_ascii", "_byte_at")

    def __init__(self, text: str) -> None:
        self._ascii = text.isascii()
        self._byte_at: list[int] = []
        if not self._ascii:
            self._byte_at = list(accumulate((_utf8_width(c) for c in text), initial=0))

    def to_byte(self, offset: int) -> int:
        return offset if self._ascii else self._byte_at[offset]

    def to_char(self, byte_offset: int) -> int:
        return byte_offset if self._ascii else bisect_left(self._byte_at, byte_offset)


class TreeSitterSyntaxTree:
    """Immutable ``SyntaxTree`` over a tree-sitter parse.

    C# file-scoped namespaces (``namespace A.B;``) are siblings of the
    declarations they scope. ``parent`` reports such a namespace as the
    parent of every later top-level node, with its span stretched to the
    end of the file, so ancestor walks see it like a block namespace.
    """

    def __init__(
        self,
        document: SourceDocument,
        tree: Any,
        pack: LanguagePack,
        error_ranges: list[tuple[int, int]],
    ) -> None:
        self._document = document
        self._tree = tree
        self._root = tree.root_node
        self._pack = pack
        self._offsets = _OffsetMap(document.text)
        self._error_ranges = error_ranges
        self.error_count = len(error_ranges)

    # ------------------------------------------------------------------
    # SyntaxTree capability
    # ------------------------------------------------------------------

    @property
    def document(self) -> SourceDocument:
        return self._document

    @property
    def length(self) -> int:
        return self._document.length

    @property
    def language(self) -> str:
        return self._pack.name

    @property
    def root(self) -> SyntaxNode:
        return self._wrap(self._root)

    @property
    def has_errors(self) -> bool:
        return self.error_count > 0

    def token_at(self, offset: int) -> SyntaxNode | None:
        """Deepest non-empty token at ``offset``.

        Within each node the child whose half-open range contains the
        offset wins, so a token starting at ``offset`` beats one ending
        there. An offset in a gap between children goes to the next child;
        past the last child it goes to the last one.
        """
        target = self._offsets.to_byte(offset)
        node = self._root
        while node.child_count:
            children = [c for c in node.children if c.end_byte > c.start_byte]
            if not children:
                break
            chosen = None
            for child in children:
                if child.start_byte <= target < child.end_byte or child.start_byte > target:
                    chosen = child
                    break
            node = chosen if chosen is not None else children[-1]
        if node == self._root or node.end_byte <= node.start_byte:
            return None
        return self._wrap(node)

    def parent(self, node: SyntaxNode) -> SyntaxNode | None:
        handle = node.handle
        ts_parent = handle.parent
        if ts_parent is None:
            return None
        if (
            self._pack.file_namespace_types
            and ts_parent == self._root
            and handle.type not in self._pack.file_namespace_types
        ):
            scope = self._file_namespace_before(handle)
            if scope is not None:
                return self._wrap(
                    scope,
                    span=Span(self._offsets.to_char(scope.start_byte), self.length),
                )
        return self._wrap(ts_parent)

    def error_spans(self) -> tuple[Span, ...]:
        """ERROR and missing nodes, in document order."""
        return tuple(
            Span(self._offsets.to_char(start), self._offsets.to_char(end))
            for start, end in self._error_ranges
        )

    def kind(self, node: SyntaxNode) -> NodeKind:
        return node.kind

    def span(self, node: SyntaxNode) -> Span:
        return node.span

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def text_of(self, node: SyntaxNode) -> str:
        return self._document.text[node.span.start : node.span.end]

    def _file_namespace_before(self, handle: Any) -> Any | None:
        found = None
        for child in self._root.children:
            if child.start_byte >= handle.start_byte:
                break
            if child.type in self._pack.file_namespace_types:
                found = child
        return found

    def _classify(self, handle: Any) -> NodeKind:
        node_type = handle.type
        if node_type in self._pack.method_types:
            return NodeKind.METHOD
        if node_type in self._pack.type_types:
            return NodeKind.TYPE
        if node_type in self._pack.namespace_types:
            return NodeKind.NAMESPACE
        if handle.child_count == 0:
            return NodeKind.TOKEN
        return NodeKind.OTHER

    def _declared_name(self, handle: Any) -> str | None:
        name_node = handle.child_by_field_name(self._pack.name_field)
        if name_node is None:
            for child in handle.named_children:
                if child.type in ("identifier", "qualified_name"):
                    name_node = child
                    break
        if name_node is None:
            return None
        start = self._offsets.to_char(name_node.start_byte)
        end = self._offsets.to_char(name_node.end_byte)
        return "".join(self._document.text[start:end].split()) or None

    def _wrap(self, handle: Any, span: Span | None = None) -> SyntaxNode:
        kind = self._classify(handle)
        if span is None:
            span = Span(
                self._offsets.to_char(handle.start_byte),
                self._offsets.to_char(handle.end_byte),
            )
        if kind is NodeKind.TOKEN:
            identifier: str | None = self._document.text[span.start : span.end]
        elif kind is NodeKind.OTHER:
            identifier = None
        else:
            identifier = self._declared_name(handle)
        return SyntaxNode(
            kind=kind,
            span=span,
            node_type=handle.type,
            identifier=identifier,
            is_error=handle.type == "ERROR" or handle.is_missing,
            handle=handle,
        )


@dataclass
class TreeSitterParser:
    """
    Tree-sitter parser for source documents.

    Loads each grammar once and creates a fresh ``tree_sitter.Parser`` per
    parse so parsing can run on worker threads.

    Usage::

        parser = TreeSitterParser()
        tree = parser.parse(document)
        token = tree.token_at(offset)
    """

    _languages: dict[str, Any] = field(default_factory=dict, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def _get_language(self, pack: LanguagePack) -> Any:
        """Get or load a Tree-sitter language for a pack."""
        with self._lock:
            lang = self._languages.get(pack.grammar_name)
            if lang is not None:
                return lang
            try:
                mod = importlib.import_module(pack.grammar_module)
                lang_fn = getattr(mod, pack.language_func)
            except (ImportError, AttributeError) as err:
                raise ValueError(f"Language not available: {pack.grammar_name}") from err
            lang = tree_sitter.Language(lang_fn())
            self._languages[pack.grammar_name] = lang
            return lang

    def parse(
        self, document: SourceDocument, pack: LanguagePack | None = None
    ) -> TreeSitterSyntaxTree:
        """
        Parse a document with Tree-sitter.

        Args:
            document: Document to parse (its ``language`` selects the pack)
            pack: Explicit pack, e.g. one with configured kind overrides

        Returns:
            TreeSitterSyntaxTree over the parse.

        Raises:
            ParseError: text is not encodable as UTF-8 or no grammar exists.
        """
        pack = pack or get_pack(document.language)
        if pack is None:
            raise ParseError.unsupported_language(str(document.path), document.language)
        try:
            source = document.text.encode("utf-8")
        except UnicodeEncodeError as e:
            raise ParseError.undecodable(str(document.path), str(e)) from e
        try:
            ts_lang = self._get_language(pack)
        except ValueError as e:
            raise ParseError.unsupported_language(str(document.path), pack.name) from e

        parser = tree_sitter.Parser(ts_lang)
        tree = parser.parse(source)

        error_ranges: list[tuple[int, int]] = []
        stack = [tree.root_node]
        while stack:
            node = stack.pop()
            if node.type == "ERROR" or node.is_missing:
                error_ranges.append((node.start_byte, node.end_byte))
            stack.extend(node.children)

        if error_ranges:
            logger.debug(
                "parse_recovered_errors",
                path=str(document.path),
                version=document.version,
                error_count=len(error_ranges),
            )
        return TreeSitterSyntaxTree(document, tree, pack, sorted(error_ranges))
