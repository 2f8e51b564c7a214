"""Ancestor walk from a token to its enclosing method, type and namespaces."""

from __future__ import annotations

from collections.abc import Iterator

from declscope.core.errors import IncompleteDeclaration, NotInMethod
from declscope.resolve.models import EnclosingDeclaration, NodeKind, SyntaxNode, SyntaxTree


def _ancestors(tree: SyntaxTree, node: SyntaxNode) -> Iterator[SyntaxNode]:
    current = tree.parent(node)
    while current is not None:
        yield current
        current = tree.parent(current)


def _first_of_kind(tree: SyntaxTree, start: SyntaxNode, kind: NodeKind) -> SyntaxNode | None:
    for ancestor in _ancestors(tree, start):
        if tree.kind(ancestor) is kind:
            return ancestor
    return None


def enclosing_declaration(tree: SyntaxTree, token: SyntaxNode) -> EnclosingDeclaration:
    """Innermost method around ``token``, its type, and the namespace chain.

    The type is searched above the method, and namespaces above the type
    (or above the method when no type encloses it). Namespaces are
    returned outermost first; a dotted name like ``A.B`` yields two
    segments.

    Syntax errors inside the method body are tolerated. An error anywhere
    else may have swallowed an enclosing declaration, so the walk refuses
    to report a possibly truncated scope chain.

    Raises:
        NotInMethod: no method encloses the token.
        IncompleteDeclaration: a syntax error lies outside the method.
    """
    method = _first_of_kind(tree, token, NodeKind.METHOD)
    if method is None:
        raise NotInMethod.at(str(tree.document.path), tree.span(token).start)

    method_span = tree.span(method)
    for error in tree.error_spans():
        if not method_span.covers(error):
            raise IncompleteDeclaration.around_method(
                str(tree.document.path), method.identifier, error.start
            )

    type_node = _first_of_kind(tree, method, NodeKind.TYPE)

    namespaces: list[str] = []
    for ancestor in _ancestors(tree, type_node or method):
        if tree.kind(ancestor) is NodeKind.NAMESPACE and ancestor.identifier:
            namespaces.append(ancestor.identifier)
    namespaces.reverse()

    return EnclosingDeclaration(
        namespace_path=tuple(part for name in namespaces for part in name.split(".") if part),
        type_name=type_node.identifier if type_node is not None else None,
        method_name=method.identifier,
    )
