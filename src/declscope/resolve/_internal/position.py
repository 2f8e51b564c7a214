"""Caret offset to token resolution."""

from __future__ import annotations

from declscope.core.errors import EmptyDocument, PositionOutOfRange
from declscope.resolve.models import SyntaxNode, SyntaxTree


def resolve_token(tree: SyntaxTree, offset: int) -> SyntaxNode:
    """Find the token at ``offset``.

    A token starting at ``offset`` wins over one ending there. Offsets in
    whitespace or comments between tokens resolve to the following token.

    Raises:
        PositionOutOfRange: ``offset`` outside ``[0, len(text)]``.
        EmptyDocument: the tree has no tokens.
    """
    if not (0 <= offset <= tree.length):
        raise PositionOutOfRange.for_offset(offset, tree.length)
    token = tree.token_at(offset)
    if token is None:
        raise EmptyDocument.for_path(str(tree.document.path))
    return token


def offset_from_line_col(text: str, line: int, column: int) -> int:
    """Character offset of a 1-based ``line`` and 0-based ``column``.

    Line breaks are ``\\n`` (``\\r\\n`` counts its ``\\r`` as the line's last
    column). ``column`` may equal the line length (caret at end of line).
    """
    if line < 1 or column < 0:
        raise PositionOutOfRange.for_line_col(line, column)
    start = 0
    for _ in range(line - 1):
        newline = text.find("\n", start)
        if newline < 0:
            raise PositionOutOfRange.for_line_col(line, column)
        start = newline + 1
    end = text.find("\n", start)
    line_length = (len(text) if end < 0 else end) - start
    if column > line_length:
        raise PositionOutOfRange.for_line_col(line, column)
    return start + column
