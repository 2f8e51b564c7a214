"""Selection validation and qualified name assembly."""

from __future__ import annotations

from declscope.core.errors import InvalidSelection, MissingEnclosingType
from declscope.resolve.models import EnclosingDeclaration, QualifiedName


def is_method_selection(selection_text: str | None) -> bool:
    """True when the selection could name a method (menu visibility check)."""
    selected = (selection_text or "").strip()
    return bool(selected) and selected[0].isalpha()


def build_qualified_name(selection_text: str, declaration: EnclosingDeclaration) -> QualifiedName:
    """Combine the user's selection with the enclosing declaration.

    The selection (stripped) becomes ``method_name``; the walker's method
    identifier is kept as ``resolved_method_name``.

    Raises:
        InvalidSelection: empty selection or one not starting with a letter.
        MissingEnclosingType: the method has no enclosing type.
    """
    selected = (selection_text or "").strip()
    if not selected:
        raise InvalidSelection.empty()
    if not selected[0].isalpha():
        raise InvalidSelection.not_identifier(selected)
    if not declaration.type_name:
        raise MissingEnclosingType.for_method(declaration.method_name)
    return QualifiedName(
        namespace_path=declaration.namespace_path,
        type_name=declaration.type_name,
        method_name=selected,
        resolved_method_name=declaration.method_name,
    )
