"""LanguagePack: single source of truth for per-grammar resolver config.

Each supported language has exactly ONE LanguagePack that holds:
- Grammar metadata (package, module, loader function)
- File extension detection
- The recognized-kind sets mapping grammar node types to
  METHOD / TYPE / NAMESPACE

The PACKS registry is the canonical lookup: ``PACKS["csharp"]``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from declscope.config.models import ResolverConfig


@dataclass(frozen=True)
class LanguagePack:
    """Tree-sitter configuration for a single language."""

    # -- Identity --
    name: str  # Canonical language name ("csharp", "python")
    grammar_name: str  # tree-sitter grammar key ("c_sharp")

    # -- Grammar install --
    grammar_package: str  # PyPI package ("tree-sitter-c-sharp")
    grammar_module: str  # Python import ("tree_sitter_c_sharp")
    language_func: str = "language"

    # -- File detection --
    extensions: frozenset[str] = field(default_factory=frozenset)

    # -- Recognized kinds (node.type sets) --
    method_types: frozenset[str] = frozenset()
    type_types: frozenset[str] = frozenset()
    namespace_types: frozenset[str] = frozenset()
    # Namespaces declared as a statement that scopes the rest of the file
    file_namespace_types: frozenset[str] = frozenset()
    name_field: str = "name"

    def with_overrides(self, config: ResolverConfig | None) -> LanguagePack:
        """Return a copy with the configured kind sets applied."""
        if config is None:
            return self
        changes: dict[str, frozenset[str]] = {}
        if config.method_kinds is not None:
            changes["method_types"] = frozenset(config.method_kinds)
        if config.type_kinds is not None:
            changes["type_types"] = frozenset(config.type_kinds)
        if config.namespace_kinds is not None:
            changes["namespace_types"] = frozenset(config.namespace_kinds)
            changes["file_namespace_types"] = self.file_namespace_types & frozenset(
                config.namespace_kinds
            )
        return replace(self, **changes) if changes else self


# =========================================================================
# C#
# =========================================================================

CSHARP_PACK = LanguagePack(
    name="csharp",
    grammar_name="c_sharp",
    grammar_package="tree-sitter-c-sharp",
    grammar_module="tree_sitter_c_sharp",
    extensions=frozenset({"cs"}),
    method_types=frozenset({"method_declaration"}),
    type_types=frozenset(
        {
            "class_declaration",
            "struct_declaration",
            "record_declaration",
            "record_struct_declaration",
            "interface_declaration",
        }
    ),
    namespace_types=frozenset(
        {"namespace_declaration", "file_scoped_namespace_declaration"}
    ),
    file_namespace_types=frozenset({"file_scoped_namespace_declaration"}),
)

# =========================================================================
# PYTHON
# =========================================================================

PYTHON_PACK = LanguagePack(
    name="python",
    grammar_name="python",
    grammar_package="tree-sitter-python",
    grammar_module="tree_sitter_python",
    extensions=frozenset({"py", "pyi"}),
    method_types=frozenset({"function_definition"}),
    type_types=frozenset({"class_definition"}),
)


# =========================================================================
# Registry
# =========================================================================

_ALL_PACKS: tuple[LanguagePack, ...] = (CSHARP_PACK, PYTHON_PACK)

# name -> Pack
PACKS: dict[str, LanguagePack] = {pack.name: pack for pack in _ALL_PACKS}
PACKS["c_sharp"] = CSHARP_PACK

# Extension -> Pack
_EXT_TO_PACK: dict[str, LanguagePack] = {}
for _pack in _ALL_PACKS:
    for _ext in _pack.extensions:
        _EXT_TO_PACK[_ext] = _pack


def get_pack_for_ext(ext: str) -> LanguagePack | None:
    """Get a LanguagePack for a file extension (with or without leading dot)."""
    return _EXT_TO_PACK.get(ext.lower().lstrip("."))


def get_pack(name: str) -> LanguagePack | None:
    """Get a LanguagePack by language name."""
    return PACKS.get(name)
