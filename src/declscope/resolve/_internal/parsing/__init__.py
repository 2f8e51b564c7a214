"""Tree-sitter parsing and the syntax tree cache."""

from declscope.resolve._internal.parsing.cache import CacheStats, SyntaxTreeCache
from declscope.resolve._internal.parsing.packs import (
    CSHARP_PACK,
    PACKS,
    PYTHON_PACK,
    LanguagePack,
    get_pack,
    get_pack_for_ext,
)
from declscope.resolve._internal.parsing.treesitter import (
    TreeSitterParser,
    TreeSitterSyntaxTree,
)

__all__ = [
    "TreeSitterParser",
    "TreeSitterSyntaxTree",
    "SyntaxTreeCache",
    "CacheStats",
    "LanguagePack",
    "PACKS",
    "CSHARP_PACK",
    "PYTHON_PACK",
    "get_pack",
    "get_pack_for_ext",
]
