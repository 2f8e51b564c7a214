"""Process-wide syntax tree cache keyed by document path and version.

One entry per document path holds the tree of the most recently requested
version. Requests for the cached version return the same instance; any
other version replaces the entry. Versions are only compared for equality:
disk reads use the file mtime while editor buffers use their own counter,
so the two are not ordered against each other.
Entries are swapped whole under a lock, so readers never see a partially
built tree.
"""

from __future__ import annotations

import asyncio
import threading
from collections import OrderedDict
from dataclasses import dataclass

import structlog

from declscope.config.models import CacheConfig, ResolverConfig
from declscope.resolve._internal.parsing.packs import LanguagePack, get_pack
from declscope.resolve._internal.parsing.treesitter import TreeSitterParser, TreeSitterSyntaxTree
from declscope.resolve.models import SourceDocument, normalize_path

logger = structlog.get_logger()


@dataclass
class CacheStats:
    """Cache counters."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0

    @property
    def parses(self) -> int:
        return self.misses


class SyntaxTreeCache:
    """LRU cache of parsed documents.

    Usage::

        cache = SyntaxTreeCache()
        tree = cache.get_tree(document)
        assert cache.get_tree(document) is tree
    """

    def __init__(
        self,
        config: CacheConfig | None = None,
        resolver_config: ResolverConfig | None = None,
        parser: TreeSitterParser | None = None,
    ) -> None:
        self._config = config or CacheConfig()
        self._resolver_config = resolver_config
        self._parser = parser or TreeSitterParser()
        self._entries: OrderedDict[str, TreeSitterSyntaxTree] = OrderedDict()
        self._lock = threading.Lock()
        self.stats = CacheStats()

    def __len__(self) -> int:
        return len(self._entries)

    def _pack_for(self, document: SourceDocument) -> LanguagePack | None:
        pack = get_pack(document.language)
        if pack is None:
            return None
        return pack.with_overrides(self._resolver_config)

    def _lookup(self, key: str, version: int) -> TreeSitterSyntaxTree | None:
        with self._lock:
            cached = self._entries.get(key)
            if cached is not None and cached.document.version == version:
                self._entries.move_to_end(key)
                self.stats.hits += 1
                return cached
            self.stats.misses += 1
            return None

    def _store(self, key: str, tree: TreeSitterSyntaxTree) -> TreeSitterSyntaxTree:
        with self._lock:
            cached = self._entries.get(key)
            if cached is not None:
                if cached.document.version == tree.document.version:
                    # Another caller finished the same parse first
                    self._entries.move_to_end(key)
                    return cached
                logger.debug(
                    "tree_cache_replaced",
                    path=key,
                    previous=cached.document.version,
                    version=tree.document.version,
                )
            self._entries[key] = tree
            self._entries.move_to_end(key)
            while len(self._entries) > self._config.max_trees:
                evicted_key, _ = self._entries.popitem(last=False)
                self.stats.evictions += 1
                logger.debug("tree_cache_evicted", path=evicted_key)
            return tree

    def get_tree(self, document: SourceDocument) -> TreeSitterSyntaxTree:
        """Return the tree for ``document``, parsing only on a miss.

        Raises:
            ParseError: unrecoverable input (see ``TreeSitterParser.parse``).
        """
        key = normalize_path(document.path)
        cached = self._lookup(key, document.version)
        if cached is not None:
            logger.debug("tree_cache_hit", path=key, version=document.version)
            return cached
        tree = self._parser.parse(document, self._pack_for(document))
        logger.debug(
            "tree_cache_miss",
            path=key,
            version=document.version,
            errors=tree.error_count,
        )
        return self._store(key, tree)

    async def aget_tree(self, document: SourceDocument) -> TreeSitterSyntaxTree:
        """Like ``get_tree`` but parses large documents on a worker thread."""
        key = normalize_path(document.path)
        cached = self._lookup(key, document.version)
        if cached is not None:
            logger.debug("tree_cache_hit", path=key, version=document.version)
            return cached
        pack = self._pack_for(document)
        if len(document.text) >= self._config.thread_parse_threshold_bytes:
            tree = await asyncio.to_thread(self._parser.parse, document, pack)
        else:
            tree = self._parser.parse(document, pack)
        logger.debug(
            "tree_cache_miss",
            path=key,
            version=document.version,
            errors=tree.error_count,
        )
        return self._store(key, tree)

    def evict(self, path: str) -> bool:
        """Drop the entry for ``path``. Returns True if one existed."""
        with self._lock:
            return self._entries.pop(normalize_path(path), None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
