"""Solution-path to source-document resolution with single-flight loading.

Loading a project graph is the expensive step, so it happens at most once
per ``(solution path, solution mtime)``. Callers that arrive while a load is
running await the same task. The task is shielded: a caller being cancelled
(e.g. a superseded request) never aborts a load other callers share.
"""

from __future__ import annotations

import asyncio
import os
import time
from collections.abc import Callable
from pathlib import Path, PurePosixPath

import structlog

from declscope.config.models import WorkspaceConfig
from declscope.core.errors import Diagnostic, DocumentNotFound, ParseError, WorkspaceLoadError
from declscope.resolve._internal.parsing.packs import get_pack_for_ext
from declscope.resolve._internal.workspace.solution import load_workspace_index
from declscope.resolve.models import (
    ResolvedDocument,
    SourceDocument,
    WorkspaceIndex,
    normalize_path,
)

logger = structlog.get_logger()

WorkspaceLoader = Callable[[Path, WorkspaceConfig], WorkspaceIndex]
_Key = tuple[str, int]


def _language_for(path: Path) -> str:
    pack = get_pack_for_ext(path.suffix)
    return pack.name if pack is not None else ""


def read_source_document(path: Path) -> SourceDocument:
    """Read a document from disk, version = ``st_mtime_ns``.

    Bytes are decoded as UTF-8 (a BOM is dropped) without newline
    translation, so offsets match what an editor reports.

    Raises:
        DocumentNotFound: the file cannot be read.
        ParseError: the bytes are not valid UTF-8.
    """
    try:
        stat = path.stat()
        raw = path.read_bytes()
    except OSError as e:
        raise DocumentNotFound.unreadable(str(path), e.strerror or str(e)) from e
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ParseError.undecodable(str(path), str(e)) from e
    return SourceDocument(
        path=path, text=text, version=stat.st_mtime_ns, language=_language_for(path)
    )


class WorkspaceResolver:
    """Maps file paths to documents of a solution's projects.

    Owns the process-wide workspace index cache. Construct one per
    process (or per test), call ``close()`` on teardown.

    Usage::

        resolver = WorkspaceResolver()
        resolved = await resolver.resolve_document(Path("App.sln"), Path("src/Foo.cs"))
        resolved.document.text
    """

    def __init__(
        self,
        config: WorkspaceConfig | None = None,
        loader: WorkspaceLoader | None = None,
    ) -> None:
        self._config = config or WorkspaceConfig()
        self._loader = loader or load_workspace_index
        self._indexes: dict[str, tuple[int, WorkspaceIndex]] = {}
        self._inflight: dict[_Key, asyncio.Task[WorkspaceIndex]] = {}
        self.load_count = 0

    # ------------------------------------------------------------------
    # Index cache
    # ------------------------------------------------------------------

    def _key(self, solution_path: Path) -> _Key:
        try:
            stat = solution_path.stat()
        except OSError as e:
            raise WorkspaceLoadError.not_found(str(solution_path)) from e
        return normalize_path(solution_path), stat.st_mtime_ns

    @staticmethod
    def _projects_unchanged(index: WorkspaceIndex) -> bool:
        for project_path, stamp in index.project_stamps.items():
            try:
                if os.stat(project_path).st_mtime_ns != stamp:
                    return False
            except OSError:
                return False
        return True

    def _cached(self, key: _Key) -> WorkspaceIndex | None:
        entry = self._indexes.get(key[0])
        if entry is None or entry[0] != key[1]:
            return None
        if not self._projects_unchanged(entry[1]):
            logger.info("workspace_projects_changed", solution=key[0])
            del self._indexes[key[0]]
            return None
        return entry[1]

    async def get_index(self, solution_path: Path) -> WorkspaceIndex:
        """Loaded index for the solution's current state.

        Raises:
            WorkspaceLoadError: solution missing or unparsable.
        """
        solution_path = Path(solution_path)
        key = self._key(solution_path)
        cached = self._cached(key)
        if cached is not None:
            return cached

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.get_running_loop().create_task(self._load(solution_path, key))
            self._inflight[key] = task
            task.add_done_callback(lambda t, k=key: self._forget(k, t))
        else:
            logger.debug("workspace_load_joined", solution=key[0])
        return await asyncio.shield(task)

    def _forget(self, key: _Key, task: asyncio.Task[WorkspaceIndex]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if not task.cancelled():
            # Every awaiter may have been cancelled; the failure was logged by _load
            task.exception()

    async def _load(self, solution_path: Path, key: _Key) -> WorkspaceIndex:
        self.load_count += 1
        logger.info("workspace_load_started", solution=str(solution_path))
        start = time.perf_counter()
        try:
            index = await asyncio.to_thread(self._loader, solution_path, self._config)
        except WorkspaceLoadError as e:
            logger.warning("workspace_load_failed", solution=str(solution_path), reason=e.message)
            raise
        current = self._indexes.get(key[0])
        if current is None or current[0] <= key[1]:
            self._indexes[key[0]] = (key[1], index)
        logger.info(
            "workspace_load_finished",
            solution=str(solution_path),
            projects=len(index.projects),
            documents=index.document_count,
            elapsed_ms=round((time.perf_counter() - start) * 1000, 1),
        )
        return index

    def _discard(self, index: WorkspaceIndex) -> None:
        key = normalize_path(index.solution_path)
        entry = self._indexes.get(key)
        if entry is not None and entry[1] is index:
            del self._indexes[key]

    def _is_new_default_item(self, index: WorkspaceIndex, file_path: Path) -> bool:
        """Whether an SDK project's default globs would now pick up ``file_path``.

        The index only tracks solution and project file stamps, so a source
        file created after loading is invisible until the next load.
        """
        extensions = {ext.lower() for ext in self._config.source_extensions}
        if Path(file_path).suffix.lower() not in extensions or not Path(file_path).is_file():
            return False
        excluded = {name.casefold() for name in self._config.excluded_dirs}
        target = PurePosixPath(normalize_path(file_path))
        for project in index.projects:
            if not project.default_compile_items:
                continue
            project_dir = PurePosixPath(normalize_path(project.path.parent))
            if project_dir not in target.parents:
                continue
            relative = target.relative_to(project_dir)
            if not any(part in excluded for part in relative.parts[:-1]):
                return True
        return False

    def invalidate(self, solution_path: Path | None = None) -> None:
        """Drop the cached index for one solution, or all of them."""
        if solution_path is None:
            self._indexes.clear()
        else:
            self._indexes.pop(normalize_path(solution_path), None)

    async def close(self) -> None:
        """Cancel in-flight loads and drop every cached index."""
        tasks = list(self._inflight.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._inflight.clear()
        self._indexes.clear()

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def resolve_document(
        self,
        solution_path: Path,
        file_path: Path,
        *,
        text: str | None = None,
        version: int | None = None,
    ) -> ResolvedDocument:
        """Find ``file_path`` in the solution and materialize its document.

        ``text``/``version`` substitute an editor buffer for the file on
        disk. When several projects contain the file, the first project in
        solution order wins and an ambiguity diagnostic is attached.

        Raises:
            WorkspaceLoadError: solution missing or unparsable.
            DocumentNotFound: no project contains the file.
            ParseError: the file on disk is not valid UTF-8.
        """
        loads = self.load_count
        index = await self.get_index(solution_path)
        key = normalize_path(file_path)
        matches = index.documents.get(key)
        stale = loads == self.load_count
        if not matches and stale and self._is_new_default_item(index, file_path):
            logger.info(
                "workspace_new_document", solution=str(solution_path), path=str(file_path)
            )
            self._discard(index)
            index = await self.get_index(solution_path)
            matches = index.documents.get(key)
        if not matches:
            raise DocumentNotFound.in_solution(str(file_path), str(solution_path))

        chosen = matches[0]
        diagnostics: tuple[Diagnostic, ...] = ()
        if len(matches) > 1:
            projects = [m.project_name for m in matches]
            diagnostics = (Diagnostic.ambiguous_document(str(chosen.path), projects),)
            logger.warning("ambiguous_document_match", path=str(chosen.path), projects=projects)

        if text is not None:
            document = SourceDocument(
                path=chosen.path,
                text=text,
                version=version if version is not None else 0,
                language=_language_for(chosen.path),
            )
        else:
            document = await asyncio.to_thread(read_source_document, chosen.path)
        return ResolvedDocument(
            document=document, project_name=chosen.project_name, diagnostics=diagnostics
        )
