"""High-level resolution API.

``DeclarationResolver`` runs the whole chain for one request:

    WorkspaceResolver -> SyntaxTreeCache -> resolve_token
        -> enclosing_declaration -> build_qualified_name

and folds every typed failure into a ``ResolutionOutcome`` carrying one
human-readable reason. ``ResolutionSession`` adds supersede semantics for
a single command context.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from pathlib import Path

import structlog

from declscope.config.models import DeclScopeConfig
from declscope.core.errors import DeclScopeError, Diagnostic
from declscope.core.logging import clear_request_id, set_request_id
from declscope.resolve._internal.naming import build_qualified_name
from declscope.resolve._internal.parsing.cache import SyntaxTreeCache
from declscope.resolve._internal.position import resolve_token
from declscope.resolve._internal.walker import enclosing_declaration
from declscope.resolve._internal.workspace.resolver import WorkspaceResolver
from declscope.resolve.models import (
    InvocationDescriptor,
    QualifiedName,
    ResolutionOutcome,
    ResolutionRequest,
    SourceDocument,
)

logger = structlog.get_logger()

RequestSnapshot = ResolutionRequest | Callable[[], ResolutionRequest]


class DeclarationResolver:
    """Resolves caret positions to analyzer invocations.

    Owns (or is given) the shared workspace resolver and tree cache.

    Usage::

        resolver = DeclarationResolver(load_config())
        outcome = await resolver.resolve(request)
        if outcome.ok:
            args = outcome.descriptor.to_args()
        else:
            show(outcome.error)
    """

    def __init__(
        self,
        config: DeclScopeConfig | None = None,
        *,
        workspace: WorkspaceResolver | None = None,
        trees: SyntaxTreeCache | None = None,
    ) -> None:
        self.config = config or DeclScopeConfig()
        self.workspace = workspace or WorkspaceResolver(self.config.workspace)
        self.trees = trees or SyntaxTreeCache(self.config.cache, self.config.resolver)

    def qualify(self, document: SourceDocument, offset: int, selection_text: str) -> QualifiedName:
        """Resolve within an already materialized document.

        Raises:
            DeclScopeError: any typed resolution failure.
        """
        tree = self.trees.get_tree(document)
        token = resolve_token(tree, offset)
        declaration = enclosing_declaration(tree, token)
        return build_qualified_name(selection_text, declaration)

    async def resolve(self, request: ResolutionRequest) -> ResolutionOutcome:
        """Run a full resolution. Never raises for typed failures."""
        set_request_id()
        try:
            return await self._resolve(request)
        finally:
            clear_request_id()

    async def _resolve(self, request: ResolutionRequest) -> ResolutionOutcome:
        log = logger.bind(document=str(request.document_path), offset=request.caret_offset)
        diagnostics: list[Diagnostic] = []
        try:
            resolved = await self.workspace.resolve_document(
                Path(request.solution_path),
                Path(request.document_path),
                text=request.document_text,
                version=request.document_version,
            )
            diagnostics.extend(resolved.diagnostics)
            tree = await self.trees.aget_tree(resolved.document)
            token = resolve_token(tree, request.caret_offset)
            declaration = enclosing_declaration(tree, token)
            name = build_qualified_name(request.selection_text, declaration)
        except DeclScopeError as e:
            log.info("resolution_failed", error=e.error_name, code=e.code.value)
            return ResolutionOutcome.failure(e.message, tuple(diagnostics))

        if not name.method_matches:
            mismatch = Diagnostic.selection_mismatch(name.method_name, name.resolved_method_name)
            diagnostics.append(mismatch)
            log.warning(
                "selection_mismatch",
                selection=name.method_name,
                resolved=name.resolved_method_name,
            )

        descriptor = InvocationDescriptor(
            solution_path=str(request.solution_path),
            namespace_path=name.dotted_namespace(self.config.resolver.namespace_separator),
            type_name=name.type_name,
            method_name=name.method_name,
        )
        log.info(
            "resolution_succeeded",
            namespace=descriptor.namespace_path,
            type=descriptor.type_name,
            method=descriptor.method_name,
        )
        return ResolutionOutcome(
            descriptor=descriptor,
            qualified_name=name,
            diagnostics=tuple(diagnostics),
        )

    async def close(self) -> None:
        await self.workspace.close()
        self.trees.clear()


class ResolutionSession:
    """A single command context where each request supersedes the last.

    ``submit`` reads the request synchronously, before anything is
    awaited: editor state (caret, selection, active document) is only valid
    on the calling turn. Pass a callable to have it invoked right there.
    """

    def __init__(self, resolver: DeclarationResolver) -> None:
        self._resolver = resolver
        self._current: asyncio.Task[ResolutionOutcome] | None = None

    @property
    def current(self) -> asyncio.Task[ResolutionOutcome] | None:
        return self._current

    def submit(self, request: RequestSnapshot) -> asyncio.Task[ResolutionOutcome]:
        """Start resolving ``request``, cancelling any resolution still running.

        Must be called from a running event loop.
        """
        snapshot = request() if callable(request) else request
        previous = self._current
        if previous is not None and not previous.done():
            previous.cancel()
            logger.debug("resolution_superseded", document=str(snapshot.document_path))
        task = asyncio.get_running_loop().create_task(self._resolver.resolve(snapshot))
        self._current = task
        return task

    async def aclose(self) -> None:
        task = self._current
        self._current = None
        if task is not None and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
