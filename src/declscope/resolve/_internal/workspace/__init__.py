"""Solution/project graph loading and document lookup."""

from declscope.resolve._internal.workspace.resolver import (
    WorkspaceLoader,
    WorkspaceResolver,
    read_source_document,
)
from declscope.resolve._internal.workspace.solution import (
    load_project,
    load_workspace_index,
    read_solution_projects,
)

__all__ = [
    "WorkspaceResolver",
    "WorkspaceLoader",
    "read_source_document",
    "load_workspace_index",
    "load_project",
    "read_solution_projects",
]
