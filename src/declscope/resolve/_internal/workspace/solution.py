"""Solution and project file loading.

Builds a ``WorkspaceIndex`` from one of:
- a classic ``.sln`` file
- an XML ``.slnx`` file
- a single project file (treated as a one-project solution)

Project document sets follow MSBuild's defaults closely enough for
resolution: SDK-style projects include every source file under the project
directory (minus excluded directories and ``<Compile Remove>``), legacy
projects and ``EnableDefaultCompileItems=false`` use only explicit
``<Compile Include>`` items.
"""

from __future__ import annotations

import glob
import os
import re
import xml.etree.ElementTree as ET
from pathlib import Path

import structlog

from declscope.config.models import WorkspaceConfig
from declscope.core.errors import WorkspaceLoadError
from declscope.resolve.models import (
    ProjectDocument,
    ProjectInfo,
    WorkspaceIndex,
    normalize_path,
)

logger = structlog.get_logger()

# .sln format: Project("{TYPE-GUID}") = "Name", "path\to\project.csproj", "{GUID}"
_SLN_PROJECT_RE = re.compile(r'^Project\("[^"]*"\)\s*=\s*"([^"]*)",\s*"([^"]+)"', re.MULTILINE)
_WILDCARD_RE = re.compile(r"[*?\[]")


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _native(path_text: str) -> str:
    return path_text.strip().replace("\\", "/")


def _split_items(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(";") if item.strip()]


def read_solution_projects(solution_path: Path, config: WorkspaceConfig) -> list[tuple[str, Path]]:
    """Project names and absolute paths, in declaration order.

    Entries that are not project files (solution folders, website
    projects) are skipped.

    Raises:
        WorkspaceLoadError: unreadable file or unknown solution format.
    """
    suffix = solution_path.suffix.lower()
    extensions = {ext.lower() for ext in config.project_extensions}
    base = solution_path.parent

    if suffix in extensions:
        return [(solution_path.stem, solution_path)]

    try:
        raw = solution_path.read_bytes()
    except OSError as e:
        raise WorkspaceLoadError.unparsable(str(solution_path), str(e)) from e

    entries: list[tuple[str, str]] = []
    if suffix == ".sln":
        try:
            content = raw.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise WorkspaceLoadError.unparsable(str(solution_path), str(e)) from e
        entries = [(m.group(1), m.group(2)) for m in _SLN_PROJECT_RE.finditer(content)]
    elif suffix == ".slnx":
        try:
            root = ET.fromstring(raw)
        except ET.ParseError as e:
            raise WorkspaceLoadError.unparsable(str(solution_path), str(e)) from e
        for elem in root.iter():
            if _local_name(elem.tag) == "Project" and elem.get("Path"):
                rel = _native(elem.get("Path", ""))
                entries.append((Path(rel).stem, rel))
    else:
        raise WorkspaceLoadError.unparsable(
            str(solution_path), f"unsupported solution format '{suffix or solution_path.name}'"
        )

    projects: list[tuple[str, Path]] = []
    seen: set[str] = set()
    for name, rel in entries:
        rel = _native(rel)
        if Path(rel).suffix.lower() not in extensions:
            continue
        path = Path(os.path.normpath(base / rel))
        key = normalize_path(path)
        if key in seen:
            continue
        seen.add(key)
        projects.append((name or path.stem, path))
    return projects


def _expand(project_dir: Path, pattern: str) -> list[Path]:
    pattern = _native(pattern)
    full = os.path.join(project_dir, pattern)
    if _WILDCARD_RE.search(pattern):
        return [Path(os.path.normpath(p)) for p in sorted(glob.glob(full, recursive=True))]
    return [Path(os.path.normpath(full))]


def _default_compile_items(project_dir: Path, config: WorkspaceConfig) -> list[Path]:
    extensions = {ext.lower() for ext in config.source_extensions}
    excluded = {name.casefold() for name in config.excluded_dirs}
    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(project_dir):
        dirnames[:] = sorted(d for d in dirnames if d.casefold() not in excluded)
        for filename in sorted(filenames):
            if os.path.splitext(filename)[1].lower() in extensions:
                found.append(Path(dirpath) / filename)
    return found


def load_project(name: str, project_path: Path, config: WorkspaceConfig) -> ProjectInfo:
    """Parse a project file and list its source documents.

    Raises:
        WorkspaceLoadError: the project file is unreadable or not well-formed XML.
    """
    try:
        root = ET.parse(project_path).getroot()
    except (ET.ParseError, OSError) as e:
        raise WorkspaceLoadError.unparsable(str(project_path), str(e)) from e

    sdk_style = root.get("Sdk") is not None
    default_items = True
    includes: list[str] = []
    removes: list[str] = []
    for elem in root.iter():
        tag = _local_name(elem.tag)
        if tag == "Sdk" or (tag == "Import" and elem.get("Sdk")):
            sdk_style = True
        elif tag == "EnableDefaultCompileItems" and (elem.text or "").strip().lower() == "false":
            default_items = False
        elif tag == "Compile":
            includes.extend(_split_items(elem.get("Include")))
            removes.extend(_split_items(elem.get("Remove")))

    project_dir = project_path.parent
    documents: dict[str, Path] = {}
    if sdk_style and default_items:
        for path in _default_compile_items(project_dir, config):
            documents.setdefault(normalize_path(path), path)
    for pattern in includes:
        for path in _expand(project_dir, pattern):
            documents.setdefault(normalize_path(path), path)
    for pattern in removes:
        for path in _expand(project_dir, pattern):
            documents.pop(normalize_path(path), None)

    return ProjectInfo(
        name=name,
        path=project_path,
        documents=tuple(documents.values()),
        default_compile_items=sdk_style and default_items,
    )


def load_workspace_index(solution_path: Path, config: WorkspaceConfig) -> WorkspaceIndex:
    """Load a solution's full project graph.

    Missing project files are logged and skipped.

    Raises:
        WorkspaceLoadError: solution missing, unreadable or unparsable.
    """
    try:
        stat = solution_path.stat()
    except OSError as e:
        raise WorkspaceLoadError.not_found(str(solution_path)) from e
    if not solution_path.is_file():
        raise WorkspaceLoadError.not_found(str(solution_path))

    projects: list[ProjectInfo] = []
    stamps: dict[str, int] = {}
    for name, project_path in read_solution_projects(solution_path, config):
        try:
            project_stat = project_path.stat()
        except OSError:
            logger.warning(
                "project_missing", solution=str(solution_path), project=str(project_path)
            )
            continue
        projects.append(load_project(name, project_path, config))
        stamps[str(project_path)] = project_stat.st_mtime_ns

    documents: dict[str, list[ProjectDocument]] = {}
    for project in projects:
        for path in project.documents:
            documents.setdefault(normalize_path(path), []).append(
                ProjectDocument(project_name=project.name, project_path=project.path, path=path)
            )

    return WorkspaceIndex(
        solution_path=solution_path,
        modified_ns=stat.st_mtime_ns,
        projects=tuple(projects),
        documents={key: tuple(docs) for key, docs in documents.items()},
        project_stamps=stamps,
    )
