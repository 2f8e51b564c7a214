"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (DECLSCOPE__SECTION__KEY)
3. Repo YAML (.declscope/config.yaml)
4. Global YAML (~/.config/declscope/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    DECLSCOPE__<SECTION>__<KEY>=<VALUE>

Examples:
    DECLSCOPE__LOGGING__LEVEL=DEBUG
    DECLSCOPE__CACHE__MAX_TREES=16
    DECLSCOPE__RESOLVER__TYPE_KINDS='["class_declaration"]'
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from declscope.config.constants import CACHE_MAX_TREES_LIMIT

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        DECLSCOPE__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="WARNING",
        description=(
            "Root log level. The CLI prints its result on stdout, so the default keeps "
            "stderr quiet; DEBUG logs every cache lookup."
        ),
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class ResolverConfig(BaseModel):
    """Recognized declaration kinds.

    Each list overrides the language pack's default set of grammar node
    types for that kind. ``None`` keeps the pack default.

    Env vars:
        DECLSCOPE__RESOLVER__METHOD_KINDS: JSON list of node types
        DECLSCOPE__RESOLVER__TYPE_KINDS: JSON list of node types
        DECLSCOPE__RESOLVER__NAMESPACE_KINDS: JSON list of node types
    """

    method_kinds: list[str] | None = Field(
        default=None,
        description="Node types treated as methods (C# default: method_declaration).",
    )
    type_kinds: list[str] | None = Field(
        default=None,
        description="Node types treated as enclosing types. "
        "Set to ['class_declaration'] to accept classes only.",
    )
    namespace_kinds: list[str] | None = Field(
        default=None,
        description="Node types treated as namespaces or modules.",
    )
    namespace_separator: str = Field(
        default=".",
        description="Separator used to join the namespace path for the analyzer.",
    )

    @field_validator("method_kinds", "type_kinds", "namespace_kinds")
    @classmethod
    def validate_kinds(cls, v: list[str] | None) -> list[str] | None:
        if v is not None and not v:
            raise ValueError("Kind list must not be empty (use null for the default)")
        return v


class CacheConfig(BaseModel):
    """Syntax tree cache configuration.

    Env vars:
        DECLSCOPE__CACHE__MAX_TREES: Max cached trees before LRU eviction
        DECLSCOPE__CACHE__THREAD_PARSE_THRESHOLD_BYTES: Parse in a worker thread above this size
    """

    max_trees: int = Field(
        default=64,
        description="Max parsed documents kept in memory. Oldest unused entries are evicted.",
    )
    thread_parse_threshold_bytes: int = Field(
        default=256 * 1024,
        description="Documents larger than this are parsed off the event loop.",
    )

    @field_validator("max_trees")
    @classmethod
    def validate_max_trees(cls, v: int) -> int:
        if not (1 <= v <= CACHE_MAX_TREES_LIMIT):
            raise ValueError(f"max_trees must be 1-{CACHE_MAX_TREES_LIMIT}, got {v}")
        return v


class WorkspaceConfig(BaseModel):
    """Solution/project graph loading.

    Env vars:
        DECLSCOPE__WORKSPACE__EXCLUDED_DIRS: JSON list of directory names
    """

    project_extensions: list[str] = Field(
        default_factory=lambda: [".csproj"],
        description="Project file extensions loaded from a solution.",
    )
    source_extensions: list[str] = Field(
        default_factory=lambda: [".cs"],
        description="Source extensions included by SDK-style default globs.",
    )
    excluded_dirs: list[str] = Field(
        default_factory=lambda: ["bin", "obj"],
        description="Directory names never scanned for default compile items.",
    )


class DeclScopeConfig(BaseModel):
    """Root configuration for declscope.

    All settings can be configured via:
    1. Environment variables: DECLSCOPE__SECTION__KEY
    2. YAML config files (repo or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    workspace: WorkspaceConfig = Field(default_factory=WorkspaceConfig)
