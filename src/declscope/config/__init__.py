"""Config module exports."""

from declscope.config.loader import DeclScopeSettings, load_config
from declscope.config.models import (
    CacheConfig,
    DeclScopeConfig,
    LoggingConfig,
    ResolverConfig,
    WorkspaceConfig,
)

__all__ = [
    "load_config",
    "DeclScopeConfig",
    "DeclScopeSettings",
    "CacheConfig",
    "LoggingConfig",
    "ResolverConfig",
    "WorkspaceConfig",
]
