"""Configuration constants.

This module contains truly constant values that should NOT be user-configurable.

For configurable values, see models.py (CacheConfig, ResolverConfig, etc.).
"""

# =============================================================================
# Limits
# =============================================================================

CACHE_MAX_TREES_LIMIT = 4096
"""Upper bound for cache.max_trees."""

# =============================================================================
# File Locations
# =============================================================================

CONFIG_DIR_NAME = ".declscope"
"""Per-repository config directory."""

CONFIG_FILE_NAME = "config.yaml"
"""Config file inside CONFIG_DIR_NAME."""

ENV_PREFIX = "DECLSCOPE__"
"""Environment variable prefix for settings."""
