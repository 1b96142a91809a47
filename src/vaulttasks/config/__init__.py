"""Configuration module: config file, profiles and path resolution."""
from __future__ import annotations

from vaulttasks.config.config import (
    Config,
    Profile,
    ProfileError,
    SessionConfig,
    build_session_config,
    canonical_vault,
    config_path,
    expand_path,
    load_config,
    parse_config,
    resolve_query_path,
    resolve_vault_path,
    select_profile,
)

__all__ = [
    "Config",
    "Profile",
    "ProfileError",
    "SessionConfig",
    "build_session_config",
    "canonical_vault",
    "config_path",
    "expand_path",
    "load_config",
    "parse_config",
    "resolve_query_path",
    "resolve_vault_path",
    "select_profile",
]
