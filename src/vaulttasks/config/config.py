"""Configuration: config file, profiles and path resolution.

The config file lives at ``$XDG_CONFIG_HOME/vault-tasks/config.yaml``
(``~/.config/vault-tasks/config.yaml`` when the variable is unset) and
looks like::

    default_profile: work
    theme: dark
    profiles:
      work:
        vault: ~/notes
        query: queries/today.md
        editor: external

A missing file is an empty config.  Vault paths given in a profile are
resolved relative to the home directory; query paths relative to the
vault.  Command-line paths are only expanded.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = "vault-tasks"
CONFIG_FILE_NAME = "config.yaml"
EDITOR_MODES = frozenset({"", "inline", "external"})


class ProfileError(ValueError):
    """Raised for an invalid profile or a dangling profile reference.

    Parameters
    ----------
    profile:
        Name of the profile involved, or ``""`` for a config-level error.
    field:
        Offending field (``"vault"``, ``"default_profile"`` ...) or ``""``.
    reason:
        Human-readable description of the problem.
    """

    def __init__(self, profile: str, field: str, reason: str) -> None:
        self.profile = profile
        self.field = field
        self.reason = reason
        if not profile:
            message = f"config: {field}: {reason}"
        elif not field:
            message = f"profile {profile!r}: {reason}"
        else:
            message = f"profile {profile!r}: {field}: {reason}"
        super().__init__(message)


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Profile:
    """One named ``profiles`` entry as written in the config file."""

    vault: str = ""
    query: str = ""
    editor: str = ""


@dataclass(frozen=True)
class Config:
    """The parsed config file."""

    default_profile: str = ""
    theme: str = ""
    profiles: dict[str, Profile] = field(default_factory=dict)


@dataclass
class SessionConfig:
    """Everything a ``TaskSession`` needs to run.

    Parameters
    ----------
    vault_root:
        Absolute, symlink-resolved vault directory.
    query_source:
        A query file path or an inline query string; empty shows all tasks.
    editor_mode:
        ``"inline"``, ``"external"`` or ``""`` (decide from ``$EDITOR``).
    theme:
        Name of the render theme; the core never reads it.
    debounce_seconds:
        Quiet period before a burst of file events triggers one refresh.
    suppress_seconds:
        Window in which an event for a path we just wrote is ignored.
    undo_capacity:
        Maximum number of undo entries kept.
    use_cache:
        Reuse extraction results for files whose mtime has not advanced.
    """

    vault_root: str
    query_source: str = ""
    editor_mode: str = ""
    theme: str = ""
    debounce_seconds: float = 0.2
    suppress_seconds: float = 0.5
    undo_capacity: int = 50
    use_cache: bool = True


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------


def expand_path(value: str) -> str:
    """Trim ``value`` and expand environment variables and a leading ``~``."""
    value = value.strip()
    if not value:
        return value
    return os.path.expanduser(os.path.expandvars(value))


def resolve_vault_path(value: str) -> str:
    """Expand a profile vault path; relative paths live under the home directory."""
    expanded = expand_path(value)
    if not expanded or os.path.isabs(expanded):
        return expanded
    return os.path.join(Path.home(), expanded)


def resolve_query_path(value: str, vault: str) -> str:
    """Expand a profile query path; relative paths live under ``vault``."""
    expanded = expand_path(value)
    if not expanded or os.path.isabs(expanded) or not vault:
        return expanded
    return os.path.join(vault, expanded)


def canonical_vault(profile: str, path: str) -> str:
    """Normalize, resolve symlinks and check that ``path`` is a directory.

    Raises
    ------
    ProfileError
        If the path is empty, missing or not a directory.
    """
    if not path:
        raise ProfileError(profile, "vault", "path is empty")
    resolved = os.path.realpath(os.path.normpath(path))
    if not os.path.exists(resolved):
        raise ProfileError(profile, "vault", f"path does not exist: {resolved}")
    if not os.path.isdir(resolved):
        raise ProfileError(profile, "vault", f"path is not a directory: {resolved}")
    return resolved


# ---------------------------------------------------------------------------
# Config file
# ---------------------------------------------------------------------------


def config_path() -> Path:
    """Return the location of the config file (which may not exist)."""
    base = os.environ.get("XDG_CONFIG_HOME") or os.path.join(Path.home(), ".config")
    return Path(base) / CONFIG_DIR_NAME / CONFIG_FILE_NAME


def _as_str(value: Any, profile: str, name: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ProfileError(profile, name, f"expected a string, got {type(value).__name__}")
    return value


def parse_config(data: dict[str, Any] | None) -> Config:
    """Build a ``Config`` from the mapping produced by ``yaml.safe_load``.

    Raises
    ------
    ProfileError
        If the structure is malformed or ``default_profile`` names a
        profile that does not exist.
    """
    if data is None:
        return Config()
    if not isinstance(data, dict):
        raise ProfileError("", "config", "top level must be a mapping")

    raw_profiles = data.get("profiles") or {}
    if not isinstance(raw_profiles, dict):
        raise ProfileError("", "profiles", "must be a mapping of name to profile")

    profiles: dict[str, Profile] = {}
    for name, raw in raw_profiles.items():
        name = str(name)
        raw = raw or {}
        if not isinstance(raw, dict):
            raise ProfileError(name, "", "profile must be a mapping")
        editor = _as_str(raw.get("editor"), name, "editor")
        if editor not in EDITOR_MODES:
            raise ProfileError(name, "editor", f"unknown editor mode {editor!r}")
        profiles[name] = Profile(
            vault=_as_str(raw.get("vault"), name, "vault"),
            query=_as_str(raw.get("query"), name, "query"),
            editor=editor,
        )

    default_profile = _as_str(data.get("default_profile"), "", "default_profile")
    if default_profile and default_profile not in profiles:
        raise ProfileError("", "default_profile", f"profile {default_profile!r} not found")

    return Config(
        default_profile=default_profile,
        theme=_as_str(data.get("theme"), "", "theme"),
        profiles=profiles,
    )


def load_config(path: str | os.PathLike[str] | None = None) -> Config:
    """Read and parse the config file; a missing file yields an empty config."""
    target = Path(path) if path is not None else config_path()
    try:
        text = target.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.debug("No config file at %s", target)
        return Config()
    return parse_config(yaml.safe_load(text))


def select_profile(config: Config, name: str = "") -> tuple[str, Profile | None]:
    """Pick the profile named ``name``, else the default profile, else none.

    Raises
    ------
    ProfileError
        If ``name`` is given but not defined.
    """
    if name:
        if not config.profiles:
            raise ProfileError(name, "", "no profiles defined in config")
        if name not in config.profiles:
            raise ProfileError(name, "", "profile not found")
        return name, config.profiles[name]
    if config.default_profile:
        return config.default_profile, config.profiles[config.default_profile]
    return "", None


def build_session_config(
    config: Config,
    *,
    profile_name: str = "",
    vault: str = "",
    query: str = "",
    theme: str = "",
) -> SessionConfig:
    """Merge command-line values over the selected profile.

    Explicit ``vault`` / ``query`` arguments win over the profile and are
    only expanded (a query argument naming an existing file is made
    absolute, anything else is inline query text); profile values are
    resolved against home and vault.

    Raises
    ------
    ProfileError
        If no vault can be determined or the vault is not a directory.
    """
    name, profile = select_profile(config, profile_name)

    if vault:
        vault_path = expand_path(vault)
    elif profile is not None:
        if not profile.vault.strip():
            raise ProfileError(name, "vault", "path is empty")
        vault_path = resolve_vault_path(profile.vault)
    else:
        vault_path = ""
    vault_root = canonical_vault(name, vault_path)

    if query:
        expanded = expand_path(query)
        query_source = os.path.abspath(expanded) if os.path.isfile(expanded) else query
    elif profile is not None and profile.query.strip():
        query_source = resolve_query_path(profile.query, vault_root)
    else:
        query_source = ""

    return SessionConfig(
        vault_root=vault_root,
        query_source=query_source,
        editor_mode=profile.editor if profile is not None else "",
        theme=theme or config.theme,
    )
