"""Sync settings stored in the store repository's git config."""

from pathlib import Path
from typing import Any

from git import InvalidGitRepositoryError, NoSuchPathError, Repo

from boardsync.sync.protocol import SyncConfig

SECTION = "boardsync"

DEFAULTS = {
    "retry-limit": 3,
    "base-backoff-ms": 2000,
    "max-backoff-ms": 60000,
    "sync-interval": 30,
    "push-remote": "",
}


def _python_key(git_key: str) -> str:
    """Convert git-style key (hyphenated) to Python-style (underscored)."""
    return git_key.replace("-", "_")


def _git_key(python_key: str) -> str:
    """Convert Python-style key (underscored) to git-style (hyphenated)."""
    return python_key.replace("_", "-")


def _coerce(git_key: str, raw: str) -> Any:
    """Type-coerce a value using the type of its default."""
    default = DEFAULTS.get(git_key)
    if isinstance(default, bool):
        return raw.lower() in ("true", "yes", "1")
    if isinstance(default, int):
        return int(raw)
    return raw


def read_config(repo_path: str | Path | None) -> dict[str, Any]:
    """Read the boardsync section as {python_key: value}, merged over defaults.

    A missing path or a non-repository yields the defaults.
    """
    result = {_python_key(k): v for k, v in DEFAULTS.items()}
    if repo_path is None:
        return result
    try:
        repo = Repo(repo_path)
    except (InvalidGitRepositoryError, NoSuchPathError):
        return result
    reader = repo.config_reader()
    if not reader.has_section(SECTION):
        return result
    for git_k, raw in reader.items(SECTION):
        result[_python_key(git_k)] = _coerce(git_k, raw)
    return result


def write_config_key(repo_path: str | Path, key: str, value: Any) -> None:
    """Write one key to the repository git config. key is python-style."""
    git_k = _git_key(key)
    if git_k not in DEFAULTS:
        raise KeyError(key)
    repo = Repo(repo_path)
    writer = repo.config_writer("repository")
    try:
        if isinstance(value, bool):
            writer.set_value(SECTION, git_k, str(value).lower())
        else:
            writer.set_value(SECTION, git_k, str(value))
    finally:
        writer.release()


def sync_config(settings: dict[str, Any], **overrides: Any) -> SyncConfig:
    """Build a SyncConfig from read_config output plus non-None overrides."""
    values = {
        "retry_limit": settings["retry_limit"],
        "base_backoff_ms": settings["base_backoff_ms"],
        "max_backoff_ms": settings["max_backoff_ms"],
    }
    values.update({k: v for k, v in overrides.items() if v is not None})
    return SyncConfig(**values)
