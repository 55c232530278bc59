"""Remote store kept in a git repository.

Items live in ``items/<id>.yaml`` and board indexes in
``boards/<board_id>.yaml``. Every call writes its file and commits only
if the content changed, so resubmitting an operation is harmless. With
a push remote configured, each commit is pushed; push failures are
transient so the queue retries them.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo

from boardsync.errors import PermanentSyncFailure, TransientSyncFailure

logger = logging.getLogger(__name__)

ITEMS_DIR = "items"
BOARDS_DIR = "boards"


def _dump(data: dict[str, Any]) -> str:
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)


class GitGateway:
    """RemoteGateway writing YAML files into a git working tree."""

    def __init__(self, repo_path: str | Path, push_remote: str | None = None):
        self.repo_path = Path(repo_path)
        self.push_remote = push_remote
        try:
            self.repo = Repo(self.repo_path)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise ValueError(f"Not a git repository: {self.repo_path}") from e

    # --- Helpers ---

    def _item_path(self, item_id: str) -> Path:
        if not item_id or "/" in item_id or item_id.startswith("."):
            raise PermanentSyncFailure(f"Invalid item id: {item_id!r}")
        return Path(ITEMS_DIR) / f"{item_id}.yaml"

    def _board_path(self, board_id: str) -> Path:
        if not board_id or "/" in board_id or board_id.startswith("."):
            raise PermanentSyncFailure(f"Invalid board id: {board_id!r}")
        return Path(BOARDS_DIR) / f"{board_id}.yaml"

    def _read(self, rel: Path) -> dict[str, Any] | None:
        path = self.repo_path / rel
        if not path.exists():
            return None
        return yaml.safe_load(path.read_text(encoding="utf-8")) or {}

    def _write(self, rel: Path, data: dict[str, Any]) -> None:
        path = self.repo_path / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(_dump(data), encoding="utf-8")
        self.repo.index.add([str(rel)])

    def _has_changes(self) -> bool:
        if not self.repo.head.is_valid():
            return len(self.repo.index.entries) > 0
        return bool(self.repo.index.diff("HEAD"))

    def _commit(self, message: str) -> None:
        """Commit staged changes, if any, then push."""
        if not self._has_changes():
            logger.debug("nothing to commit for %r", message)
        else:
            self.repo.index.commit(message)
        self._push()

    def _push(self) -> None:
        if self.push_remote is None:
            return
        try:
            self.repo.git.push(self.push_remote, "HEAD")
        except GitCommandError as e:
            raise TransientSyncFailure(f"push to {self.push_remote} failed: {e.stderr.strip()}") from e

    # --- RemoteGateway ---

    def create_item(self, payload: dict[str, Any]) -> dict[str, Any]:
        item_id = payload.get("id")
        if item_id is None:
            raise PermanentSyncFailure("item payload has no id")
        rel = self._item_path(str(item_id))
        self._write(rel, payload)
        self._commit(f"Create item {item_id}")
        return dict(payload)

    def update_item(self, item_id: str, changes: dict[str, Any]) -> None:
        rel = self._item_path(item_id)
        current = self._read(rel)
        if current is None:
            raise PermanentSyncFailure(f"Item not found: {item_id}")
        current.update(changes)
        self._write(rel, current)
        self._commit(f"Update item {item_id}")

    def delete_item(self, item_id: str) -> None:
        rel = self._item_path(item_id)
        if (self.repo_path / rel).exists():
            self.repo.index.remove([str(rel)], working_tree=True)
        self._commit(f"Delete item {item_id}")

    def update_board_index(self, board_id: str, columns: dict[str, list[str]]) -> None:
        unknown = [
            item_id
            for ids in columns.values()
            for item_id in ids
            if not (self.repo_path / self._item_path(item_id)).exists()
        ]
        if unknown:
            raise PermanentSyncFailure(f"Index references unknown items: {', '.join(unknown)}")
        rel = self._board_path(board_id)
        self._write(rel, {"id": board_id, "columns": {col: list(ids) for col, ids in columns.items()}})
        self._commit(f"Update board {board_id}")

    # --- Reading back ---

    def read_item(self, item_id: str) -> dict[str, Any] | None:
        return self._read(self._item_path(item_id))

    def read_board_index(self, board_id: str) -> dict[str, list[str]] | None:
        data = self._read(self._board_path(board_id))
        if data is None:
            return None
        return data.get("columns") or {}
