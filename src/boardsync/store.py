"""Local state directory: board snapshots and the pending-queue journal."""

from pathlib import Path

import yaml

from boardsync.model.board import Board, board_from_dict, board_to_dict
from boardsync.sync.journal import QueueJournal

BOARDS_FILE = "boards.yaml"
QUEUE_FILE = "queue.yaml"


class StateDir:
    """A directory holding boards.yaml and queue.yaml."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    @property
    def boards_file(self) -> Path:
        return self.path / BOARDS_FILE

    @property
    def journal(self) -> QueueJournal:
        return QueueJournal(self.path / QUEUE_FILE)

    def exists(self) -> bool:
        return self.boards_file.exists()

    def load_boards(self) -> list[Board]:
        """Read every board. Raises FileNotFoundError if not initialized."""
        if not self.exists():
            raise FileNotFoundError(f"No boards found in {self.path} (run 'boardsync init')")
        data = yaml.safe_load(self.boards_file.read_text(encoding="utf-8")) or {}
        return [board_from_dict(entry) for entry in data.get("boards") or []]

    def save_boards(self, boards: list[Board]) -> None:
        self.path.mkdir(parents=True, exist_ok=True)
        data = {"boards": [board_to_dict(board) for board in boards]}
        text = yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
        tmp = self.boards_file.with_suffix(".tmp")
        tmp.write_text(text, encoding="utf-8")
        tmp.replace(self.boards_file)
