"""Item and queue ID generation."""

import uuid
from typing import Iterable


def next_item_id(existing: Iterable[str]) -> str:
    """One past the highest numeric ID in existing.

    Non-numeric IDs (imported or hand-picked) don't take part:
    ["7", "fish"] -> "8", [] -> "1".
    """
    highest = max((int(id_) for id_ in existing if id_.isdigit()), default=0)
    return str(highest + 1)


def new_id() -> str:
    """Random hex id for queue items."""
    return uuid.uuid4().hex
