"""Tests for OptimisticMutator against an in-memory remote store."""

import pytest
import pytest_asyncio

from boardsync.errors import PermanentSyncFailure, TransientSyncFailure
from boardsync.mutator import OptimisticMutator
from boardsync.resolver import MoveIntent
from boardsync.sync.queue import SyncQueue


@pytest.fixture
def notes():
    return []


@pytest_asyncio.fixture
async def queue(gateway, fast_config, notes):
    q = SyncQueue(gateway, config=fast_config, notify=notes.append)
    await q.start()
    yield q
    await q.close(pending="discard")


@pytest.fixture
def mutator(manager, queue):
    return OptimisticMutator(manager, queue)


@pytest.mark.asyncio
async def test_commit_is_visible_before_sync(mutator, manager, gateway, queue):
    gateway.offline = True
    assert mutator.commit(MoveIntent("1", "todo", "done", 0)) is not None
    assert manager.find_item("1").status == "done"
    assert manager.board("b1").index.columns["done"] == ("1", "4")


@pytest.mark.asyncio
async def test_commit_syncs_item_and_index(mutator, gateway, queue):
    mutator.commit(MoveIntent("1", "todo", "done", 0))
    await queue.wait_idle()
    assert gateway.items["1"]["status"] == "done"
    assert gateway.items["1"]["position"] == 0
    assert gateway.indexes["b1"] == {"todo": ["2", "3"], "inProgress": [], "done": ["1", "4"]}
    assert queue.status.total_succeeded == 1


@pytest.mark.asyncio
async def test_unchanged_move_is_not_queued(mutator, queue):
    assert mutator.commit(MoveIntent("2", "todo", "todo", 1)) is None
    assert mutator.commit(MoveIntent("99", "todo", "done", 0)) is None
    assert mutator.commit(MoveIntent("1", "todo", "archive", 0)) is None
    await queue.wait_idle()
    assert queue.status.total_succeeded == 0


@pytest.mark.asyncio
async def test_rejected_move_rolls_back(mutator, manager, gateway, queue, notes, board):
    gateway.fail_next(PermanentSyncFailure("rejected"))
    mutator.commit(MoveIntent("2", "todo", "done", 0))
    await queue.wait_idle()

    after = manager.board("b1")
    assert after.index == board.index
    assert after.items["2"].status == "todo"
    assert after.items["2"].completed_at is None
    assert notes == ["Sync failed: rejected"]


@pytest.mark.asyncio
async def test_exhausted_retries_roll_back(mutator, manager, gateway, queue, notes, board):
    gateway.fail_next(TransientSyncFailure("timeout"), times=3)
    mutator.commit(MoveIntent("1", "todo", "inProgress", 0))
    await queue.wait_idle()

    assert manager.board("b1").index == board.index
    assert len(notes) == 1
    assert queue.status.total_failed == 1


@pytest.mark.asyncio
async def test_transient_failure_then_success_keeps_move(mutator, manager, gateway, queue, notes):
    gateway.fail_next(TransientSyncFailure("timeout"), times=2)
    mutator.commit(MoveIntent("1", "todo", "inProgress", 0))
    await queue.wait_idle()

    assert manager.find_item("1").status == "inProgress"
    assert notes == []
    assert queue.status.total_succeeded == 1


@pytest.mark.asyncio
async def test_rejected_delete_restores_item(mutator, manager, gateway, queue, notes, board):
    gateway.fail_next(PermanentSyncFailure("delete not allowed"))
    mutator.delete_item("2")
    assert manager.board("b1").index.columns["todo"] == ("1", "3")

    await queue.wait_idle()

    restored = manager.board("b1")
    assert restored.index.columns["todo"] == ("1", "2", "3")
    assert restored.items["2"].position == 1
    assert notes == ["Sync failed: delete not allowed"]
    assert queue.status.total_failed == 1


@pytest.mark.asyncio
async def test_delete_purges_after_sync(mutator, manager, gateway, queue):
    mutator.delete_item("2")
    await queue.wait_idle()
    assert "2" not in manager.board("b1").items
    assert "2" not in gateway.items
    assert gateway.indexes["b1"]["todo"] == ["1", "3"]


@pytest.mark.asyncio
async def test_delete_unknown_item(mutator):
    assert mutator.delete_item("99") is None


@pytest.mark.asyncio
async def test_create_item(mutator, manager, gateway, queue):
    item, qid = mutator.create_item("b1", "inProgress", title="Write tests")
    assert qid
    assert manager.find_item(item.id).title == "Write tests"
    await queue.wait_idle()
    assert gateway.items[item.id]["title"] == "Write tests"
    assert gateway.indexes["b1"]["inProgress"] == [item.id]


@pytest.mark.asyncio
async def test_rejected_create_removes_item(mutator, manager, gateway, queue):
    gateway.fail_next(PermanentSyncFailure("quota exceeded"))
    item, _ = mutator.create_item("b1", "todo", 0, title="Doomed")
    await queue.wait_idle()
    assert item.id not in manager.board("b1").items
    assert manager.board("b1").validate() == []


@pytest.mark.asyncio
async def test_update_item(mutator, manager, gateway, queue):
    mutator.update_item("1", title="Renamed", points=5)
    await queue.wait_idle()
    assert gateway.items["1"]["title"] == "Renamed"
    assert gateway.items["1"]["data"] == {"points": 5}


@pytest.mark.asyncio
async def test_rejected_update_restores_fields(mutator, manager, gateway, queue):
    gateway.fail_next(PermanentSyncFailure("invalid title"))
    mutator.update_item("1", title="")
    await queue.wait_idle()
    assert manager.find_item("1").title == "Item 1"


@pytest.mark.asyncio
async def test_update_without_change_is_not_queued(mutator):
    assert mutator.update_item("1", title="Item 1") is None


@pytest.mark.asyncio
async def test_rejected_move_out_of_done_restores_item(mutator, manager, gateway, queue, board):
    finished = []
    manager.watch_terminal(finished.append)
    before = manager.find_item("4")

    gateway.fail_next(PermanentSyncFailure("rejected"))
    mutator.commit(MoveIntent("4", "done", "todo", 0))
    assert manager.find_item("4").completed_at is None
    await queue.wait_idle()

    assert manager.find_item("4") == before
    assert manager.board("b1").index == board.index
    assert finished == []


@pytest.fixture
def idle_mutator(manager, gateway, fast_config):
    """Mutator whose queue was never started."""
    return OptimisticMutator(manager, SyncQueue(gateway, config=fast_config))


@pytest.mark.asyncio
async def test_commit_without_running_queue_is_undone(idle_mutator, manager, board):
    with pytest.raises(RuntimeError):
        idle_mutator.commit(MoveIntent("1", "todo", "done", 0))
    assert manager.board("b1").index == board.index
    assert manager.find_item("1") == board.items["1"]


@pytest.mark.asyncio
async def test_create_without_running_queue_is_undone(idle_mutator, manager, board):
    with pytest.raises(RuntimeError):
        idle_mutator.create_item("b1", "todo", 0, title="Never synced")
    after = manager.board("b1")
    assert after.index == board.index
    assert set(after.items) == set(board.items)


@pytest.mark.asyncio
async def test_delete_without_running_queue_is_undone(idle_mutator, manager, board):
    with pytest.raises(RuntimeError):
        idle_mutator.delete_item("2")
    assert manager.board("b1").index == board.index
    assert manager.find_item("2").position == 1


@pytest.mark.asyncio
async def test_update_without_running_queue_is_undone(idle_mutator, manager):
    with pytest.raises(RuntimeError):
        idle_mutator.update_item("1", title="Renamed")
    assert manager.find_item("1").title == "Item 1"
