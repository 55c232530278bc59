"""Tests for Session wiring: drag to commit to sync."""

import pytest
from textual.geometry import Offset, Region

from boardsync.resolver import DropTarget, GesturePhase, MoveIntent
from boardsync.session import DROP_REJECTED, Session

TARGETS = [
    DropTarget("todo", Region(0, 0, 20, 30)),
    DropTarget("done", Region(22, 0, 20, 30)),
    DropTarget("done:4", Region(23, 1, 18, 3)),
]


@pytest.mark.asyncio
async def test_drag_commits_and_syncs(board, gateway, fast_config):
    async with Session(gateway, [board], config=fast_config) as session:
        resolver = session.resolver("b1")
        resolver.start("1", "todo", rect=Region(1, 1, 18, 3), pointer=Offset(5, 2))
        resolver.over(Offset(25, 2), TARGETS)
        assert session.finish_drag(resolver) is not None
        assert session.manager.board("b1").index.columns["done"] == ("1", "4")
        await session.queue.wait_idle()
    assert gateway.indexes["b1"]["done"] == ["1", "4"]


@pytest.mark.asyncio
async def test_drop_without_target_notifies(board, gateway, fast_config):
    notes = []
    async with Session(gateway, [board], config=fast_config, notify=notes.append) as session:
        resolver = session.resolver("b1")
        resolver.start("1", "todo")
        resolver.over(Offset(5, 2), [])
        assert session.finish_drag(resolver) is None
        assert resolver.phase is GesturePhase.CANCELLED
        status = await session.queue.wait_idle()
    assert notes == [DROP_REJECTED]
    assert status.total_succeeded == 0
    assert session.manager.board("b1").index == board.index


@pytest.mark.asyncio
async def test_resolver_for_unknown_board(board, gateway):
    session = Session(gateway, [board])
    with pytest.raises(KeyError):
        session.resolver("nope")


@pytest.mark.asyncio
async def test_close_reports_leftovers(board, gateway, fast_config):
    session = Session(gateway, [board], config=fast_config.merged({"online": False}))
    await session.start()
    session.mutator.commit(MoveIntent("1", "todo", "done", 0))
    assert await session.close(pending="keep") == 1
    assert session.manager.find_item("1").status == "done"
