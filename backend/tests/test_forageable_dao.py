import asyncio
import threading
from contextlib import aclosing

from forage.data.forageable_dao import InvalidationTracker
from forage.models.forageable import ForageableRow
from forage.schemas.forageable import Forageable
from streams import first, until


def _spot(name, **kw):
    return Forageable(name=name, address=kw.pop("address", "Somewhere"), in_season=kw.pop("in_season", True), **kw)


def test_insert_assigns_ids_and_lists_by_name(dao):
    async def scenario():
        a = await dao.insert(_spot("Rosehips"))
        b = await dao.insert(_spot("Acorns"))
        return a, b, await first(dao.get_forageables())

    a, b, snapshot = asyncio.run(scenario())
    assert a != b
    assert [f.name for f in snapshot] == ["Acorns", "Rosehips"]


def test_insert_with_existing_id_is_ignored(dao):
    async def scenario():
        await dao.insert(_spot("Plums", id=7))
        ignored = await dao.insert(_spot("Other", id=7))
        return ignored, await first(dao.get_forageable(7))

    ignored, row = asyncio.run(scenario())
    assert ignored == -1
    assert row.name == "Plums"


def test_update_and_delete_of_missing_id_are_noops(dao):
    async def scenario():
        await dao.update(_spot("Ghost", id=99))
        await dao.delete(_spot("Ghost", id=99))
        return await first(dao.get_forageables()), await first(dao.get_forageable(99))

    snapshot, row = asyncio.run(scenario())
    assert snapshot == []
    assert row is None


def test_live_query_sees_writes_from_other_threads(dao, session_factory):
    def external_write():
        with session_factory() as db:
            db.add(ForageableRow(name="Quince", address="Old garden", in_season=False, notes=""))
            db.commit()

    async def scenario():
        async def _writer():
            await asyncio.sleep(0.05)
            t = threading.Thread(target=external_write)
            t.start()
            await asyncio.to_thread(t.join)

        writer = asyncio.create_task(_writer())
        snapshot = await until(dao.get_forageables(), lambda snap: len(snap) == 1)
        await writer
        return snapshot

    snapshot = asyncio.run(scenario())
    assert snapshot[0].name == "Quince"


def test_live_query_coalesces_to_latest_state(dao):
    async def scenario():
        async with aclosing(dao.get_forageables()) as snapshots:
            initial = await anext(snapshots)
            for name in ("Hazel", "Yarrow", "Mint"):
                await dao.insert(_spot(name))
            latest = await anext(snapshots)
        return initial, latest

    initial, latest = asyncio.run(scenario())
    assert initial == []
    assert [f.name for f in latest] == ["Hazel", "Mint", "Yarrow"]


def test_tracker_ignores_rolled_back_writes(session_factory):
    tracker = InvalidationTracker(ForageableRow.__tablename__)
    tracker.attach(session_factory)
    try:
        with session_factory() as db:
            db.add(ForageableRow(name="Sloe", address="Hedge", in_season=True))
            db.flush()
            db.rollback()
        assert tracker.version == 0

        with session_factory() as db:
            db.add(ForageableRow(name="Sloe", address="Hedge", in_season=True))
            db.commit()
        assert tracker.version == 1
    finally:
        tracker.detach(session_factory)


def test_tracker_wakes_waiter_on_notify():
    tracker = InvalidationTracker("forageable_database")

    async def scenario():
        waiting = asyncio.create_task(tracker.wait_for_change(tracker.version))
        await asyncio.sleep(0.01)
        assert not waiting.done()
        threading.Thread(target=tracker.notify).start()
        return await asyncio.wait_for(waiting, 5)

    assert asyncio.run(scenario()) == 1



class _ClosingLoop:
    # is_closed() のチェック直後に閉じられたループ
    def is_closed(self):
        return False

    def call_soon_threadsafe(self, callback, *args):
        raise RuntimeError("Event loop is closed")


def test_commit_survives_subscriber_loop_closing(session_factory):
    tracker = InvalidationTracker(ForageableRow.__tablename__)
    tracker.attach(session_factory)
    tracker._waiters.add((_ClosingLoop(), asyncio.Event()))
    try:
        with session_factory() as db:
            db.add(ForageableRow(name="Sloe", address="Hedge", in_season=True))
            db.commit()
        assert tracker.version == 1
        with session_factory() as db:
            assert db.query(ForageableRow).count() == 1
    finally:
        tracker.detach(session_factory)
