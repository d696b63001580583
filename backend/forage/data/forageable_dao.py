# backend/forage/data/forageable_dao.py
"""
Forageable の永続化層（DAO）。

- 書き込み（insert / update / delete）はワーカースレッドで同期 SQLAlchemy を実行
- 読み取りは「ライブクエリ」: 現在値を即時に返し、以後 forageable_database への
  コミットがあるたびに最新値を再取得して返す（途中の状態はまとめられることがある）
"""
from __future__ import annotations

import asyncio
import logging
import threading
from typing import AsyncIterator, Callable, Optional, TypeVar

from sqlalchemy import event
from sqlalchemy.orm import Session, sessionmaker

from forage.models.forageable import ForageableRow
from forage.schemas.forageable import Forageable

logger = logging.getLogger(__name__)

T = TypeVar("T")

_INVALIDATED_KEY = "forage.invalidated_tables"


class InvalidationTracker:
    """Bumps a version whenever a commit touched one of the watched tables.

    Waiters may live on any event loop; commits may happen on any thread.
    """

    def __init__(self, *tables: str):
        self._tables = set(tables)
        self._lock = threading.Lock()
        self._version = 0
        self._waiters: set[tuple[asyncio.AbstractEventLoop, asyncio.Event]] = set()

    @property
    def version(self) -> int:
        return self._version

    def attach(self, session_factory: sessionmaker) -> None:
        event.listen(session_factory, "after_flush", self._after_flush)
        event.listen(session_factory, "after_commit", self._after_commit)
        event.listen(session_factory, "after_rollback", self._after_rollback)

    def detach(self, session_factory: sessionmaker) -> None:
        event.remove(session_factory, "after_flush", self._after_flush)
        event.remove(session_factory, "after_commit", self._after_commit)
        event.remove(session_factory, "after_rollback", self._after_rollback)

    # --- session events ----------------------------------------------------
    def _after_flush(self, session: Session, flush_context) -> None:
        # after_flush 時点では new/dirty/deleted はまだ flush 前の内容
        touched = {
            obj.__table__.name
            for obj in (*session.new, *session.dirty, *session.deleted)
            if getattr(obj, "__table__", None) is not None
        } & self._tables
        if touched:
            session.info.setdefault(_INVALIDATED_KEY, set()).update(touched)

    def _after_commit(self, session: Session) -> None:
        if session.info.pop(_INVALIDATED_KEY, None):
            self.notify()

    def _after_rollback(self, session: Session) -> None:
        session.info.pop(_INVALIDATED_KEY, None)

    # --- waiters -----------------------------------------------------------
    def notify(self) -> None:
        with self._lock:
            self._version += 1
            waiters = list(self._waiters)
        for loop, ev in waiters:
            if loop.is_closed():
                continue
            try:
                loop.call_soon_threadsafe(ev.set)
            except RuntimeError:
                # 購読側のループが直前に閉じられた
                continue

    async def wait_for_change(self, seen: int) -> int:
        """Return once the version differs from ``seen``."""
        waiter = (asyncio.get_running_loop(), asyncio.Event())
        with self._lock:
            if self._version != seen:
                return self._version
            self._waiters.add(waiter)
        try:
            await waiter[1].wait()
        finally:
            with self._lock:
                self._waiters.discard(waiter)
        return self._version


def _to_record(row: ForageableRow) -> Forageable:
    return Forageable(
        id=row.id,
        name=row.name,
        address=row.address,
        in_season=bool(row.in_season),
        notes=row.notes or "",
    )


class ForageableDao:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory
        self._tracker = InvalidationTracker(ForageableRow.__tablename__)
        self._tracker.attach(session_factory)

    def close(self) -> None:
        self._tracker.detach(self._session_factory)

    # --- live queries ------------------------------------------------------
    def get_forageables(self) -> AsyncIterator[list[Forageable]]:
        return self._observe(self._select_all)

    def get_forageable(self, id: int) -> AsyncIterator[Optional[Forageable]]:
        return self._observe(lambda db: self._select_one(db, id))

    async def _observe(self, query: Callable[[Session], T]) -> AsyncIterator[T]:
        while True:
            # 読み取り開始前の version を控えておけば、読み取り中のコミットも取りこぼさない
            version = self._tracker.version
            yield await asyncio.to_thread(self._read, query)
            await self._tracker.wait_for_change(version)

    def _read(self, query: Callable[[Session], T]) -> T:
        with self._session_factory() as db:
            return query(db)

    @staticmethod
    def _select_all(db: Session) -> list[Forageable]:
        rows = (
            db.query(ForageableRow)
            .order_by(ForageableRow.name.asc(), ForageableRow.id.asc())
            .all()
        )
        return [_to_record(r) for r in rows]

    @staticmethod
    def _select_one(db: Session, id: int) -> Optional[Forageable]:
        row = db.get(ForageableRow, id)
        return _to_record(row) if row else None

    # --- writes ------------------------------------------------------------
    async def insert(self, forageable: Forageable) -> int:
        """Insert and return the new id. An id that already exists is ignored (-1)."""
        return await asyncio.to_thread(self._insert, forageable)

    async def update(self, forageable: Forageable) -> None:
        await asyncio.to_thread(self._update, forageable)

    async def delete(self, forageable: Forageable) -> None:
        await asyncio.to_thread(self._delete, forageable)

    def _insert(self, forageable: Forageable) -> int:
        with self._session_factory() as db:
            if forageable.id and db.get(ForageableRow, forageable.id) is not None:
                return -1
            row = ForageableRow(
                name=forageable.name,
                address=forageable.address,
                in_season=forageable.in_season,
                notes=forageable.notes or "",
            )
            if forageable.id:
                row.id = forageable.id
            db.add(row)
            db.flush()  # id 採番
            new_id = row.id
            db.commit()
            return new_id

    def _update(self, forageable: Forageable) -> None:
        with self._session_factory() as db:
            row = db.get(ForageableRow, forageable.id)
            if row is None:
                return
            row.name = forageable.name
            row.address = forageable.address
            row.in_season = forageable.in_season
            row.notes = forageable.notes or ""
            db.commit()

    def _delete(self, forageable: Forageable) -> None:
        with self._session_factory() as db:
            row = db.get(ForageableRow, forageable.id)
            if row is None:
                return
            db.delete(row)
            db.commit()
