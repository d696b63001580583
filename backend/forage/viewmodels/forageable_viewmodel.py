# backend/forage/viewmodels/forageable_viewmodel.py
from __future__ import annotations

import logging
from contextlib import aclosing
from typing import AsyncIterator, Callable, Dict, Type

from forage.data.forageable_dao import ForageableDao
from forage.schemas.forageable import Forageable
from forage.viewmodels.base import ViewModel

logger = logging.getLogger(__name__)


class UnsupportedRequestKind(ValueError):
    """Raised by a factory asked for a view model it cannot build."""


class ForageableViewModel(ViewModel):
    """
    Shared view model for the forageable list, detail and add/edit screens.
    Reads are live streams from the DAO; writes are launched in the
    background and return immediately.
    """

    def __init__(self, dao: ForageableDao):
        super().__init__()
        self._dao = dao

    # --- reads -------------------------------------------------------------
    async def observe_all(self) -> AsyncIterator[list[Forageable]]:
        logger.debug("observe_all: subscribe")
        async with aclosing(self._dao.get_forageables()) as snapshots:
            async for snapshot in snapshots:
                yield snapshot

    async def observe_one(self, id: int) -> AsyncIterator[Forageable]:
        # 該当レコードが無い間は何も流さない（not found は投げない）
        logger.debug("observe_one: subscribe id=%s", id)
        async with aclosing(self._dao.get_forageable(id)) as snapshots:
            async for forageable in snapshots:
                if forageable is not None:
                    yield forageable

    # --- writes ------------------------------------------------------------
    def add_forageable(self, name: str, address: str, in_season: bool, notes: str) -> None:
        forageable = Forageable(name=name, address=address, in_season=in_season, notes=notes)
        logger.debug("add_forageable: name=%r", name)
        self.launch(self._dao.insert(forageable), name="forageable-insert")

    def update_forageable(self, id: int, name: str, address: str, in_season: bool, notes: str) -> None:
        forageable = Forageable(id=id, name=name, address=address, in_season=in_season, notes=notes)
        logger.debug("update_forageable: id=%s", id)
        self.launch(self._dao.update(forageable), name=f"forageable-update-{id}")

    def delete_forageable(self, forageable: Forageable) -> None:
        logger.debug("delete_forageable: id=%s", forageable.id)
        self.launch(self._dao.delete(forageable), name=f"forageable-delete-{forageable.id}")

    # --- validation --------------------------------------------------------
    def is_valid_entry(self, name: str, address: str) -> bool:
        return bool(name.strip()) and bool(address.strip())


class ForageableViewModelFactory:
    """Builds view models bound to one DAO."""

    def __init__(self, dao: ForageableDao):
        self._dao = dao
        self._builders: Dict[Type[ViewModel], Callable[[ForageableDao], ViewModel]] = {
            ForageableViewModel: ForageableViewModel,
        }

    def create(self, model_class: type) -> ViewModel:
        for kind, build in self._builders.items():
            if isinstance(model_class, type) and issubclass(kind, model_class):
                vm = build(self._dao)
                logger.info("created %s", kind.__name__)
                return vm
        raise UnsupportedRequestKind("Unknown ViewModel class")
