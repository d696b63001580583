# scripts/seed_forageables.py
# サンプルの採集スポットを ViewModel 経由で投入する（ローカル開発用）
import argparse
import asyncio
import logging

from forage.config import get_config
from forage.data.forageable_dao import ForageableDao
from forage.db import engine, init_db, make_session_factory
from forage.viewmodels.forageable_viewmodel import ForageableViewModel, ForageableViewModelFactory

SAMPLES = [
    ("Chanterelles", "Mount Tamalpais, Mill Valley", True, "Under the oaks after the first rains"),
    ("Blackberries", "Golden Gate Park, San Francisco", False, "Along the north fence"),
    ("Miner's lettuce", "Tilden Park, Berkeley", True, ""),
]

logger = logging.getLogger("seed_forageables")


async def seed(timeout: float) -> None:
    init_db(engine)
    dao = ForageableDao(make_session_factory(engine))
    vm = ForageableViewModelFactory(dao).create(ForageableViewModel)
    wanted = {name for name, *_ in SAMPLES}

    for name, address, in_season, notes in SAMPLES:
        if vm.is_valid_entry(name, address):
            vm.add_forageable(name, address, in_season, notes)

    async def _converged():
        async for snapshot in vm.observe_all():
            if wanted <= {f.name for f in snapshot}:
                return snapshot

    try:
        snapshot = await asyncio.wait_for(_converged(), timeout)
        logger.info("seeded; %d forageable(s) in store", len(snapshot))
    finally:
        vm.clear()
        dao.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Seed sample forageables")
    parser.add_argument("--timeout", type=float, default=10.0)
    parser.add_argument(
        "--log-level",
        default=get_config().log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    )
    return parser


def main() -> None:
    args = build_parser().parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    asyncio.run(seed(args.timeout))


if __name__ == "__main__":
    main()
