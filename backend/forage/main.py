from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from forage.api.routers import forageables
from forage.config import get_config
from forage.data.forageable_dao import ForageableDao
from forage.db import engine as default_engine, init_db, make_engine, make_session_factory
from forage.viewmodels.forageable_viewmodel import ForageableViewModel, ForageableViewModelFactory

logger = logging.getLogger(__name__)


def create_app(database_url: Optional[str] = None) -> FastAPI:
    config = get_config()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # 起動時にDBスキーマ作成と ViewModel の生成
        engine = make_engine(database_url, echo=config.sql_echo) if database_url else default_engine
        init_db(engine)
        dao = ForageableDao(make_session_factory(engine))
        app.state.forageable_viewmodel = ForageableViewModelFactory(dao).create(ForageableViewModel)
        logger.info("forage api ready")
        try:
            yield
        finally:
            # 終了時は未完了の書き込みを待たずに破棄
            app.state.forageable_viewmodel.clear()
            dao.close()
            if engine is not default_engine:
                engine.dispose()

    app = FastAPI(title="Forage API", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health():
        return {"ok": True}

    app.include_router(forageables.router, prefix="/forageables", tags=["forageables"])
    return app


app = create_app()
