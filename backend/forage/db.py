from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from pathlib import Path
import logging

# モデル定義側の Base（forage.models.base）を利用してメタデータを統一
from forage.models.base import Base
from forage.config import get_config

logger = logging.getLogger(__name__)

_config = get_config()


def default_database_url() -> str:
    # 1) DATABASE_URL が指定されていれば優先（例: postgresql+psycopg://...）
    # 2) それ以外は SQLite ファイルを使用
    if _config.database_url:
        return _config.database_url
    _container_data = Path("/app/data")
    if _container_data.exists():
        db_path = _container_data / "forage.db"
    else:
        # backend/forage/db.py → ../../.. = <repo root>
        repo_root = Path(__file__).resolve().parents[2]
        db_path = repo_root / "data" / "forage.db"
    # ディレクトリ作成（存在しない場合）
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{db_path}"


def make_engine(url: str, echo: bool = False) -> Engine:
    # SQLite はワーカースレッドからも触るため check_same_thread を外す
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args, echo=echo)


def make_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(autoflush=False, bind=bind)


SQLALCHEMY_DATABASE_URL = default_database_url()
engine = make_engine(SQLALCHEMY_DATABASE_URL, echo=_config.sql_echo)
SessionLocal = make_session_factory(engine)


def init_db(bind: Engine = engine) -> None:
    # モデルモジュールを明示 import してメタデータ登録を確実化
    import forage.models.forageable  # noqa: F401
    Base.metadata.create_all(bind=bind)
    logger.info("schema ready on %s", bind.url.render_as_string(hide_password=True))

