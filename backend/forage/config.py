from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv


@dataclass(frozen=True)
class AppConfig:
    # None の場合は db.py 側で SQLite ファイルを既定とする
    database_url: Optional[str]
    log_level: str
    cors_origins: Tuple[str, ...]
    sql_echo: bool


def _getenv(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name, default)
    if v is None:
        return None
    v = v.strip()
    return v if v else None


def get_config() -> AppConfig:
    """
    Centralized config: this is the ONLY place env vars are read.
    - Loads `.env` if present (local dev)
    """
    load_dotenv(override=False)

    origins = _getenv("CORS_ORIGINS", "*") or "*"
    return AppConfig(
        database_url=_getenv("DATABASE_URL"),
        log_level=(_getenv("LOG_LEVEL", "INFO") or "INFO").upper(),
        cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
        sql_echo=(_getenv("SQL_ECHO", "false") or "false").lower() == "true",
    )
