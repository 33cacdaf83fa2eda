from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


@dataclass(frozen=True)
class Settings:
    database_url: str | None
    log_level: str
    sql_echo: bool


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y"}


def get_settings() -> Settings:
    database_url = (os.getenv("DATABASE_URL") or "").strip() or None
    return Settings(
        database_url=database_url,
        log_level=(os.getenv("LOG_LEVEL") or "INFO").strip().upper(),
        sql_echo=_env_flag("SQL_ECHO"),
    )


def configure_logging(level: str | None = None) -> None:
    resolved = (level or get_settings().log_level).upper()
    logging.basicConfig(level=getattr(logging, resolved, logging.INFO), format=LOG_FORMAT)
