from __future__ import annotations

import logging
from pathlib import Path
from threading import Lock

from alembic import command
from alembic.config import Config
from sqlalchemy.engine import make_url

from .config import get_settings

logger = logging.getLogger(__name__)
_run_lock = Lock()
_upgraded_urls: set[str] = set()

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def alembic_config(database_url: str | None = None) -> Config:
    cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    cfg.set_main_option("sqlalchemy.url", database_url or get_settings().database_url)
    return cfg


def run_migrations_once(database_url: str | None = None, revision: str = "head") -> None:
    """Upgrade the schema for ``database_url`` at most once per process."""
    url = database_url or get_settings().database_url
    if url in _upgraded_urls:
        return

    with _run_lock:
        if url in _upgraded_urls:
            return
        safe_url = make_url(url).render_as_string(hide_password=True)
        logger.info("Applying shift schema migrations to %s ...", safe_url)
        command.upgrade(alembic_config(url), revision)
        _upgraded_urls.add(url)
        logger.info("Shift schema is up to date.")
