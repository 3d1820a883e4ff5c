#!/usr/bin/env python
"""Container entrypoint for the shift service.

RUN_DB_MIGRATIONS=1 upgrades the schema in this process before handing
over to Uvicorn; the app's own startup migration is then skipped.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.append(str(PROJECT_ROOT))

logger = logging.getLogger("runserver")


def _maybe_run_migrations(env: dict[str, str]) -> None:
    if os.getenv("RUN_DB_MIGRATIONS") != "1":
        return
    from guardshift.migration_runner import run_migrations_once

    logger.info("RUN_DB_MIGRATIONS=1 detected. Applying migrations...")
    run_migrations_once()
    env["RUN_MIGRATIONS_ON_STARTUP"] = "false"


def _server_command() -> list[str]:
    configured = os.getenv("RUNSERVER_CMD")
    if configured:
        return shlex.split(configured)
    return [
        "uvicorn",
        "guardshift.main:app",
        "--host",
        os.getenv("HOST", "0.0.0.0"),
        "--port",
        os.getenv("PORT", "8000"),
        "--workers",
        os.getenv("WEB_CONCURRENCY", "2"),
    ]


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="[%(name)s] %(message)s")
    env = dict(os.environ)
    try:
        _maybe_run_migrations(env)
        command = _server_command()
        logger.info("Starting server: %s", " ".join(command))
        subprocess.run(command, check=True, cwd=PROJECT_ROOT, env=env)
    except subprocess.CalledProcessError as exc:
        logger.error("command failed: %s", exc)
        return exc.returncode or 1
    except Exception:
        logger.exception("unexpected error")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
