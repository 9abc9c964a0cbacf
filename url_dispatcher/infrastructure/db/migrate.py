"""
Minimal SQL migration runner for the work item store.

usage: url-dispatcher-migrate [up|status|new <name>]

Only DATABASE_URL is needed, so migrations can run before the queue side of
the configuration exists.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path

import psycopg

from url_dispatcher.logging import setup_logging

logger = logging.getLogger(__name__)

USAGE = "usage: url-dispatcher-migrate [up|status|new <name>]"

SCHEMA_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS schema_migrations (
  version    text PRIMARY KEY,
  applied_at timestamptz NOT NULL DEFAULT now()
);
"""


def migrations_dir() -> Path:
    return Path(os.environ.get("MIGRATIONS_DIR", "migrations"))


def dsn() -> str | None:
    return os.environ.get("DATABASE_URL")


def list_migrations(directory: Path) -> list[Path]:
    if not directory.is_dir():
        raise FileNotFoundError(f"migrations dir not found: {directory}")
    return sorted(directory.glob("*.sql"))


def pending(all_migrations: list[Path], applied: set[str]) -> list[Path]:
    return [p for p in all_migrations if p.stem not in applied]


def applied_versions(conn: psycopg.Connection) -> set[str]:
    with conn.cursor() as cur:
        cur.execute(SCHEMA_TABLE_SQL)
        cur.execute("SELECT version FROM schema_migrations ORDER BY version;")
        rows = cur.fetchall()
    conn.commit()
    return {r[0] for r in rows}


def apply_one(conn: psycopg.Connection, path: Path) -> None:
    version = path.stem
    logger.info("applying migration", extra={"version": version})
    with conn.cursor() as cur:
        cur.execute(path.read_text(encoding="utf-8"))
        cur.execute(
            "INSERT INTO schema_migrations (version, applied_at) VALUES (%s, now());",
            (version,),
        )
    conn.commit()
    logger.info("applied migration", extra={"version": version})


def cmd_up(url: str, directory: Path) -> int:
    with psycopg.connect(url, autocommit=False) as conn:
        to_run = pending(list_migrations(directory), applied_versions(conn))
        if not to_run:
            logger.info("no pending migrations")
            return 0
        for path in to_run:
            try:
                apply_one(conn, path)
            except psycopg.Error:
                conn.rollback()
                logger.exception("migration failed", extra={"version": path.stem})
                return 1
    return 0


def cmd_status(url: str, directory: Path) -> int:
    with psycopg.connect(url) as conn:
        done = applied_versions(conn)
    for path in list_migrations(directory):
        state = "applied" if path.stem in done else "pending"
        print(f"{state:8} {path.stem}")
    return 0


def cmd_new(name: str, directory: Path) -> Path:
    ts = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M")
    path = directory / f"{ts}_{name}.sql"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("-- write your SQL here\n", encoding="utf-8")
    return path


def run(argv: list[str]) -> int:
    if len(argv) < 2 or argv[1] not in ("up", "status", "new"):
        print(USAGE, file=sys.stderr)
        return 2
    cmd = argv[1]
    directory = migrations_dir()

    if cmd == "new":
        if len(argv) < 3:
            print("usage: url-dispatcher-migrate new <name>", file=sys.stderr)
            return 2
        print(cmd_new(argv[2], directory))
        return 0

    url = dsn()
    if not url:
        logger.error("DATABASE_URL is not set")
        return 2
    try:
        if cmd == "up":
            return cmd_up(url, directory)
        return cmd_status(url, directory)
    except FileNotFoundError as e:
        logger.error(str(e))
        return 2


def main() -> None:
    setup_logging(os.environ.get("LOG_LEVEL", "INFO"))
    raise SystemExit(run(sys.argv))


if __name__ == "__main__":
    main()
