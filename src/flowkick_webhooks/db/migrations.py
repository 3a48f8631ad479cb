"""SQL migrations applied at startup, tracked by checksum."""
from __future__ import annotations

import asyncio
import hashlib
from pathlib import Path
from typing import Awaitable, Callable, Iterable

import asyncpg  # type: ignore[import-untyped]
import structlog
from aiohttp import web

from flowkick_webhooks.settings import settings

logger = structlog.get_logger(__name__)

DEFAULT_MIGRATION_PATHS = (
    Path(__file__).resolve().parents[3] / "migrations",  # repository checkout
    Path("/app/migrations"),  # container image
)


def _find_migrations_dir(possible_paths: Iterable[Path]) -> Path | None:
    for path in possible_paths:
        if path.exists():
            return path
    return None


def load_migrations(migrations_dir: Path) -> dict[str, tuple[str, str]]:
    """Map version -> (sql, sha256) in lexical order of file names."""
    migrations: dict[str, tuple[str, str]] = {}
    for path in sorted(migrations_dir.glob("*.sql")):
        version = path.stem
        if version in migrations:
            raise ValueError(f"Duplicate migration version detected: {version}")
        sql = path.read_text(encoding="utf-8")
        migrations[version] = (sql, hashlib.sha256(sql.encode("utf-8")).hexdigest())
    return migrations


async def _connect(dsn: str, *, max_retries: int = 5, retry_delay: float = 2) -> asyncpg.Connection | None:
    for attempt in range(1, max_retries + 1):
        try:
            return await asyncpg.connect(dsn)
        except (OSError, asyncpg.PostgresError) as exc:
            logger.warning(
                "migrations_connect_failed",
                attempt=attempt,
                max_retries=max_retries,
                error=str(exc),
            )
            if attempt < max_retries:
                await asyncio.sleep(retry_delay)
    return None


async def apply_migrations(conn: asyncpg.Connection, migrations: dict[str, tuple[str, str]]) -> int:
    """Apply pending migrations; returns how many were applied."""
    await conn.execute(
        """
        CREATE TABLE IF NOT EXISTS schema_migrations (
            version text PRIMARY KEY,
            checksum text NOT NULL,
            applied_at timestamptz NOT NULL DEFAULT now()
        );
        """
    )
    rows = await conn.fetch("SELECT version, checksum FROM schema_migrations")
    applied = {row["version"]: row["checksum"] for row in rows}

    count = 0
    for version, (sql, checksum) in migrations.items():
        if version in applied:
            if applied[version] != checksum:
                raise RuntimeError(
                    f"Checksum mismatch for {version}: "
                    f"{applied[version]} (db) != {checksum} (file)"
                )
            continue
        logger.info("migration_applying", version=version)
        async with conn.transaction():
            await conn.execute(sql)
            await conn.execute(
                "INSERT INTO schema_migrations (version, checksum) VALUES ($1, $2)",
                version,
                checksum,
            )
        count += 1
    return count


def create_migration_runner(
    possible_paths: Iterable[Path] = DEFAULT_MIGRATION_PATHS,
) -> Callable[[web.Application], Awaitable[None]]:
    """Create an aiohttp startup hook that applies pending SQL migrations."""
    possible_paths_list = list(possible_paths)

    async def apply_migrations_on_startup(_app: web.Application) -> None:
        migrations_dir = _find_migrations_dir(possible_paths_list)
        if migrations_dir is None:
            logger.warning("migrations_dir_missing", tried=[str(p) for p in possible_paths_list])
            return
        migrations = load_migrations(migrations_dir)
        if not migrations:
            return

        conn = await _connect(str(settings.database_url))
        if conn is None:
            raise RuntimeError("Could not connect to the database to apply migrations")
        try:
            applied = await apply_migrations(conn, migrations)
        finally:
            await conn.close()
        logger.info("migrations_done", applied=applied, known=len(migrations))

    return apply_migrations_on_startup
