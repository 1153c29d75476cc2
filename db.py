from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import asyncpg
from loguru import logger

from config import settings

# ──────────────────────────────────────────────
# GLOBALS
# ──────────────────────────────────────────────

POOL: Optional[asyncpg.Pool] = None

# ──────────────────────────────────────────────
# GET POOL
# ──────────────────────────────────────────────

async def get_pool() -> asyncpg.Pool:
    global POOL
    if POOL is None:
        if not settings.database_url:
            raise RuntimeError("DATABASE_URL is not set")
        POOL = await asyncpg.create_pool(
            settings.database_url,
            min_size=1,
            max_size=5,
        )
    return POOL


async def close_pool() -> None:
    global POOL
    if POOL is not None:
        await POOL.close()
        POOL = None


# ──────────────────────────────────────────────
# JSONB helpers
# ──────────────────────────────────────────────

def jsonb(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def from_jsonb(raw: Any, default: Any) -> Any:
    """
    asyncpg без кодека віддає JSONB як str.
    """
    if raw is None:
        return default
    if isinstance(raw, (dict, list)):
        return raw
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("db: bad jsonb payload {!r}", raw)
        return default


# ──────────────────────────────────────────────
# AUTO-MIGRATIONS (db/migrations)
# ──────────────────────────────────────────────

async def run_migrations() -> None:
    """
    Виконує всі SQL-файли з папки db/migrations у лексичному порядку.
    Викликається при старті бекенду.
    """
    if not settings.database_url:
        logger.warning("run_migrations: DATABASE_URL not set")
        return

    migrations_path = Path(__file__).resolve().parent / "db" / "migrations"
    if not migrations_path.is_dir():
        logger.warning("run_migrations: folder not found: {}", migrations_path)
        return

    files = sorted(migrations_path.glob("*.sql"))
    if not files:
        logger.warning("run_migrations: no *.sql files in {}", migrations_path)
        return

    pool = await get_pool()
    async with pool.acquire() as conn:
        for path in files:
            sql = path.read_text(encoding="utf-8").strip()
            if not sql:
                logger.info("[MIGRATION] {} empty, skipped", path.name)
                continue

            logger.info("[MIGRATION] Applying {} ...", path.name)
            try:
                await conn.execute(sql)
            except Exception:
                logger.exception("[MIGRATION] ERROR in {}", path.name)
                # не ховаємо помилку, щоб контейнер упав
                raise

    logger.success("[MIGRATION] All migrations applied successfully.")
