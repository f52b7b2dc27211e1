# sshlease/storage/local_db.py
"""
Локальная БД сервиса (asyncpg): зашифрованные записи хранилища
и журнал событий.
"""
import asyncpg
import logging
from sshlease.config import LOCAL_DB_DSN

logger = logging.getLogger(__name__)

_pool: asyncpg.Pool | None = None

SCHEMA = (
    "CREATE EXTENSION IF NOT EXISTS pgcrypto",
    """
    CREATE TABLE IF NOT EXISTS storage_entries (
        key         text        PRIMARY KEY,
        value_enc   bytea       NOT NULL,
        updated_at  timestamptz NOT NULL DEFAULT now()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS system_log (
        id          bigserial   PRIMARY KEY,
        timestamp   timestamptz NOT NULL DEFAULT now(),
        level       text        NOT NULL,
        source      text        NOT NULL,
        message     text        NOT NULL,
        details     text
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_system_log_timestamp ON system_log (timestamp DESC)",
    # list() выбирает записи по префиксу пути (leases/, keys/)
    "CREATE INDEX IF NOT EXISTS idx_storage_entries_key_prefix ON storage_entries (key text_pattern_ops)",
)


def _safe_dsn(dsn: str) -> str:
    """DSN без учётных данных, для логов"""
    return dsn.rsplit("@", 1)[1] if "@" in dsn else dsn


async def init_pool(dsn: str = LOCAL_DB_DSN) -> asyncpg.Pool:
    """Создать пул и схему. Повторный вызов возвращает существующий пул."""
    global _pool
    if _pool is not None:
        return _pool

    logger.info(f"Подключение к хранилищу: {_safe_dsn(dsn)}")
    pool = await asyncpg.create_pool(dsn, min_size=1, max_size=10, command_timeout=30)
    try:
        async with pool.acquire() as conn:
            async with conn.transaction():
                for statement in SCHEMA:
                    await conn.execute(statement)
    except Exception:
        await pool.close()
        raise
    _pool = pool
    logger.info("Хранилище готово, схема проверена")
    return _pool


async def close_pool():
    global _pool
    if _pool:
        await _pool.close()
        _pool = None
        logger.info("asyncpg пул закрыт")


def current_pool() -> asyncpg.Pool | None:
    """Текущий пул или None, если хранилище в БД не используется"""
    return _pool


async def ping() -> bool | None:
    """Проверка БД для health. None — пул не создан."""
    if _pool is None:
        return None
    try:
        return await _pool.fetchval("SELECT 1") == 1
    except (asyncpg.PostgresError, OSError) as e:
        logger.warning(f"БД недоступна: {e}")
        return False
