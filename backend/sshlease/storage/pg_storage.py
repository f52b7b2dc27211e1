"""
Хранилище секретов в PostgreSQL — значения шифруются pgp_sym_encrypt.
"""
import json
import logging
from typing import Any

import asyncpg

from sshlease.config import ENCRYPTION_KEY
from sshlease.exceptions import StorageError
from sshlease.storage.base import Storage

logger = logging.getLogger(__name__)


class PgStorage(Storage):
    def __init__(self, pool: asyncpg.Pool, encryption_key: str = ENCRYPTION_KEY):
        self.pool = pool
        self._encryption_key = encryption_key

    async def get(self, key: str) -> dict[str, Any] | None:
        try:
            row = await self.pool.fetchrow(
                "SELECT pgp_sym_decrypt(value_enc, $2) AS value "
                "FROM storage_entries WHERE key = $1",
                key, self._encryption_key,
            )
        except (asyncpg.PostgresError, OSError) as e:
            raise StorageError(f"Ошибка чтения {key}: {e}") from e
        return json.loads(row["value"]) if row else None

    async def put(self, key: str, value: dict[str, Any]) -> None:
        try:
            await self.pool.execute(
                "INSERT INTO storage_entries (key, value_enc, updated_at) "
                "VALUES ($1, pgp_sym_encrypt($2, $3), now()) "
                "ON CONFLICT (key) DO UPDATE SET value_enc = EXCLUDED.value_enc, "
                "updated_at = EXCLUDED.updated_at",
                key, json.dumps(value, default=str), self._encryption_key,
            )
        except (asyncpg.PostgresError, OSError) as e:
            raise StorageError(f"Ошибка записи {key}: {e}") from e
        logger.debug(f"Запись {key} сохранена")

    async def delete(self, key: str) -> None:
        try:
            await self.pool.execute("DELETE FROM storage_entries WHERE key = $1", key)
        except (asyncpg.PostgresError, OSError) as e:
            raise StorageError(f"Ошибка удаления {key}: {e}") from e

    async def list(self, prefix: str) -> list[str]:
        try:
            rows = await self.pool.fetch(
                "SELECT key FROM storage_entries WHERE starts_with(key, $1) ORDER BY key",
                prefix,
            )
        except (asyncpg.PostgresError, OSError) as e:
            raise StorageError(f"Ошибка чтения списка {prefix}: {e}") from e
        return [r["key"][len(prefix):] for r in rows]
