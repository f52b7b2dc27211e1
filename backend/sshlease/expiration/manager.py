# sshlease/expiration/manager.py
"""
Менеджер аренд: хранит записи leases/<id> и вызывает renew/revoke
обработчика по тегу типа секрета.

Отзыв — всё или ничего: запись удаляется только после полного успеха
обработчика. При ошибке запись остаётся в состоянии revoking и отзыв
повторяется целиком при следующей попытке.
"""
import asyncio
import logging
import uuid
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Iterable

from pydantic import ValidationError as PydanticValidationError

from sshlease.config import REVOKE_TIMEOUT, REVOKE_RETRY_INTERVAL
from sshlease.exceptions import (
    IntegrityError,
    LeaseNotFoundError,
    LeaseStateError,
    StorageError,
    TransportError,
)
from sshlease.models.lease import LeaseEntry, LeaseState
from sshlease.models.secret import Secret
from sshlease.services.secret_type import OperationContext, SecretType
from sshlease.storage.base import Storage

logger = logging.getLogger(__name__)

LEASES_PREFIX = "leases/"


class LeaseManager:
    def __init__(self, storage: Storage, secret_types: Iterable[SecretType],
                 revoke_timeout: float = REVOKE_TIMEOUT,
                 retry_interval: float = REVOKE_RETRY_INTERVAL):
        self.storage = storage
        self.secret_types: dict[str, SecretType] = {t.secret_type: t for t in secret_types}
        self.revoke_timeout = revoke_timeout
        self.retry_interval = timedelta(seconds=retry_interval)
        self._in_progress: set[str] = set()

    def context(self, now: datetime | None = None) -> OperationContext:
        if now is None:
            return OperationContext(storage=self.storage)
        return OperationContext(storage=self.storage, now=now)

    def _handler(self, secret: Secret) -> SecretType:
        handler = self.secret_types.get(secret.secret_type)
        if handler is None:
            raise IntegrityError(f"Неизвестный тип секрета: {secret.secret_type}")
        return handler

    @staticmethod
    def _path(lease_id: str) -> str:
        return f"{LEASES_PREFIX}{lease_id}"

    async def _save(self, entry: LeaseEntry) -> None:
        await self.storage.put(self._path(entry.lease_id), entry.model_dump(mode="json"))

    async def get(self, lease_id: str) -> LeaseEntry:
        """Получить аренду по ID"""
        raw = await self.storage.get(self._path(lease_id))
        if raw is None:
            raise LeaseNotFoundError(lease_id)
        try:
            return LeaseEntry.model_validate(raw)
        except PydanticValidationError as e:
            raise IntegrityError(f"Повреждена запись аренды {lease_id}") from e

    async def list_ids(self) -> list[str]:
        return await self.storage.list(LEASES_PREFIX)

    async def register(self, secret: Secret, pending_error: str | None = None,
                       now: datetime | None = None) -> LeaseEntry:
        """Зарегистрировать выданный секрет.

        pending_error — секрет нужно отозвать: запись создаётся в состоянии
        revoking, как после неудачной попытки отзыва.
        """
        self._handler(secret)
        entry = LeaseEntry(lease_id=str(uuid.uuid4()), secret=secret)
        if pending_error is not None:
            entry = entry.model_copy(update={
                "state": LeaseState.REVOKING,
                "revoke_attempts": 1,
                "last_error": pending_error,
                "next_revoke_attempt": self.context(now).now + self.retry_interval,
            })
        await self._save(entry)
        logger.info(f"Зарегистрирована аренда {entry.lease_id} ({secret.secret_type}), "
                    f"истекает {entry.expire_time.isoformat()}")
        return entry

    @contextmanager
    def _claim(self, lease_id: str):
        """Операции над одной арендой не выполняются одновременно"""
        if lease_id in self._in_progress:
            raise LeaseStateError(f"Над арендой {lease_id} уже выполняется операция")
        self._in_progress.add(lease_id)
        try:
            yield
        finally:
            self._in_progress.discard(lease_id)

    async def renew(self, lease_id: str, increment: timedelta | None = None,
                    now: datetime | None = None) -> LeaseEntry:
        """Продлить аренду"""
        with self._claim(lease_id):
            return await self._renew(lease_id, increment, now)

    async def _renew(self, lease_id: str, increment: timedelta | None,
                     now: datetime | None) -> LeaseEntry:
        entry = await self.get(lease_id)
        ctx = self.context(now)

        if entry.state != LeaseState.ACTIVE:
            raise LeaseStateError(f"Аренда {lease_id} в процессе отзыва, продление невозможно")
        if not entry.secret.lease.renewable:
            raise LeaseStateError(f"Аренда {lease_id} не продлеваемая")
        if entry.expire_time <= ctx.now:
            raise LeaseStateError(f"Аренда {lease_id} истекла")

        options = await self._handler(entry.secret).renew(ctx, entry.secret, increment)
        entry = entry.model_copy(update={"secret": entry.secret.model_copy(update={"lease": options})})
        await self._save(entry)
        logger.info(f"Аренда {lease_id} продлена до {entry.expire_time.isoformat()}")
        return entry

    async def revoke(self, lease_id: str, now: datetime | None = None) -> None:
        """Отозвать аренду. При ошибке аренда остаётся и будет отозвана повторно"""
        with self._claim(lease_id):
            await self._revoke(lease_id, now)

    async def _revoke(self, lease_id: str, now: datetime | None) -> None:
        entry = await self.get(lease_id)
        ctx = self.context(now)
        handler = self._handler(entry.secret)

        entry = entry.model_copy(update={"state": LeaseState.REVOKING})
        await self._save(entry)

        try:
            await asyncio.wait_for(handler.revoke(ctx, entry.secret), timeout=self.revoke_timeout)
        except asyncio.TimeoutError as e:
            error = TransportError(
                f"Таймаут отзыва аренды {lease_id} ({self.revoke_timeout} с)", operation="revoke"
            )
            await self._record_failure(entry, error, ctx.now)
            raise error from e
        except Exception as e:
            await self._record_failure(entry, e, ctx.now)
            raise

        await self.storage.delete(self._path(lease_id))
        logger.info(f"Аренда {lease_id} отозвана")

    async def _record_failure(self, entry: LeaseEntry, error: Exception, now: datetime) -> None:
        entry = entry.model_copy(update={
            "revoke_attempts": entry.revoke_attempts + 1,
            "last_error": str(error),
            "next_revoke_attempt": now + self.retry_interval,
        })
        logger.warning(f"Ошибка отзыва аренды {entry.lease_id} "
                       f"(попытка {entry.revoke_attempts}): {error}")
        try:
            await self._save(entry)
        except StorageError as e:
            logger.error(f"Не удалось сохранить состояние аренды {entry.lease_id}: {e}")

    async def due_leases(self, now: datetime) -> list[LeaseEntry]:
        """Аренды, которые пора отзывать (истекшие и незавершённые отзывы)"""
        due = []
        for lease_id in await self.list_ids():
            try:
                entry = await self.get(lease_id)
            except (LeaseNotFoundError, IntegrityError) as e:
                logger.error(f"Пропуск аренды {lease_id}: {e}")
                continue
            if lease_id in self._in_progress:
                continue
            if entry.is_due(now):
                due.append(entry)
        return due

    async def revoke_expired(self, now: datetime) -> tuple[int, list[tuple[str, Exception]]]:
        """Отозвать все истекшие аренды. Возвращает (успешно, [(lease_id, ошибка)])"""
        due = await self.due_leases(now)
        if not due:
            return 0, []

        results = await asyncio.gather(
            *(self.revoke(entry.lease_id, now) for entry in due),
            return_exceptions=True,
        )
        failed = [(entry.lease_id, r) for entry, r in zip(due, results) if isinstance(r, Exception)]
        return len(due) - len(failed), failed
