"""
Интерфейс типа секрета: менеджер аренд вызывает renew/revoke
по тегу secret_type.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from sshlease.models.secret import LeaseOptions, Secret
from sshlease.storage.base import Storage


@dataclass
class OperationContext:
    """Явный контекст операции: хранилище и текущее время"""
    storage: Storage
    now: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class SecretType(ABC):
    secret_type: str
    default_duration: timedelta
    default_grace_period: timedelta

    @abstractmethod
    async def renew(self, ctx: OperationContext, secret: Secret,
                    increment: timedelta | None) -> LeaseOptions:
        """Вернуть новые параметры аренды. Ошибка — аренда не продлена."""

    @abstractmethod
    async def revoke(self, ctx: OperationContext, secret: Secret) -> None:
        """Отозвать секрет. Ошибка — секрет не считается отозванным."""
