# sshlease/models/lease.py
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from sshlease.models.secret import Secret


class LeaseConfig(BaseModel):
    """Конфигурация аренды (запись config/lease). lease_max = 0 — без ограничения"""
    lease: timedelta
    lease_max: timedelta = timedelta(0)


class LeaseConfigUpdate(BaseModel):
    """Модель для обновления конфигурации аренды (секунды)"""
    lease: int = Field(ge=0)
    lease_max: int = Field(0, ge=0)


class LeaseState(str, Enum):
    ACTIVE = "active"
    REVOKING = "revoking"


class LeaseEntry(BaseModel):
    """Запись аренды (leases/<id>)"""
    lease_id: str
    secret: Secret
    state: LeaseState = LeaseState.ACTIVE
    revoke_attempts: int = 0
    last_error: str | None = None
    next_revoke_attempt: datetime | None = None

    @property
    def expire_time(self) -> datetime:
        return self.secret.lease.expire_time

    def is_due(self, now: datetime) -> bool:
        """Пора ли отзывать аренду (истекла или предыдущий отзыв не завершён)"""
        if self.next_revoke_attempt is not None and self.next_revoke_attempt > now:
            return False
        return self.state == LeaseState.REVOKING or self.expire_time <= now


class RenewRequest(BaseModel):
    increment: int = Field(0, ge=0)  # секунд, 0 — значение по умолчанию


class LeaseResponse(BaseModel):
    """Модель для ответа API"""
    lease_id: str
    lease_duration: int
    renewable: bool
    data: dict[str, Any] = {}

    @classmethod
    def from_entry(cls, entry: LeaseEntry, include_data: bool = False) -> "LeaseResponse":
        return cls(
            lease_id=entry.lease_id,
            lease_duration=int(entry.secret.lease.ttl.total_seconds()),
            renewable=entry.secret.lease.renewable,
            data=entry.secret.data if include_data else {},
        )
