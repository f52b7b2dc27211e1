"""
Конфигурация аренды (config/lease) и политика продления.
"""
import logging
from datetime import datetime, timedelta

from pydantic import ValidationError as PydanticValidationError

from sshlease.exceptions import IntegrityError, LeaseStateError, ValidationError
from sshlease.models.lease import LeaseConfig
from sshlease.models.secret import LeaseOptions
from sshlease.storage.base import Storage

logger = logging.getLogger(__name__)

LEASE_CONFIG_KEY = "config/lease"


async def get_lease_config(storage: Storage) -> LeaseConfig | None:
    """Получить конфигурацию аренды. None — если не задана."""
    entry = await storage.get(LEASE_CONFIG_KEY)
    if entry is None:
        return None
    try:
        return LeaseConfig.model_validate(entry)
    except PydanticValidationError as e:
        raise IntegrityError(f"Повреждена запись {LEASE_CONFIG_KEY}") from e


async def write_lease_config(storage: Storage, lease: timedelta, lease_max: timedelta) -> LeaseConfig:
    """Сохранить конфигурацию аренды."""
    if lease < timedelta(0) or lease_max < timedelta(0):
        raise ValidationError("Длительность аренды не может быть отрицательной")
    if lease_max and lease_max < lease:
        raise ValidationError("Максимальная длительность аренды меньше длительности по умолчанию")

    config = LeaseConfig(lease=lease, lease_max=lease_max)
    await storage.put(LEASE_CONFIG_KEY, config.model_dump(mode="json"))
    logger.info(f"Обновлена конфигурация аренды: lease={lease}, lease_max={lease_max or 'без ограничения'}")
    return config


def lease_extend(options: LeaseOptions, increment: timedelta | None, default: timedelta,
                 maximum: timedelta, now: datetime) -> LeaseOptions:
    """Продлить аренду от момента now.

    Запрошенный срок (или default, если не запрошен) ограничивается maximum,
    а итоговое истечение — моментом issue_time + maximum. maximum = 0 —
    без ограничения. После issue_time + maximum продление запрещено.
    """
    ttl = increment or default
    if maximum:
        deadline = options.issue_time + maximum
        if now >= deadline:
            raise LeaseStateError(
                f"Аренду можно продлевать только до {deadline.isoformat()} "
                f"(максимальный срок {maximum} от выдачи)"
            )
        ttl = min(ttl, maximum, deadline - now)
    return options.model_copy(update={"ttl": ttl, "last_renewal_time": now})
