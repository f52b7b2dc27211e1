"""
Реестр административных ключей хостов — записи keys/<name> в хранилище.

Ключ должен иметь права root на целевых хостах: через него
устанавливаются и удаляются динамические ключи непривилегированных
пользователей.
"""
import logging
import re

from pydantic import ValidationError as PydanticValidationError

from sshlease.exceptions import IntegrityError, ValidationError
from sshlease.models.host_key import HostKey
from sshlease.models.secret import KEY_NAME_PATTERN
from sshlease.services import keypair
from sshlease.storage.base import Storage

logger = logging.getLogger(__name__)

KEYS_PREFIX = "keys/"


def _key_path(name: str) -> str:
    if not name or not re.fullmatch(KEY_NAME_PATTERN, name):
        raise ValidationError(f"Недопустимое имя ключа: '{name}'")
    return f"{KEYS_PREFIX}{name}"


async def get_key(storage: Storage, name: str) -> HostKey | None:
    """Получить ключ по имени. None — если ключ не зарегистрирован."""
    entry = await storage.get(_key_path(name))
    if entry is None:
        return None
    try:
        return HostKey.model_validate(entry)
    except PydanticValidationError as e:
        raise IntegrityError(f"Повреждена запись ключа {name}") from e


async def write_key(storage: Storage, name: str, key: str) -> HostKey:
    """Зарегистрировать (или перезаписать) ключ после проверки."""
    path = _key_path(name)
    fingerprint = keypair.validate_private_key(key)

    host_key = HostKey(key=key)
    await storage.put(path, host_key.model_dump())
    logger.info(f"Зарегистрирован ключ хоста: {name} ({fingerprint})")
    return host_key


async def delete_key(storage: Storage, name: str) -> None:
    """Удалить ключ. Удаление незарегистрированного ключа не ошибка."""
    await storage.delete(_key_path(name))
    logger.info(f"Удалён ключ хоста: {name}")


async def list_keys(storage: Storage) -> list[str]:
    """Имена зарегистрированных ключей."""
    return await storage.list(KEYS_PREFIX)
