"""
Хранилище секретов: get/put/delete по строковому пути, значения — JSON.
"""
import copy
import json
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any

logger = logging.getLogger(__name__)


class Storage(ABC):
    """Интерфейс хранилища. Отсутствие записи — None, а не ошибка"""

    @abstractmethod
    async def get(self, key: str) -> dict[str, Any] | None:
        ...

    @abstractmethod
    async def put(self, key: str, value: dict[str, Any]) -> None:
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Удалить запись. Удаление несуществующей записи не ошибка"""

    @abstractmethod
    async def list(self, prefix: str) -> list[str]:
        """Ключи с заданным префиксом (без самого префикса)"""


class InMemoryStorage(Storage):
    """Хранилище в памяти процесса (тесты, локальный запуск).

    Значения проходят через json, как и в PgStorage, чтобы типы
    после чтения совпадали с реальным хранилищем.
    """

    def __init__(self):
        self._data: dict[str, str] = {}
        self._lock = threading.Lock()

    async def get(self, key: str) -> dict[str, Any] | None:
        with self._lock:
            raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    async def put(self, key: str, value: dict[str, Any]) -> None:
        raw = json.dumps(copy.deepcopy(value), default=str)
        with self._lock:
            self._data[key] = raw
        logger.debug(f"Запись {key} сохранена")

    async def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    async def list(self, prefix: str) -> list[str]:
        with self._lock:
            return sorted(k[len(prefix):] for k in self._data if k.startswith(prefix))
