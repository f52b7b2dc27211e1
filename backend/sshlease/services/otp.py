"""
Одноразовые идентификаторы для имён файлов на целевом хосте.

Имя файла — HMAC-SHA256 от случайного UUID на секретной соли сервиса:
предсказать его без доступа к соли нельзя, а hex-строка безопасна
и в пути, и в командной строке.
"""
import hashlib
import hmac
import logging
import re
import secrets
import uuid

from sshlease.exceptions import IntegrityError
from sshlease.storage.base import Storage

logger = logging.getLogger(__name__)

SALT_KEY = "salt"
SALT_BYTES = 32
_SALT_RE = re.compile(r"^[0-9a-f]{64}$")


class Salt:
    def __init__(self, value: str):
        self._key = bytes.fromhex(value)

    @classmethod
    async def load(cls, storage: Storage) -> "Salt":
        """Загрузить соль из хранилища, при первом обращении — создать."""
        entry = await storage.get(SALT_KEY)
        if entry is None:
            value = secrets.token_hex(SALT_BYTES)
            await storage.put(SALT_KEY, {"salt": value})
            logger.info("Сгенерирована новая соль сервиса")
            return cls(value)

        value = entry.get("salt")
        if not isinstance(value, str) or not _SALT_RE.match(value):
            raise IntegrityError("Повреждена запись соли в хранилище")
        return cls(value)

    def salt_id(self, value: str) -> str:
        return hmac.new(self._key, value.encode(), hashlib.sha256).hexdigest()

    def generate_otp(self) -> tuple[str, str]:
        """Вернуть (otp, salted_otp). salted_otp используется как имя файла."""
        otp = str(uuid.uuid4())
        return otp, self.salt_id(otp)
