"""
Общие фикстуры тестов: хранилище в памяти, сгенерированные ключи
и фейковый протокол установки, записывающий все вызовы.
"""
import threading
from datetime import datetime, timezone

import pytest

from sshlease.exceptions import RemoteError, TransportError
from sshlease.services import keypair
from sshlease.storage.base import InMemoryStorage

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


class FakeInstaller:
    """Записывает вызовы протокола установки вместо обращения к хосту.

    fail задаёт шаг, на котором возникает ошибка:
    "upload_key", "upload_script", "execute" (любой запуск скрипта)
    или "install" (только запуск с install=True). Ошибка запуска
    возникает после того, как скрипт отработал: вызов записывается.
    """

    def __init__(self, fail: str | None = None, error: RemoteError | None = None):
        self.fail = fail
        self.error = error or TransportError("connection refused", host="10.0.0.5", port=22)
        self.calls: list[tuple] = []
        self._lock = threading.Lock()

    def _record(self, call: tuple) -> None:
        with self._lock:
            self.calls.append(call)

    def upload(self, admin_user, host, port, admin_key, remote_filename, payload):
        step = "upload_script" if remote_filename.endswith(".sh") else "upload_key"
        if self.fail == step:
            raise self.error
        self._record(("upload", admin_user, host, port, remote_filename, payload))

    def install_public_key(self, admin_user, public_key_filename, username, host, port, admin_key, install):
        self._record(("execute", admin_user, public_key_filename, username, host, port, install))
        if self.fail == "execute" or (self.fail == "install" and install):
            raise self.error

    def uploads(self) -> list[tuple]:
        return [c for c in self.calls if c[0] == "upload"]

    def executions(self) -> list[tuple]:
        return [c for c in self.calls if c[0] == "execute"]


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture(scope="session")
def ed25519_pem() -> str:
    private_key, _, _ = keypair.generate_key_pair("ed25519")
    return private_key


@pytest.fixture(scope="session")
def rsa_pem() -> str:
    private_key, _, _ = keypair.generate_key_pair("rsa", 2048)
    return private_key


@pytest.fixture
def installer():
    return FakeInstaller()
