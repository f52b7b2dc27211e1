"""Тесты журнала событий (пул asyncpg подменяется)."""
import pytest

from sshlease.exceptions import HostKeyNotFoundError, TransportError
from sshlease.services import system_logger
from sshlease.storage import local_db


class FakePool:
    def __init__(self, result="DELETE 0", error=None):
        self.result = result
        self.error = error
        self.executed = []

    async def execute(self, query, *args):
        if self.error:
            raise self.error
        self.executed.append((query, args))
        return self.result


@pytest.fixture
def pool(monkeypatch):
    fake = FakePool()
    monkeypatch.setattr(local_db, "_pool", fake)
    return fake


async def test_skipped_without_pool():
    await system_logger.info("expiration", "нет БД")
    assert await system_logger.cleanup() == 0


async def test_info(pool):
    await system_logger.info("system", "запуск")
    assert pool.executed[0][1] == ("info", "system", "запуск", None)


async def test_write_error_not_raised(pool):
    pool.error = OSError("connection reset")
    await system_logger.error("expiration", "сбой")


async def test_unknown_level(pool):
    with pytest.raises(ValueError):
        await system_logger.log("debug", "system", "x")


class TestRevokeSummary:
    async def test_success(self, pool):
        await system_logger.revoke_summary(3, [])
        level, source, message, details = pool.executed[0][1]
        assert (level, source, details) == ("info", "expiration", None)
        assert "3" in message

    async def test_retryable_failures_are_warnings(self, pool):
        await system_logger.revoke_summary(1, [("lease-1", TransportError("timeout"))])
        level, _, _, details = pool.executed[0][1]
        assert level == "warning"
        assert details == "lease-1: TransportError: timeout"

    async def test_permanent_failure_is_error(self, pool):
        failed = [
            ("lease-1", TransportError("timeout")),
            ("lease-2", HostKeyNotFoundError("root1")),
        ]
        await system_logger.revoke_summary(0, failed)
        level, _, message, details = pool.executed[0][1]
        assert level == "error"
        assert "2" in message
        assert len(details.splitlines()) == 2


async def test_cleanup(pool):
    pool.result = "DELETE 7"
    assert await system_logger.cleanup(30) == 7
