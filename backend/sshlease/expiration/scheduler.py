"""Планировщик отзыва истекших аренд."""
import asyncio
import logging
from datetime import datetime, timezone

from sshlease.config import EXPIRATION_CHECK_INTERVAL
from sshlease.expiration.manager import LeaseManager
from sshlease.services import system_logger

logger = logging.getLogger(__name__)

DAILY = 86400  # 24 часа в секундах
LOGS_RETENTION_DAYS = 30


async def revoke_once(manager: LeaseManager) -> tuple[int, int]:
    """Один проход отзыва. Возвращает (успешно, ошибок)."""
    ok, failed = await manager.revoke_expired(datetime.now(timezone.utc))
    if not ok and not failed:
        return 0, 0

    for lease_id, error in failed:
        logger.error(f"[expiration] Ошибка отзыва {lease_id}: {error}")
    logger.info(f"[expiration] Завершено: {ok} отозвано, {len(failed)} ошибок")

    await system_logger.revoke_summary(ok, failed)
    return ok, len(failed)


async def expiration_loop(manager: LeaseManager, interval: int = EXPIRATION_CHECK_INTERVAL):
    """Цикл отзыва истекших аренд (каждые EXPIRATION_CHECK_INTERVAL секунд)."""
    while True:
        try:
            await revoke_once(manager)
        except Exception as e:
            logger.error(f"[expiration] Критическая ошибка в цикле: {e}")
            await system_logger.error("expiration", f"Критическая ошибка: {e}")
        await asyncio.sleep(interval)


async def maintenance_loop():
    """Ежедневная очистка системных логов."""
    while True:
        try:
            removed = await system_logger.cleanup(LOGS_RETENTION_DAYS)
            await system_logger.info("maintenance", f"Обслуживание завершено. Логов очищено: {removed}")
        except Exception as e:
            logger.error(f"[maintenance] Ошибка обслуживания: {e}")
            await system_logger.error("maintenance", f"Ошибка обслуживания: {e}")
        await asyncio.sleep(DAILY)


async def start_expiration(manager: LeaseManager) -> list[asyncio.Task]:
    """Запуск циклов как asyncio-задач."""
    logger.info("Запуск отзыва истекших аренд...")
    tasks = [
        asyncio.create_task(expiration_loop(manager), name="expiration-revoke"),
        asyncio.create_task(maintenance_loop(), name="expiration-maintenance"),
    ]
    await system_logger.info("system", f"Планировщик запущен: {len(tasks)} задач")
    return tasks


async def stop_expiration(tasks: list[asyncio.Task]):
    """Остановка задач планировщика."""
    logger.info("Остановка планировщика...")
    for task in tasks:
        task.cancel()
    results = await asyncio.gather(*tasks, return_exceptions=True)
    for task, result in zip(tasks, results):
        if isinstance(result, asyncio.CancelledError):
            logger.debug(f"Задача {task.get_name()} отменена")
        elif isinstance(result, Exception):
            logger.error(f"Задача {task.get_name()} завершилась с ошибкой: {result}")
    logger.info("Планировщик остановлен")
