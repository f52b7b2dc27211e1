# sshlease/services/system_logger.py
"""
Журнал событий сервиса в таблице system_log: итоги проходов отзыва,
запуск и остановка планировщика, обслуживание.

Журнал вспомогательный: ошибка записи только логируется, а до
инициализации пула (тесты, локальный запуск без БД) записи пропускаются.
"""
from datetime import datetime, timezone, timedelta
import logging

from sshlease.storage import local_db

logger = logging.getLogger(__name__)

LEVELS = ("info", "warning", "error")


async def log(level: str, source: str, message: str, details: str | None = None) -> None:
    """Записать событие в system_log."""
    if level not in LEVELS:
        raise ValueError(f"Неизвестный уровень журнала: {level}")
    pool = local_db.current_pool()
    if pool is None:
        logger.debug(f"system_log недоступен, событие пропущено: [{source}] {message}")
        return
    try:
        await pool.execute(
            "INSERT INTO system_log (level, source, message, details) VALUES ($1, $2, $3, $4)",
            level, source, message, details,
        )
    except Exception as e:
        logger.error(f"Ошибка записи system_log: {e}")


async def info(source: str, message: str, details: str | None = None) -> None:
    await log("info", source, message, details)


async def error(source: str, message: str, details: str | None = None) -> None:
    await log("error", source, message, details)


async def revoke_summary(ok: int, failed: list[tuple[str, Exception]]) -> None:
    """Итог прохода отзыва: одна запись, ошибки по арендам — в details"""
    if not failed:
        await info("expiration", f"Отзыв аренд: {ok} отозвано")
        return
    details = "\n".join(f"{lease_id}: {type(e).__name__}: {e}" for lease_id, e in failed)
    level = "error" if any(not getattr(e, "retryable", False) for _, e in failed) else "warning"
    await log(level, "expiration", f"Отзыв аренд: {len(failed)} ошибок из {ok + len(failed)}", details)


async def cleanup(days: int = 30) -> int:
    """Удалить записи старше N дней. Возвращает число удалённых."""
    pool = local_db.current_pool()
    if pool is None:
        return 0
    cutoff = datetime.now(timezone.utc) - timedelta(days=days)
    try:
        result = await pool.execute("DELETE FROM system_log WHERE timestamp < $1", cutoff)
    except Exception as e:
        logger.error(f"Ошибка очистки system_log: {e}")
        return 0
    removed = int(result.split()[-1])
    if removed:
        logger.info(f"system_log: удалено {removed} записей старше {days} дней")
    return removed
