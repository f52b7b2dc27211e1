# sshlease/api/health.py
from fastapi import APIRouter, Depends
from datetime import datetime, timezone
import logging
from sshlease import __version__
from sshlease.api.deps import get_lease_manager
from sshlease.exceptions import StorageError
from sshlease.expiration.manager import LeaseManager
from sshlease.storage import local_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health_check(manager: LeaseManager = Depends(get_lease_manager)):
    """Состояние сервиса: БД и число аренд (включая незавершённые отзывы)"""
    database = await local_db.ping()
    try:
        leases = len(await manager.list_ids())
    except StorageError as e:
        logger.warning(f"health: хранилище недоступно: {e}")
        leases = None

    ok = database is not False and leases is not None
    return {
        "status": "ok" if ok else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": {None: "not configured", True: "ok", False: "unavailable"}[database],
        "leases": leases,
        "version": __version__,
    }
