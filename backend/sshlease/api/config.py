"""API конфигурации аренды."""
from datetime import timedelta
from fastapi import APIRouter, Depends, HTTPException
from sshlease.api.deps import get_storage, http_error
from sshlease.auth.dependencies import get_current_user, require_admin_or_operator
from sshlease.exceptions import SSHLeaseError
from sshlease.models.lease import LeaseConfigUpdate
from sshlease.models.user import User
from sshlease.services.lease_config import get_lease_config, write_lease_config
from sshlease.storage.base import Storage

router = APIRouter(prefix="/api/config", tags=["config"])


def _to_seconds(config) -> dict:
    return {
        "lease": int(config.lease.total_seconds()),
        "lease_max": int(config.lease_max.total_seconds()),
    }


@router.get("/lease")
async def read_lease_config(
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    """Получить конфигурацию аренды."""
    try:
        config = await get_lease_config(storage)
    except SSHLeaseError as e:
        raise http_error(e)
    if config is None:
        raise HTTPException(status_code=404, detail="Конфигурация аренды не задана")
    return _to_seconds(config)


@router.put("/lease")
async def update_lease_config(
    data: LeaseConfigUpdate,
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(require_admin_or_operator),
):
    """Обновить конфигурацию аренды."""
    try:
        config = await write_lease_config(
            storage, timedelta(seconds=data.lease), timedelta(seconds=data.lease_max)
        )
    except SSHLeaseError as e:
        raise http_error(e)
    return _to_seconds(config)
