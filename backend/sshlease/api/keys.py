# sshlease/api/keys.py
from fastapi import APIRouter, Depends, HTTPException, Response, status
import logging
from sshlease.api.deps import get_storage, http_error
from sshlease.auth.dependencies import require_admin_or_operator
from sshlease.exceptions import SSHLeaseError
from sshlease.models.host_key import HostKeyWrite, HostKeyResponse
from sshlease.models.user import User
from sshlease.services import host_keys
from sshlease.storage.base import Storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/keys", tags=["keys"])

@router.get("/{key_name}", response_model=HostKeyResponse)
async def read_key(
    key_name: str,
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(require_admin_or_operator)
):
    """Получить административный ключ хоста"""
    try:
        key = await host_keys.get_key(storage, key_name)
    except SSHLeaseError as e:
        raise http_error(e)
    if not key:
        raise HTTPException(status_code=404, detail="Ключ не найден")
    return HostKeyResponse(key=key.key)

@router.put("/{key_name}", status_code=status.HTTP_204_NO_CONTENT)
async def write_key(
    key_name: str,
    key_data: HostKeyWrite,
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(require_admin_or_operator)
):
    """Зарегистрировать административный ключ хоста"""
    try:
        await host_keys.write_key(storage, key_name, key_data.key)
    except SSHLeaseError as e:
        raise http_error(e)
    logger.info(f"Ключ {key_name} записан пользователем {current_user.login}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)

@router.delete("/{key_name}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_key(
    key_name: str,
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(require_admin_or_operator)
):
    """Удалить административный ключ хоста"""
    try:
        await host_keys.delete_key(storage, key_name)
    except SSHLeaseError as e:
        raise http_error(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
