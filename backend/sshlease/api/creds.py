# sshlease/api/creds.py
from fastapi import APIRouter, Depends
import logging
from sshlease.api.deps import get_lease_manager, http_error
from sshlease.auth.dependencies import require_admin_or_operator
from sshlease.exceptions import SSHLeaseError
from sshlease.expiration.manager import LeaseManager
from sshlease.models.lease import LeaseResponse
from sshlease.models.secret import DynamicKeyRequest
from sshlease.models.user import User
from sshlease.services.dynamic_key import issue_lease

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/creds", tags=["creds"])

@router.post("", response_model=LeaseResponse)
async def create_creds(
    request: DynamicKeyRequest,
    manager: LeaseManager = Depends(get_lease_manager),
    current_user: User = Depends(require_admin_or_operator)
):
    """Выдать динамический SSH-ключ"""
    try:
        entry = await issue_lease(manager, request)
    except SSHLeaseError as e:
        logger.error(f"Ошибка выдачи ключа {request.username}@{request.ip}: {e}")
        raise http_error(e)
    logger.info(f"Пользователь {current_user.login} получил ключ {request.username}@{request.ip} "
                f"(аренда {entry.lease_id})")
    return LeaseResponse.from_entry(entry, include_data=True)
