# sshlease/api/leases.py
from datetime import timedelta
from fastapi import APIRouter, Depends, Response, status
import logging
from sshlease.api.deps import get_lease_manager, http_error
from sshlease.auth.dependencies import require_admin_or_operator
from sshlease.exceptions import SSHLeaseError
from sshlease.expiration.manager import LeaseManager
from sshlease.models.lease import LeaseResponse, RenewRequest
from sshlease.models.user import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/leases", tags=["leases"])

@router.put("/{lease_id}/renew", response_model=LeaseResponse)
async def renew_lease(
    lease_id: str,
    data: RenewRequest,
    manager: LeaseManager = Depends(get_lease_manager),
    current_user: User = Depends(require_admin_or_operator)
):
    """Продлить аренду"""
    increment = timedelta(seconds=data.increment) if data.increment else None
    try:
        entry = await manager.renew(lease_id, increment)
    except SSHLeaseError as e:
        raise http_error(e)
    return LeaseResponse.from_entry(entry)

@router.put("/{lease_id}/revoke", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_lease(
    lease_id: str,
    manager: LeaseManager = Depends(get_lease_manager),
    current_user: User = Depends(require_admin_or_operator)
):
    """Отозвать аренду"""
    try:
        await manager.revoke(lease_id)
    except SSHLeaseError as e:
        logger.warning(f"Отзыв аренды {lease_id} не выполнен, будет повторён: {e}")
        raise http_error(e)
    logger.info(f"Аренда {lease_id} отозвана пользователем {current_user.login}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
