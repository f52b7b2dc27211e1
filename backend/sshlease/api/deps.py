"""Общие зависимости и преобразование ошибок в HTTP-ответы."""
import logging
from fastapi import HTTPException, Request, status
from sshlease.exceptions import (
    SSHLeaseError,
    ValidationError,
    IntegrityError,
    HostKeyNotFoundError,
    LeaseNotFoundError,
    LeaseStateError,
)
from sshlease.expiration.manager import LeaseManager
from sshlease.storage.base import Storage

logger = logging.getLogger(__name__)


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def get_lease_manager(request: Request) -> LeaseManager:
    return request.app.state.lease_manager


def http_error(e: SSHLeaseError) -> HTTPException:
    """Преобразовать ошибку сервиса в HTTPException"""
    if isinstance(e, (ValidationError, IntegrityError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if isinstance(e, (HostKeyNotFoundError, LeaseNotFoundError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, LeaseStateError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if e.retryable:
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    logger.error(f"Необработанная ошибка сервиса: {e}")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
