# sshlease/auth/dependencies.py
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
import jwt
import logging
from sshlease.auth.utils import decode_token, find_user
from sshlease.models.user import User

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")

_UNAUTHORIZED = {"WWW-Authenticate": "Bearer"}


async def get_current_user(token: str = Depends(oauth2_scheme)) -> User:
    """Пользователь из токена. Роль берётся из файла пользователей, а не из токена"""
    try:
        payload = decode_token(token)
    except jwt.ExpiredSignatureError:
        logger.warning("Попытка использования истёкшего токена")
        raise HTTPException(status_code=401, detail="Token expired", headers=_UNAUTHORIZED)
    except jwt.InvalidTokenError:
        logger.warning("Попытка использования невалидного токена")
        raise HTTPException(status_code=401, detail="Invalid token", headers=_UNAUTHORIZED)

    user = find_user(payload["sub"])
    if user is None or not user.is_active:
        logger.warning(f"Токен пользователя {payload['sub']}, который удалён или отключён")
        raise HTTPException(status_code=401, detail="Invalid credentials", headers=_UNAUTHORIZED)
    return user


def require_admin_or_operator(current_user: User = Depends(get_current_user)) -> User:
    """Выдача ключей, аренды и запись ключей хостов — только admin и operator"""
    if not current_user.can_manage_leases:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Недостаточно прав. Требуется роль администратора или оператора"
        )
    return current_user
