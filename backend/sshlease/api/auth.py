# sshlease/api/auth.py
from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm
import logging
from sshlease.auth import authenticate, create_access_token
from sshlease.models.user import Token

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


@router.post("/token", response_model=Token)
async def login(form_data: OAuth2PasswordRequestForm = Depends()):
    """Получить JWT по логину и паролю (OAuth2 password flow)"""
    user = authenticate(form_data.username, form_data.password)
    if user is None:
        logger.warning(f"Неудачная попытка авторизации: {form_data.username}")
        raise HTTPException(status_code=401, detail="Invalid credentials",
                            headers={"WWW-Authenticate": "Bearer"})
    logger.info(f"Успешная авторизация: {user.login} ({user.role.value})")
    return Token(access_token=create_access_token(user), role=user.role)
