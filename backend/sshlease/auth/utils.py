# sshlease/auth/utils.py
import jwt
import bcrypt
from datetime import datetime, timedelta, timezone
import json
import logging
from sshlease.config import SECRET_KEY, ALGORITHM, TOKEN_EXPIRATION, USERS_FILE
from sshlease.models.user import User

logger = logging.getLogger(__name__)


def load_users() -> list[User]:
    """Пользователи из USERS_FILE (JSON-список)"""
    try:
        with open(USERS_FILE, "r") as f:
            users = [User(**item) for item in json.load(f)]
    except Exception as e:
        logger.error(f"Ошибка загрузки пользователей из {USERS_FILE}: {e}")
        raise
    logger.debug(f"Загружено {len(users)} пользователей")
    return users


def find_user(login: str) -> User | None:
    for user in load_users():
        if user.login == login:
            return user
    return None


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode(), hashed_password.encode())
    except ValueError:
        # в файле не bcrypt-хэш
        logger.warning("Некорректный хэш пароля в файле пользователей")
        return False


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def authenticate(login: str, password: str) -> User | None:
    """Пользователь с этим логином и паролем, если он активен"""
    user = find_user(login)
    if user is None or not user.is_active:
        return None
    if not verify_password(password, user.password):
        return None
    return user


def create_access_token(user: User, expires_delta: timedelta | None = None) -> str:
    """JWT с логином (sub) и ролью пользователя"""
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=TOKEN_EXPIRATION))
    payload = {"sub": user.login, "role": user.role.value, "exp": expire}
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> dict:
    return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM], options={"require": ["sub", "exp"]})
