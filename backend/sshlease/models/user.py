from pydantic import BaseModel, EmailStr
from typing import Optional
from datetime import datetime
from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    OPERATOR = "operator"  # выдаёт ключи и управляет арендами
    VIEWER = "viewer"  # только чтение конфигурации


class User(BaseModel):
    """Пользователь API (запись из USERS_FILE)"""
    login: str
    password: str  # bcrypt-хэш
    role: UserRole = UserRole.VIEWER
    email: Optional[EmailStr] = None
    created_at: Optional[datetime] = None
    is_active: bool = True

    @property
    def can_manage_leases(self) -> bool:
        return self.role in (UserRole.ADMIN, UserRole.OPERATOR)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: UserRole
