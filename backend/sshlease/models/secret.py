# sshlease/models/secret.py
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, IPvAnyAddress, field_validator
from pydantic import ValidationError as PydanticValidationError

from sshlease.config import DYNAMIC_KEY_BITS, DYNAMIC_KEY_TYPE
from sshlease.exceptions import IntegrityError

# Имя учётной записи POSIX: безопасно подставляется в командную строку
USERNAME_PATTERN = r"^[a-z_][a-z0-9_.-]*\$?$"
KEY_NAME_PATTERN = r"^[-\w]+$"


class SSHKeyType(str, Enum):
    RSA = "rsa"
    ED25519 = "ed25519"


class LeaseOptions(BaseModel):
    """Параметры аренды секрета"""
    ttl: timedelta
    grace_period: timedelta = timedelta(0)
    issue_time: datetime
    last_renewal_time: datetime | None = None
    renewable: bool = True

    @property
    def expire_time(self) -> datetime:
        return (self.last_renewal_time or self.issue_time) + self.ttl


class Secret(BaseModel):
    """Секрет с арендой.

    data возвращается вызывающему, internal_data видна только
    обработчикам renew/revoke.
    """
    secret_type: str
    data: dict[str, Any] = {}
    internal_data: dict[str, Any] = {}
    lease: LeaseOptions


class DynamicKeyInternalData(BaseModel):
    """Внутренние данные динамического ключа, необходимые для его удаления"""
    model_config = ConfigDict(strict=True, extra="ignore", frozen=True)

    admin_user: str
    username: str = Field(pattern=USERNAME_PATTERN)
    ip: str
    port: int = Field(ge=1, le=65535)
    host_key_name: str = Field(pattern=KEY_NAME_PATTERN)
    dynamic_public_key: str
    install_script: str

    @field_validator("port", mode="before")
    @classmethod
    def _port_from_number(cls, value: Any) -> Any:
        # Из JSON-хранилища порт может прийти как float (22.0)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("порт должен быть числом")
        if isinstance(value, float):
            if not value.is_integer():
                raise ValueError("порт должен быть целым числом")
            return int(value)
        return value

    @classmethod
    def decode(cls, internal_data: dict[str, Any]) -> "DynamicKeyInternalData":
        """Разобрать internal_data секрета, любая ошибка -> IntegrityError"""
        try:
            return cls.model_validate(internal_data)
        except PydanticValidationError as e:
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
            raise IntegrityError(
                f"Повреждены внутренние данные секрета (поля: {', '.join(fields) or '?'})"
            ) from e

    def encode(self) -> dict[str, Any]:
        return self.model_dump()


class DynamicKeyRequest(BaseModel):
    """Запрос на выдачу динамического ключа"""
    host_key_name: str = Field(pattern=KEY_NAME_PATTERN)
    admin_user: str = Field(min_length=1)
    username: str = Field(pattern=USERNAME_PATTERN)
    ip: IPvAnyAddress
    port: int = Field(22, ge=1, le=65535)
    install_script: str | None = None
    key_type: SSHKeyType = SSHKeyType(DYNAMIC_KEY_TYPE)
    key_bits: int = Field(DYNAMIC_KEY_BITS, ge=2048)
