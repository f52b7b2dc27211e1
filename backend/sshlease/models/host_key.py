from pydantic import BaseModel


class HostKey(BaseModel):
    """Административный ключ хоста (запись keys/<name>)"""
    key: str


class HostKeyWrite(BaseModel):
    """Модель для регистрации ключа"""
    key: str = ""


class HostKeyResponse(BaseModel):
    """Модель для ответа API"""
    key: str
