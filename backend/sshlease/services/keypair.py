# sshlease/services/keypair.py
"""
Генерация динамических ключей и разбор административных ключей хостов.

Ключи генерируются через cryptography (без пароля, формат OpenSSH),
разбираются через paramiko: тем же кодом, которым потом подключаемся.
"""
import base64
import hashlib
import io
import logging
from typing import NamedTuple

import paramiko
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519, rsa

from sshlease.exceptions import ValidationError

logger = logging.getLogger(__name__)

# Порядок перебора типов при разборе приватного ключа
KEY_CLASSES = (paramiko.RSAKey, paramiko.Ed25519Key, paramiko.ECDSAKey)

DYNAMIC_KEY_COMMENT = "sshlease-dynamic"


class KeyPair(NamedTuple):
    private_key: str  # PEM (OpenSSH)
    public_key: str  # строка для authorized_keys
    fingerprint: str


def _new_rsa(bits: int):
    return rsa.generate_private_key(public_exponent=65537, key_size=bits)


def _new_ed25519(bits: int):
    # размер у ed25519 фиксирован
    return ed25519.Ed25519PrivateKey.generate()


_GENERATORS = {
    "rsa": _new_rsa,
    "ed25519": _new_ed25519,
}


def generate_key_pair(key_type: str = "rsa", bits: int = 2048,
                      comment: str = DYNAMIC_KEY_COMMENT) -> KeyPair:
    """Сгенерировать пару ключей для выдачи пользователю"""
    generator = _GENERATORS.get(key_type.lower())
    if generator is None:
        raise ValidationError(f"Неподдерживаемый тип ключа: {key_type}")
    key = generator(bits)

    private_pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.OpenSSH,
        serialization.NoEncryption(),
    ).decode()
    public_line = key.public_key().public_bytes(
        serialization.Encoding.OpenSSH,
        serialization.PublicFormat.OpenSSH,
    ).decode()
    if comment:
        public_line = f"{public_line} {comment}"

    pair = KeyPair(private_pem, public_line, fingerprint(public_line))
    logger.debug(f"Сгенерирован ключ {key_type} {pair.fingerprint}")
    return pair


def load_private_key(pem: str) -> paramiko.PKey:
    """Разобрать приватный ключ без пароля.

    Raises:
        paramiko.PasswordRequiredException: ключ защищён паролем
        paramiko.SSHException: ни один тип ключа не подошёл
    """
    for key_class in KEY_CLASSES:
        try:
            return key_class.from_private_key(io.StringIO(pem))
        except paramiko.PasswordRequiredException:
            raise
        except Exception:
            continue
    raise paramiko.SSHException("Не удалось распознать тип ключа или неверный формат")


def validate_private_key(pem: str) -> str:
    """Проверить административный ключ. Возвращает fingerprint, иначе ValidationError"""
    if not pem or not pem.strip():
        raise ValidationError("Ключ не указан")
    try:
        key = load_private_key(pem)
    except paramiko.PasswordRequiredException as e:
        raise ValidationError("Ключ защищён паролем: нужен ключ без пароля") from e
    except paramiko.SSHException as e:
        raise ValidationError(f"Невалидный ключ: {e}") from e
    return fingerprint(f"{key.get_name()} {key.get_base64()}")


def fingerprint(public_key: str) -> str:
    """SHA256-отпечаток строки публичного ключа, как у ssh-keygen -l"""
    parts = public_key.split()
    if len(parts) < 2:
        raise ValueError("Неверный формат публичного ключа")
    digest = hashlib.sha256(base64.b64decode(parts[1])).digest()
    return "SHA256:" + base64.b64encode(digest).decode().rstrip("=")
