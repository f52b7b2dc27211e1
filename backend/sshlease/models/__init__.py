from .host_key import HostKey, HostKeyWrite, HostKeyResponse
from .secret import (
    SSHKeyType,
    LeaseOptions,
    Secret,
    DynamicKeyInternalData,
    DynamicKeyRequest,
)
from .lease import LeaseConfig, LeaseConfigUpdate, LeaseState, LeaseEntry, RenewRequest, LeaseResponse
from .user import User, UserRole

__all__ = [
    "HostKey", "HostKeyWrite", "HostKeyResponse",
    "SSHKeyType", "LeaseOptions", "Secret", "DynamicKeyInternalData", "DynamicKeyRequest",
    "LeaseConfig", "LeaseConfigUpdate", "LeaseState", "LeaseEntry", "RenewRequest", "LeaseResponse",
    "User", "UserRole",
]
