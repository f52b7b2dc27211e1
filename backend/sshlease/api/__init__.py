from .auth import router as auth_router
from .keys import router as keys_router
from .creds import router as creds_router
from .leases import router as leases_router
from .config import router as config_router
from .health import router as health_router

__all__ = [
    "auth_router", "keys_router", "creds_router",
    "leases_router", "config_router", "health_router",
]
