from .base import Storage, InMemoryStorage
from . import local_db

__all__ = ["Storage", "InMemoryStorage", "local_db"]
