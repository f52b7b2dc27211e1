from .utils import authenticate, create_access_token, find_user, hash_password, load_users, verify_password
from .dependencies import get_current_user, require_admin_or_operator, oauth2_scheme

__all__ = [
    "authenticate",
    "create_access_token",
    "find_user",
    "hash_password",
    "load_users",
    "verify_password",
    "get_current_user",
    "require_admin_or_operator",
    "oauth2_scheme",
]
