"""Authentication for the Scheduled Research API."""
from .dependencies import bearer_scheme, get_current_user
from .jwt import TokenData, create_access_token, verify_token

__all__ = [
    "TokenData",
    "bearer_scheme",
    "create_access_token",
    "get_current_user",
    "verify_token",
]
