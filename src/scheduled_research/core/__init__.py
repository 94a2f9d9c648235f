"""Core modules for Scheduled Research."""
from .auth import get_oauth_credentials
from .config import settings
from .rate_limiter import RateLimiter

__all__ = [
    "get_oauth_credentials",
    "RateLimiter",
    "settings",
]
