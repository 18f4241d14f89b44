"""
Rate limiting for the endpoints anyone can hit: login, invite signup,
review submission, the contact form and admin uploads.
"""
from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from lexpix.config import settings


def get_client_identifier(request: Request) -> str:
    """Client IP, preferring the first X-Forwarded-For hop when behind a proxy."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


limiter = Limiter(
    key_func=get_client_identifier,
    storage_uri="memory://",
    enabled=settings.RATE_LIMIT_ENABLED,
)


RATE_LIMITS = {
    "login": "5/minute",
    "signup": "5/hour",
    "review": "10/hour",
    "contact": "5/hour",
    "upload": "20/hour",
}
