from fastapi import Request, status
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from config import settings
from responses import envelope

# Per-IP limit; the limit string is read on every check so it follows settings.
limiter = Limiter(key_func=get_remote_address, default_limits=[lambda: settings.RATE_LIMIT])


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=envelope(message="Too many requests from this IP, please try again later.", success=False),
    )
