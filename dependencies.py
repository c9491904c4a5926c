"""FastAPI dependencies: store access, authentication and role checks."""
from fastapi import Depends, Request

from errors import ForbiddenError, UnauthorizedError
from services import auth_service, user_service


def get_db(request: Request):
    return request.app.state.db


def get_payments(request: Request):
    return request.app.state.payments


def _bearer_token(request: Request) -> str | None:
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None
    return header[len("Bearer "):].strip() or None


async def authenticate(request: Request) -> dict:
    """Claims of the caller's bearer token: userId, email and role."""
    token = _bearer_token(request)
    if not token:
        raise UnauthorizedError("Access token required")
    return auth_service.verify_token(token)


async def optional_authenticate(request: Request) -> dict | None:
    token = _bearer_token(request)
    if not token:
        return None
    try:
        return auth_service.verify_token(token)
    except UnauthorizedError:
        return None


def _current_user(db, claims: dict) -> dict:
    user = user_service.get_user(db, claims["userId"])
    if not user:
        raise UnauthorizedError("User not found")
    if not user.get("isActive", True):
        raise ForbiddenError("Account is deactivated")
    return user


def require_roles(*roles: str):
    """Dependency loading the caller's user document and checking its current role."""
    async def dependency(claims: dict = Depends(authenticate), db=Depends(get_db)) -> dict:
        user = _current_user(db, claims)
        if user.get("role") not in roles:
            raise ForbiddenError("Insufficient permissions")
        return user
    return dependency


async def current_user(claims: dict = Depends(authenticate), db=Depends(get_db)) -> dict:
    return _current_user(db, claims)


require_driver = require_roles("driver")
require_admin = require_roles("admin")


async def require_active_driver(claims: dict = Depends(authenticate), db=Depends(get_db)) -> dict:
    user = _current_user(db, claims)
    if user.get("role") != "driver":
        raise ForbiddenError("Driver role required")
    if not user.get("isVerified"):
        raise ForbiddenError("Driver verification required")
    if not user.get("documentsVerified"):
        raise ForbiddenError("Driver documents verification required")
    return user
