# ============================================================================
# dependencies.py - Auth Gate & Shared Dependencies
# ============================================================================
"""Request authentication expressed as FastAPI dependencies.

`get_current_user` validates the token, loads the account and rejects
inactive or blocked users; `require_role` layers the role check on top.
Routers compose these instead of checking tokens themselves.
"""

import logging
from typing import Optional, Tuple

import jwt
from fastapi import Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from fashionx.core.database import get_db
from fashionx.core.errors import (
    AccountBlocked,
    AccountDeactivated,
    AppError,
    Forbidden,
    InvalidToken,
    TokenExpired,
    Unauthenticated,
    UserNotFound,
)
from fashionx.core.security import decode_access_token
from fashionx.models.user import User, UserRole
from fashionx.services.auth import set_token_cookie
from fashionx.services.workflow import WorkflowBackend

logger = logging.getLogger(__name__)

TOKEN_COOKIE = "token"


def _token_from_raw_cookie(header: Optional[str]) -> Optional[str]:
    if not header:
        return None
    for part in header.split(";"):
        name, _, value = part.strip().partition("=")
        if name == TOKEN_COOKIE and value:
            return value
    return None


def extract_token(request: Request) -> Tuple[Optional[str], Optional[str]]:
    """Return (token, source); the cookie wins over the Authorization header"""
    token = request.cookies.get(TOKEN_COOKIE)
    if token:
        return token, "cookie"

    authorization = request.headers.get("authorization", "")
    if authorization.startswith("Bearer "):
        token = authorization[len("Bearer "):].strip()
        if token:
            return token, "header"

    token = _token_from_raw_cookie(request.headers.get("cookie"))
    if token:
        return token, "raw-cookie"
    return None, None


async def _authenticate(token: Optional[str], db: AsyncSession) -> User:
    if not token:
        raise Unauthenticated()

    try:
        payload = decode_access_token(token)
    except jwt.ExpiredSignatureError:
        raise TokenExpired()
    except jwt.PyJWTError as e:
        logger.warning(f"JWT verification failed: {e}")
        raise InvalidToken()

    # Older tokens carry the subject as `userId`
    user_id = payload.get("id") or payload.get("userId")
    if not user_id:
        raise InvalidToken()

    user = await db.get(User, str(user_id))
    if not user:
        raise UserNotFound()
    if not user.is_active:
        raise AccountDeactivated()
    if user.is_blocked:
        raise AccountBlocked()
    return user


async def get_current_user(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> User:
    token, source = extract_token(request)
    user = await _authenticate(token, db)

    if source == "header":
        set_token_cookie(response, token)
    return user


async def get_optional_user(request: Request, db: AsyncSession = Depends(get_db)) -> Optional[User]:
    token, _ = extract_token(request)
    if not token:
        return None
    try:
        return await _authenticate(token, db)
    except AppError:
        return None


def require_role(*roles: UserRole):
    async def checker(user: User = Depends(get_current_user)) -> User:
        if not user.has_role(*roles):
            logger.warning(f"User {user.id} with role {user.role} denied; requires {[r.value for r in roles]}")
            raise Forbidden("Access denied. Insufficient permissions.")
        return user

    return checker


get_admin_user = require_role(UserRole.ADMIN)


def get_workflow_backend() -> WorkflowBackend:
    return WorkflowBackend()
