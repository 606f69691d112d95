"""
Authentication router — JWT cookie identity.

The collaboration API does not run its own sign-in flow: a signed JWT in the
``access_token`` cookie identifies the caller. Outside production the app
also mounts ``/mock-login/{user_id}`` (see ``hitit.main``) to mint one.

Endpoints:
    GET  /auth/logout  → clear JWT cookie
"""

from typing import Optional

from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hitit.config import settings
from hitit.database import get_db
from hitit.errors import UnauthorizedError
from hitit.models.user import User

router = APIRouter(prefix="/auth", tags=["auth"])

COOKIE_KEY = "access_token"


# ═══════════════════════════════════════════════════════════════
#  Helpers
# ═══════════════════════════════════════════════════════════════

def create_access_token(data: dict) -> str:
    """Create a signed JWT with an expiry claim."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def _set_auth_cookie(response: Response, user_id: int) -> Response:
    """Attach the JWT cookie to a response."""
    token = create_access_token({"sub": str(user_id)})
    response.set_cookie(
        key=COOKIE_KEY,
        value=token,
        httponly=True,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        samesite="lax",
    )
    return response


def decode_user_id(token: Optional[str]) -> Optional[int]:
    """Return the user id inside a valid token, else None."""
    if not token:
        return None
    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM]
        )
        user_id: int = int(payload.get("sub", 0))
    except (JWTError, ValueError):
        return None
    return user_id or None


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """
    Extract the JWT from the cookie, decode it, and return the User.
    Returns None when no valid token is present (allows public reads).
    """
    user_id = decode_user_id(request.cookies.get(COOKIE_KEY))
    if not user_id:
        return None

    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def require_user(current_user: Optional[User] = Depends(get_current_user)) -> User:
    """Like ``get_current_user`` but rejects anonymous callers with 401."""
    if not current_user:
        raise UnauthorizedError("Please log in to continue")
    return current_user


# ═══════════════════════════════════════════════════════════════
#  Logout
# ═══════════════════════════════════════════════════════════════

@router.get("/logout")
async def logout():
    """Clear the auth cookie."""
    response = JSONResponse({"success": True, "message": "Logged out successfully"})
    response.delete_cookie(COOKIE_KEY)
    return response
