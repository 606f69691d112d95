"""Users router – profile reads."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hitit.database import get_db
from hitit.models.user import User
from hitit.routers.auth import require_user
from hitit.schemas.user import UserOut
from hitit.services.lookups import get_user_or_404

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserOut)
async def read_me(current_user: User = Depends(require_user)):
    """Return the authenticated user's profile."""
    return current_user


@router.get("/{user_id}", response_model=UserOut)
async def read_user(user_id: int, db: AsyncSession = Depends(get_db)):
    """Get a public user profile by ID."""
    return await get_user_or_404(db, user_id)
