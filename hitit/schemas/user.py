"""User Pydantic schemas — profile output."""

from datetime import datetime
from typing import Optional

from hitit.schemas.base import CamelModel


class UserBrief(CamelModel):
    """Who did something: embedded in activity entries."""
    id: int
    user_name: str
    avatar_url: Optional[str] = None


class UserOut(CamelModel):
    """Public user representation returned by the API."""
    id: int
    user_name: str
    email: str
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None
