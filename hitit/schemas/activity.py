"""Activity log Pydantic schemas."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from hitit.models.jam_activity import JamActivity
from hitit.models.user import User
from hitit.schemas.base import CamelModel, PageInfo
from hitit.schemas.user import UserBrief


class ActivityOut(CamelModel):
    id: int
    jam_id: int
    user: UserBrief
    action_type: str
    description: str
    metadata: Dict[str, Any] = {}
    target_user_id: Optional[int] = None
    target_clip_id: Optional[int] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, activity: JamActivity, actor: User) -> "ActivityOut":
        return cls(
            id=activity.id,
            jam_id=activity.jam_id,
            user=UserBrief.model_validate(actor),
            action_type=activity.action_type.value,
            description=activity.description,
            metadata=activity.details or {},
            target_user_id=activity.target_user_id,
            target_clip_id=activity.target_clip_id,
            created_at=activity.created_at,
        )


class ActivityPage(CamelModel):
    activities: List[ActivityOut]
    pagination: PageInfo
