"""Version snapshot Pydantic schemas."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from hitit.models.jam_version import JamVersion
from hitit.schemas.base import CamelModel, PageInfo


class VersionCreate(CamelModel):
    version_name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    tags: List[str] = []
    is_pinned: bool = False


class VersionUpdate(CamelModel):
    """Partial update: only fields present in the body are applied."""
    version_name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    tags: Optional[List[str]] = None
    is_pinned: Optional[bool] = None


class VersionSummary(CamelModel):
    id: int
    jam_id: int
    version_number: int
    version_name: Optional[str] = None
    description: Optional[str] = None
    created_by: int
    created_at: Optional[datetime] = None
    tags: List[str] = []
    is_pinned: bool = False
    clip_count: int = 0
    collaborator_count: int = 0

    @classmethod
    def from_version(cls, version: JamVersion) -> "VersionSummary":
        snapshot = version.snapshot or {}
        return cls(
            id=version.id,
            jam_id=version.jam_id,
            version_number=version.version_number,
            version_name=version.version_name,
            description=version.description,
            created_by=version.created_by,
            created_at=version.created_at,
            tags=list(version.tags or []),
            is_pinned=bool(version.is_pinned),
            clip_count=snapshot.get("clipCount", 0),
            collaborator_count=snapshot.get("collaboratorCount", 0),
        )


class VersionOut(VersionSummary):
    snapshot: Dict[str, Any]

    @classmethod
    def from_version(cls, version: JamVersion) -> "VersionOut":
        summary = VersionSummary.from_version(version)
        return cls(**summary.model_dump(), snapshot=version.snapshot)


class VersionPage(CamelModel):
    versions: List[VersionSummary]
    pagination: PageInfo


class RestoreRequest(CamelModel):
    create_backup: bool = False


class RestoreResult(CamelModel):
    success: bool = True
    message: str
    restored_version: int
    backup_version: Optional[int] = None


class VersionComparison(CamelModel):
    version1: VersionSummary
    version2: VersionSummary
    differences: Dict[str, Any]
