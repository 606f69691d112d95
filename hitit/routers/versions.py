"""
Versions router — save, browse, compare, restore, edit and delete jam
snapshots.

``/compare`` is declared before ``/{version_number}`` so it is not parsed as
a version number.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hitit.database import get_db
from hitit.models.user import User
from hitit.routers.auth import get_current_user, require_user
from hitit.schemas.base import ActionResult
from hitit.schemas.version import (
    RestoreRequest,
    RestoreResult,
    VersionComparison,
    VersionCreate,
    VersionOut,
    VersionPage,
    VersionSummary,
    VersionUpdate,
)
from hitit.services import versions as version_service
from hitit.utils.pagination import DEFAULT_LIMIT

router = APIRouter(prefix="/api/jams/{jam_id}/versions", tags=["versions"])


def _user_id(user: Optional[User]) -> Optional[int]:
    return user.id if user else None


@router.post("", response_model=VersionOut, status_code=status.HTTP_201_CREATED)
async def create_version(
    jam_id: int,
    payload: Optional[VersionCreate] = None,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    payload = payload or VersionCreate()
    version = await version_service.create_version(
        db,
        jam_id,
        current_user,
        version_name=payload.version_name,
        description=payload.description,
        tags=payload.tags,
        is_pinned=payload.is_pinned,
    )
    return VersionOut.from_version(version)


@router.get("", response_model=VersionPage)
async def list_versions(
    jam_id: int,
    limit: int = Query(DEFAULT_LIMIT),
    skip: int = Query(0),
    current_user: Optional[User] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    versions, info = await version_service.list_versions(
        db, jam_id, _user_id(current_user), limit=limit, skip=skip
    )
    return VersionPage(versions=[VersionSummary.from_version(v) for v in versions], pagination=info)


@router.get("/compare", response_model=VersionComparison)
async def compare_versions(
    jam_id: int,
    v1: Optional[str] = Query(None),
    v2: Optional[str] = Query(None),
    current_user: Optional[User] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await version_service.compare_versions(db, jam_id, v1, v2, _user_id(current_user))
    return VersionComparison(
        version1=VersionSummary.from_version(result["version1"]),
        version2=VersionSummary.from_version(result["version2"]),
        differences=result["differences"],
    )


@router.get("/{version_number}", response_model=VersionOut)
async def get_version(
    jam_id: int,
    version_number: int,
    current_user: Optional[User] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    version = await version_service.get_version(db, jam_id, version_number, _user_id(current_user))
    return VersionOut.from_version(version)


@router.post("/{version_number}/restore", response_model=RestoreResult)
async def restore_version(
    jam_id: int,
    version_number: int,
    payload: Optional[RestoreRequest] = None,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    payload = payload or RestoreRequest()
    version, backup = await version_service.restore_version(
        db, jam_id, version_number, current_user, create_backup=payload.create_backup
    )
    return RestoreResult(
        message=f'Jam restored to version {version_number}: "{version.version_name}"',
        restored_version=version.version_number,
        backup_version=backup.version_number if backup else None,
    )


@router.patch("/{version_number}", response_model=VersionOut)
async def update_version(
    jam_id: int,
    version_number: int,
    payload: VersionUpdate,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    version = await version_service.update_version(
        db, jam_id, version_number, current_user, payload.model_dump(exclude_unset=True)
    )
    return VersionOut.from_version(version)


@router.delete("/{version_number}", response_model=ActionResult)
async def delete_version(
    jam_id: int,
    version_number: int,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    await version_service.delete_version(db, jam_id, version_number, current_user)
    return ActionResult(message=f"Version {version_number} deleted")
