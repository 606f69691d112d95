"""Jam version model — a point-in-time snapshot of a jam."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from hitit.database import Base
from hitit.utils.clock import utcnow


class JamVersion(Base):
    __tablename__ = "jam_versions"
    __table_args__ = (
        UniqueConstraint("jam_id", "version_number", name="uq_jam_versions_jam_number"),
        Index("ix_jam_versions_creator_created", "created_by", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    jam_id: Mapped[int] = mapped_column(ForeignKey("jams.id", ondelete="CASCADE"), nullable=False, index=True)
    version_number: Mapped[int] = mapped_column(Integer, nullable=False)
    version_name: Mapped[Optional[str]] = mapped_column(String(100))
    description: Mapped[Optional[str]] = mapped_column(String(500))
    created_by: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    # Deep copy of the jam's mutable fields, see services.versions.build_snapshot
    snapshot: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)

    tags: Mapped[List[str]] = mapped_column(JSON, default=list)  # e.g. ["final", "backup"]
    is_pinned: Mapped[bool] = mapped_column(Boolean, default=False)
