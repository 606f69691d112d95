"""Offset pagination helpers shared by every listing endpoint."""

from typing import Dict, Tuple

DEFAULT_LIMIT = 50
MAX_LIMIT = 100


def clamp(limit: int, skip: int) -> Tuple[int, int]:
    """Bound ``limit`` to 1..MAX_LIMIT and ``skip`` to >= 0."""
    limit = DEFAULT_LIMIT if not limit else max(1, min(int(limit), MAX_LIMIT))
    skip = max(0, int(skip or 0))
    return limit, skip


def page_info(total: int, limit: int, skip: int, returned: int) -> Dict[str, object]:
    return {
        "total": total,
        "limit": limit,
        "skip": skip,
        "hasMore": skip + returned < total,
    }
