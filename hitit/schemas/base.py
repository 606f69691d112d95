"""Shared Pydantic base with camelCase wire-format serialization."""

from pydantic import BaseModel, ConfigDict


def to_camel(name: str) -> str:
    """Convert snake_case to camelCase for JSON serialization."""
    parts = name.split("_")
    return parts[0] + "".join(w.capitalize() for w in parts[1:])


class CamelModel(BaseModel):
    """Base model that serializes to camelCase on the wire.

    - Python code uses snake_case field names
    - JSON on the wire uses camelCase
    - ORM objects can be returned directly (``from_attributes``)
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PageInfo(CamelModel):
    total: int
    limit: int
    skip: int
    has_more: bool


class ActionResult(CamelModel):
    success: bool = True
    message: str
