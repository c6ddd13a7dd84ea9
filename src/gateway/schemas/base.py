"""Shared schema base: camelCase on the wire, snake_case in Python."""

from __future__ import annotations

from typing import Literal
from uuid import UUID  # noqa: TC003 -- pydantic resolves field annotations at runtime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts both camelCase and snake_case keys, serialises camelCase.

    from_attributes lets response models be built straight from the
    services' dataclasses.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        extra="ignore",
    )


class PageQuery(CamelModel):
    """limit/offset pagination shared by list endpoints."""

    limit: int = Field(default=20, ge=1, le=100)
    offset: int = Field(default=0, ge=0)


SortOrder = Literal["asc", "desc"]


class IdParams(CamelModel):
    """Path parameters for routes addressed by a UUID id."""

    id: UUID
