"""Thread and space request/response schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import Field

from harvous.schemas.common import ApiModel


class ThreadCreate(ApiModel):
    title: str = Field(min_length=1, max_length=500)
    subtitle: Optional[str] = Field(default=None, max_length=500)
    color: Optional[str] = Field(default=None, max_length=50)
    space_id: Optional[uuid.UUID] = None
    is_public: bool = False


class ThreadUpdate(ApiModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=500)
    subtitle: Optional[str] = Field(default=None, max_length=500)
    color: Optional[str] = Field(default=None, max_length=50)
    space_id: Optional[uuid.UUID] = None
    is_public: Optional[bool] = None


class ThreadResponse(ApiModel):
    id: uuid.UUID
    title: str
    subtitle: Optional[str] = None
    color: str
    space_id: Optional[uuid.UUID] = None
    is_pinned: bool = False
    is_public: bool = False
    note_count: int = 0
    created_at: datetime
    updated_at: Optional[datetime] = None


class SpaceCreate(ApiModel):
    title: str = Field(min_length=1, max_length=500)
    description: Optional[str] = None
    color: Optional[str] = Field(default=None, max_length=50)


class SpaceUpdate(ApiModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=500)
    description: Optional[str] = None
    color: Optional[str] = Field(default=None, max_length=50)
    is_active: Optional[bool] = None


class SpaceResponse(ApiModel):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    color: str
    is_active: bool = True
    created_at: datetime
    updated_at: Optional[datetime] = None
