from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


ThreadType = Literal["internal", "client"]


class ThreadCreate(BaseModel):
    engagement_id: UUID
    type: ThreadType = "internal"
    subject: str = Field(min_length=1, max_length=255)


class ThreadRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID
    engagement_id: UUID
    type: ThreadType | str
    subject: str
    created_by_id: str
    last_message_at: datetime | None
    created_at: datetime


class MessageCreate(BaseModel):
    content: str = Field(min_length=1)


class MessageRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    thread_id: UUID
    sender_id: str
    sender_name: str | None
    content: str
    created_at: datetime
