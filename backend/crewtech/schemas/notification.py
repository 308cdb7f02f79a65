# backend/crewtech/schemas/notification.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class NotificationOut(BaseModel):
    id: str
    recipient: str
    level: str
    category: str
    title: str
    message: str
    mission_id: Optional[str] = None
    metadata: dict = Field(default_factory=dict, validation_alias="meta")
    read: bool
    read_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
