from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum


class EventContentType(str, Enum):
    IMAGE = "IMAGE"
    VIDEO = "VIDEO"


class Event(SQLModel, table=True):
    """Homepage showcase slide"""
    __tablename__ = "events"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    description: Optional[str] = None

    content_type: EventContentType = Field(default=EventContentType.IMAGE)
    image_url: Optional[str] = None
    video_url: Optional[str] = None

    text_overlay: Optional[str] = None
    text_position: str = Field(default="center")
    text_color: str = Field(default="#ffffff")
    link_url: Optional[str] = None

    start_date: datetime
    end_date: datetime
    is_active: bool = Field(default=True)
    position: int = Field(default=0)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
