from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional
from datetime import datetime
from app.models.event import EventContentType
from app.schemas.common import UTCDateTime, reject_null


class EventResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    content_type: EventContentType
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    text_overlay: Optional[str] = None
    text_position: str
    text_color: str
    link_url: Optional[str] = None
    start_date: datetime
    end_date: datetime
    is_active: bool
    position: int

    class Config:
        from_attributes = True


class EventCreate(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    content_type: EventContentType = EventContentType.IMAGE
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    text_overlay: Optional[str] = None
    text_position: str = "center"
    text_color: str = Field(default="#ffffff", pattern=r"^#[0-9a-fA-F]{6}$")
    link_url: Optional[str] = None
    start_date: UTCDateTime
    end_date: UTCDateTime
    is_active: bool = True
    position: int = 0

    @model_validator(mode="after")
    def check_event(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date cannot be before start_date")
        if self.content_type == EventContentType.VIDEO and not self.video_url:
            raise ValueError("video_url is required for video events")
        return self


class EventUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    content_type: Optional[EventContentType] = None
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    text_overlay: Optional[str] = None
    text_position: Optional[str] = None
    text_color: Optional[str] = Field(default=None, pattern=r"^#[0-9a-fA-F]{6}$")
    link_url: Optional[str] = None
    start_date: Optional[UTCDateTime] = None
    end_date: Optional[UTCDateTime] = None
    is_active: Optional[bool] = None
    position: Optional[int] = None

    @field_validator(
        "title", "content_type", "text_position", "text_color", "start_date", "end_date", "is_active", "position"
    )
    @classmethod
    def not_null(cls, value):
        return reject_null(value)
