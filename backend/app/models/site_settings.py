from sqlmodel import SQLModel, Field, Column, JSON
from typing import Optional
from datetime import datetime


class SiteSettings(SQLModel, table=True):
    """Single-row JSON document edited from the admin settings page"""
    __tablename__ = "site_settings"

    id: Optional[int] = Field(default=None, primary_key=True)
    data: dict = Field(default_factory=dict, sa_column=Column(JSON))

    updated_at: datetime = Field(default_factory=datetime.utcnow)
