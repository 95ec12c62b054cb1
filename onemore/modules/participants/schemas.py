from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class ParticipantCreate(BaseModel):
    display_name: str = Field(min_length=1)
    color_index: Optional[int] = Field(default=None, ge=0)


class ParticipantUpdate(BaseModel):
    display_name: Optional[str] = None
    color_index: Optional[int] = Field(default=None, ge=0)


class Participant(BaseModel):
    id: str
    session_id: str
    display_name: str
    claimed_by_user_id: Optional[str] = None
    color_index: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True
