from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from onemore.modules.participants.schemas import Participant
from onemore.modules.drink_types.schemas import DrinkType
from onemore.modules.drink_events.schemas import DrinkEvent


class SessionCreate(BaseModel):
    name: str = Field(min_length=1)
    participant_names: List[str] = []


class SessionUpdate(BaseModel):
    name: str = Field(min_length=1)


class JoinRequest(BaseModel):
    invite_code: str
    display_name: str = Field(min_length=1)


class Session(BaseModel):
    id: str
    owner_user_id: str
    name: str
    invite_code: str
    created_at: datetime

    class Config:
        from_attributes = True


class SessionCreatedResponse(Session):
    invite_link: str


class SessionData(BaseModel):
    participants: List[Participant]
    drink_types: List[DrinkType]
    events: List[DrinkEvent]
    invite_code: str
    is_owner: bool
    session_name: str
    current_participant_id: Optional[str] = None
