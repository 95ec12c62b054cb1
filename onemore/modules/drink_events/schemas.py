from pydantic import BaseModel
from typing import Literal, Optional
from datetime import datetime

Delta = Literal[1, -1]


class DrinkEventCreate(BaseModel):
    participant_id: str
    drink_type_id: str
    delta: Delta = 1


class DrinkEvent(BaseModel):
    id: str
    session_id: str
    actor_user_id: str
    target_participant_id: str
    drink_type_id: str
    delta: Delta
    created_at: datetime

    class Config:
        from_attributes = True


class DrinkCount(BaseModel):
    participant_id: str
    drink_type_id: Optional[str] = None
    count: int
