from pydantic import BaseModel
from typing import Optional


class AnonymousSignInResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    user_id: str
    is_anonymous: bool = True


class CurrentUserResponse(BaseModel):
    id: str
    is_anonymous: bool = False
    created_at: Optional[str] = None
