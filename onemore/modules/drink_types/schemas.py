from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import datetime

DrinkCategory = Literal["beer", "soft", "cocktail"]


class DrinkTypeCreate(BaseModel):
    name: str = Field(min_length=1)
    emoji: str = "🍺"
    category: DrinkCategory = "beer"
    price_cents: int = Field(default=300, ge=0)
    sort_order: Optional[int] = None  # defaults to max(sort_order) + 1


class DrinkTypeUpdate(BaseModel):
    name: Optional[str] = None
    emoji: Optional[str] = None
    category: Optional[DrinkCategory] = None
    price_cents: Optional[int] = Field(default=None, ge=0)


class DrinkTypeReorder(BaseModel):
    direction: Literal["up", "down"]


class DrinkType(BaseModel):
    id: str
    session_id: str
    name: str
    category: DrinkCategory
    price_cents: int
    emoji: str
    sort_order: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


DEFAULT_DRINK_TYPES = [
    {"name": "Cerveza", "category": "beer", "price_cents": 300, "emoji": "🍺", "sort_order": 0},
    {"name": "Refresco", "category": "soft", "price_cents": 250, "emoji": "🥤", "sort_order": 1},
    {"name": "Copa", "category": "cocktail", "price_cents": 800, "emoji": "🍸", "sort_order": 2},
]
