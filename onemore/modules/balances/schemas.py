from pydantic import BaseModel
from typing import List


class BalanceRow(BaseModel):
    participant_id: str
    display_name: str
    drinks: int
    amount_cents: int
    amount_display: str


class BalancesResponse(BaseModel):
    session_id: str
    rows: List[BalanceRow]
    total_cents: int
    total_display: str
