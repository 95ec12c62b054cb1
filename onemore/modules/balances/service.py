import logging
from supabase import AsyncClient
from onemore.core.exceptions import StoreError
from onemore.modules.balances.schemas import BalanceRow
from typing import List

logger = logging.getLogger(__name__)


class BalanceService:
    def __init__(self, supabase: AsyncClient):
        self.supabase = supabase

    async def upsert_participant_balances(self, session_id: str, rows: List[BalanceRow]) -> int:
        """Persist computed amounts, one row per participant"""
        if not rows:
            return 0
        payload = [
            {
                "session_id": session_id,
                "participant_id": row.participant_id,
                "amount_cents": row.amount_cents,
            }
            for row in rows
        ]
        try:
            result = await self.supabase.table("participant_balances")\
                .upsert(payload, on_conflict="participant_id")\
                .execute()
        except Exception as e:
            raise StoreError(f"Failed to persist balances: {e}") from e
        logger.debug(f"Persisted {len(payload)} balances for session {session_id}")
        return len(result.data or [])
