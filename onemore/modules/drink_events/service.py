import logging
from collections import defaultdict
from supabase import AsyncClient
from onemore.core.exceptions import InvalidOperationError, StoreError
from onemore.modules.drink_events.schemas import DrinkEvent
from typing import Dict, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)


def drink_count(events: Iterable[DrinkEvent], participant_id: str, drink_type_id: Optional[str] = None) -> int:
    """Sum of deltas targeting a participant, optionally for one drink type"""
    return sum(
        e.delta for e in events
        if e.target_participant_id == participant_id
        and (drink_type_id is None or e.drink_type_id == drink_type_id)
    )


def count_matrix(events: Iterable[DrinkEvent]) -> Dict[Tuple[str, str], int]:
    """(participant_id, drink_type_id) -> count"""
    counts: Dict[Tuple[str, str], int] = defaultdict(int)
    for e in events:
        counts[(e.target_participant_id, e.drink_type_id)] += e.delta
    return dict(counts)


class DrinkEventService:
    def __init__(self, supabase: AsyncClient):
        self.supabase = supabase

    async def list_events(self, session_id: str) -> List[DrinkEvent]:
        """Ledger for a session, newest first"""
        try:
            result = await self.supabase.table("drink_events")\
                .select("*")\
                .eq("session_id", session_id)\
                .order("created_at", desc=True)\
                .execute()
            return [DrinkEvent(**e) for e in result.data or []]
        except Exception as e:
            raise StoreError(f"Failed to load drink events: {e}") from e

    async def add_drink_event(
        self,
        session_id: str,
        participant_id: str,
        drink_type_id: str,
        delta: int,
        actor_user_id: str
    ) -> DrinkEvent:
        """Append one +1/-1 entry to the ledger"""
        if delta not in (1, -1):
            raise InvalidOperationError("delta must be 1 or -1")
        try:
            result = await self.supabase.table("drink_events").insert({
                "session_id": session_id,
                "actor_user_id": actor_user_id,
                "target_participant_id": participant_id,
                "drink_type_id": drink_type_id,
                "delta": delta,
            }).execute()
        except Exception as e:
            raise StoreError(f"Failed to add drink event: {e}") from e
        if not result.data:
            raise StoreError("Failed to add drink event")
        return DrinkEvent(**result.data[0])
