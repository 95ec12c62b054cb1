import logging
from supabase import AsyncClient
from onemore.core.exceptions import (
    NotFoundError, ParticipantAlreadyClaimedError, StoreError
)
from onemore.modules.participants.schemas import Participant, ParticipantCreate, ParticipantUpdate
from typing import List, Optional

logger = logging.getLogger(__name__)


class ParticipantService:
    def __init__(self, supabase: AsyncClient):
        self.supabase = supabase

    async def list_participants(self, session_id: str) -> List[Participant]:
        """Participants of a session in creation order"""
        try:
            result = await self.supabase.table("participants")\
                .select("*")\
                .eq("session_id", session_id)\
                .order("created_at")\
                .execute()
            return [Participant(**p) for p in result.data or []]
        except Exception as e:
            raise StoreError(f"Failed to load participants: {e}") from e

    async def get_participant(self, session_id: str, participant_id: str) -> Participant:
        try:
            result = await self.supabase.table("participants")\
                .select("*")\
                .eq("id", participant_id)\
                .eq("session_id", session_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise StoreError(f"Failed to load participant: {e}") from e
        if not result.data:
            raise NotFoundError("Participant not found")
        return Participant(**result.data[0])

    async def get_claimed_participant(self, session_id: str, user_id: str) -> Optional[Participant]:
        """The participant slot this user claimed in the session, if any"""
        try:
            result = await self.supabase.table("participants")\
                .select("*")\
                .eq("session_id", session_id)\
                .eq("claimed_by_user_id", user_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise StoreError(f"Failed to load participant: {e}") from e
        return Participant(**result.data[0]) if result.data else None

    async def add_participant_slot(
        self,
        session_id: str,
        participant_data: ParticipantCreate,
        claimed_by_user_id: Optional[str] = None
    ) -> Participant:
        """Insert one participant slot. color_index is only sent when given."""
        insert_data = {
            "session_id": session_id,
            "display_name": participant_data.display_name,
            "claimed_by_user_id": claimed_by_user_id,
        }
        if participant_data.color_index is not None:
            insert_data["color_index"] = participant_data.color_index
        try:
            result = await self.supabase.table("participants").insert(insert_data).execute()
        except Exception as e:
            raise StoreError(f"Failed to add participant: {e}") from e
        if not result.data:
            raise StoreError("Failed to add participant")
        return Participant(**result.data[0])

    async def add_participant_slots(self, session_id: str, names: List[str]) -> List[Participant]:
        """Bulk insert; color_index follows list position"""
        if not names:
            return []
        rows = [
            {
                "session_id": session_id,
                "display_name": name,
                "claimed_by_user_id": None,
                "color_index": index,
            }
            for index, name in enumerate(names)
        ]
        try:
            result = await self.supabase.table("participants").insert(rows).execute()
        except Exception as e:
            raise StoreError(f"Failed to add participants: {e}") from e
        return [Participant(**p) for p in result.data or []]

    async def remove_participant_slot(self, session_id: str, participant_id: str) -> bool:
        try:
            result = await self.supabase.table("participants")\
                .delete()\
                .eq("id", participant_id)\
                .eq("session_id", session_id)\
                .execute()
            return len(result.data or []) > 0
        except Exception as e:
            raise StoreError(f"Failed to remove participant: {e}") from e

    async def update_participant(
        self,
        session_id: str,
        participant_id: str,
        participant_data: ParticipantUpdate
    ) -> Participant:
        update_data = participant_data.model_dump(exclude_none=True)
        if "display_name" in update_data:
            update_data["display_name"] = update_data["display_name"].strip()
            if not update_data["display_name"]:
                del update_data["display_name"]
        if not update_data:
            return await self.get_participant(session_id, participant_id)
        try:
            result = await self.supabase.table("participants")\
                .update(update_data)\
                .eq("id", participant_id)\
                .eq("session_id", session_id)\
                .execute()
        except Exception as e:
            raise StoreError(f"Failed to update participant: {e}") from e
        if not result.data:
            raise NotFoundError("Participant not found")
        return Participant(**result.data[0])

    async def claim_participant(self, participant_id: str, user_id: str) -> Participant:
        """Atomically claim a slot: the update only matches while claimed_by_user_id is null."""
        try:
            result = await self.supabase.table("participants")\
                .update({"claimed_by_user_id": user_id})\
                .eq("id", participant_id)\
                .is_("claimed_by_user_id", "null")\
                .execute()
        except Exception as e:
            raise StoreError(f"Failed to claim participant: {e}") from e

        if result.data:
            logger.info(f"User {user_id} claimed participant {participant_id}")
            return Participant(**result.data[0])

        # Nothing changed: either the slot is gone or someone else got there first
        try:
            existing = await self.supabase.table("participants")\
                .select("id")\
                .eq("id", participant_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise StoreError(f"Failed to claim participant: {e}") from e
        if not existing.data:
            raise NotFoundError("Participant not found")
        logger.info(f"Claim of participant {participant_id} by {user_id} lost the race")
        raise ParticipantAlreadyClaimedError()
