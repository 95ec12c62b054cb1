import logging
from supabase import AsyncClient
from onemore.core.exceptions import NotFoundError, StoreError
from onemore.modules.sessions.schemas import Session, SessionCreate, SessionData, JoinRequest
from onemore.modules.participants.schemas import Participant, ParticipantCreate
from onemore.modules.participants.service import ParticipantService
from onemore.modules.drink_types.service import DrinkTypeService
from onemore.modules.drink_events.service import DrinkEventService
from onemore.utils.invite import generate_invite_code
from typing import List

logger = logging.getLogger(__name__)


class SessionService:
    def __init__(self, supabase: AsyncClient):
        self.supabase = supabase
        self.participants = ParticipantService(supabase)
        self.drink_types = DrinkTypeService(supabase)
        self.drink_events = DrinkEventService(supabase)

    async def create_session(self, session_data: SessionCreate, user_id: str) -> Session:
        """Create a session with its initial participants and the default drink types"""
        try:
            result = await self.supabase.table("sessions").insert({
                "owner_user_id": user_id,
                "name": session_data.name.strip(),
                "invite_code": generate_invite_code(),
            }).execute()
        except Exception as e:
            raise StoreError(f"Failed to create session: {e}") from e
        if not result.data:
            raise StoreError("Failed to create session")

        session = Session(**result.data[0])
        names = [n.strip() for n in session_data.participant_names if n.strip()]
        await self.participants.add_participant_slots(session.id, names)
        await self.drink_types.add_default_drink_types(session.id)
        logger.info(f"Session {session.id} created by {user_id} with {len(names)} participant(s)")
        return session

    async def get_session(self, session_id: str) -> Session:
        try:
            result = await self.supabase.table("sessions")\
                .select("*")\
                .eq("id", session_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise StoreError(f"Failed to load session: {e}") from e
        if not result.data:
            raise NotFoundError("Session not found")
        return Session(**result.data[0])

    async def get_session_by_invite_code(self, invite_code: str) -> Session:
        """Look up a session by its shareable code (case-insensitive)"""
        try:
            result = await self.supabase.table("sessions")\
                .select("*")\
                .eq("invite_code", invite_code.strip().upper())\
                .limit(1)\
                .execute()
        except Exception as e:
            raise StoreError(f"Failed to load session: {e}") from e
        if not result.data:
            raise NotFoundError("Session not found")
        return Session(**result.data[0])

    async def list_sessions(self, user_id: str) -> List[Session]:
        """Sessions the user owns or has claimed a participant in, newest first"""
        try:
            owned = await self.supabase.table("sessions")\
                .select("*")\
                .eq("owner_user_id", user_id)\
                .execute()
            claimed = await self.supabase.table("participants")\
                .select("session_id")\
                .eq("claimed_by_user_id", user_id)\
                .execute()
            sessions = {s["id"]: s for s in owned.data or []}
            joined_ids = [p["session_id"] for p in claimed.data or [] if p["session_id"] not in sessions]
            if joined_ids:
                joined = await self.supabase.table("sessions")\
                    .select("*")\
                    .in_("id", joined_ids)\
                    .execute()
                sessions.update({s["id"]: s for s in joined.data or []})
        except Exception as e:
            raise StoreError(f"Failed to list sessions: {e}") from e
        return sorted(
            (Session(**s) for s in sessions.values()),
            key=lambda s: s.created_at,
            reverse=True
        )

    async def load_session_data(self, session_id: str, user_id: str) -> SessionData:
        """Everything a session screen needs in one call"""
        session = await self.get_session(session_id)
        participants = await self.participants.list_participants(session_id)
        drink_types = await self.drink_types.list_drink_types(session_id)
        events = await self.drink_events.list_events(session_id)
        current = next((p for p in participants if p.claimed_by_user_id == user_id), None)
        return SessionData(
            participants=participants,
            drink_types=drink_types,
            events=events,
            invite_code=session.invite_code,
            is_owner=session.owner_user_id == user_id,
            session_name=session.name,
            current_participant_id=current.id if current else None,
        )

    async def rename_session(self, session_id: str, name: str) -> Session:
        try:
            result = await self.supabase.table("sessions")\
                .update({"name": name.strip()})\
                .eq("id", session_id)\
                .execute()
        except Exception as e:
            raise StoreError(f"Failed to rename session: {e}") from e
        if not result.data:
            raise NotFoundError("Session not found")
        return Session(**result.data[0])

    async def delete_session(self, session_id: str) -> bool:
        """Delete a session and everything that belongs to it"""
        try:
            for table in ("drink_events", "participant_balances", "drink_types", "participants"):
                await self.supabase.table(table)\
                    .delete()\
                    .eq("session_id", session_id)\
                    .execute()
            result = await self.supabase.table("sessions")\
                .delete()\
                .eq("id", session_id)\
                .execute()
        except Exception as e:
            raise StoreError(f"Failed to delete session: {e}") from e
        deleted = len(result.data or []) > 0
        if deleted:
            logger.info(f"Session {session_id} deleted")
        return deleted

    async def join_session(self, join_data: JoinRequest, user_id: str) -> Participant:
        """Join by invite code: adds a participant slot already claimed by the joining user.

        A user who already holds a slot in the session gets that slot back.
        """
        session = await self.get_session_by_invite_code(join_data.invite_code)
        existing = await self.participants.get_claimed_participant(session.id, user_id)
        if existing:
            return existing
        participants = await self.participants.list_participants(session.id)
        return await self.participants.add_participant_slot(
            session.id,
            ParticipantCreate(
                display_name=join_data.display_name.strip(),
                color_index=len(participants),
            ),
            claimed_by_user_id=user_id,
        )
