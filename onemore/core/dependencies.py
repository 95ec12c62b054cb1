"""
Core dependencies for route protection and ownership checks
"""

from fastapi import Depends, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from onemore.core.exceptions import PermissionDeniedError
from onemore.database.supabase_client import get_supabase
from onemore.modules.auth.service import AuthService
from onemore.modules.drink_types.schemas import DrinkType
from onemore.modules.drink_types.service import DrinkTypeService
from onemore.modules.participants.schemas import Participant
from onemore.modules.participants.service import ParticipantService
from onemore.modules.sessions.schemas import Session
from onemore.modules.sessions.service import SessionService
from supabase import AsyncClient
from typing import Dict
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()


def get_auth_service(supabase: AsyncClient = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    token = credentials.credentials
    return await auth_service.get_current_user(token)


async def check_session_owner(session_id: str, user_data: dict, supabase: AsyncClient) -> Session:
    """Return the session if the user owns it"""
    session = await SessionService(supabase).get_session(session_id)
    if session.owner_user_id != user_data["id"]:
        logger.info(f"User {user_data['id']} denied owner action on session {session_id}")
        raise PermissionDeniedError("Only the session owner can perform this action")
    return session


async def check_session_member(session_id: str, user_data: dict, supabase: AsyncClient) -> Session:
    """Owner, or a user who claimed a participant in the session"""
    session = await SessionService(supabase).get_session(session_id)
    if session.owner_user_id == user_data["id"]:
        return session
    claimed = await ParticipantService(supabase).get_claimed_participant(session_id, user_data["id"])
    if claimed is None:
        raise PermissionDeniedError("You must join this session first")
    return session


async def check_participant_editor(
    session_id: str,
    participant_id: str,
    user_data: dict,
    supabase: AsyncClient
) -> Dict:
    """Owner may edit any participant; others only the one they claimed"""
    session = await SessionService(supabase).get_session(session_id)
    if session.owner_user_id == user_data["id"]:
        return user_data
    participant = await ParticipantService(supabase).get_participant(session_id, participant_id)
    if participant.claimed_by_user_id != user_data["id"]:
        raise PermissionDeniedError("You can only edit your own participant")
    return user_data


async def check_can_target_participant(
    session_id: str,
    participant_id: str,
    user_data: dict,
    supabase: AsyncClient
) -> Participant:
    """Owner can count drinks for anyone in the session. A member only for the slot they claimed."""
    session = await check_session_member(session_id, user_data, supabase)
    participant = await ParticipantService(supabase).get_participant(session_id, participant_id)
    if session.owner_user_id != user_data["id"] and participant.claimed_by_user_id != user_data["id"]:
        raise PermissionDeniedError("You can only change your own drinks")
    return participant


async def check_drink_type_in_session(session_id: str, drink_type_id: str, supabase: AsyncClient) -> DrinkType:
    return await DrinkTypeService(supabase).get_drink_type(session_id, drink_type_id)
