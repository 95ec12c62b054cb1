from fastapi import APIRouter, Depends
from onemore.database.supabase_client import get_supabase
from onemore.modules.sessions.schemas import (
    Session, SessionCreate, SessionUpdate, SessionCreatedResponse, SessionData, JoinRequest
)
from onemore.modules.sessions.service import SessionService
from onemore.modules.participants.schemas import Participant
from onemore.core.dependencies import get_current_user, check_session_owner, check_session_member
from onemore.utils.invite import get_invite_link, build_share_message
from supabase import AsyncClient
from typing import Dict, List

router = APIRouter(prefix="/sessions", tags=["sessions"])


def get_session_service(supabase: AsyncClient = Depends(get_supabase)) -> SessionService:
    return SessionService(supabase)


@router.post("", response_model=SessionCreatedResponse, status_code=201)
async def create_session(
    session_data: SessionCreate,
    current_user: Dict = Depends(get_current_user),
    service: SessionService = Depends(get_session_service)
):
    """Create a session owned by the caller, with default drink types"""
    session = await service.create_session(session_data, current_user["id"])
    return SessionCreatedResponse(**session.model_dump(), invite_link=get_invite_link(session.invite_code))


@router.get("", response_model=List[Session])
async def list_sessions(
    current_user: Dict = Depends(get_current_user),
    service: SessionService = Depends(get_session_service)
):
    """Sessions the caller owns or has joined, newest first"""
    return await service.list_sessions(current_user["id"])


@router.get("/by-code/{invite_code}", response_model=Session)
async def get_session_by_invite_code(
    invite_code: str,
    current_user: Dict = Depends(get_current_user),
    service: SessionService = Depends(get_session_service)
):
    """Resolve an invite code before joining"""
    return await service.get_session_by_invite_code(invite_code)


@router.post("/join", response_model=Participant, status_code=201)
async def join_session(
    join_data: JoinRequest,
    current_user: Dict = Depends(get_current_user),
    service: SessionService = Depends(get_session_service)
):
    """Join by invite code with a display name"""
    return await service.join_session(join_data, current_user["id"])


@router.get("/{session_id}", response_model=SessionData)
async def get_session_data(
    session_id: str,
    current_user: Dict = Depends(get_current_user),
    service: SessionService = Depends(get_session_service),
    supabase: AsyncClient = Depends(get_supabase)
):
    """Participants, drink types and the drink ledger of a session"""
    await check_session_member(session_id, current_user, supabase)
    return await service.load_session_data(session_id, current_user["id"])


@router.get("/{session_id}/invite")
async def get_invite(
    session_id: str,
    current_user: Dict = Depends(get_current_user),
    service: SessionService = Depends(get_session_service),
    supabase: AsyncClient = Depends(get_supabase)
):
    session = await check_session_member(session_id, current_user, supabase)
    return {
        "invite_code": session.invite_code,
        "invite_link": get_invite_link(session.invite_code),
        "share_message": build_share_message(session.invite_code),
    }


@router.put("/{session_id}", response_model=Session)
async def rename_session(
    session_id: str,
    session_data: SessionUpdate,
    current_user: Dict = Depends(get_current_user),
    service: SessionService = Depends(get_session_service),
    supabase: AsyncClient = Depends(get_supabase)
):
    """Rename (owner only)"""
    await check_session_owner(session_id, current_user, supabase)
    return await service.rename_session(session_id, session_data.name)


@router.delete("/{session_id}", status_code=204)
async def delete_session(
    session_id: str,
    current_user: Dict = Depends(get_current_user),
    service: SessionService = Depends(get_session_service),
    supabase: AsyncClient = Depends(get_supabase)
):
    """Delete the session and all its data (owner only)"""
    await check_session_owner(session_id, current_user, supabase)
    await service.delete_session(session_id)
    return None
