from fastapi import APIRouter, Depends
from onemore.database.supabase_client import get_supabase
from onemore.modules.participants.schemas import Participant, ParticipantCreate, ParticipantUpdate
from onemore.modules.participants.service import ParticipantService
from onemore.core.dependencies import (
    get_current_user, check_session_owner, check_session_member, check_participant_editor
)
from supabase import AsyncClient
from typing import Dict, List

router = APIRouter(prefix="/sessions/{session_id}/participants", tags=["participants"])


def get_participant_service(supabase: AsyncClient = Depends(get_supabase)) -> ParticipantService:
    return ParticipantService(supabase)


@router.get("", response_model=List[Participant])
async def list_participants(
    session_id: str,
    current_user: Dict = Depends(get_current_user),
    service: ParticipantService = Depends(get_participant_service),
    supabase: AsyncClient = Depends(get_supabase)
):
    await check_session_member(session_id, current_user, supabase)
    return await service.list_participants(session_id)


@router.post("", response_model=Participant, status_code=201)
async def add_participant(
    session_id: str,
    participant_data: ParticipantCreate,
    current_user: Dict = Depends(get_current_user),
    service: ParticipantService = Depends(get_participant_service),
    supabase: AsyncClient = Depends(get_supabase)
):
    """Add an unclaimed participant slot (owner only)"""
    await check_session_owner(session_id, current_user, supabase)
    return await service.add_participant_slot(session_id, participant_data)


@router.put("/{participant_id}", response_model=Participant)
async def update_participant(
    session_id: str,
    participant_id: str,
    participant_data: ParticipantUpdate,
    current_user: Dict = Depends(get_current_user),
    service: ParticipantService = Depends(get_participant_service),
    supabase: AsyncClient = Depends(get_supabase)
):
    """Rename or recolor (owner, or the user who claimed the slot)"""
    await check_participant_editor(session_id, participant_id, current_user, supabase)
    return await service.update_participant(session_id, participant_id, participant_data)


@router.delete("/{participant_id}", status_code=204)
async def remove_participant(
    session_id: str,
    participant_id: str,
    current_user: Dict = Depends(get_current_user),
    service: ParticipantService = Depends(get_participant_service),
    supabase: AsyncClient = Depends(get_supabase)
):
    """Delete the participant row (owner only); their drink events go with it via the database cascade"""
    await check_session_owner(session_id, current_user, supabase)
    await service.remove_participant_slot(session_id, participant_id)
    return None


@router.post("/{participant_id}/claim", response_model=Participant)
async def claim_participant(
    session_id: str,
    participant_id: str,
    current_user: Dict = Depends(get_current_user),
    service: ParticipantService = Depends(get_participant_service)
):
    """Claim an unclaimed slot; 409 when someone else already did"""
    await service.get_participant(session_id, participant_id)
    return await service.claim_participant(participant_id, current_user["id"])
