from fastapi import APIRouter, Depends
from onemore.database.supabase_client import get_supabase
from onemore.modules.drink_events.schemas import DrinkEvent, DrinkEventCreate, DrinkCount
from onemore.modules.drink_events.service import DrinkEventService, count_matrix
from onemore.core.dependencies import (
    get_current_user, check_session_member, check_can_target_participant, check_drink_type_in_session
)
from supabase import AsyncClient
from typing import Dict, List

router = APIRouter(prefix="/sessions/{session_id}", tags=["drink-events"])


def get_drink_event_service(supabase: AsyncClient = Depends(get_supabase)) -> DrinkEventService:
    return DrinkEventService(supabase)


@router.post("/events", response_model=DrinkEvent, status_code=201)
async def add_drink_event(
    session_id: str,
    event_data: DrinkEventCreate,
    current_user: Dict = Depends(get_current_user),
    service: DrinkEventService = Depends(get_drink_event_service),
    supabase: AsyncClient = Depends(get_supabase)
):
    """Record +1 or -1 drink for a participant"""
    await check_can_target_participant(session_id, event_data.participant_id, current_user, supabase)
    await check_drink_type_in_session(session_id, event_data.drink_type_id, supabase)
    return await service.add_drink_event(
        session_id,
        event_data.participant_id,
        event_data.drink_type_id,
        event_data.delta,
        current_user["id"]
    )


@router.get("/events", response_model=List[DrinkEvent])
async def list_drink_events(
    session_id: str,
    current_user: Dict = Depends(get_current_user),
    service: DrinkEventService = Depends(get_drink_event_service),
    supabase: AsyncClient = Depends(get_supabase)
):
    await check_session_member(session_id, current_user, supabase)
    return await service.list_events(session_id)


@router.get("/counts", response_model=List[DrinkCount])
async def get_counts(
    session_id: str,
    current_user: Dict = Depends(get_current_user),
    service: DrinkEventService = Depends(get_drink_event_service),
    supabase: AsyncClient = Depends(get_supabase)
):
    """Current count per (participant, drink type)"""
    await check_session_member(session_id, current_user, supabase)
    events = await service.list_events(session_id)
    return [
        DrinkCount(participant_id=participant_id, drink_type_id=drink_type_id, count=count)
        for (participant_id, drink_type_id), count in count_matrix(events).items()
    ]
