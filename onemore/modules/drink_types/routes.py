from fastapi import APIRouter, Depends
from onemore.database.supabase_client import get_supabase
from onemore.modules.drink_types.schemas import (
    DrinkType, DrinkTypeCreate, DrinkTypeUpdate, DrinkTypeReorder
)
from onemore.modules.drink_types.service import DrinkTypeService
from onemore.core.dependencies import get_current_user, check_session_owner, check_session_member
from supabase import AsyncClient
from typing import Dict, List

router = APIRouter(prefix="/sessions/{session_id}/drink-types", tags=["drink-types"])


def get_drink_type_service(supabase: AsyncClient = Depends(get_supabase)) -> DrinkTypeService:
    return DrinkTypeService(supabase)


@router.get("", response_model=List[DrinkType])
async def list_drink_types(
    session_id: str,
    current_user: Dict = Depends(get_current_user),
    service: DrinkTypeService = Depends(get_drink_type_service),
    supabase: AsyncClient = Depends(get_supabase)
):
    await check_session_member(session_id, current_user, supabase)
    return await service.list_drink_types(session_id)


@router.post("", response_model=DrinkType, status_code=201)
async def add_drink_type(
    session_id: str,
    drink_type_data: DrinkTypeCreate,
    current_user: Dict = Depends(get_current_user),
    service: DrinkTypeService = Depends(get_drink_type_service),
    supabase: AsyncClient = Depends(get_supabase)
):
    """Add a drink type at the end of the list (owner only)"""
    await check_session_owner(session_id, current_user, supabase)
    return await service.add_drink_type(session_id, drink_type_data)


@router.put("/{drink_type_id}", response_model=DrinkType)
async def update_drink_type(
    session_id: str,
    drink_type_id: str,
    drink_type_data: DrinkTypeUpdate,
    current_user: Dict = Depends(get_current_user),
    service: DrinkTypeService = Depends(get_drink_type_service),
    supabase: AsyncClient = Depends(get_supabase)
):
    """Change name, emoji, category or price (owner only)"""
    await check_session_owner(session_id, current_user, supabase)
    return await service.update_drink_type(session_id, drink_type_id, drink_type_data)


@router.delete("/{drink_type_id}", status_code=204)
async def delete_drink_type(
    session_id: str,
    drink_type_id: str,
    current_user: Dict = Depends(get_current_user),
    service: DrinkTypeService = Depends(get_drink_type_service),
    supabase: AsyncClient = Depends(get_supabase)
):
    await check_session_owner(session_id, current_user, supabase)
    await service.delete_drink_type(session_id, drink_type_id)
    return None


@router.post("/{drink_type_id}/reorder", response_model=List[DrinkType])
async def reorder_drink_type(
    session_id: str,
    drink_type_id: str,
    reorder: DrinkTypeReorder,
    current_user: Dict = Depends(get_current_user),
    service: DrinkTypeService = Depends(get_drink_type_service),
    supabase: AsyncClient = Depends(get_supabase)
):
    """Move one position up or down (owner only)"""
    await check_session_owner(session_id, current_user, supabase)
    return await service.reorder_drink_type(session_id, drink_type_id, reorder.direction)
