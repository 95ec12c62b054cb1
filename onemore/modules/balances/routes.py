import logging
from fastapi import APIRouter, Depends
from onemore.database.supabase_client import get_supabase
from onemore.modules.balances.schemas import BalancesResponse
from onemore.modules.balances.service import BalanceService
from onemore.modules.balances.calculator import compute_balances, format_currency
from onemore.modules.sessions.service import SessionService
from onemore.core.dependencies import get_current_user, check_session_member
from supabase import AsyncClient
from typing import Dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions/{session_id}/balances", tags=["balances"])


@router.get("", response_model=BalancesResponse)
async def get_balances(
    session_id: str,
    current_user: Dict = Depends(get_current_user),
    supabase: AsyncClient = Depends(get_supabase)
):
    """What each participant owes. When the owner asks, the amounts are also persisted."""
    await check_session_member(session_id, current_user, supabase)
    data = await SessionService(supabase).load_session_data(session_id, current_user["id"])
    rows = compute_balances(data.participants, data.drink_types, data.events)
    if data.is_owner:
        try:
            await BalanceService(supabase).upsert_participant_balances(session_id, rows)
        except Exception as e:
            logger.warning(f"Failed to persist balances for session {session_id}: {e}")
    total = sum(r.amount_cents for r in rows)
    return BalancesResponse(
        session_id=session_id,
        rows=rows,
        total_cents=total,
        total_display=format_currency(total),
    )
