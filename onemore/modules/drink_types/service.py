import logging
from supabase import AsyncClient
from onemore.core.exceptions import NotFoundError, StoreError
from onemore.modules.drink_types.schemas import (
    DrinkType, DrinkTypeCreate, DrinkTypeUpdate, DEFAULT_DRINK_TYPES
)
from typing import List

logger = logging.getLogger(__name__)


class DrinkTypeService:
    def __init__(self, supabase: AsyncClient):
        self.supabase = supabase

    async def list_drink_types(self, session_id: str) -> List[DrinkType]:
        """Drink types in display order"""
        try:
            result = await self.supabase.table("drink_types")\
                .select("*")\
                .eq("session_id", session_id)\
                .order("sort_order")\
                .execute()
            return [DrinkType(**dt) for dt in result.data or []]
        except Exception as e:
            raise StoreError(f"Failed to load drink types: {e}") from e

    async def get_drink_type(self, session_id: str, drink_type_id: str) -> DrinkType:
        try:
            result = await self.supabase.table("drink_types")\
                .select("*")\
                .eq("id", drink_type_id)\
                .eq("session_id", session_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise StoreError(f"Failed to load drink type: {e}") from e
        if not result.data:
            raise NotFoundError("Drink type not found")
        return DrinkType(**result.data[0])

    async def add_default_drink_types(self, session_id: str) -> List[DrinkType]:
        rows = [{"session_id": session_id, **dt} for dt in DEFAULT_DRINK_TYPES]
        try:
            result = await self.supabase.table("drink_types").insert(rows).execute()
        except Exception as e:
            raise StoreError(f"Failed to create default drink types: {e}") from e
        return [DrinkType(**dt) for dt in result.data or []]

    async def add_drink_type(self, session_id: str, drink_type_data: DrinkTypeCreate) -> DrinkType:
        """Add a drink type; without an explicit sort_order it goes last"""
        insert_data = drink_type_data.model_dump()
        insert_data["name"] = insert_data["name"].strip()
        if insert_data["sort_order"] is None:
            existing = await self.list_drink_types(session_id)
            insert_data["sort_order"] = max((dt.sort_order for dt in existing), default=-1) + 1
        try:
            result = await self.supabase.table("drink_types").insert({
                "session_id": session_id,
                **insert_data
            }).execute()
        except Exception as e:
            raise StoreError(f"Failed to add drink type: {e}") from e
        if not result.data:
            raise StoreError("Failed to add drink type")
        return DrinkType(**result.data[0])

    async def update_drink_type(
        self,
        session_id: str,
        drink_type_id: str,
        drink_type_data: DrinkTypeUpdate
    ) -> DrinkType:
        update_data = drink_type_data.model_dump(exclude_none=True)
        try:
            query = self.supabase.table("drink_types")
            if update_data:
                query = query.update(update_data)
            else:
                query = query.select("*")
            result = await query\
                .eq("id", drink_type_id)\
                .eq("session_id", session_id)\
                .execute()
        except Exception as e:
            raise StoreError(f"Failed to update drink type: {e}") from e
        if not result.data:
            raise NotFoundError("Drink type not found")
        return DrinkType(**result.data[0])

    async def delete_drink_type(self, session_id: str, drink_type_id: str) -> bool:
        try:
            result = await self.supabase.table("drink_types")\
                .delete()\
                .eq("id", drink_type_id)\
                .eq("session_id", session_id)\
                .execute()
            return len(result.data or []) > 0
        except Exception as e:
            raise StoreError(f"Failed to delete drink type: {e}") from e

    async def reorder_drink_type(self, session_id: str, drink_type_id: str, direction: str) -> List[DrinkType]:
        """Swap sort_order with the neighbour above/below. No-op at either end."""
        drink_types = sorted(await self.list_drink_types(session_id), key=lambda dt: dt.sort_order)
        index = next((i for i, dt in enumerate(drink_types) if dt.id == drink_type_id), None)
        if index is None:
            raise NotFoundError("Drink type not found")

        new_index = index - 1 if direction == "up" else index + 1
        if new_index < 0 or new_index >= len(drink_types):
            return drink_types

        current = drink_types[index]
        target = drink_types[new_index]
        # Equal sort orders would make the swap a no-op; fall back to list positions
        current_order, target_order = target.sort_order, current.sort_order
        if current_order == target_order:
            current_order, target_order = new_index, index
        try:
            await self.supabase.table("drink_types")\
                .update({"sort_order": current_order})\
                .eq("id", current.id)\
                .execute()
            await self.supabase.table("drink_types")\
                .update({"sort_order": target_order})\
                .eq("id", target.id)\
                .execute()
        except Exception as e:
            raise StoreError(f"Failed to reorder drink types: {e}") from e

        logger.debug(f"Moved drink type {drink_type_id} {direction} in session {session_id}")
        drink_types[index] = current.model_copy(update={"sort_order": current_order})
        drink_types[new_index] = target.model_copy(update={"sort_order": target_order})
        return sorted(drink_types, key=lambda dt: dt.sort_order)
