"""
Tests for DrinkTypeService and DrinkEventService
"""

import pytest

from conftest import drink_type_row, event_row
from onemore.core.exceptions import InvalidOperationError, NotFoundError, StoreError
from onemore.modules.drink_events.service import DrinkEventService
from onemore.modules.drink_types.schemas import DrinkTypeCreate, DrinkTypeUpdate
from onemore.modules.drink_types.service import DrinkTypeService


@pytest.fixture
def service(mock_supabase):
    return DrinkTypeService(mock_supabase)


def three_types():
    return [drink_type_row("a", "Cerveza", 0), drink_type_row("b", "Refresco", 1), drink_type_row("c", "Copa", 2)]


class TestAddDrinkType:
    @pytest.mark.asyncio
    async def test_goes_last_by_default(self, service, mock_supabase):
        mock_supabase.queue("drink_types", three_types(), [drink_type_row("d", "Vino", 3)])

        drink_type = await service.add_drink_type("s1", DrinkTypeCreate(name=" Vino ", price_cents=400))

        assert drink_type.sort_order == 3
        payload = mock_supabase.queries[1].called("insert")[1][0]
        assert payload["sort_order"] == 3
        assert payload["name"] == "Vino"
        assert payload["session_id"] == "s1"

    @pytest.mark.asyncio
    async def test_first_type_gets_zero(self, service, mock_supabase):
        mock_supabase.queue("drink_types", [], [drink_type_row("d", "Vino", 0)])

        await service.add_drink_type("s1", DrinkTypeCreate(name="Vino"))

        assert mock_supabase.queries[1].called("insert")[1][0]["sort_order"] == 0

    @pytest.mark.asyncio
    async def test_update_missing(self, service, mock_supabase):
        mock_supabase.queue("drink_types", [])

        with pytest.raises(NotFoundError):
            await service.update_drink_type("s1", "x", DrinkTypeUpdate(price_cents=100))


class TestReorder:
    """Test moving drink types up and down."""

    @pytest.mark.asyncio
    async def test_move_up_swaps_with_neighbour(self, service, mock_supabase):
        mock_supabase.queue("drink_types", three_types())

        result = await service.reorder_drink_type("s1", "b", "up")

        assert [dt.id for dt in result] == ["b", "a", "c"]
        updates = [q.called("update")[1][0] for q in mock_supabase.queries[1:]]
        assert updates == [{"sort_order": 0}, {"sort_order": 1}]

    @pytest.mark.asyncio
    async def test_edges_are_noops(self, service, mock_supabase):
        mock_supabase.queue("drink_types", three_types(), three_types())

        up = await service.reorder_drink_type("s1", "a", "up")
        down = await service.reorder_drink_type("s1", "c", "down")

        assert [dt.id for dt in up] == ["a", "b", "c"]
        assert [dt.id for dt in down] == ["a", "b", "c"]
        assert all(q.called("update") is None for q in mock_supabase.queries)

    @pytest.mark.asyncio
    async def test_equal_sort_orders_use_positions(self, service, mock_supabase):
        mock_supabase.queue("drink_types", [drink_type_row("a", sort_order=0), drink_type_row("b", sort_order=0)])

        result = await service.reorder_drink_type("s1", "a", "down")

        assert [dt.id for dt in result] == ["b", "a"]

    @pytest.mark.asyncio
    async def test_unknown_drink_type(self, service, mock_supabase):
        mock_supabase.queue("drink_types", three_types())

        with pytest.raises(NotFoundError):
            await service.reorder_drink_type("s1", "zzz", "up")


class TestDrinkEventService:
    @pytest.mark.asyncio
    async def test_add_event_payload(self, mock_supabase):
        mock_supabase.queue("drink_events", [event_row("e1", "p1", delta=-1, actor="u1")])

        event = await DrinkEventService(mock_supabase).add_drink_event("s1", "p1", "dt1", -1, "u1")

        assert event.delta == -1
        assert mock_supabase.queries[0].called("insert")[1][0] == {
            "session_id": "s1",
            "actor_user_id": "u1",
            "target_participant_id": "p1",
            "drink_type_id": "dt1",
            "delta": -1,
        }

    @pytest.mark.asyncio
    async def test_invalid_delta(self, mock_supabase):
        with pytest.raises(InvalidOperationError):
            await DrinkEventService(mock_supabase).add_drink_event("s1", "p1", "dt1", 0, "u1")
        assert mock_supabase.queries == []

    @pytest.mark.asyncio
    async def test_store_failure(self, mock_supabase):
        mock_supabase.queue("drink_events", RuntimeError("timeout"))

        with pytest.raises(StoreError):
            await DrinkEventService(mock_supabase).list_events("s1")


class TestGetDrinkType:
    @pytest.mark.asyncio
    async def test_scoped_to_session(self, service, mock_supabase):
        mock_supabase.queue("drink_types", [drink_type_row("a")])

        drink_type = await service.get_drink_type("s1", "a")

        assert drink_type.id == "a"
        assert ("eq", ("session_id", "s1"), {}) in mock_supabase.queries[0].calls

    @pytest.mark.asyncio
    async def test_other_session(self, service, mock_supabase):
        mock_supabase.queue("drink_types", [])

        with pytest.raises(NotFoundError):
            await service.get_drink_type("s1", "dt-other")
