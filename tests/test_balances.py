"""
Tests for bill computation and balance persistence
"""

import pytest

from conftest import drink_type_row, event_row, participant_row
from onemore.core.exceptions import StoreError
from onemore.modules.balances.calculator import compute_balances, format_currency, parse_price
from onemore.modules.balances.schemas import BalanceRow
from onemore.modules.balances.service import BalanceService
from onemore.modules.drink_events.schemas import DrinkEvent
from onemore.modules.drink_events.service import count_matrix, drink_count
from onemore.modules.drink_types.schemas import DrinkType
from onemore.modules.participants.schemas import Participant


@pytest.fixture
def ledger():
    participants = [Participant(**participant_row("p1", "Ana")), Participant(**participant_row("p2", "Luis"))]
    drink_types = [
        DrinkType(**drink_type_row("beer", "Cerveza", 0, 300)),
        DrinkType(**drink_type_row("copa", "Copa", 1, 800, category="cocktail")),
    ]
    events = [DrinkEvent(**row) for row in (
        event_row("e1", "p1", "beer"),
        event_row("e2", "p1", "beer"),
        event_row("e3", "p1", "copa"),
        event_row("e4", "p1", "beer", delta=-1),
        event_row("e5", "p2", "copa"),
    )]
    return participants, drink_types, events


class TestParsePrice:
    @pytest.mark.parametrize("value,expected", [
        ("2,50", 250),
        ("2.50", 250),
        ("3", 300),
        (" 0,5 ", 50),
        ("1.005", 101),
        ("-1", 0),
        ("abc", 0),
        ("", 0),
        ("nan", 0),
    ])
    def test_parse(self, value, expected):
        assert parse_price(value) == expected


class TestFormatCurrency:
    def test_default_symbol(self):
        assert format_currency(250) == "€2.50"

    def test_custom_symbol_and_negative(self):
        assert format_currency(-5, "$") == "-$0.05"


class TestCounts:
    def test_drink_count(self, ledger):
        _, _, events = ledger
        assert drink_count(events, "p1") == 2
        assert drink_count(events, "p1", "beer") == 1
        assert drink_count(events, "p3") == 0

    def test_count_matrix(self, ledger):
        _, _, events = ledger
        assert count_matrix(events) == {("p1", "beer"): 1, ("p1", "copa"): 1, ("p2", "copa"): 1}


class TestComputeBalances:
    def test_amounts(self, ledger):
        rows = compute_balances(*ledger)

        assert [(r.participant_id, r.drinks, r.amount_cents) for r in rows] == [
            ("p1", 2, 1100),
            ("p2", 1, 800),
        ]
        assert rows[0].amount_display == "€11.00"

    def test_price_overrides(self, ledger):
        rows = compute_balances(*ledger, prices={"beer": 100})
        assert rows[0].amount_cents == 900

    def test_participant_without_events(self, ledger):
        participants, drink_types, _ = ledger
        rows = compute_balances(participants, drink_types, [])
        assert all(r.drinks == 0 and r.amount_cents == 0 for r in rows)


class TestBalanceService:
    @pytest.mark.asyncio
    async def test_upsert(self, mock_supabase):
        mock_supabase.queue("participant_balances", [{"participant_id": "p1"}, {"participant_id": "p2"}])
        rows = [
            BalanceRow(participant_id="p1", display_name="Ana", drinks=2, amount_cents=1100, amount_display="€11.00"),
            BalanceRow(participant_id="p2", display_name="Luis", drinks=1, amount_cents=800, amount_display="€8.00"),
        ]

        count = await BalanceService(mock_supabase).upsert_participant_balances("s1", rows)

        assert count == 2
        name, args, kwargs = mock_supabase.queries[0].called("upsert")
        assert args[0][0] == {"session_id": "s1", "participant_id": "p1", "amount_cents": 1100}
        assert kwargs == {"on_conflict": "participant_id"}

    @pytest.mark.asyncio
    async def test_upsert_nothing(self, mock_supabase):
        assert await BalanceService(mock_supabase).upsert_participant_balances("s1", []) == 0
        assert mock_supabase.queries == []

    @pytest.mark.asyncio
    async def test_upsert_failure(self, mock_supabase):
        mock_supabase.queue("participant_balances", RuntimeError("boom"))
        row = BalanceRow(participant_id="p1", display_name="Ana", drinks=0, amount_cents=0, amount_display="€0.00")

        with pytest.raises(StoreError):
            await BalanceService(mock_supabase).upsert_participant_balances("s1", [row])
