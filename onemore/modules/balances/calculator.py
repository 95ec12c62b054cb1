"""Bill computation: what each participant owes from the drink ledger and prices.

All amounts are integer cents.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional

from onemore.config.settings import settings
from onemore.modules.balances.schemas import BalanceRow
from onemore.modules.drink_events.schemas import DrinkEvent
from onemore.modules.drink_events.service import count_matrix
from onemore.modules.drink_types.schemas import DrinkType
from onemore.modules.participants.schemas import Participant


def parse_price(value: str) -> int:
    """'2,50' / '2.50' -> 250. Anything unparsable or negative is 0."""
    try:
        amount = Decimal(value.strip().replace(",", "."))
    except (InvalidOperation, AttributeError):
        return 0
    if not amount.is_finite() or amount < 0:
        return 0
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_currency(cents: int, symbol: Optional[str] = None) -> str:
    sign = "-" if cents < 0 else ""
    whole, rest = divmod(abs(cents), 100)
    return f"{sign}{symbol or settings.currency_symbol}{whole}.{rest:02d}"


def compute_balances(
    participants: Iterable[Participant],
    drink_types: Iterable[DrinkType],
    events: Iterable[DrinkEvent],
    prices: Optional[Dict[str, int]] = None
) -> List[BalanceRow]:
    """One row per participant: drinks = sum of all deltas, amount = sum(count * price).

    ``prices`` overrides drink type prices (e.g. unsaved edits).
    """
    counts = count_matrix(events)
    price_by_type = {dt.id: dt.price_cents for dt in drink_types}
    if prices:
        price_by_type.update(prices)

    rows = []
    for p in participants:
        drinks = 0
        amount = 0
        for (participant_id, drink_type_id), count in counts.items():
            if participant_id != p.id:
                continue
            drinks += count
            amount += count * price_by_type.get(drink_type_id, 0)
        rows.append(BalanceRow(
            participant_id=p.id,
            display_name=p.display_name,
            drinks=drinks,
            amount_cents=amount,
            amount_display=format_currency(amount),
        ))
    return rows

