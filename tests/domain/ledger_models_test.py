from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from domain.ledger import EventType, LedgerEvent


def test_buy_requires_quantity_and_price() -> None:
    with pytest.raises(ValidationError):
        LedgerEvent(instrument_id="X", event_type=EventType.BUY, event_date=date(2024, 1, 1), quantity=Decimal("1"))


@pytest.mark.parametrize(
    ("quantity", "price"),
    [(Decimal("0"), Decimal("10")), (Decimal("-1"), Decimal("10")), (Decimal("1"), Decimal("0"))],
)
def test_sell_rejects_non_positive_values(quantity: Decimal, price: Decimal) -> None:
    with pytest.raises(ValidationError):
        LedgerEvent(
            instrument_id="X",
            event_type=EventType.SELL,
            event_date=date(2024, 1, 1),
            quantity=quantity,
            unit_price=price,
        )


def test_dividend_requires_positive_amount() -> None:
    with pytest.raises(ValidationError):
        LedgerEvent(instrument_id="X", event_type=EventType.DIVIDEND, event_date=date(2024, 1, 1))
    with pytest.raises(ValidationError):
        LedgerEvent(
            instrument_id="X", event_type=EventType.DIVIDEND, event_date=date(2024, 1, 1), amount=Decimal("0")
        )


def test_instrument_id_is_stripped_and_required() -> None:
    event = LedgerEvent(
        instrument_id="  INFY ",
        event_type=EventType.DIVIDEND,
        event_date=date(2024, 1, 1),
        amount=Decimal("5"),
    )
    assert event.instrument_id == "INFY"

    with pytest.raises(ValidationError):
        LedgerEvent(instrument_id="   ", event_type=EventType.DIVIDEND, event_date=date(2024, 1, 1), amount=Decimal("5"))


def test_events_are_immutable() -> None:
    event = LedgerEvent(
        instrument_id="X",
        event_type=EventType.BUY,
        event_date=date(2024, 1, 1),
        quantity=Decimal("1"),
        unit_price=Decimal("2"),
    )

    with pytest.raises(ValidationError):
        event.quantity = Decimal("3")  # type: ignore[misc]
