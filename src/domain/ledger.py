from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import StrEnum
from typing import NewType
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

InstrumentId = NewType("InstrumentId", str)
EventId = NewType("EventId", UUID)


class EventType(StrEnum):
    BUY = "BUY"
    SELL = "SELL"
    DIVIDEND = "DIVIDEND"


class HoldingTerm(StrEnum):
    SHORT = "SHORT"
    LONG = "LONG"


class LedgerEvent(BaseModel):
    """A single validated transaction event.

    BUY and SELL events carry `quantity` and `unit_price`; DIVIDEND events carry
    the total cash `amount`. Every numeric field that is present must be positive.
    """

    model_config = ConfigDict(frozen=True)

    id: EventId = EventId(Field(default_factory=uuid4))
    instrument_id: InstrumentId
    event_type: EventType
    event_date: date
    quantity: Decimal | None = None
    unit_price: Decimal | None = None
    amount: Decimal | None = None

    @field_validator("instrument_id", mode="before")
    @classmethod
    def _strip_instrument_id(cls, value: str) -> str:
        if isinstance(value, str):
            return value.strip()
        return value

    @model_validator(mode="after")
    def _validate_fields(self) -> LedgerEvent:
        if not self.instrument_id:
            raise ValueError("instrument_id must be non-empty")

        if self.event_type in (EventType.BUY, EventType.SELL):
            if self.quantity is None or self.unit_price is None:
                raise ValueError(f"{self.event_type} event requires quantity and unit_price")
            if self.quantity <= 0:
                raise ValueError("quantity must be > 0")
            if self.unit_price <= 0:
                raise ValueError("unit_price must be > 0")
        else:
            if self.amount is None:
                raise ValueError("DIVIDEND event requires amount")
            if self.amount <= 0:
                raise ValueError("amount must be > 0")
        return self


class OpenLotSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    instrument_id: InstrumentId
    buy_event_id: EventId
    acquired_date: date
    original_quantity: Decimal
    quantity_remaining: Decimal
    unit_cost: Decimal

    @property
    def cost_basis(self) -> Decimal:
        return self.quantity_remaining * self.unit_cost


class RealizationRecord(BaseModel):
    """One (partial) match of a sell against a single open lot."""

    model_config = ConfigDict(frozen=True)

    instrument_id: InstrumentId
    buy_event_id: EventId
    sell_event_id: EventId
    acquired_date: date
    disposal_date: date
    quantity: Decimal
    unit_cost: Decimal
    unit_sale_price: Decimal
    holding_period_days: int
    term: HoldingTerm
    realized_gain: Decimal

    @model_validator(mode="after")
    def _validate(self) -> RealizationRecord:
        if self.quantity <= 0:
            raise ValueError("quantity must be > 0")
        if self.holding_period_days < 0:
            raise ValueError("disposal_date must not precede acquired_date")
        return self

    @property
    def cost_basis(self) -> Decimal:
        return self.quantity * self.unit_cost

    @property
    def proceeds(self) -> Decimal:
        return self.quantity * self.unit_sale_price
