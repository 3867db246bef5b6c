from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict

from .ledger import EventId, InstrumentId, LedgerEvent


class LotLedgerError(Exception):
    pass


class OrderingViolationError(LotLedgerError):
    def __init__(self, *, event: LedgerEvent, last_date: date) -> None:
        self.event = event
        self.instrument_id = event.instrument_id
        self.event_date = event.event_date
        self.last_date = last_date
        super().__init__(
            f"Out-of-order event for instrument={event.instrument_id} event={event.id} "
            f"{event.event_type} @{event.event_date.isoformat()} precedes already ingested "
            f"@{last_date.isoformat()}"
        )


class ReconciliationKind(StrEnum):
    UNMATCHED_SELL = "UNMATCHED_SELL"
    OVERSELL = "OVERSELL"


class ReconciliationWarning(BaseModel):
    """A sell that could not be fully matched against open lots.

    `unmatched_quantity` is the part of `requested_quantity` that produced no
    realization record.
    """

    model_config = ConfigDict(frozen=True)

    kind: ReconciliationKind
    instrument_id: InstrumentId
    event_id: EventId
    event_date: date
    requested_quantity: Decimal
    unmatched_quantity: Decimal

    @property
    def message(self) -> str:
        return (
            f"{self.kind} instrument={self.instrument_id} @{self.event_date.isoformat()}: "
            f"{self.unmatched_quantity} of {self.requested_quantity} units unmatched"
        )


class SkippedEvent(BaseModel):
    """A raw transaction row rejected at the ingestion boundary."""

    model_config = ConfigDict(frozen=True)

    row_number: int
    reason: str
    raw: dict[str, Any]
