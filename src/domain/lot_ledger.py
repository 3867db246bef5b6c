from __future__ import annotations

import logging
from collections import defaultdict, deque
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable

from pydantic import BaseModel

from .ledger import (
    EventId,
    EventType,
    HoldingTerm,
    InstrumentId,
    LedgerEvent,
    OpenLotSnapshot,
    RealizationRecord,
)
from .reconciliation import OrderingViolationError, ReconciliationKind, ReconciliationWarning

logger = logging.getLogger(__name__)

DEFAULT_LONG_TERM_THRESHOLD_DAYS = 365


@dataclass
class _OpenLot:
    instrument_id: InstrumentId
    buy_event_id: EventId
    acquired_date: date
    original_quantity: Decimal
    unit_cost: Decimal
    remaining_quantity: Decimal
    sequence: int


class LedgerReplayResult(BaseModel):
    realization_records: list[RealizationRecord]
    open_lots: list[OpenLotSnapshot]
    dividend_events: list[LedgerEvent]
    reconciliation_warnings: list[ReconciliationWarning]


class LotLedger:
    """Per-instrument FIFO queues of open purchase lots.

    One instance lives for a single full-history replay. Events of one instrument
    must arrive in non-decreasing date order; the ledger does not re-sort.
    """

    def __init__(self, *, long_term_threshold_days: int = DEFAULT_LONG_TERM_THRESHOLD_DAYS) -> None:
        if long_term_threshold_days < 0:
            msg = "long_term_threshold_days must be >= 0"
            raise ValueError(msg)
        self._long_term_threshold_days = long_term_threshold_days
        self._lots: dict[InstrumentId, deque[_OpenLot]] = defaultdict(deque)
        self._last_dates: dict[InstrumentId, date] = {}
        self._warnings: list[ReconciliationWarning] = []
        self._sequence = 0

    @property
    def reconciliation_warnings(self) -> list[ReconciliationWarning]:
        return list(self._warnings)

    def ingest_buy(self, event: LedgerEvent) -> None:
        self._require_type(event, EventType.BUY)
        self._check_order(event)

        # Validated events always carry quantity and price for BUY.
        assert event.quantity is not None and event.unit_price is not None
        self._lots[event.instrument_id].append(
            _OpenLot(
                instrument_id=event.instrument_id,
                buy_event_id=event.id,
                acquired_date=event.event_date,
                original_quantity=event.quantity,
                unit_cost=event.unit_price,
                remaining_quantity=event.quantity,
                sequence=self._sequence,
            )
        )
        self._sequence += 1

    def ingest_sell(self, event: LedgerEvent) -> list[RealizationRecord]:
        self._require_type(event, EventType.SELL)
        self._check_order(event)

        assert event.quantity is not None and event.unit_price is not None
        open_lots = self._lots.get(event.instrument_id)
        if not open_lots:
            self._warn(ReconciliationKind.UNMATCHED_SELL, event, unmatched=event.quantity)
            return []

        records: list[RealizationRecord] = []
        remaining = event.quantity
        while remaining > 0 and open_lots:
            lot = open_lots[0]
            take_quantity = min(remaining, lot.remaining_quantity)
            records.append(self._realize(lot, event, take_quantity))

            lot.remaining_quantity -= take_quantity
            remaining -= take_quantity
            if lot.remaining_quantity == 0:
                open_lots.popleft()

        if remaining > 0:
            self._warn(ReconciliationKind.OVERSELL, event, unmatched=remaining)

        return records

    def ingest(self, event: LedgerEvent) -> list[RealizationRecord]:
        if event.event_type == EventType.BUY:
            self.ingest_buy(event)
            return []
        if event.event_type == EventType.SELL:
            return self.ingest_sell(event)
        msg = f"LotLedger does not accept {event.event_type} events"
        raise ValueError(msg)

    def remaining_quantity(self, instrument_id: str) -> Decimal:
        return sum(
            (lot.remaining_quantity for lot in self._lots.get(InstrumentId(instrument_id), ())),
            start=Decimal(0),
        )

    def open_lots(self) -> list[OpenLotSnapshot]:
        lots = [lot for queue in self._lots.values() for lot in queue]
        lots.sort(key=lambda lot: (lot.instrument_id, lot.acquired_date, lot.sequence))
        return [
            OpenLotSnapshot(
                instrument_id=lot.instrument_id,
                buy_event_id=lot.buy_event_id,
                acquired_date=lot.acquired_date,
                original_quantity=lot.original_quantity,
                quantity_remaining=lot.remaining_quantity,
                unit_cost=lot.unit_cost,
            )
            for lot in lots
        ]

    def _realize(self, lot: _OpenLot, event: LedgerEvent, quantity: Decimal) -> RealizationRecord:
        assert event.unit_price is not None
        holding_period_days = (event.event_date - lot.acquired_date).days
        term = HoldingTerm.LONG if holding_period_days >= self._long_term_threshold_days else HoldingTerm.SHORT
        return RealizationRecord(
            instrument_id=lot.instrument_id,
            buy_event_id=lot.buy_event_id,
            sell_event_id=event.id,
            acquired_date=lot.acquired_date,
            disposal_date=event.event_date,
            quantity=quantity,
            unit_cost=lot.unit_cost,
            unit_sale_price=event.unit_price,
            holding_period_days=holding_period_days,
            term=term,
            realized_gain=quantity * (event.unit_price - lot.unit_cost),
        )

    def _check_order(self, event: LedgerEvent) -> None:
        last_date = self._last_dates.get(event.instrument_id)
        if last_date is not None and event.event_date < last_date:
            raise OrderingViolationError(event=event, last_date=last_date)
        self._last_dates[event.instrument_id] = event.event_date

    def _warn(self, kind: ReconciliationKind, event: LedgerEvent, *, unmatched: Decimal) -> None:
        assert event.quantity is not None
        warning = ReconciliationWarning(
            kind=kind,
            instrument_id=event.instrument_id,
            event_id=event.id,
            event_date=event.event_date,
            requested_quantity=event.quantity,
            unmatched_quantity=unmatched,
        )
        logger.warning("Reconciliation: %s", warning.message)
        self._warnings.append(warning)

    @staticmethod
    def _require_type(event: LedgerEvent, expected: EventType) -> None:
        if event.event_type != expected:
            msg = f"Expected {expected} event, got {event.event_type} (event={event.id})"
            raise ValueError(msg)


def replay_history(
    events: Iterable[LedgerEvent], *, long_term_threshold_days: int = DEFAULT_LONG_TERM_THRESHOLD_DAYS
) -> LedgerReplayResult:
    """Replay a full event history on a fresh ledger.

    Caller must provide events in chronological order per instrument.
    """
    ledger = LotLedger(long_term_threshold_days=long_term_threshold_days)
    records: list[RealizationRecord] = []
    dividends: list[LedgerEvent] = []

    for event in events:
        if event.event_type == EventType.DIVIDEND:
            dividends.append(event)
            continue
        records.extend(ledger.ingest(event))

    result = LedgerReplayResult(
        realization_records=records,
        open_lots=ledger.open_lots(),
        dividend_events=dividends,
        reconciliation_warnings=ledger.reconciliation_warnings,
    )
    logger.info(
        "Replayed history: %d realization records, %d open lots, %d dividends, %d warnings",
        len(result.realization_records),
        len(result.open_lots),
        len(result.dividend_events),
        len(result.reconciliation_warnings),
    )
    return result
