from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Mapping

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from domain.ledger import EventType, InstrumentId, LedgerEvent
from domain.reconciliation import SkippedEvent

logger = logging.getLogger(__name__)

# First non-blank source column wins.
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "instrument_id": ("instrument_id", "ticker_symbol", "symbol"),
    "event_type": ("event_type", "txn_type", "type"),
    "event_date": ("event_date", "txn_date", "date"),
    "quantity": ("quantity",),
    "unit_price": ("unit_price", "price"),
    "amount": ("amount", "total_value"),
}


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class TransactionRow(BaseModel):
    """Raw transaction row as exported by the transaction store.

    Column names vary between exports; see `FIELD_ALIASES`.
    """

    model_config = ConfigDict(extra="ignore")

    instrument_id: str | None = None
    event_type: EventType | None = None
    event_date: date | None = None
    quantity: Decimal | None = None
    unit_price: Decimal | None = None
    amount: Decimal | None = None

    @model_validator(mode="before")
    @classmethod
    def _resolve_aliases(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        # Column names compare after stripping, like the CSV header check.
        data = {str(key).strip(): value for key, value in data.items() if key is not None}
        resolved: dict[str, Any] = {}
        for field_name, candidates in FIELD_ALIASES.items():
            for candidate in candidates:
                value = data.get(candidate)
                if not _is_blank(value):
                    resolved[field_name] = value.strip() if isinstance(value, str) else value
                    break
        return resolved

    @field_validator("event_type", mode="before")
    @classmethod
    def _parse_event_type(cls, value: str | EventType | None) -> EventType | None:
        if value is None or isinstance(value, EventType):
            return value
        normalized = str(value).strip().upper()
        try:
            return EventType(normalized)
        except ValueError as exc:
            raise ValueError(f"unsupported event type {value!r}") from exc

    @field_validator("event_date", mode="before")
    @classmethod
    def _parse_event_date(cls, value: str | date | None) -> date | None:
        if value is None:
            return None
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        normalized = str(value).strip()
        if normalized.endswith(("Z", "z")):
            normalized = f"{normalized[:-1]}+00:00"
        if len(normalized) > 10:
            return datetime.fromisoformat(normalized).date()
        return date.fromisoformat(normalized)

    def to_event(self) -> LedgerEvent:
        if self.instrument_id is None:
            raise ValueError("missing instrument identifier")
        if self.event_type is None:
            raise ValueError("missing event type")
        if self.event_date is None:
            raise ValueError("missing event date")

        amount = self.amount
        if self.event_type == EventType.DIVIDEND and amount is None:
            if self.quantity is not None and self.unit_price is not None:
                amount = self.quantity * self.unit_price

        if self.event_type == EventType.DIVIDEND:
            return LedgerEvent(
                instrument_id=InstrumentId(self.instrument_id),
                event_type=self.event_type,
                event_date=self.event_date,
                amount=amount,
            )
        return LedgerEvent(
            instrument_id=InstrumentId(self.instrument_id),
            event_type=self.event_type,
            event_date=self.event_date,
            quantity=self.quantity,
            unit_price=self.unit_price,
        )


class NormalizedTransactions(BaseModel):
    events: list[LedgerEvent]
    skipped_events: list[SkippedEvent]


def normalize_transaction_rows(rows: Iterable[Mapping[str, Any]], *, first_row_number: int = 1) -> NormalizedTransactions:
    """Turn raw rows into validated events, skipping (not failing on) malformed rows.

    Input order is preserved.
    """
    events: list[LedgerEvent] = []
    skipped: list[SkippedEvent] = []

    for row_number, row in enumerate(rows, start=first_row_number):
        try:
            event = TransactionRow.model_validate(row).to_event()
        except ValidationError as exc:
            reason = "; ".join(_format_error(error) for error in exc.errors())
            skipped.append(_skip(row_number, reason, row))
            continue
        except ValueError as exc:
            skipped.append(_skip(row_number, str(exc), row))
            continue
        events.append(event)

    if skipped:
        logger.warning("Skipped %d malformed transaction rows", len(skipped))
    return NormalizedTransactions(events=events, skipped_events=skipped)


def _format_error(error: Mapping[str, Any]) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()))
    message = str(error.get("msg", "invalid value"))
    return f"{location}: {message}" if location else message


def _skip(row_number: int, reason: str, row: Mapping[str, Any]) -> SkippedEvent:
    logger.warning("Skipping transaction row %d: %s", row_number, reason)
    return SkippedEvent(row_number=row_number, reason=reason, raw={str(key): value for key, value in row.items()})
