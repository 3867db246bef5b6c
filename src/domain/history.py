from __future__ import annotations

from typing import Protocol, runtime_checkable

from .ledger import LedgerEvent
from .tax_calculator import TaxReport


@runtime_checkable
class TransactionHistoryProvider(Protocol):
    """Source of validated events, ordered by date within each instrument."""

    def load_events(self) -> list[LedgerEvent]: ...


@runtime_checkable
class TaxReportSink(Protocol):
    def save(self, report: TaxReport) -> TaxReport: ...
