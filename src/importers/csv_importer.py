from __future__ import annotations

import logging
from csv import DictReader
from pathlib import Path

from domain.ledger import LedgerEvent

from .transaction_rows import FIELD_ALIASES, NormalizedTransactions, normalize_transaction_rows

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("instrument_id", "event_type", "event_date")


class TransactionCsvImporter:
    """Transaction history exported as CSV, one event per row."""

    def __init__(self, source_path: str | Path) -> None:
        self._source_path = Path(source_path)

    def load(self) -> NormalizedTransactions:
        with self._source_path.open(encoding="utf-8-sig", newline="") as handle:
            reader = DictReader(handle)
            if reader.fieldnames is None:
                raise ValueError(f"Transaction CSV {self._source_path} is empty or missing headers")
            self._check_columns(reader.fieldnames)
            # Row 1 is the header.
            result = normalize_transaction_rows(reader, first_row_number=2)

        logger.info(
            "Loaded %d events from %s (%d rows skipped)",
            len(result.events),
            self._source_path,
            len(result.skipped_events),
        )
        return result

    def load_events(self) -> list[LedgerEvent]:
        return self.load().events

    def _check_columns(self, fieldnames: list[str] | tuple[str, ...]) -> None:
        columns = {name.strip() for name in fieldnames if name}
        missing = [field for field in _REQUIRED_FIELDS if not columns.intersection(FIELD_ALIASES[field])]
        if missing:
            expected = ", ".join(" | ".join(FIELD_ALIASES[field]) for field in missing)
            raise ValueError(f"Transaction CSV {self._source_path} missing required columns: {expected}")
