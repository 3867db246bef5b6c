from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable

from pydantic import BaseModel, ConfigDict, model_validator

from .ledger import EventType, HoldingTerm, LedgerEvent, RealizationRecord
from .reconciliation import ReconciliationWarning

logger = logging.getLogger(__name__)

ZERO = Decimal(0)


class RateSchedule(BaseModel):
    """Capital-gains rates of one jurisdiction.

    `dividend_rate` only feeds the informational dividend tax figure.
    """

    model_config = ConfigDict(frozen=True)

    short_term_rate: Decimal
    long_term_rate: Decimal
    long_term_exemption: Decimal
    long_term_holding_threshold_days: int = 365
    dividend_rate: Decimal = Decimal("0.30")

    @model_validator(mode="after")
    def _validate(self) -> RateSchedule:
        for name in ("short_term_rate", "long_term_rate", "dividend_rate"):
            rate: Decimal = getattr(self, name)
            if rate < 0 or rate > 1:
                raise ValueError(f"{name} must be within [0, 1], got {rate}")
        if self.long_term_exemption < 0:
            raise ValueError("long_term_exemption must be >= 0")
        if self.long_term_holding_threshold_days < 0:
            raise ValueError("long_term_holding_threshold_days must be >= 0")
        return self


class TaxReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    fiscal_year: int
    period_start: date
    period_end: date

    short_term_gain: Decimal
    short_term_rate: Decimal
    short_term_tax: Decimal

    long_term_gain: Decimal
    long_term_exemption: Decimal
    long_term_taxable_gain: Decimal
    long_term_rate: Decimal
    long_term_tax: Decimal

    dividend_income: Decimal
    dividend_rate: Decimal
    dividend_tax: Decimal

    total_tax: Decimal

    realization_records: list[RealizationRecord]
    reconciliation_warnings: list[ReconciliationWarning] = []

    @property
    def long_term_exemption_used(self) -> Decimal:
        return min(max(ZERO, self.long_term_gain), self.long_term_exemption)

    @model_validator(mode="after")
    def _validate_total(self) -> TaxReport:
        if self.total_tax != self.short_term_tax + self.long_term_tax:
            raise ValueError("total_tax must equal short_term_tax + long_term_tax")
        return self


def fiscal_year_bounds(fiscal_year: int, *, start_month: int = 1) -> tuple[date, date]:
    """Return the inclusive first and last day of a fiscal year.

    A fiscal year is labeled by the calendar year in which it starts.
    """
    if not 1 <= start_month <= 12:
        msg = "start_month must be within 1..12"
        raise ValueError(msg)
    start = date(fiscal_year, start_month, 1)
    end = date(fiscal_year + 1, start_month, 1) - timedelta(days=1)
    return start, end


def compute_tax_report(
    realization_records: Iterable[RealizationRecord],
    dividend_events: Iterable[LedgerEvent],
    fiscal_year: int,
    rate_schedule: RateSchedule,
    *,
    reconciliation_warnings: Iterable[ReconciliationWarning] = (),
    fiscal_year_start_month: int = 1,
) -> TaxReport:
    """Aggregate one fiscal year of realizations and dividends into a tax report.

    Gains are attributed to the year of disposal. Short- and long-term buckets are
    taxed independently: a net loss in one never offsets a gain in the other.
    Only reconciliation warnings raised by events inside the fiscal year are kept.
    """
    period_start, period_end = fiscal_year_bounds(fiscal_year, start_month=fiscal_year_start_month)

    records = [record for record in realization_records if period_start <= record.disposal_date <= period_end]
    short_term_gain = sum(
        (record.realized_gain for record in records if record.term == HoldingTerm.SHORT),
        start=ZERO,
    )
    long_term_gain = sum(
        (record.realized_gain for record in records if record.term == HoldingTerm.LONG),
        start=ZERO,
    )

    dividend_income = ZERO
    for event in dividend_events:
        if event.event_type != EventType.DIVIDEND:
            msg = f"Expected DIVIDEND event, got {event.event_type} (event={event.id})"
            raise ValueError(msg)
        if period_start <= event.event_date <= period_end:
            assert event.amount is not None
            dividend_income += event.amount

    short_term_tax = max(ZERO, short_term_gain) * rate_schedule.short_term_rate
    long_term_taxable_gain = max(ZERO, long_term_gain - rate_schedule.long_term_exemption)
    long_term_tax = long_term_taxable_gain * rate_schedule.long_term_rate
    dividend_tax = dividend_income * rate_schedule.dividend_rate

    report = TaxReport(
        fiscal_year=fiscal_year,
        period_start=period_start,
        period_end=period_end,
        short_term_gain=short_term_gain,
        short_term_rate=rate_schedule.short_term_rate,
        short_term_tax=short_term_tax,
        long_term_gain=long_term_gain,
        long_term_exemption=rate_schedule.long_term_exemption,
        long_term_taxable_gain=long_term_taxable_gain,
        long_term_rate=rate_schedule.long_term_rate,
        long_term_tax=long_term_tax,
        dividend_income=dividend_income,
        dividend_rate=rate_schedule.dividend_rate,
        dividend_tax=dividend_tax,
        total_tax=short_term_tax + long_term_tax,
        realization_records=records,
        reconciliation_warnings=[
            warning for warning in reconciliation_warnings if period_start <= warning.event_date <= period_end
        ],
    )
    logger.info(
        "Tax report FY%d: %d records, short-term gain %s, long-term gain %s, total tax %s",
        fiscal_year,
        len(records),
        short_term_gain,
        long_term_gain,
        report.total_tax,
    )
    return report
