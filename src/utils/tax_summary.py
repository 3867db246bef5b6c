from __future__ import annotations

from typing import Iterable

from domain.reconciliation import ReconciliationWarning, SkippedEvent
from domain.tax_calculator import ZERO, TaxReport

from .formatting import format_currency, format_decimal, format_rate, render_table

DIVIDEND_TAX_NOTE = "informational only, actual liability depends on the holder's income bracket"


def render_tax_report(report: TaxReport) -> None:
    print(f"Tax report FY{report.fiscal_year} ({report.period_start} → {report.period_end}):")
    rows = [
        [
            "Short-term gains",
            format_currency(report.short_term_gain),
            format_currency(max(ZERO, report.short_term_gain)),
            format_rate(report.short_term_rate),
            format_currency(report.short_term_tax),
        ],
        [
            "Long-term gains",
            format_currency(report.long_term_gain),
            format_currency(report.long_term_taxable_gain),
            format_rate(report.long_term_rate),
            format_currency(report.long_term_tax),
        ],
    ]
    print(render_table(["Category", "Gain", "Taxable", "Rate", "Tax"], rows))
    print(
        f"Long-term exemption: {format_currency(report.long_term_exemption)}, "
        f"used: {format_currency(report.long_term_exemption_used)}"
    )
    print(f"Total capital-gains tax: {format_currency(report.total_tax)}")
    print(
        f"Dividend income: {format_currency(report.dividend_income)}, "
        f"tax at {format_rate(report.dividend_rate)}: {format_currency(report.dividend_tax)} ({DIVIDEND_TAX_NOTE})"
    )

    render_realization_records(report)
    render_reconciliation_warnings(report.reconciliation_warnings)


def render_realization_records(report: TaxReport) -> None:
    print("Realized lots:")
    if not report.realization_records:
        print("  (no disposals)")
        return

    rows = [
        [
            record.instrument_id,
            record.acquired_date.isoformat(),
            record.disposal_date.isoformat(),
            format_decimal(record.quantity),
            format_currency(record.unit_cost),
            format_currency(record.unit_sale_price),
            str(record.holding_period_days),
            record.term.value,
            format_currency(record.realized_gain),
        ]
        for record in report.realization_records
    ]
    headers = ["Instrument", "Acquired", "Disposed", "Quantity", "Cost", "Price", "Days", "Term", "Gain"]
    print(render_table(headers, rows, left_aligned=3))


def render_reconciliation_warnings(warnings: Iterable[ReconciliationWarning]) -> None:
    warnings_list = list(warnings)
    if not warnings_list:
        return
    print("Reconciliation warnings:")
    for warning in warnings_list:
        print(f"  {warning.message}")


def render_skipped_events(skipped_events: Iterable[SkippedEvent]) -> None:
    skipped = list(skipped_events)
    if not skipped:
        return
    print(f"Skipped {len(skipped)} malformed transaction rows:")
    for event in skipped:
        print(f"  row {event.row_number}: {event.reason}")
