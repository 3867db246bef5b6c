from __future__ import annotations

from sqlalchemy.orm import Session

from db import models
from domain.ledger import EventId, EventType, HoldingTerm, InstrumentId, LedgerEvent, RealizationRecord
from domain.reconciliation import ReconciliationKind, ReconciliationWarning
from domain.tax_calculator import TaxReport


class TransactionEventRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create_many(self, events: list[LedgerEvent]) -> list[LedgerEvent]:
        orm_events = [
            models.TransactionEventOrm(
                id=event.id,
                instrument_id=event.instrument_id,
                event_type=event.event_type.value,
                event_date=event.event_date,
                quantity=event.quantity,
                unit_price=event.unit_price,
                amount=event.amount,
            )
            for event in events
        ]
        self._session.add_all(orm_events)
        self._session.commit()
        return events

    def replace_all(self, events: list[LedgerEvent]) -> list[LedgerEvent]:
        self._session.query(models.TransactionEventOrm).delete()
        return self.create_many(events)

    def list(self) -> list[LedgerEvent]:
        orm_events = (
            self._session.query(models.TransactionEventOrm)
            .order_by(models.TransactionEventOrm.event_date.asc(), models.TransactionEventOrm.sequence.asc())
            .all()
        )
        return [self._to_domain(event) for event in orm_events]

    def load_events(self) -> list[LedgerEvent]:
        return self.list()

    @staticmethod
    def _to_domain(orm_event: models.TransactionEventOrm) -> LedgerEvent:
        return LedgerEvent(
            id=EventId(orm_event.id),
            instrument_id=InstrumentId(orm_event.instrument_id),
            event_type=EventType(orm_event.event_type),
            event_date=orm_event.event_date,
            quantity=orm_event.quantity,
            unit_price=orm_event.unit_price,
            amount=orm_event.amount,
        )


class TaxReportRepository:
    """Stores one report per fiscal year; saving again replaces the previous one."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def save(self, report: TaxReport) -> TaxReport:
        existing = self._session.get(models.TaxReportOrm, report.fiscal_year)
        if existing is not None:
            self._session.delete(existing)
            self._session.flush()

        orm_report = models.TaxReportOrm(
            fiscal_year=report.fiscal_year,
            period_start=report.period_start,
            period_end=report.period_end,
            short_term_gain=report.short_term_gain,
            short_term_rate=report.short_term_rate,
            short_term_tax=report.short_term_tax,
            long_term_gain=report.long_term_gain,
            long_term_exemption=report.long_term_exemption,
            long_term_taxable_gain=report.long_term_taxable_gain,
            long_term_rate=report.long_term_rate,
            long_term_tax=report.long_term_tax,
            dividend_income=report.dividend_income,
            dividend_rate=report.dividend_rate,
            dividend_tax=report.dividend_tax,
            total_tax=report.total_tax,
        )
        orm_report.realization_records = [
            models.RealizationRecordOrm(
                position=position,
                instrument_id=record.instrument_id,
                buy_event_id=record.buy_event_id,
                sell_event_id=record.sell_event_id,
                acquired_date=record.acquired_date,
                disposal_date=record.disposal_date,
                quantity=record.quantity,
                unit_cost=record.unit_cost,
                unit_sale_price=record.unit_sale_price,
                holding_period_days=record.holding_period_days,
                term=record.term.value,
                realized_gain=record.realized_gain,
            )
            for position, record in enumerate(report.realization_records)
        ]
        orm_report.reconciliation_warnings = [
            models.ReconciliationWarningOrm(
                position=position,
                kind=warning.kind.value,
                instrument_id=warning.instrument_id,
                event_id=warning.event_id,
                event_date=warning.event_date,
                requested_quantity=warning.requested_quantity,
                unmatched_quantity=warning.unmatched_quantity,
            )
            for position, warning in enumerate(report.reconciliation_warnings)
        ]

        self._session.add(orm_report)
        self._session.commit()
        return report

    def get(self, fiscal_year: int) -> TaxReport | None:
        orm_report = self._session.get(models.TaxReportOrm, fiscal_year)
        if orm_report is None:
            return None
        return self._to_domain(orm_report)

    def list(self) -> list[TaxReport]:
        orm_reports = self._session.query(models.TaxReportOrm).order_by(models.TaxReportOrm.fiscal_year.asc()).all()
        return [self._to_domain(report) for report in orm_reports]

    @staticmethod
    def _to_domain(orm_report: models.TaxReportOrm) -> TaxReport:
        records = [
            RealizationRecord(
                instrument_id=InstrumentId(record.instrument_id),
                buy_event_id=EventId(record.buy_event_id),
                sell_event_id=EventId(record.sell_event_id),
                acquired_date=record.acquired_date,
                disposal_date=record.disposal_date,
                quantity=record.quantity,
                unit_cost=record.unit_cost,
                unit_sale_price=record.unit_sale_price,
                holding_period_days=record.holding_period_days,
                term=HoldingTerm(record.term),
                realized_gain=record.realized_gain,
            )
            for record in orm_report.realization_records
        ]
        warnings = [
            ReconciliationWarning(
                kind=ReconciliationKind(warning.kind),
                instrument_id=InstrumentId(warning.instrument_id),
                event_id=EventId(warning.event_id),
                event_date=warning.event_date,
                requested_quantity=warning.requested_quantity,
                unmatched_quantity=warning.unmatched_quantity,
            )
            for warning in orm_report.reconciliation_warnings
        ]
        return TaxReport(
            fiscal_year=orm_report.fiscal_year,
            period_start=orm_report.period_start,
            period_end=orm_report.period_end,
            short_term_gain=orm_report.short_term_gain,
            short_term_rate=orm_report.short_term_rate,
            short_term_tax=orm_report.short_term_tax,
            long_term_gain=orm_report.long_term_gain,
            long_term_exemption=orm_report.long_term_exemption,
            long_term_taxable_gain=orm_report.long_term_taxable_gain,
            long_term_rate=orm_report.long_term_rate,
            long_term_tax=orm_report.long_term_tax,
            dividend_income=orm_report.dividend_income,
            dividend_rate=orm_report.dividend_rate,
            dividend_tax=orm_report.dividend_tax,
            total_tax=orm_report.total_tax,
            realization_records=records,
            reconciliation_warnings=warnings,
        )
