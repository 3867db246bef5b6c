from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, DateTime, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.types import TypeDecorator


class DecimalAsString(TypeDecorator):
    impl = String
    cache_ok = True

    def process_bind_param(self, value: Decimal | None, dialect: object) -> str | None:
        if value is None:
            return None
        return str(value)

    def process_result_value(self, value: str | None, dialect: object) -> Decimal | None:
        if value is None:
            return None
        return Decimal(value)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class TransactionEventOrm(Base):
    __tablename__ = "transaction_events"

    # Insertion order is the tie-break for events sharing a date.
    sequence: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[UUID] = mapped_column(Uuid, unique=True, nullable=False)
    instrument_id: Mapped[str] = mapped_column(String, nullable=False)
    event_type: Mapped[str] = mapped_column(String, nullable=False)
    event_date: Mapped[date] = mapped_column(Date, nullable=False)
    quantity: Mapped[Decimal | None] = mapped_column(DecimalAsString, nullable=True)
    unit_price: Mapped[Decimal | None] = mapped_column(DecimalAsString, nullable=True)
    amount: Mapped[Decimal | None] = mapped_column(DecimalAsString, nullable=True)


class TaxReportOrm(Base):
    __tablename__ = "tax_reports"

    fiscal_year: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    short_term_gain: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    short_term_rate: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    short_term_tax: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    long_term_gain: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    long_term_exemption: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    long_term_taxable_gain: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    long_term_rate: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    long_term_tax: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    dividend_income: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    dividend_rate: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    dividend_tax: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    total_tax: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    calculated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)

    realization_records: Mapped[list["RealizationRecordOrm"]] = relationship(
        cascade="all, delete-orphan",
        back_populates="report",
        order_by="RealizationRecordOrm.position",
    )
    reconciliation_warnings: Mapped[list["ReconciliationWarningOrm"]] = relationship(
        cascade="all, delete-orphan",
        back_populates="report",
        order_by="ReconciliationWarningOrm.position",
    )


class RealizationRecordOrm(Base):
    __tablename__ = "realization_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    fiscal_year: Mapped[int] = mapped_column(Integer, ForeignKey("tax_reports.fiscal_year"), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    instrument_id: Mapped[str] = mapped_column(String, nullable=False)
    buy_event_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    sell_event_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    acquired_date: Mapped[date] = mapped_column(Date, nullable=False)
    disposal_date: Mapped[date] = mapped_column(Date, nullable=False)
    quantity: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    unit_cost: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    unit_sale_price: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    holding_period_days: Mapped[int] = mapped_column(Integer, nullable=False)
    term: Mapped[str] = mapped_column(String, nullable=False)
    realized_gain: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)

    report: Mapped[TaxReportOrm] = relationship(back_populates="realization_records")


class ReconciliationWarningOrm(Base):
    __tablename__ = "reconciliation_warnings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    fiscal_year: Mapped[int] = mapped_column(Integer, ForeignKey("tax_reports.fiscal_year"), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    kind: Mapped[str] = mapped_column(String, nullable=False)
    instrument_id: Mapped[str] = mapped_column(String, nullable=False)
    event_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    event_date: Mapped[date] = mapped_column(Date, nullable=False)
    requested_quantity: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    unmatched_quantity: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)

    report: Mapped[TaxReportOrm] = relationship(back_populates="reconciliation_warnings")
