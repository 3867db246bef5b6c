from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from db.repositories import TaxReportRepository, TransactionEventRepository
from domain.lot_ledger import replay_history
from domain.tax_calculator import RateSchedule, TaxReport, compute_tax_report
from tests.constants import INFY, TCS
from tests.helpers.event_factory import make_buy, make_dividend, make_sell


@pytest.fixture()
def event_repo(test_session: Session) -> TransactionEventRepository:
    return TransactionEventRepository(test_session)


@pytest.fixture()
def report_repo(test_session: Session) -> TaxReportRepository:
    return TaxReportRepository(test_session)


def _report(fiscal_year: int, rate_schedule: RateSchedule) -> TaxReport:
    events = [
        make_buy(INFY, "10", "1400.50", date(2023, 1, 10)),
        make_sell(INFY, "4", "1650", date(2024, 2, 1)),
        make_sell(INFY, "8", "1700", date(2024, 3, 1)),
        make_dividend(INFY, "180.25", date(2024, 5, 1)),
    ]
    replay = replay_history(events)
    return compute_tax_report(
        replay.realization_records,
        replay.dividend_events,
        fiscal_year,
        rate_schedule,
        reconciliation_warnings=replay.reconciliation_warnings,
    )


def test_events_round_trip_with_exact_decimals(event_repo: TransactionEventRepository) -> None:
    buy = make_buy(INFY, "10.125", "1400.0100", date(2024, 1, 10))
    dividend = make_dividend(INFY, "18.50", date(2024, 2, 1))

    event_repo.create_many([buy, dividend])
    stored = event_repo.list()

    assert stored == [buy, dividend]
    assert str(stored[0].unit_price) == "1400.0100"
    assert stored[1].quantity is None


def test_events_are_listed_by_date_then_insertion_order(event_repo: TransactionEventRepository) -> None:
    later = make_buy(TCS, 1, 10, date(2024, 3, 1))
    same_day_first = make_buy(INFY, 1, 10, date(2024, 1, 1))
    same_day_second = make_sell(INFY, 1, 12, date(2024, 1, 1))

    event_repo.create_many([later, same_day_first, same_day_second])

    assert [event.id for event in event_repo.load_events()] == [same_day_first.id, same_day_second.id, later.id]


def test_replace_all_discards_previous_events(event_repo: TransactionEventRepository) -> None:
    event_repo.create_many([make_buy(INFY, 1, 10, date(2024, 1, 1))])
    replacement = make_buy(TCS, 2, 20, date(2024, 1, 2))

    event_repo.replace_all([replacement])

    assert event_repo.list() == [replacement]


def test_report_round_trip(report_repo: TaxReportRepository, rate_schedule: RateSchedule) -> None:
    report = _report(2024, rate_schedule)
    assert report.reconciliation_warnings

    report_repo.save(report)
    stored = report_repo.get(2024)

    assert stored == report


def test_saving_same_year_replaces_report(report_repo: TaxReportRepository, rate_schedule: RateSchedule) -> None:
    report_repo.save(_report(2024, rate_schedule))
    empty = compute_tax_report([], [], 2024, rate_schedule)

    report_repo.save(empty)

    stored = report_repo.get(2024)
    assert stored is not None
    assert stored.realization_records == []
    assert stored.reconciliation_warnings == []
    assert stored.total_tax == Decimal("0")


def test_get_missing_year_returns_none(report_repo: TaxReportRepository) -> None:
    assert report_repo.get(1999) is None


def test_list_orders_by_fiscal_year(report_repo: TaxReportRepository, rate_schedule: RateSchedule) -> None:
    report_repo.save(_report(2024, rate_schedule))
    report_repo.save(_report(2023, rate_schedule))

    assert [report.fiscal_year for report in report_repo.list()] == [2023, 2024]
