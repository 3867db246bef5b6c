from __future__ import annotations

import argparse
import logging
from datetime import date
from pathlib import Path
from time import perf_counter
from typing import Sequence

from config import AppSettings, config
from db.db import init_db
from db.repositories import TaxReportRepository, TransactionEventRepository
from domain.history import TaxReportSink
from domain.lot_ledger import replay_history
from domain.reconciliation import LotLedgerError
from domain.tax_calculator import TaxReport, compute_tax_report
from importers.csv_importer import TransactionCsvImporter
from importers.transaction_rows import NormalizedTransactions
from services.transactions_api_client import ApiTransactionHistory, TransactionsApiClient
from utils.holdings_summary import compute_holdings_summary, render_holdings_summary
from utils.tax_summary import render_skipped_events, render_tax_report

logger = logging.getLogger(__name__)


def load_transactions(
    *, csv_path: Path | None, api_url: str | None, settings: AppSettings
) -> NormalizedTransactions:
    if csv_path is not None:
        logger.info("Importing transactions from %s", csv_path)
        return TransactionCsvImporter(csv_path).load()

    base_url = api_url or settings.transactions_api_url
    if not base_url:
        msg = "Either a CSV path or a transactions API URL must be provided"
        raise ValueError(msg)
    logger.info("Fetching transactions from %s", base_url)
    client = TransactionsApiClient(base_url=base_url, timeout=settings.transactions_api_timeout)
    return ApiTransactionHistory(client).load()


def run(
    *,
    fiscal_year: int,
    csv_path: Path | None = None,
    api_url: str | None = None,
    db_file: Path | None = None,
    persist: bool = True,
    settings: AppSettings | None = None,
) -> TaxReport:
    settings = settings or config()
    # Configuration errors surface before any event is read.
    rate_schedule = settings.rate_schedule()

    # Get data
    load_started = perf_counter()
    normalized = load_transactions(csv_path=csv_path, api_url=api_url, settings=settings)
    logger.info(
        "Loaded %d events (%d skipped) in %.2fs",
        len(normalized.events),
        len(normalized.skipped_events),
        perf_counter() - load_started,
    )
    # Stable: same-date events keep their source order.
    events = sorted(normalized.events, key=lambda event: event.event_date)

    report_repository: TaxReportSink | None = None
    if persist:
        db_path = db_file or settings.db_file
        logger.info("Opening DB at %s", db_path)
        session = init_db(db_file=db_path)
        event_repository = TransactionEventRepository(session)
        event_repository.replace_all(events)
        events = event_repository.list()
        report_repository = TaxReportRepository(session)

    # Process stuff
    replay = replay_history(events, long_term_threshold_days=rate_schedule.long_term_holding_threshold_days)
    report = compute_tax_report(
        replay.realization_records,
        replay.dividend_events,
        fiscal_year,
        rate_schedule,
        reconciliation_warnings=replay.reconciliation_warnings,
        fiscal_year_start_month=settings.fiscal_year_start_month,
    )
    if report_repository is not None:
        report_repository.save(report)
        logger.info("Stored tax report for FY%d", fiscal_year)

    # Print summary
    render_skipped_events(normalized.skipped_events)
    render_tax_report(report)
    render_holdings_summary(compute_holdings_summary(replay.open_lots))
    return report


def main(argv: Sequence[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Compute a FIFO capital-gains tax report from transaction history.")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--csv", type=Path, help="Transaction history CSV export")
    source.add_argument("--api-url", help="Base URL of the transactions API")
    parser.add_argument("--year", type=int, default=date.today().year, help="Fiscal year to report")
    parser.add_argument("--db-file", type=Path, default=None)
    parser.add_argument("--no-persist", action="store_true", help="Do not store events and the report")
    args = parser.parse_args(argv)

    try:
        run(
            fiscal_year=args.year,
            csv_path=args.csv,
            api_url=args.api_url,
            db_file=args.db_file,
            persist=not args.no_persist,
        )
    except LotLedgerError as exc:
        logger.error("Tax calculation aborted: %s", exc)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    main()
