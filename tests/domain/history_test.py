from pathlib import Path
from unittest.mock import Mock

from sqlalchemy.orm import Session

from db.repositories import TaxReportRepository, TransactionEventRepository
from domain.history import TaxReportSink, TransactionHistoryProvider
from importers.csv_importer import TransactionCsvImporter
from services.transactions_api_client import ApiTransactionHistory, TransactionsApiClient


def test_history_sources_satisfy_provider_protocol(tmp_path: Path, test_session: Session) -> None:
    api_history = ApiTransactionHistory(TransactionsApiClient(base_url="http://api", session=Mock()))

    assert isinstance(TransactionCsvImporter(tmp_path / "transactions.csv"), TransactionHistoryProvider)
    assert isinstance(api_history, TransactionHistoryProvider)
    assert isinstance(TransactionEventRepository(test_session), TransactionHistoryProvider)


def test_report_repository_satisfies_sink_protocol(test_session: Session) -> None:
    assert isinstance(TaxReportRepository(test_session), TaxReportSink)
