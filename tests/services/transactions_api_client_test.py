from __future__ import annotations

from decimal import Decimal
from typing import Any
from unittest.mock import Mock

import pytest
import requests

from domain.ledger import EventType
from services.transactions_api_client import ApiTransactionHistory, TransactionsApiClient, TransactionsApiError


def _mock_response(payload: Any, status_code: int = 200) -> Mock:
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload
    response.text = "payload"
    response.raise_for_status.return_value = None
    return response


def test_get_transaction_rows_accepts_plain_list() -> None:
    session = Mock()
    rows = [{"ticker_symbol": "INFY", "txn_type": "buy", "txn_date": "2024-01-01", "quantity": 1, "price": 10}]
    session.request.return_value = _mock_response(rows)

    client = TransactionsApiClient(base_url="http://localhost:3000/api/", session=session)

    assert client.get_transaction_rows() == rows
    session.request.assert_called_once()
    args = session.request.call_args.args
    assert args == ("GET", "http://localhost:3000/api/transactions")
    assert session.request.call_args.kwargs["timeout"] == 10.0


def test_get_transaction_rows_unwraps_data_envelope() -> None:
    session = Mock()
    rows = [{"symbol": "TCS"}]
    session.request.return_value = _mock_response({"data": rows})

    client = TransactionsApiClient(base_url="http://api", session=session)

    assert client.get_transaction_rows() == rows


def test_retry_adapter_is_mounted() -> None:
    session = Mock()

    TransactionsApiClient(base_url="http://api", session=session)

    mounted = [call.args[0] for call in session.mount.call_args_list]
    assert mounted == ["https://", "http://"]


def test_http_error_raises_api_error() -> None:
    session = Mock()
    error_response = _mock_response({"error": "database unavailable"}, status_code=500)
    error_response.raise_for_status.side_effect = requests.HTTPError(response=error_response)
    session.request.return_value = error_response

    client = TransactionsApiClient(base_url="http://api", session=session)

    with pytest.raises(TransactionsApiError) as exc_info:
        client.get_transaction_rows()

    assert exc_info.value.status_code == 500
    assert str(exc_info.value) == "database unavailable"
    assert exc_info.value.payload == {"error": "database unavailable"}


def test_connection_error_raises_api_error() -> None:
    session = Mock()
    session.request.side_effect = requests.ConnectionError("refused")

    client = TransactionsApiClient(base_url="http://api", session=session)

    with pytest.raises(TransactionsApiError):
        client.get_transaction_rows()


def test_invalid_json_raises_api_error() -> None:
    session = Mock()
    response = _mock_response(None)
    response.json.side_effect = ValueError("no json")
    session.request.return_value = response

    client = TransactionsApiClient(base_url="http://api", session=session)

    with pytest.raises(TransactionsApiError, match="invalid JSON"):
        client.get_transaction_rows()


def test_unexpected_payload_raises_api_error() -> None:
    session = Mock()
    session.request.return_value = _mock_response({"message": "ok"})

    client = TransactionsApiClient(base_url="http://api", session=session)

    with pytest.raises(TransactionsApiError, match="unexpected payload"):
        client.get_transaction_rows()


def test_base_url_is_required() -> None:
    with pytest.raises(ValueError):
        TransactionsApiClient(base_url="", session=Mock())


def test_api_history_normalizes_rows() -> None:
    session = Mock()
    session.request.return_value = _mock_response(
        [
            {"ticker_symbol": "INFY", "txn_type": "buy", "txn_date": "2024-01-01", "quantity": 2, "price": "1500"},
            {"ticker_symbol": "INFY", "txn_type": "dividend", "txn_date": "2024-02-01", "total_value": "36"},
            {"ticker_symbol": "INFY", "txn_type": "sell", "txn_date": "2024-03-01"},
        ]
    )
    history = ApiTransactionHistory(TransactionsApiClient(base_url="http://api", session=session))

    result = history.load()

    assert [event.event_type for event in result.events] == [EventType.BUY, EventType.DIVIDEND]
    assert result.events[1].amount == Decimal("36")
    (skipped,) = result.skipped_events
    assert skipped.row_number == 3
