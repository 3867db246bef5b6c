from __future__ import annotations

import logging
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util import Retry

from domain.ledger import LedgerEvent
from importers.transaction_rows import NormalizedTransactions, normalize_transaction_rows

logger = logging.getLogger(__name__)


class TransactionsApiError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None, payload: Any | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class TransactionsApiClient:
    """Client for the portfolio backend's transaction history endpoint."""

    def __init__(
        self,
        *,
        base_url: str,
        timeout: float = 10.0,
        session: requests.Session | None = None,
        retry_attempts: int = 5,
        retry_backoff_seconds: float = 1,
    ) -> None:
        if not base_url:
            msg = "base_url must be provided"
            raise ValueError(msg)

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

        retries = Retry(
            total=retry_attempts,
            backoff_factor=retry_backoff_seconds,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=frozenset({"GET"}),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retries)
        self._session.mount("https://", adapter)
        self._session.mount("http://", adapter)

    def get_transaction_rows(self) -> list[dict[str, Any]]:
        payload = self._request("GET", "/transactions")
        if isinstance(payload, dict):
            rows = payload.get("data", payload.get("transactions"))
        else:
            rows = payload

        if not isinstance(rows, list):
            raise TransactionsApiError("Transactions API returned unexpected payload type", payload=payload)
        for row in rows:
            if not isinstance(row, dict):
                raise TransactionsApiError("Transactions API returned a non-object row", payload=row)
        return rows

    def _request(self, method: str, path: str) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self._session.request(method, url, timeout=self.timeout)
            response.raise_for_status()
        except requests.HTTPError as exc:
            resp = exc.response
            status_code = getattr(resp, "status_code", None)
            error_payload: Any | None = None
            message = "Transactions API request failed"
            if resp is not None:
                try:
                    error_payload = resp.json()
                    if isinstance(error_payload, dict) and error_payload.get("error"):
                        message = str(error_payload["error"])
                except ValueError:
                    error_payload = resp.text
            raise TransactionsApiError(message, status_code=status_code, payload=error_payload) from exc
        except requests.RequestException as exc:
            status_code = getattr(getattr(exc, "response", None), "status_code", None)
            raise TransactionsApiError("Transactions API request failed", status_code=status_code) from exc

        try:
            return response.json()
        except ValueError as exc:
            raise TransactionsApiError("Transactions API returned invalid JSON", payload=response.text) from exc


class ApiTransactionHistory:
    """Transaction history provider backed by `TransactionsApiClient`."""

    def __init__(self, client: TransactionsApiClient) -> None:
        self._client = client

    def load(self) -> NormalizedTransactions:
        rows = self._client.get_transaction_rows()
        result = normalize_transaction_rows(rows)
        logger.info(
            "Fetched %d transaction rows from %s (%d skipped)",
            len(rows),
            self._client.base_url,
            len(result.skipped_events),
        )
        return result

    def load_events(self) -> list[LedgerEvent]:
        return self.load().events
