from decimal import Decimal

import pytest
from pydantic import ValidationError

from config import AppSettings


def test_defaults_match_reference_rates() -> None:
    settings = AppSettings(_env_file=None)

    schedule = settings.rate_schedule()

    assert schedule.short_term_rate == Decimal("0.15")
    assert schedule.long_term_rate == Decimal("0.10")
    assert schedule.long_term_exemption == Decimal("100000")
    assert schedule.long_term_holding_threshold_days == 365
    assert schedule.dividend_rate == Decimal("0.30")
    assert settings.fiscal_year_start_month == 1
    assert settings.transactions_api_url is None


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SHORT_TERM_RATE", "0.20")
    monkeypatch.setenv("LONG_TERM_EXEMPTION", "125000")
    monkeypatch.setenv("FISCAL_YEAR_START_MONTH", "4")
    monkeypatch.setenv("TRANSACTIONS_API_URL", "http://localhost:3000/api")

    settings = AppSettings(_env_file=None)

    assert settings.rate_schedule().short_term_rate == Decimal("0.20")
    assert settings.rate_schedule().long_term_exemption == Decimal("125000")
    assert settings.fiscal_year_start_month == 4
    assert settings.transactions_api_url == "http://localhost:3000/api"


def test_invalid_fiscal_year_start_month_is_rejected() -> None:
    with pytest.raises(ValidationError):
        AppSettings(_env_file=None, fiscal_year_start_month=13)


def test_invalid_rate_fails_when_schedule_is_built() -> None:
    settings = AppSettings(_env_file=None, long_term_rate=Decimal("-0.1"))

    with pytest.raises(ValueError):
        settings.rate_schedule()
