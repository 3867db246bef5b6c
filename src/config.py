from __future__ import annotations

from decimal import Decimal
from functools import cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from domain.tax_calculator import RateSchedule

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ARTIFACTS_DIR = PROJECT_ROOT / "artifacts"
DB_FILE = ARTIFACTS_DIR / "tax_lots.db"


class AppSettings(BaseSettings):
    # Reference jurisdiction: Indian listed equity, AY 2024-25.
    short_term_rate: Decimal = Decimal("0.15")
    long_term_rate: Decimal = Decimal("0.10")
    long_term_exemption: Decimal = Decimal("100000")
    long_term_holding_threshold_days: int = 365
    dividend_rate: Decimal = Decimal("0.30")
    fiscal_year_start_month: int = 1

    transactions_api_url: str | None = None
    transactions_api_timeout: float = 10.0
    db_file: Path = DB_FILE

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @field_validator("fiscal_year_start_month")
    @classmethod
    def _validate_start_month(cls, value: int) -> int:
        if not 1 <= value <= 12:
            raise ValueError("fiscal_year_start_month must be within 1..12")
        return value

    def rate_schedule(self) -> RateSchedule:
        return RateSchedule(
            short_term_rate=self.short_term_rate,
            long_term_rate=self.long_term_rate,
            long_term_exemption=self.long_term_exemption,
            long_term_holding_threshold_days=self.long_term_holding_threshold_days,
            dividend_rate=self.dividend_rate,
        )


@cache
def config() -> AppSettings:
    return AppSettings()
