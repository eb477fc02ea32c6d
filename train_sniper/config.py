from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, List, Optional, Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

CsvList = Annotated[List[str], NoDecode]

DEFAULT_API_URL = (
    "https://www.lefrecce.it/Channels.Website.BFF.WEB/website/ticket/solutions"
)


class ConfigurationIncomplete(ValueError):
    """Nothing to check, nobody to tell, or no train criteria at all."""


@dataclass(frozen=True)
class MonitorSnapshot:
    """Configuration values a single run works with."""

    dates: Tuple[str, ...]
    categories: Tuple[str, ...]
    denominations: Tuple[str, ...]
    recipients: Tuple[str, ...]
    departure_location_id: Optional[int] = None
    arrival_location_id: Optional[int] = None

    def missing(self) -> List[str]:
        missing = [name for name in ("dates", "recipients") if not getattr(self, name)]
        # One criteria list alone is enough; the other simply matches nothing.
        if not self.categories and not self.denominations:
            missing.append("categories/denominations")
        return missing

    def ensure_complete(self) -> None:
        missing = self.missing()
        if missing:
            raise ConfigurationIncomplete(
                f"Missing configuration data: {', '.join(missing)}"
            )


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    dates_to_check: CsvList = Field(default_factory=list, alias="DATES_TO_CHECK")
    train_categories: CsvList = Field(
        default_factory=list, alias="TRAIN_CATEGORIES"
    )
    denominations: CsvList = Field(default_factory=list, alias="DENOMINATIONS")
    email_recipients: CsvList = Field(
        default_factory=list, alias="EMAIL_RECIPIENTS"
    )

    departure_location_id: Optional[int] = Field(
        None, alias="DEPARTURE_LOCATION_ID"
    )
    arrival_location_id: Optional[int] = Field(None, alias="ARRIVAL_LOCATION_ID")

    run_interval_s: int = Field(10, alias="RUN_INTERVAL_S")
    api_url: str = Field(DEFAULT_API_URL, alias="TRENITALIA_API_URL")
    request_timeout_s: float = Field(15.0, alias="REQUEST_TIMEOUT_S")

    email_user: str = Field("", alias="EMAIL_USER")
    email_pass: str = Field("", alias="EMAIL_PASS")
    smtp_host: str = Field("smtp.gmail.com", alias="SMTP_HOST")
    smtp_port: int = Field(465, alias="SMTP_PORT")
    smtp_use_tls: bool = Field(False, alias="SMTP_USE_TLS")
    mail_dry_run: bool = Field(False, alias="MAIL_DRY_RUN")

    cache_evict_past_dates: bool = Field(False, alias="CACHE_EVICT_PAST_DATES")

    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_file: str = Field("train_sniper.log", alias="LOG_FILE")

    @field_validator(
        "dates_to_check",
        "train_categories",
        "denominations",
        "email_recipients",
        mode="before",
    )
    @classmethod
    def _split_csv(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator("departure_location_id", "arrival_location_id", mode="before")
    @classmethod
    def _blank_location(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("run_interval_s")
    @classmethod
    def _interval_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("RUN_INTERVAL_S must be greater than 0")
        return v

    @field_validator("request_timeout_s")
    @classmethod
    def _timeout_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("REQUEST_TIMEOUT_S must be greater than 0")
        return v

    def snapshot(self) -> MonitorSnapshot:
        """Freeze the values one monitoring run needs."""
        return MonitorSnapshot(
            dates=tuple(self.dates_to_check),
            categories=tuple(self.train_categories),
            denominations=tuple(self.denominations),
            recipients=tuple(self.email_recipients),
            departure_location_id=self.departure_location_id,
            arrival_location_id=self.arrival_location_id,
        )


def load_settings() -> Settings:
    """Read settings from the environment and ``.env`` in the working directory.

    Not cached: every monitoring run calls this again so edits to either
    take effect without a restart. Real environment variables win over
    ``.env`` entries.
    """
    return Settings()  # type: ignore[call-arg]


__all__ = [
    "ConfigurationIncomplete",
    "MonitorSnapshot",
    "Settings",
    "load_settings",
]
