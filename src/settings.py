from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from models import LockedDisputePolicy


class LedgerSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"

    # allow: a lock only blocks deposits and withdrawals; open disputes can still settle.
    # reject: every dispute, resolve and chargeback on a locked account is refused.
    LOCKED_DISPUTE_POLICY: LockedDisputePolicy = LockedDisputePolicy.ALLOW

    OUTPUT_PRECISION: int = Field(default=4, ge=0, le=28)

    # Print the processed/rejected summary to stderr after the run.
    REPORT: bool = True

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def upper_log_level(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value
