import sys
import os

import pytest
from pydantic import ValidationError

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models import LockedDisputePolicy
from settings import LedgerSettings


class TestLedgerSettings:
    def test_defaults(self, monkeypatch):
        for name in ("LOG_LEVEL", "LOCKED_DISPUTE_POLICY", "OUTPUT_PRECISION", "REPORT"):
            monkeypatch.delenv(f"LEDGER_{name}", raising=False)

        settings = LedgerSettings()

        assert settings.LOG_LEVEL == "WARNING"
        assert settings.LOCKED_DISPUTE_POLICY == LockedDisputePolicy.ALLOW
        assert settings.OUTPUT_PRECISION == 4
        assert settings.REPORT is True

    def test_log_level_upper_cased(self, monkeypatch):
        monkeypatch.setenv("LEDGER_LOG_LEVEL", " debug ")
        assert LedgerSettings().LOG_LEVEL == "DEBUG"

    def test_unknown_log_level(self, monkeypatch):
        monkeypatch.setenv("LEDGER_LOG_LEVEL", "verbose")
        with pytest.raises(ValidationError):
            LedgerSettings()

    def test_precision_bounds(self, monkeypatch):
        monkeypatch.setenv("LEDGER_OUTPUT_PRECISION", "29")
        with pytest.raises(ValidationError):
            LedgerSettings()
