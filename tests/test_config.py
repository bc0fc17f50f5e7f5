"""
Tests for environment-driven engine settings and the service container.
"""
import pytest

from ledgerpost.core.config import EngineSettings, RevenueAccountPolicy
from ledgerpost.di.container import ServiceContainer


def test_defaults(monkeypatch):
    for name in (
        "DATA_API_URL",
        "DATA_API_TOKEN",
        "ACCOUNT_DEFAULTS_TTL_SECS",
        "REVENUE_ACCOUNT_POLICY",
        "VOID_MARKS_ORIGINAL_ENTRY",
        "RECORD_REVERSING_ENTRY_ID",
        "DEFAULT_ACTING_USER",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = EngineSettings.from_env()

    assert settings.data_api_url == "http://localhost:5000/api"
    assert settings.data_api_token is None
    assert settings.account_defaults_ttl_secs == 60.0
    assert settings.revenue_account_policy is RevenueAccountPolicy.FALLBACK
    assert settings.void_marks_original_entry is True
    assert settings.record_reversing_entry_id is False
    assert settings.default_acting_user == "system"


def test_from_env(monkeypatch):
    monkeypatch.setenv("DATA_API_URL", "https://data.example.com/api/")
    monkeypatch.setenv("REVENUE_ACCOUNT_POLICY", "REQUIRE")
    monkeypatch.setenv("VOID_MARKS_ORIGINAL_ENTRY", "false")
    monkeypatch.setenv("RECORD_REVERSING_ENTRY_ID", "1")
    monkeypatch.setenv("ACCOUNT_DEFAULTS_TTL_SECS", "5")

    settings = EngineSettings.from_env()

    assert settings.data_api_url == "https://data.example.com/api"
    assert settings.revenue_account_policy is RevenueAccountPolicy.REQUIRE
    assert settings.void_marks_original_entry is False
    assert settings.record_reversing_entry_id is True
    assert settings.account_defaults_ttl_secs == 5.0


def test_unknown_policy_falls_back(monkeypatch):
    monkeypatch.setenv("REVENUE_ACCOUNT_POLICY", "sometimes")

    assert EngineSettings.from_env().revenue_account_policy is RevenueAccountPolicy.FALLBACK


def test_negative_ttl_rejected():
    with pytest.raises(ValueError):
        EngineSettings(account_defaults_ttl_secs=-1)


def test_container_wires_settings():
    container = ServiceContainer(
        EngineSettings(
            data_api_url="http://data.test/api",
            account_defaults_ttl_secs=5,
            revenue_account_policy=RevenueAccountPolicy.REQUIRE,
            record_reversing_entry_id=True,
        )
    )

    assert container.posting().revenue_policy is RevenueAccountPolicy.REQUIRE
    assert container.reversal().record_reversing_entry_id is True
    assert container.resolver().cache.ttl_seconds == 5
    assert container.posting().locks is container.payments().locks
    assert container.client().base_url == "http://data.test/api"
    container.reset()
