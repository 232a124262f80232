"""Tests for endpoints.py."""

import pytest
from pagerduty_scaffolder.config.reader import ConfigReader, ConfigSource
from pagerduty_scaffolder.core.errors import AccountNotFoundError
from pagerduty_scaffolder.endpoints import EndpointEntry, EndpointRegistry


def load(pagerduty):
    registry = EndpointRegistry()
    registry.load_endpoints(ConfigReader(ConfigSource({"pagerDuty": pagerduty})))
    return registry


class TestLegacyEndpoints:
    """Flat configuration without an accounts list."""

    def test_defaults_to_public_hosts(self):
        registry = load({"apiToken": "abc"})

        assert registry.is_legacy
        assert registry.get_api_base_url() == "https://api.pagerduty.com"
        assert registry.get_events_base_url() == "https://events.pagerduty.com/v2"
        assert registry.accounts() == ["default"]

    def test_overrides(self):
        registry = load(
            {
                "apiToken": "abc",
                "apiBaseUrl": "https://api.eu.pagerduty.com",
                "eventsBaseUrl": "https://events.eu.pagerduty.com/v2",
            }
        )
        assert registry.get_api_base_url() == "https://api.eu.pagerduty.com"
        assert registry.get_events_base_url() == "https://events.eu.pagerduty.com/v2"

    def test_account_id_is_ignored(self):
        registry = load({"apiBaseUrl": "https://api.example.com"})

        assert registry.get_api_base_url() == registry.get_api_base_url("anything")
        assert registry.get_api_base_url("anything") == "https://api.example.com"

    def test_missing_pagerduty_block(self):
        registry = EndpointRegistry()
        registry.load_endpoints(ConfigReader(ConfigSource({})))
        assert registry.get_api_base_url() == "https://api.pagerduty.com"


class TestMultiAccountEndpoints:
    """Configuration with `pagerDuty.accounts`."""

    def test_single_account_aliased_as_default(self):
        registry = load({"accounts": [{"id": "acct", "apiBaseUrl": "https://api.acct.example.com"}]})

        assert not registry.is_legacy
        assert registry.get_api_base_url("acct") == "https://api.acct.example.com"
        assert registry.get_api_base_url("default") == "https://api.acct.example.com"
        assert registry.get_api_base_url() == "https://api.acct.example.com"
        assert registry.accounts() == ["acct"]

    def test_default_account_is_fallback(self):
        registry = load(
            {
                "accounts": [
                    {"id": "us", "apiBaseUrl": "https://api.us.example.com"},
                    {"id": "eu", "apiBaseUrl": "https://api.eu.example.com", "isDefault": True},
                ]
            }
        )

        assert registry.get_api_base_url() == "https://api.eu.example.com"
        assert registry.get_api_base_url("us") == "https://api.us.example.com"
        assert registry.accounts() == ["us", "eu"]

    def test_defaults_per_account(self):
        registry = load({"accounts": [{"id": "a", "isDefault": True}, {"id": "b"}]})
        assert registry.get_entry("b") == EndpointEntry()

    def test_unknown_account_raises(self):
        registry = load({"accounts": [{"id": "a", "isDefault": True}, {"id": "b"}]})

        with pytest.raises(AccountNotFoundError) as exc:
            registry.get_api_base_url("c")
        assert exc.value.account_id == "c"

    def test_no_default_and_no_account_raises(self):
        registry = load({"accounts": [{"id": "a"}, {"id": "b"}]})

        with pytest.raises(AccountNotFoundError):
            registry.get_api_base_url()

    def test_alias_not_available_with_many_accounts(self):
        registry = load({"accounts": [{"id": "a", "isDefault": True}, {"id": "b"}]})

        with pytest.raises(AccountNotFoundError):
            registry.get_api_base_url("default")

    def test_reload_replaces_entries(self):
        registry = load({"accounts": [{"id": "a"}]})
        registry.load_endpoints(ConfigReader(ConfigSource({"pagerDuty": {"accounts": [{"id": "b"}]}})))

        assert registry.accounts() == ["b"]
        with pytest.raises(AccountNotFoundError):
            registry.get_api_base_url("a")

    def test_invalid_accounts_logged_not_raised(self):
        registry = load({"accounts": "not-a-list"})

        assert registry.accounts() == []
        with pytest.raises(AccountNotFoundError):
            registry.get_api_base_url()

    def test_duplicate_account_ids_rejected(self):
        registry = load({"accounts": [{"id": "a", "isDefault": True}, {"id": "a"}]})

        assert registry.accounts() == []

    def test_logs_to_given_logger(self):
        events = []

        class Recorder:
            def debug(self, event, **kwargs):
                events.append(event)

            def error(self, event, **kwargs):
                events.append(event)

        registry = EndpointRegistry(logger=Recorder())
        registry.load_endpoints(ConfigReader(ConfigSource({"pagerDuty": {"accounts": "not-a-list"}})))

        assert events == ["endpoint_config_invalid"]
