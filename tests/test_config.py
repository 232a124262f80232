"""Tests for the config package.

Covers dotted-path reading, app-config loading and the legacy /
multi-account mode split.
"""

from pathlib import Path

import pytest
from pagerduty_scaffolder.config.loader import (
    ConfigLoader,
    EnvSubstitutor,
    deep_merge,
    get_config_paths,
    load_backend_config,
)
from pagerduty_scaffolder.config.models import (
    AccountConfig,
    LegacyMode,
    MultiAccountMode,
    OAuthConfig,
    resolve_config_mode,
)
from pagerduty_scaffolder.config.reader import ConfigReader, ConfigSource
from pagerduty_scaffolder.core.errors import ConfigError, ConfigurationError


class TestConfigSource:
    """Tests for ConfigSource dotted lookups."""

    def test_nested_string(self):
        source = ConfigSource({"pagerDuty": {"oauth": {"clientId": "abc"}}})
        assert source.get_optional_string("pagerDuty.oauth.clientId") == "abc"

    def test_missing_optional_is_none(self):
        source = ConfigSource({"pagerDuty": {}})
        assert source.get_optional("pagerDuty.accounts") is None
        assert source.get_optional_string("pagerDuty.apiToken") is None

    def test_path_through_scalar_is_missing(self):
        source = ConfigSource({"pagerDuty": "oops"})
        assert source.get_optional("pagerDuty.apiToken") is None

    def test_structured_value(self):
        accounts = [{"id": "a"}, {"id": "b"}]
        source = ConfigSource({"pagerDuty": {"accounts": accounts}})
        assert source.get_optional("pagerDuty.accounts") == accounts

    def test_get_string_missing_raises_config_error(self):
        source = ConfigSource({}, context="app-config.yaml")
        with pytest.raises(ConfigError) as exc:
            source.get_string("pagerDuty.apiToken")
        assert "pagerDuty.apiToken" in str(exc.value)
        assert "app-config.yaml" in str(exc.value)

    def test_wrong_type_raises(self):
        source = ConfigSource({"pagerDuty": {"apiToken": 123}})
        with pytest.raises(ConfigurationError) as exc:
            source.get_optional_string("pagerDuty.apiToken")
        assert "wanted string" in str(exc.value)

    def test_has(self):
        source = ConfigSource({"a": {"b": None, "c": "x"}})
        assert source.has("a.c")
        assert not source.has("a.b")
        assert not source.has("a.d")


class TestConfigReader:
    """Tests for new vs legacy source selection."""

    def test_new_source_wins(self):
        reader = ConfigReader(
            ConfigSource({"pagerDuty": {"apiToken": "new"}}),
            ConfigSource({"pagerDuty": {"apiToken": "legacy"}}),
        )
        assert reader.read_string("pagerDuty.apiToken") == "new"

    def test_falls_back_to_legacy_source(self):
        reader = ConfigReader(None, ConfigSource({"pagerDuty": {"apiToken": "legacy"}}))
        assert reader.read_optional_string("pagerDuty.apiToken") == "legacy"

    def test_new_source_does_not_merge_legacy(self):
        reader = ConfigReader(ConfigSource({}), ConfigSource({"pagerDuty": {"apiToken": "legacy"}}))
        assert reader.read_optional_string("pagerDuty.apiToken") is None

    def test_no_sources(self):
        reader = ConfigReader()
        assert reader.read_optional("pagerDuty") is None
        with pytest.raises(ConfigError):
            reader.read_string("pagerDuty.apiToken")


class TestEnvSubstitutor:
    """Tests for ${VAR} substitution."""

    def test_whole_value(self):
        sub = EnvSubstitutor({"PD_TOKEN": "secret"})
        assert sub.substitute({"apiToken": "${PD_TOKEN}"}) == {"apiToken": "secret"}

    def test_embedded_value(self):
        sub = EnvSubstitutor({"SUB": "acme"})
        assert sub.substitute("https://${SUB}.pagerduty.com") == "https://acme.pagerduty.com"

    def test_unset_whole_value_becomes_none(self):
        sub = EnvSubstitutor({})
        assert sub.substitute({"apiToken": "${MISSING}"}) == {"apiToken": None}

    def test_lists_and_scalars(self):
        sub = EnvSubstitutor({"ID": "acct"})
        assert sub.substitute([{"id": "${ID}", "isDefault": True}, 3]) == [
            {"id": "acct", "isDefault": True},
            3,
        ]


class TestDeepMerge:
    def test_nested_override(self):
        base = {"pagerDuty": {"apiToken": "a", "apiBaseUrl": "https://x"}}
        merged = deep_merge(base, {"pagerDuty": {"apiToken": "b"}})
        assert merged == {"pagerDuty": {"apiToken": "b", "apiBaseUrl": "https://x"}}
        assert base["pagerDuty"]["apiToken"] == "a"

    def test_lists_replaced(self):
        merged = deep_merge({"accounts": [1, 2]}, {"accounts": [3]})
        assert merged == {"accounts": [3]}


class TestConfigLoader:
    """Tests for app-config file loading."""

    def test_merges_files_in_order(self, tmp_path: Path):
        base = tmp_path / "app-config.yaml"
        local = tmp_path / "app-config.local.yaml"
        base.write_text("pagerDuty:\n  apiToken: base\n  apiBaseUrl: https://api.example.com\n")
        local.write_text("pagerDuty:\n  apiToken: local\n")

        source = load_backend_config([base, local], environ={})

        assert source.get_string("pagerDuty.apiToken") == "local"
        assert source.get_string("pagerDuty.apiBaseUrl") == "https://api.example.com"

    def test_env_substitution(self, tmp_path: Path):
        path = tmp_path / "app-config.yaml"
        path.write_text("pagerDuty:\n  apiToken: ${PAGERDUTY_TOKEN}\n")

        source = load_backend_config([path], environ={"PAGERDUTY_TOKEN": "from-env"})

        assert source.get_string("pagerDuty.apiToken") == "from-env"

    def test_missing_explicit_path_raises(self, tmp_path: Path):
        with pytest.raises(ConfigurationError) as exc:
            get_config_paths([tmp_path / "nope.yaml"])
        assert "nope.yaml" in exc.value.details["paths"]

    def test_default_search(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "app-config.yaml").write_text("pagerDuty:\n  apiToken: abc\n")

        paths = get_config_paths()

        assert [p.name for p in paths] == ["app-config.yaml"]

    def test_no_files_gives_empty_source(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        source = ConfigLoader().load()
        assert source.get_optional("pagerDuty") is None

    def test_non_mapping_file_raises(self, tmp_path: Path):
        path = tmp_path / "app-config.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigurationError):
            load_backend_config([path])

    def test_invalid_yaml_raises(self, tmp_path: Path):
        path = tmp_path / "app-config.yaml"
        path.write_text("pagerDuty: [unclosed\n")
        with pytest.raises(ConfigurationError) as exc:
            load_backend_config([path])
        assert "Failed to load config file" in exc.value.message


class TestResolveConfigMode:
    """Tests for the legacy / multi-account split."""

    def test_legacy_when_no_accounts(self):
        reader = ConfigReader(ConfigSource({"pagerDuty": {"apiToken": "abc", "apiBaseUrl": "https://x"}}))
        mode = resolve_config_mode(reader)
        assert isinstance(mode, LegacyMode)
        assert mode.api_token == "abc"
        assert mode.api_base_url == "https://x"
        assert mode.oauth is None

    def test_legacy_oauth(self):
        reader = ConfigReader(
            ConfigSource(
                {"pagerDuty": {"oauth": {"clientId": "id", "clientSecret": "s", "subDomain": "acme"}}}
            )
        )
        mode = resolve_config_mode(reader)
        assert isinstance(mode, LegacyMode)
        assert mode.oauth == OAuthConfig(client_id="id", client_secret="s", sub_domain="acme")
        assert mode.oauth.effective_region == "us"

    def test_multi_account(self):
        reader = ConfigReader(
            ConfigSource(
                {
                    "pagerDuty": {
                        "accounts": [
                            {"id": "us-acct", "apiToken": "t1", "isDefault": True},
                            {
                                "id": "eu-acct",
                                "oauth": {
                                    "clientId": "id",
                                    "clientSecret": "s",
                                    "subDomain": "acme",
                                    "region": "eu",
                                },
                                "apiBaseUrl": "https://api.eu.pagerduty.com",
                            },
                        ]
                    }
                }
            )
        )
        mode = resolve_config_mode(reader)

        assert isinstance(mode, MultiAccountMode)
        assert [a.id for a in mode.accounts] == ["us-acct", "eu-acct"]
        assert mode.default_account_id == "us-acct"
        assert mode.get("eu-acct").oauth.effective_region == "eu"
        assert mode.get("eu-acct").api_base_url == "https://api.eu.pagerduty.com"
        assert mode.get("missing") is None

    def test_single_account_is_default(self):
        mode = MultiAccountMode((AccountConfig(id="only"),))
        assert mode.default_account_id == "only"

    def test_no_default_among_many(self):
        mode = MultiAccountMode((AccountConfig(id="a"), AccountConfig(id="b")))
        assert mode.default_account_id is None

    def test_empty_accounts_list_is_multi_account(self):
        reader = ConfigReader(ConfigSource({"pagerDuty": {"accounts": []}}))
        mode = resolve_config_mode(reader)
        assert isinstance(mode, MultiAccountMode)
        assert mode.default_account_id is None

    def test_accounts_not_a_list(self):
        reader = ConfigReader(ConfigSource({"pagerDuty": {"accounts": {"id": "a"}}}))
        with pytest.raises(ConfigurationError):
            resolve_config_mode(reader)

    def test_account_without_id(self):
        with pytest.raises(ConfigurationError) as exc:
            AccountConfig.from_dict({"apiToken": "abc"})
        assert "'id'" in exc.value.message

    def test_secrets_not_in_repr(self):
        account = AccountConfig.from_dict(
            {"id": "a", "apiToken": "tok-123", "oauth": {"clientId": "c", "clientSecret": "shh", "subDomain": "x"}}
        )
        assert "tok-123" not in repr(account)
        assert "shh" not in repr(account)

    def test_incomplete_oauth(self):
        assert not OAuthConfig(client_id="c", sub_domain="x").is_complete
        assert OAuthConfig(client_id="c", client_secret="s", sub_domain="x").is_complete

    def test_duplicate_account_ids(self):
        reader = ConfigReader(ConfigSource({"pagerDuty": {"accounts": [{"id": "a"}, {"id": "b"}, {"id": "a"}]}}))
        with pytest.raises(ConfigurationError) as exc:
            resolve_config_mode(reader)
        assert exc.value.details == {"account": "a"}
