"""Tests for configuration management."""

import os
import stat
from unittest.mock import patch

import pytest

from registrar_migrate.core.config_loader import (
    AppConfig,
    clear_config,
    get_config_path,
    load_config,
    save_config,
    update_config,
)
from registrar_migrate.core.exceptions import ConfigurationError
from registrar_migrate.core.settings import MigrationSettings
from registrar_migrate.models import CloudflareCredentials, GoDaddyCredentials

ENV_VARS = [
    "GODADDY_API_KEY",
    "GODADDY_API_SECRET",
    "CLOUDFLARE_ACCOUNT_ID",
    "CLOUDFLARE_API_TOKEN",
    "CLOUDFLARE_API_KEY",
    "CLOUDFLARE_EMAIL",
    "REGISTRAR_MIGRATE_CONFIG",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep credentials from the developer's environment out of these tests."""
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    with patch("registrar_migrate.core.config_loader.load_dotenv"):
        yield


@pytest.fixture
def config_file(tmp_path):
    return tmp_path / "config.yml"


def test_missing_file_gives_empty_config(config_file):
    config = load_config(config_file)

    assert config == AppConfig()


def test_load_yaml_config(config_file):
    config_file.write_text(
        """
godaddy:
  api_key: gd-key
  api_secret: gd-secret
cloudflare:
  auth_type: global-key
  account_id: acct-1
  api_key: cf-key
  email: ops@example.com
registrant_contact:
  first_name: Ada
  last_name: Lovelace
  address: 1 Analytical Way
  city: London
  state: London
  zip: N1 9GU
  country: GB
  phone: "+44.2071234567"
  email: ada@example.com
"""
    )

    config = load_config(config_file)

    assert config.godaddy.api_key == "gd-key"
    assert config.cloudflare.transfer_capable is True
    assert config.registrant_contact.city == "London"


def test_env_overrides_file(config_file, monkeypatch):
    config_file.write_text("godaddy:\n  api_key: file-key\n  api_secret: file-secret\n")
    monkeypatch.setenv("GODADDY_API_KEY", "env-key")
    monkeypatch.setenv("GODADDY_API_SECRET", "env-secret")
    monkeypatch.setenv("CLOUDFLARE_ACCOUNT_ID", "acct-9")
    monkeypatch.setenv("CLOUDFLARE_API_TOKEN", "env-token")

    config = load_config(config_file)

    assert config.godaddy.api_key == "env-key"
    assert config.cloudflare.auth_type == "token"
    assert config.cloudflare.api_token == "env-token"
    assert config.cloudflare.transfer_capable is False


def test_env_global_key(config_file, monkeypatch):
    monkeypatch.setenv("CLOUDFLARE_ACCOUNT_ID", "acct-9")
    monkeypatch.setenv("CLOUDFLARE_API_KEY", "gk")
    monkeypatch.setenv("CLOUDFLARE_EMAIL", "ops@example.com")

    config = load_config(config_file)

    assert config.cloudflare.auth_type == "global-key"
    assert config.cloudflare.email == "ops@example.com"


def test_invalid_yaml_raises(config_file):
    config_file.write_text("godaddy: [unclosed")

    with pytest.raises(ConfigurationError):
        load_config(config_file)


def test_token_auth_without_token_rejected(config_file):
    config_file.write_text("cloudflare:\n  auth_type: token\n  account_id: acct-1\n")

    with pytest.raises(ConfigurationError, match="api_token"):
        load_config(config_file)


def test_non_mapping_yaml_treated_as_empty(config_file):
    config_file.write_text("- just\n- a list\n")

    assert load_config(config_file) == AppConfig()


def test_save_is_owner_only_and_round_trips(config_file):
    config = AppConfig(
        godaddy=GoDaddyCredentials(api_key="k", api_secret="s"),
        cloudflare=CloudflareCredentials(account_id="a", api_token="t"),
    )

    save_config(config, config_file)

    assert stat.S_IMODE(os.stat(config_file).st_mode) == 0o600
    assert load_config(config_file) == config


def test_update_merges_sections(config_file):
    save_config(AppConfig(godaddy=GoDaddyCredentials(api_key="k", api_secret="s")), config_file)

    updated = update_config(
        config_file, cloudflare={"account_id": "a", "api_token": "t"}
    )

    assert updated.godaddy.api_key == "k"
    assert load_config(config_file).cloudflare.api_token == "t"


def test_clear(config_file):
    save_config(AppConfig(), config_file)

    assert clear_config(config_file) is True
    assert not config_file.exists()
    assert clear_config(config_file) is False


def test_config_path_override(monkeypatch, tmp_path):
    monkeypatch.setenv("REGISTRAR_MIGRATE_CONFIG", str(tmp_path / "custom.yml"))

    assert get_config_path() == tmp_path / "custom.yml"


def test_config_path_default(monkeypatch, tmp_path):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

    assert get_config_path() == tmp_path / "registrar-migrate" / "config.yml"


class TestMigrationSettings:
    def test_defaults(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        settings = MigrationSettings()

        assert settings.godaddy_rate_limit == 55
        assert settings.godaddy_rate_window == 60.0
        assert settings.cloudflare_rate_limit == 1100
        assert settings.cloudflare_rate_window == 300.0
        assert settings.concurrency == 8
        assert settings.lock_max_retries == 4
        assert settings.lock_base_delay == 5.0
        assert settings.zone_poll_interval == 10.0
        assert settings.zone_activation_timeout == 300.0

    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("MIGRATION_CONCURRENCY", "3")
        monkeypatch.setenv("REGISTRAR_MIGRATE_DATA_DIR", str(tmp_path))

        settings = MigrationSettings()

        assert settings.concurrency == 3
        assert settings.store_path == tmp_path / "migrations.db"
