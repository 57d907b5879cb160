"""Tests for configuration loading."""

import json

import pytest
from pydantic import ValidationError

from smolmsg.config.app_config import AppConfig, ListConfig, ScanConfig, StorageConfig
from smolmsg.config.config_loader import MSGDIR_ENV, ConfigError, ConfigLoader


@pytest.fixture
def isolated_home(tmp_path, monkeypatch):
    """Run without the user's config file or environment."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv(MSGDIR_ENV, raising=False)
    monkeypatch.chdir(tmp_path)
    return home


class TestAppConfig:
    """Test configuration models."""

    def test_defaults(self):
        config = AppConfig()

        assert config.debug is False
        assert config.storage.msgdir == "~/.smolmsg"
        assert config.scan.message_suffix == ".msg"
        assert config.listing.limit == 20

    def test_storage_paths(self, tmp_path):
        storage = StorageConfig(msgdir=str(tmp_path))

        assert storage.get_msgdir() == tmp_path
        assert storage.get_inbox_path() == tmp_path / "inbox"
        assert storage.get_outbox_path() == tmp_path / "outbox"
        assert storage.get_database_path() == tmp_path / "smsg.db"
        assert storage.get_audit_log_path() == tmp_path / "logs" / "audit.log"

    def test_invalid_max_workers(self):
        with pytest.raises(ValidationError):
            ScanConfig(max_workers=0)

    def test_invalid_suffix(self):
        with pytest.raises(ValidationError):
            ScanConfig(message_suffix="msg")

    def test_invalid_limit(self):
        with pytest.raises(ValidationError):
            ListConfig(limit=0)


class TestConfigLoader:
    """Test config file and override precedence."""

    def test_default_config(self, isolated_home):
        config = ConfigLoader().load_app_config()
        assert config == AppConfig()

    def test_load_file(self, isolated_home, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"debug": True, "listing": {"limit": 5}}))

        config = ConfigLoader(path).load_app_config()

        assert config.debug is True
        assert config.listing.limit == 5

    def test_home_config_file(self, isolated_home):
        (isolated_home / ".smolmsg").mkdir()
        (isolated_home / ".smolmsg" / "config.json").write_text(json.dumps({"listing": {"limit": 7}}))

        assert ConfigLoader().load_app_config().listing.limit == 7

    def test_missing_explicit_file(self, isolated_home, tmp_path):
        with pytest.raises(ConfigError):
            ConfigLoader(tmp_path / "missing.json").load_app_config()

    def test_invalid_json(self, isolated_home, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json")

        with pytest.raises(ConfigError):
            ConfigLoader(path).load_app_config()

    def test_invalid_values(self, isolated_home, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"scan": {"max_workers": -1}}))

        with pytest.raises(ConfigError):
            ConfigLoader(path).load_app_config()

    def test_msgdir_precedence(self, isolated_home, tmp_path, monkeypatch):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"storage": {"msgdir": "/from/file"}}))

        assert ConfigLoader(path).load_app_config().storage.msgdir == "/from/file"

        monkeypatch.setenv(MSGDIR_ENV, "/from/env")
        assert ConfigLoader(path).load_app_config().storage.msgdir == "/from/env"

        loader = ConfigLoader(path, msgdir="/from/arg")
        assert loader.load_app_config().storage.msgdir == "/from/arg"

    def test_cached_until_reload(self, isolated_home, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"listing": {"limit": 5}}))
        loader = ConfigLoader(path)

        first = loader.load_app_config()
        path.write_text(json.dumps({"listing": {"limit": 9}}))

        assert loader.load_app_config() is first
        assert loader.reload().listing.limit == 9
