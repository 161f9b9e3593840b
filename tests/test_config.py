"""Tests for YAML configuration loading."""

import os

import pytest

from botmanager.config import CONFIG_ENV_VAR, load_config, parse_config
from botmanager.errors import ConfigError


VALID_YAML = """\
logFile: logs/manager.log
monitorInterval: 30
bots:
  badJokeBot:
    user: joker
    token: secret
    channels: ["#general"]
    autoConnect: true
    logFile: logs/joker.log
  quietBot:
    create: false
"""


class TestLoadConfig:
    def test_loads_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        (tmp_path / "config.yml").write_text(VALID_YAML, encoding="utf-8")

        config = load_config()

        bot = config.bots["badJokeBot"]
        assert bot.user == "joker"
        assert bot.channels == ("#general",)
        assert bot.auto_connect is True
        assert bot.create is True
        assert bot.reconnect is True
        assert bot.log_file == os.path.join(str(tmp_path), "logs", "joker.log")
        assert config.log_file == os.path.join(str(tmp_path), "logs", "manager.log")
        assert config.monitor_interval == 30.0
        assert config.bots["quietBot"].create is False

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="does not exist"):
            load_config(str(tmp_path / "nope.yml"))

    def test_env_var_path(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yml"
        path.write_text("bots: {}\n", encoding="utf-8")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        assert dict(load_config().bots) == {}

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yml"
        path.write_text("bots: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="invalid YAML"):
            load_config(str(path))


class TestParseConfig:
    def test_missing_credentials_fatal(self):
        with pytest.raises(ConfigError, match="user/token"):
            parse_config({"bots": {"b": {"user": "u"}}})

    def test_credentials_optional_when_not_created(self):
        config = parse_config({"bots": {"b": {"create": False}}})
        assert config.bots["b"].create is False

    def test_absolute_log_path_kept(self, tmp_path):
        target = str(tmp_path / "abs.log")
        config = parse_config({"logFile": target})
        assert config.log_file == target

    def test_non_mapping_root(self):
        with pytest.raises(ConfigError):
            parse_config(["not", "a", "mapping"])

    def test_empty_document(self):
        config = parse_config(None)
        assert dict(config.bots) == {}
        assert config.log_file is None
        assert config.monitor_interval is None

    def test_zero_interval_disables_monitor(self):
        assert parse_config({"monitorInterval": 0}).monitor_interval is None

    def test_bad_interval(self):
        with pytest.raises(ConfigError):
            parse_config({"monitorInterval": "often"})

    def test_snapshot_is_read_only(self):
        config = parse_config({"bots": {"b": {"user": "u", "token": "t"}}})
        with pytest.raises(TypeError):
            config.bots["c"] = config.bots["b"]
        with pytest.raises(Exception):
            config.log_file = "elsewhere"
