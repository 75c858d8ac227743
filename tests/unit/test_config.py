"""
Unit tests for config module.
"""

import logging
from pathlib import Path

import pytest

from claude_admin import config
from claude_admin.exceptions import ConfigError
from claude_admin.settings import DAEMON, Paths


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    monkeypatch.setattr(config, "CONFIG_PATH", path)
    return path


class TestLoadConfig:
    """Test config loading functionality."""

    def test_returns_empty_dict_when_no_file(self, config_file):
        assert config.load_config() == {}

    def test_loads_valid_yaml(self, config_file):
        config_file.write_text("log_level: debug\npoll_interval: 3\n")
        assert config.load_config() == {"log_level": "debug", "poll_interval": 3}

    def test_returns_empty_dict_on_invalid_yaml(self, config_file):
        config_file.write_text("invalid: yaml: content: [")
        assert config.load_config() == {}

    def test_returns_empty_dict_when_yaml_is_not_dict(self, config_file):
        config_file.write_text("- item1\n- item2\n")
        assert config.load_config() == {}

    def test_default_location_is_data_dir(self, tmp_path, monkeypatch):
        monkeypatch.setattr(config, "CONFIG_PATH", None)
        monkeypatch.setenv("CLAUDE_ADMIN_DIR", str(tmp_path))
        (tmp_path / "config.yaml").write_text("log_level: warn\n")
        assert config.load_config() == {"log_level": "warn"}


class TestSaveConfig:

    def test_round_trip(self, tmp_path, monkeypatch):
        path = tmp_path / "nested" / "config.yaml"
        monkeypatch.setattr(config, "CONFIG_PATH", path)
        config.save_config({"log_level": "info", "capture_lines": 80})
        assert config.load_config() == {"log_level": "info", "capture_lines": 80}


class TestLogLevel:

    @pytest.mark.parametrize("name,level", [
        ("trace", logging.DEBUG),
        ("debug", logging.DEBUG),
        ("info", logging.INFO),
        ("warn", logging.WARNING),
        ("WARNING", logging.WARNING),
        (" error ", logging.ERROR),
    ])
    def test_parse(self, name, level):
        assert config.parse_log_level(name) == level

    def test_parse_invalid(self):
        with pytest.raises(ConfigError, match="invalid log level: loud"):
            config.parse_log_level("loud")

    def test_override_wins(self, config_file):
        config_file.write_text("log_level: error\n")
        assert config.get_log_level("debug") == logging.DEBUG

    def test_from_file(self, config_file):
        config_file.write_text("log_level: error\n")
        assert config.get_log_level() == logging.ERROR

    def test_default_info(self, config_file):
        assert config.get_log_level() == logging.INFO

    def test_invalid_in_file(self, config_file):
        config_file.write_text("log_level: chatty\n")
        with pytest.raises(ConfigError):
            config.get_log_level()


class TestDaemonConfigResolve:

    def test_defaults(self, tmp_path, config_file):
        resolved = config.DaemonConfig.resolve(paths=Paths(tmp_path))

        assert resolved.db_path == tmp_path / "sessions.db"
        assert resolved.socket_path == tmp_path / "daemon.sock"
        assert resolved.pid_file == tmp_path / "daemon.pid"
        assert resolved.log_file == tmp_path / "daemon.log"
        assert resolved.json_log_file == tmp_path / "daemon.json.log"
        assert resolved.log_level == logging.INFO
        assert resolved.interval_fast == DAEMON.interval_fast
        assert resolved.interval_slow == DAEMON.interval_slow
        assert resolved.interval_idle == DAEMON.interval_idle
        assert resolved.capture_lines == DAEMON.capture_lines
        assert resolved.tmux_socket is None
        assert resolved.data_dir == tmp_path

    def test_cli_overrides(self, tmp_path, config_file):
        resolved = config.DaemonConfig.resolve(
            log_level="debug",
            db_path=tmp_path / "other" / "db.sqlite",
            socket_path=tmp_path / "s.sock",
            pid_file=tmp_path / "p.pid",
            log_file=tmp_path / "logs" / "d.log",
            paths=Paths(tmp_path),
        )
        assert resolved.db_path == tmp_path / "other" / "db.sqlite"
        assert resolved.socket_path == tmp_path / "s.sock"
        assert resolved.pid_file == tmp_path / "p.pid"
        assert resolved.json_log_file == tmp_path / "logs" / "d.json.log"
        assert resolved.log_level == logging.DEBUG

    def test_interval_pins_fast_and_raises_floor(self, tmp_path, config_file):
        resolved = config.DaemonConfig.resolve(interval=30, paths=Paths(tmp_path))
        assert resolved.interval_fast == 30
        assert resolved.interval_slow == 30
        assert resolved.interval_idle == 30

    def test_small_interval_keeps_slow_defaults(self, tmp_path, config_file):
        resolved = config.DaemonConfig.resolve(interval=1, paths=Paths(tmp_path))
        assert resolved.interval_fast == 1
        assert resolved.interval_slow == DAEMON.interval_slow

    def test_file_values(self, tmp_path, config_file):
        config_file.write_text(
            "poll_interval: 4\ncapture_lines: 120\ntmux_socket: agents\nlog_level: warn\n"
        )
        resolved = config.DaemonConfig.resolve(paths=Paths(tmp_path))
        assert resolved.interval_fast == 4
        assert resolved.capture_lines == 120
        assert resolved.tmux_socket == "agents"
        assert resolved.log_level == logging.WARNING

    def test_cli_interval_beats_file(self, tmp_path, config_file):
        config_file.write_text("poll_interval: 4\n")
        resolved = config.DaemonConfig.resolve(interval=3, paths=Paths(tmp_path))
        assert resolved.interval_fast == 3

    @pytest.mark.parametrize("value", [0, -5])
    def test_non_positive_interval(self, tmp_path, config_file, value):
        with pytest.raises(ConfigError, match="must be positive"):
            config.DaemonConfig.resolve(interval=value, paths=Paths(tmp_path))

    def test_non_integer_in_file(self, tmp_path, config_file):
        config_file.write_text("capture_lines: lots\n")
        with pytest.raises(ConfigError, match="capture_lines must be an integer"):
            config.DaemonConfig.resolve(paths=Paths(tmp_path))

    def test_default_paths_from_data_dir(self, tmp_path, monkeypatch, config_file):
        monkeypatch.setenv("CLAUDE_ADMIN_DIR", str(tmp_path / "data"))
        resolved = config.DaemonConfig.resolve()
        assert resolved.db_path == tmp_path / "data" / "sessions.db"
        assert isinstance(resolved.db_path, Path)

    def test_cli_paths_expand_tilde(self, tmp_path, monkeypatch, config_file):
        monkeypatch.setenv("HOME", str(tmp_path))
        resolved = config.DaemonConfig.resolve(db_path=Path("~/db/sessions.db"), paths=Paths(tmp_path))
        assert resolved.db_path == tmp_path / "db" / "sessions.db"
