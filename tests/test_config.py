"""Tests for org_reminders.config: runtime settings and validation.

NOT to be confused with test_config_loader.py (hierarchical YAML config)
or test_config_schema.py (Pydantic models). This covers load_config()
precedence and validate_config().
"""

import logging
from pathlib import Path

import pytest

from org_reminders.config import Config, load_config, validate_config
from org_reminders.config_schema import build_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in (
        "ORG_REMINDERS_FILE",
        "ORG_REMINDERS_STORE",
        "ORG_REMINDERS_INTERVAL",
        "ORG_REMINDERS_DEBUG",
    ):
        monkeypatch.delenv(key, raising=False)


# -------------------------------------------------------------------------
# validate_config()
# -------------------------------------------------------------------------


class TestValidateConfig:
    def test_valid_config(self):
        validate_config(
            Config(org_file=Path("a.org"), store_path=Path("s.json"))
        )

    def test_invalid_mode(self):
        config = Config(
            org_file=Path("a.org"), store_path=Path("s.json"), mode="hourly"
        )
        with pytest.raises(ValueError, match="Invalid sync type 'hourly'"):
            validate_config(config)

    def test_invalid_backend(self):
        config = Config(org_file=Path("a.org"), store_backend="sqlite")
        with pytest.raises(ValueError, match="Invalid store backend"):
            validate_config(config)

    @pytest.mark.parametrize("interval", [0, -1.5])
    def test_non_positive_interval(self, interval):
        config = Config(
            org_file=Path("a.org"),
            store_path=Path("s.json"),
            interval=interval,
        )
        with pytest.raises(ValueError, match="must be positive"):
            validate_config(config)

    def test_json_backend_needs_path(self):
        config = Config(org_file=Path("a.org"))
        with pytest.raises(ValueError, match="Store path not found"):
            validate_config(config)

    def test_memory_backend_needs_no_path(self):
        validate_config(Config(org_file=Path("a.org"), store_backend="memory"))

    def test_memory_backend_warns_outside_once(self, caplog):
        config = Config(
            org_file=Path("a.org"), store_backend="memory", mode="auto"
        )
        with caplog.at_level(logging.WARNING, logger="org_reminders"):
            validate_config(config)
        assert "starts empty" in caplog.text


# -------------------------------------------------------------------------
# load_config()
# -------------------------------------------------------------------------


class TestLoadConfig:
    def test_missing_org_file(self):
        with pytest.raises(ValueError, match="Org file not found"):
            load_config()

    def test_defaults(self):
        config = load_config(org_file="/tmp/a.org")
        assert config.org_file == Path("/tmp/a.org")
        assert config.store_backend == "json"
        assert config.store_path == (
            Path("~/.local/share/org_reminders/store.json").expanduser()
        )
        assert config.mode == "once"
        assert config.interval == 60.0
        assert config.dry_run is False
        assert config.debug is False

    def test_yaml_values_used(self):
        unified = build_config(
            {
                "sync": {
                    "org_file": "/srv/todo.org",
                    "mode": "all",
                    "interval": 30,
                    "dry_run": True,
                },
                "store": {"path": "/srv/store.json"},
                "logging": {"level": "debug", "format": "json"},
            }
        )
        config = load_config(unified=unified)
        assert config.org_file == Path("/srv/todo.org")
        assert config.store_path == Path("/srv/store.json")
        assert config.mode == "all"
        assert config.interval == 30.0
        assert config.dry_run is True
        assert config.debug is True
        assert config.log_format == "json"

    def test_env_beats_yaml(self, monkeypatch):
        monkeypatch.setenv("ORG_REMINDERS_FILE", "/env/a.org")
        monkeypatch.setenv("ORG_REMINDERS_STORE", "/env/store.json")
        monkeypatch.setenv("ORG_REMINDERS_INTERVAL", "5")
        monkeypatch.setenv("ORG_REMINDERS_DEBUG", "no")
        unified = build_config(
            {
                "sync": {"org_file": "/yaml/a.org", "interval": 30},
                "store": {"path": "/yaml/store.json"},
                "logging": {"level": "DEBUG"},
            }
        )
        config = load_config(unified=unified)
        assert config.org_file == Path("/env/a.org")
        assert config.store_path == Path("/env/store.json")
        assert config.interval == 5.0
        assert config.debug is False

    def test_cli_beats_env(self, monkeypatch):
        monkeypatch.setenv("ORG_REMINDERS_FILE", "/env/a.org")
        monkeypatch.setenv("ORG_REMINDERS_STORE", "/env/store.json")
        monkeypatch.setenv("ORG_REMINDERS_DEBUG", "false")
        config = load_config(
            org_file="/cli/a.org",
            store="/cli/store.json",
            mode="auto",
            debug=True,
            log_file="/cli/sync.log",
        )
        assert config.org_file == Path("/cli/a.org")
        assert config.store_path == Path("/cli/store.json")
        assert config.mode == "auto"
        assert config.debug is True
        assert config.log_file == "/cli/sync.log"

    def test_home_is_expanded(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))
        config = load_config(org_file="~/a.org", store="~/s.json")
        assert config.org_file == tmp_path / "a.org"
        assert config.store_path == tmp_path / "s.json"

    def test_bad_interval_env(self, monkeypatch):
        monkeypatch.setenv("ORG_REMINDERS_INTERVAL", "often")
        with pytest.raises(ValueError, match="ORG_REMINDERS_INTERVAL"):
            load_config(org_file="/tmp/a.org")

    def test_invalid_mode_is_rejected(self):
        with pytest.raises(ValueError, match="Invalid sync type"):
            load_config(org_file="/tmp/a.org", mode="weekly")
