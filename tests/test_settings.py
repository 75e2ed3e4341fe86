"""
Tests for settings loading and the file loader
"""

import json

import pytest
from loguru import logger

from Configure import ConfigLogger
from Configure.file_loader import FileLoaderService
from Configure.settings import SafeConfig, SettingsManager


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("TELEGRAM_BOT_TOKEN", "JOURNAL_DB_PATH", "ENV"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def settings_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(SettingsManager, "_file_loader_override", FileLoaderService([str(tmp_path)]), raising=False)
    monkeypatch.setattr(SettingsManager, "_instance", None)
    return tmp_path


class TestSafeConfig:

    def test_defaults(self):
        config = SafeConfig({})
        assert config.telegram_bot_token == ""
        assert config.telegram_bot_enabled is True
        assert config.database_path == "journal.db"
        assert config.harsi_timeframes == ["1d", "8h", "4h"]
        assert config.quantity_presets == [0.01, 0.02, 0.1, 0.2]
        assert len(config.note_presets) == 6
        assert config.market_data_timeout == 10
        assert config.log_level == "INFO"

    def test_file_values(self):
        config = SafeConfig({
            "telegram_bot": {"enabled": False, "bot_token": "file-token"},
            "database": {"path": "/data/journal.db"},
            "journal": {"harsi_timeframes": ["1w", "1d"], "quantity_presets": [1, 2]},
            "market_data": {"enabled": False, "timeout": 3},
            "logging": {"level": "DEBUG", "file": "out.log"},
        })
        assert config.telegram_bot_token == "file-token"
        assert config.telegram_bot_enabled is False
        assert config.database_path == "/data/journal.db"
        assert config.harsi_timeframes == ["1w", "1d"]
        assert config.quantity_presets == [1, 2]
        assert config.market_data_enabled is False
        assert config.market_data_timeout == 3
        assert config.log_level == "DEBUG"
        assert config.log_file == "out.log"

    def test_empty_harsi_list_is_kept(self):
        assert SafeConfig({"journal": {"harsi_timeframes": []}}).harsi_timeframes == []

    def test_environment_overrides_file(self, monkeypatch):
        monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "env-token")
        monkeypatch.setenv("JOURNAL_DB_PATH", "/tmp/env.db")
        config = SafeConfig({"telegram_bot": {"bot_token": "file-token"}, "database": {"path": "file.db"}})
        assert config.telegram_bot_token == "env-token"
        assert config.database_path == "/tmp/env.db"


class TestSettingsManager:

    def test_loads_settings_json_once(self, settings_dir):
        (settings_dir / "settings.json").write_text(json.dumps({"database": {"path": "from-file.db"}}))

        settings = SettingsManager.get_instance()
        assert settings.database_path == "from-file.db"
        assert SettingsManager.get_instance() is settings

    def test_env_selects_file(self, settings_dir, monkeypatch):
        (settings_dir / "settings.json").write_text(json.dumps({"logging": {"level": "INFO"}}))
        (settings_dir / "development.json").write_text(json.dumps({"logging": {"level": "DEBUG"}}))
        monkeypatch.setenv("ENV", "Development")

        assert SettingsManager.reload().log_level == "DEBUG"

    def test_missing_file(self, settings_dir):
        with pytest.raises(FileNotFoundError):
            SettingsManager.get_instance()


class TestFileLoader:

    def test_first_search_path_wins(self, tmp_path):
        first = tmp_path / "first"
        second = tmp_path / "second"
        first.mkdir()
        second.mkdir()
        (second / "settings.json").write_text('{"source": "second"}')

        loader = FileLoaderService([str(first), str(second)])
        assert loader.load_json_file("settings.json") == {"source": "second"}

        (first / "settings.json").write_text('{"source": "first"}')
        assert loader.load_json_file("settings.json") == {"source": "first"}

    def test_invalid_json_returns_default(self, tmp_path):
        (tmp_path / "broken.json").write_text("{not json")
        loader = FileLoaderService([str(tmp_path)])
        assert loader.load_json_file("broken.json", default_value={}) == {}
        assert loader.load_json_file("missing.json") is None

    def test_add_search_path(self, tmp_path):
        loader = FileLoaderService([])
        loader.add_search_path(str(tmp_path))
        loader.add_search_path(str(tmp_path))
        assert loader.get_search_paths() == [str(tmp_path)]

    def test_default_paths_have_no_duplicates(self):
        paths = FileLoaderService().get_search_paths()
        assert len(paths) == len(set(paths))


def test_config_logger_creates_log_directory(tmp_path):
    log_file = tmp_path / "logs" / "journal.log"
    ConfigLogger(level="DEBUG", log_file=str(log_file))
    try:
        logger.info("journal started")
        assert log_file.parent.is_dir()
    finally:
        logger.remove()
