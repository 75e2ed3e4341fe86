"""Configuration management for the HARSI journal with safe property access"""

import os
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from loguru import logger

from ..file_loader import get_file_loader


class SafeConfig:
    """Provides safe access to configuration properties with defaults"""

    def __init__(self, config_data=None):
        self._config = config_data or {}
        self._defaults = self._get_defaults()

    def _get_defaults(self) -> Dict[str, Any]:
        """Define default values for all configuration properties"""
        return {
            # Telegram bot defaults
            'telegram_bot_token': '',
            'telegram_bot_enabled': True,

            # Storage defaults
            'database_path': 'journal.db',

            # Journal defaults
            'harsi_timeframes': ['1d', '8h', '4h'],
            'quantity_presets': [0.01, 0.02, 0.1, 0.2],
            'note_presets': [
                'Strong Buy 5M',
                'Strong Buy 15M',
                'Medium Buy 5M',
                'Medium Buy 15M',
                'Very Strong Buy 5M',
                'Very Strong Buy 15M',
            ],

            # Market data defaults
            'market_data_enabled': True,
            'kucoin_base_url': 'https://api.kucoin.com',
            'market_data_timeout': 10,

            # Logging defaults
            'log_level': 'INFO',
            'log_file': os.path.join('logs', 'journal.log'),
            'log_rotation': '10 MB',
            'log_retention': '14 days',
        }

    def _get_nested_value(self, *keys, default=None):
        """Safely get nested configuration value"""
        current = self._config
        try:
            for key in keys:
                if isinstance(current, dict):
                    current = current.get(key, {})
                else:
                    return default
            return current if current != {} else default
        except (AttributeError, KeyError, TypeError):
            return default

    def _flag(self, *keys, name: str) -> bool:
        result = self._get_nested_value(*keys)
        return result if result is not None else self._defaults[name]

    # Telegram bot properties (environment first)
    @property
    def telegram_bot_token(self) -> str:
        return (
            os.getenv('TELEGRAM_BOT_TOKEN')
            or self._get_nested_value('telegram_bot', 'bot_token')
            or self._defaults['telegram_bot_token']
        )

    @property
    def telegram_bot_enabled(self) -> bool:
        return self._flag('telegram_bot', 'enabled', name='telegram_bot_enabled')

    # Storage properties
    @property
    def database_path(self) -> str:
        return (
            os.getenv('JOURNAL_DB_PATH')
            or self._get_nested_value('database', 'path')
            or self._defaults['database_path']
        )

    # Journal properties
    @property
    def harsi_timeframes(self) -> List[str]:
        # An empty list is meaningful: the wizard asks no HARSI steps
        result = self._get_nested_value('journal', 'harsi_timeframes')
        return result if result is not None else self._defaults['harsi_timeframes']

    @property
    def quantity_presets(self) -> List[float]:
        return self._get_nested_value('journal', 'quantity_presets') or self._defaults['quantity_presets']

    @property
    def note_presets(self) -> List[str]:
        return self._get_nested_value('journal', 'note_presets') or self._defaults['note_presets']

    # Market data properties
    @property
    def market_data_enabled(self) -> bool:
        return self._flag('market_data', 'enabled', name='market_data_enabled')

    @property
    def kucoin_base_url(self) -> str:
        return self._get_nested_value('market_data', 'kucoin_base_url') or self._defaults['kucoin_base_url']

    @property
    def market_data_timeout(self) -> float:
        return self._get_nested_value('market_data', 'timeout') or self._defaults['market_data_timeout']

    # Logging properties
    @property
    def log_level(self) -> str:
        return self._get_nested_value('logging', 'level') or self._defaults['log_level']

    @property
    def log_file(self) -> Optional[str]:
        return self._get_nested_value('logging', 'file') or self._defaults['log_file']

    @property
    def log_rotation(self) -> str:
        return self._get_nested_value('logging', 'rotation') or self._defaults['log_rotation']

    @property
    def log_retention(self) -> str:
        return self._get_nested_value('logging', 'retention') or self._defaults['log_retention']


class SettingsManager:
    """Loads the settings file once and hands out the same SafeConfig"""

    _instance: Optional[SafeConfig] = None

    @classmethod
    def get_instance(cls) -> SafeConfig:
        if cls._instance is None:
            raw_config = cls._load_raw_config()
            cls._instance = SafeConfig(raw_config)
        return cls._instance

    @classmethod
    def reload(cls) -> SafeConfig:
        """Force reload configuration"""
        cls._instance = None
        return cls.get_instance()

    @classmethod
    def _load_raw_config(cls):
        """Load raw configuration from file using FileLoaderService"""
        load_dotenv()

        # Tests set _file_loader_override to point at a temporary directory
        if hasattr(cls, '_file_loader_override'):
            file_loader = cls._file_loader_override
        else:
            file_loader = get_file_loader()

        config_filename = cls._get_config_filename()
        config_data = file_loader.load_json_file(config_filename)

        if config_data is None:
            error_msg = (
                f"Configuration file '{config_filename}' not found in any search path. "
                "Create it from settings.example.json and try again."
            )
            logger.error(error_msg)
            raise FileNotFoundError(error_msg)

        logger.info(f"Configuration loaded successfully from '{config_filename}'")
        return config_data

    @classmethod
    def _get_config_filename(cls) -> str:
        """Determine the configuration filename based on environment"""
        env = os.getenv("ENV", "").lower()

        if env == "development":
            return "development.json"
        elif env == "production":
            return "production.json"
        else:
            return "settings.json"


Settings = SettingsManager
