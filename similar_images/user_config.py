"""
User configuration management for Similar Images.

Every setting is resolved in this order:
1. SIMILAR_IMAGES_* environment variable (JSON-decoded when possible)
2. The user's config.json (~/.similar_images/, or $SIMILAR_IMAGES_CONFIG_DIR)
3. The default from config.py

Explicit CLI flags or search() arguments override all of these.

Example config.json:
{
    "default_threshold": 10,
    "default_hash_size": 8,
    "default_algorithm": "gradient",
    "default_filter": "lanczos3",
    "default_invariance": "off",
    "default_workers": 4,
    "lsh_auto_threshold": 5000,
    "cache_max_age_days": 30,
    "cache_db_file": null
}
"""

import json
import os
from pathlib import Path
from typing import Any, NamedTuple, Optional
import logging

from .config import (
    CACHE_DB_FILE,
    DEFAULT_GEOMETRIC_INVARIANCE,
    DEFAULT_HASH_ALGORITHM,
    DEFAULT_HASH_SIZE,
    DEFAULT_RESIZE_FILTER,
    DEFAULT_THRESHOLD,
    DEFAULT_WORKERS,
    LSH_AUTO_THRESHOLD,
)

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV = 'SIMILAR_IMAGES_CONFIG_DIR'
CONFIG_FILE_NAME = 'config.json'


class Setting(NamedTuple):
    key: str
    default: Any
    env_var: str
    # Written to the example file; None keeps the built-in default
    example: Any


SETTINGS = (
    Setting('default_threshold', DEFAULT_THRESHOLD, 'SIMILAR_IMAGES_THRESHOLD', DEFAULT_THRESHOLD),
    Setting('default_hash_size', DEFAULT_HASH_SIZE, 'SIMILAR_IMAGES_HASH_SIZE', DEFAULT_HASH_SIZE),
    Setting('default_algorithm', DEFAULT_HASH_ALGORITHM, 'SIMILAR_IMAGES_ALGORITHM',
            DEFAULT_HASH_ALGORITHM),
    Setting('default_filter', DEFAULT_RESIZE_FILTER, 'SIMILAR_IMAGES_FILTER', DEFAULT_RESIZE_FILTER),
    Setting('default_invariance', DEFAULT_GEOMETRIC_INVARIANCE, 'SIMILAR_IMAGES_INVARIANCE',
            DEFAULT_GEOMETRIC_INVARIANCE),
    Setting('default_workers', DEFAULT_WORKERS, 'SIMILAR_IMAGES_WORKERS', DEFAULT_WORKERS),
    Setting('lsh_auto_threshold', LSH_AUTO_THRESHOLD, 'SIMILAR_IMAGES_LSH_THRESHOLD',
            LSH_AUTO_THRESHOLD),
    Setting('cache_max_age_days', 30, 'SIMILAR_IMAGES_CACHE_MAX_AGE', 30),
    Setting('cache_db_file', CACHE_DB_FILE, 'SIMILAR_IMAGES_CACHE_DB', None),
)

_SETTINGS_BY_KEY = {setting.key: setting for setting in SETTINGS}


def _parse_env(raw: str) -> Any:
    """Numbers, booleans and null come through as JSON; anything else is a string."""
    try:
        return json.loads(raw)
    except ValueError:
        return raw


class UserConfig:
    """
    Process-wide view of the user's settings.

    The config file is read on first use and cached until reload().
    Environment variables are read on every access.
    """

    _instance: Optional['UserConfig'] = None
    _file_data: Optional[dict] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @property
    def config_dir(self) -> Path:
        override = os.getenv(CONFIG_DIR_ENV)
        return Path(override) if override else Path.home() / '.similar_images'

    @property
    def config_file_path(self) -> Path:
        return self.config_dir / CONFIG_FILE_NAME

    def _read_file(self) -> dict:
        path = self.config_file_path
        if not path.is_file():
            return {}

        try:
            data = json.loads(path.read_text(encoding='utf-8'))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable config file {path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Ignoring config file {path}: expected a JSON object")
            return {}

        logger.debug(f"Read settings from {path}")
        return data

    def _file_values(self) -> dict:
        if self._file_data is None:
            self._file_data = self._read_file()
        return self._file_data

    def reload(self):
        """Forget the cached config file so the next access re-reads it."""
        self._file_data = None

    def get(self, key: str, default: Any = None, env_var: Optional[str] = None) -> Any:
        """
        Resolve one value.

        Args:
            key: Key in config.json
            default: Value used when neither source sets the key
            env_var: Environment variable that overrides the file

        Returns:
            The environment value, else the (non-null) file value, else default
        """
        if env_var:
            raw = os.getenv(env_var)
            if raw is not None:
                return _parse_env(raw)

        value = self._file_values().get(key)
        return default if value is None else value

    def _setting(self, key: str) -> Any:
        setting = _SETTINGS_BY_KEY[key]
        return self.get(setting.key, setting.default, setting.env_var)

    def settings(self) -> dict:
        """All resolved settings, in declaration order."""
        return {setting.key: self._setting(setting.key) for setting in SETTINGS}

    @property
    def default_threshold(self) -> int:
        return self._setting('default_threshold')

    @property
    def default_hash_size(self) -> int:
        return self._setting('default_hash_size')

    @property
    def default_algorithm(self) -> str:
        return self._setting('default_algorithm')

    @property
    def default_filter(self) -> str:
        return self._setting('default_filter')

    @property
    def default_invariance(self) -> str:
        return self._setting('default_invariance')

    @property
    def default_workers(self) -> int:
        return self._setting('default_workers')

    @property
    def lsh_auto_threshold(self) -> int:
        """Collection size at which bucketed comparison switches on."""
        return self._setting('lsh_auto_threshold')

    @property
    def cache_max_age_days(self) -> int:
        """Cache entries not read for this many days are dropped."""
        return self._setting('cache_max_age_days')

    @property
    def cache_db_file(self) -> str:
        return self._setting('cache_db_file')

    def create_example_config(self) -> bool:
        """
        Write a config.json listing every setting.

        Returns:
            True if the file was written
        """
        example = {"_comment": "Similar Images user configuration"}
        example.update((setting.key, setting.example) for setting in SETTINGS)

        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            self.config_file_path.write_text(json.dumps(example, indent=2), encoding='utf-8')
        except OSError as e:
            logger.error(f"Could not write {self.config_file_path}: {e}")
            return False

        logger.info(f"Wrote example settings to {self.config_file_path}")
        self.reload()
        return True


_user_config = UserConfig()


def get_user_config() -> UserConfig:
    """Shared UserConfig instance."""
    return _user_config
