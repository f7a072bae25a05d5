import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import tomli_w
from platformdirs import user_config_dir

from .errors import ConfigParseError, ConfigReadError, ConfigValidationError, ConfigWriteError

logger = logging.getLogger(__name__)

# --- Application Constants ---
APP_NAME = "media-triage"
APP_AUTHOR = "media-triage"
CONFIG_FILE_NAME = ".rs-clone.conf"


@dataclass
class Settings:
    source_dir: str
    destination_dir: str


@dataclass
class Config:
    """
    In-memory form of the configuration file.

    `mapping` associates a source folder name with the destination folder
    name the user chose for it.
    """

    settings: Settings
    mapping: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "settings": {
                "source_dir": self.settings.source_dir,
                "destination_dir": self.settings.destination_dir,
            },
            "mapping": dict(self.mapping),
        }


def get_user_config_file_path() -> Path:
    """Returns the per-user location of the config file (it may not exist)."""
    return Path(user_config_dir(APP_NAME, APP_AUTHOR, roaming=True)) / CONFIG_FILE_NAME


def resolve_config_path(explicit: Optional[Path] = None) -> Path:
    """
    Determines which configuration file to use.

    Lookup order: the explicit path, `.rs-clone.conf` in the working
    directory, then the same file name in the per-user config directory
    provided by `platformdirs`. When nothing exists the working-directory
    path is returned so that the read error names it.

    Returns:
        A pathlib.Path object pointing at the configuration file.
    """
    if explicit is not None:
        return explicit

    local_path = Path(CONFIG_FILE_NAME)
    if local_path.is_file():
        return local_path

    user_path = get_user_config_file_path()
    if user_path.is_file():
        logger.debug(f"Using per-user configuration file {user_path}")
        return user_path

    return local_path


def _parse_config(data: Dict[str, Any]) -> Config:
    """Builds a Config from a decoded TOML document, checking its shape."""
    settings = data.get("settings")
    if not isinstance(settings, dict):
        raise ConfigParseError("missing [settings] table")

    values = {}
    for key in ("source_dir", "destination_dir"):
        value = settings.get(key)
        if not isinstance(value, str):
            raise ConfigParseError(f"settings.{key} must be a string")
        values[key] = value

    mapping = data.get("mapping", {})
    if not isinstance(mapping, dict):
        raise ConfigParseError("[mapping] must be a table")
    for name, destination in mapping.items():
        if not isinstance(destination, str):
            raise ConfigParseError(f"mapping entry '{name}' must be a string")

    return Config(settings=Settings(**values), mapping=dict(mapping))


def validate_config(config: Config) -> None:
    """
    Checks that both configured roots are set and exist on disk.

    Raises:
        ConfigValidationError: Naming the first invalid setting.
    """
    for key in ("source_dir", "destination_dir"):
        value = getattr(config.settings, key)
        if not value:
            raise ConfigValidationError(f"settings.{key}", "is empty")
        if not Path(value).exists():
            raise ConfigValidationError(f"settings.{key}", "doesn't exist")


def load_config(path: Path) -> Config:
    """
    Reads, parses and validates the configuration file.

    Args:
        path: Location of the TOML configuration file.

    Returns:
        The validated configuration.

    Raises:
        ConfigReadError: If the file cannot be read.
        ConfigParseError: If it is not valid TOML or lacks the expected tables.
        ConfigValidationError: If a configured directory is empty or missing.
    """
    try:
        content = path.read_text(encoding='utf-8')
    except OSError as e:
        raise ConfigReadError(str(e)) from e

    try:
        data = tomllib.loads(content)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(str(e)) from e

    config = _parse_config(data)
    validate_config(config)
    logger.debug(f"Loaded configuration from {path} ({len(config.mapping)} mappings)")
    return config


def save_config(path: Path, config: Config) -> None:
    """
    Writes the configuration back to `path`, replacing its contents.

    The document is serialised in full before the file is opened, so a
    value that cannot be encoded leaves the existing file untouched.

    Raises:
        ConfigWriteError: If the configuration cannot be encoded or the
                          file cannot be written.
    """
    try:
        content = tomli_w.dumps(config.to_dict()).encode('utf-8')
    except UnicodeEncodeError as e:
        raise ConfigWriteError(f"Configuration is not valid UTF-8: {e}") from e

    try:
        with path.open('wb') as f:
            f.write(content)
    except OSError as e:
        raise ConfigWriteError(str(e)) from e
    logger.debug(f"Configuration saved to {path}")
