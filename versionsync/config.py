"""User configuration with defaults for the version control client"""

import configparser
import os
import platform
from typing import Optional, Any

from pathlib import Path

APP_NAME = "versionsync"

_home = os.path.expanduser("~")

xdg_config_home = os.environ.get("XDG_CONFIG_HOME") or os.path.join(_home, ".config")

default_cfg = {
    "tf": {"executable": "tf", "timeout": "10m"},
    "publish": {"variable": "BuildVersion"},
}

if platform.system() == "Darwin":
    # macOS
    config_dir = Path("~/Library/Application Support/versionsync").expanduser()
else:
    # Linux or others
    config_dir = Path(os.path.join(xdg_config_home, APP_NAME))


def get_config_file() -> Path:
    override = os.environ.get("VERSIONSYNC_CONFIG")
    if override:
        return Path(override).expanduser()
    return config_dir / f"{APP_NAME}.cfg"


class ConfigAccessor:
    """
    A dict-like accessor for configuration files.

    Missing files, sections or keys fall back to ``default_cfg`` and then to
    the default passed to ``get``.

    Usage:
        config = ConfigAccessor()
        value = config.get('tf', 'executable', default='tf')
    """

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize a ConfigAccessor with an optional config file path.

        Args:
            config_path: Path to the configuration file. If None, uses the default path.
        """
        if config_path is None:
            self.config_path = get_config_file()
        else:
            self.config_path = Path(config_path)

        self.config = configparser.ConfigParser()
        self.config.read_dict(default_cfg)
        if self.config_path.exists():
            self.config.read(self.config_path)

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """
        Get a configuration value from the specified section and key.

        Args:
            section: The configuration section
            key: The configuration key
            default: Value to return if the section or key doesn't exist

        Returns:
            The configuration value if it exists, otherwise the default value
        """
        try:
            return self.config[section][key]
        except (KeyError, configparser.NoSectionError, configparser.NoOptionError):
            return default
