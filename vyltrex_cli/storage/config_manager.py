"""
Manages loading, validation, and migration of the INI configuration file.
"""

import configparser
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from vyltrex_cli.exceptions import ConfigurationError
from vyltrex_cli.models.config import LauncherConfig

log = logging.getLogger(__name__)

# Keys whose empty INI value means "use the derived default"
OPTIONAL_PATH_KEYS = ("install_root", "catalog_path")


class ConfigManager:
    """Handles all operations related to the application's INI config file."""

    def __init__(self, config_file_path: Path):
        self.config_file_path = config_file_path
        self._parser = configparser.ConfigParser(interpolation=None)

    def load_config(self, cli_options: dict[str, Any] | None = None) -> LauncherConfig:
        """
        Loads configuration from the INI file, applies CLI overrides, and validates it.

        A missing config file is not an error: the defaults are used so the
        launcher works before `vyltrex init` has been run.

        Args:
            cli_options: A dictionary of options provided via the command line.

        Returns:
            A validated LauncherConfig object.

        Raises:
            ConfigurationError: If the config file is invalid or validation fails.
        """
        config_from_file: dict[str, Any] = {}
        if self.config_file_path.is_file():
            try:
                self._parser.read(self.config_file_path, encoding="utf-8")
            except configparser.Error as e:
                raise ConfigurationError(f"Error parsing configuration file: {e}") from e

            if self._migrate_if_needed():
                log.info(
                    "[yellow]Configuration file was updated with new default values."
                    "[/yellow]"
                )
            config_from_file = self._get_config_as_dict()
        else:
            log.debug(
                f"No configuration file at '{self.config_file_path}', using defaults."
            )

        # Override with CLI options
        if cli_options:
            config_from_file.update(cli_options)

        try:
            return LauncherConfig(
                **config_from_file, config_path=str(self.config_file_path.parent)
            )
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def save_new_config(self, settings: dict[str, Any]) -> None:
        """
        Creates and saves a new configuration file.

        Args:
            settings: A dictionary of settings to save.
        """
        config = configparser.ConfigParser(interpolation=None)
        config["DEFAULT"] = {}

        defaults = LauncherConfig()
        for key in sorted(LauncherConfig.get_ini_keys()):
            # Use provided settings first, then fall back to model defaults
            value = settings.get(key, getattr(defaults, key, None))
            config["DEFAULT"][key] = self._to_ini_value(value)

        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, "w", encoding="utf-8") as configfile:
                config.write(configfile)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration file: {e}") from e

    def _get_config_as_dict(self) -> dict[str, Any]:
        """Reads the 'DEFAULT' section of the INI file into a dictionary."""
        section = self._parser["DEFAULT"]
        try:
            settings: dict[str, Any] = {
                "data_dir": section.get("data_dir", ""),
                "install_root": section.get("install_root", ""),
                "catalog_path": section.get("catalog_path", ""),
                "max_redirects": section.getint("max_redirects", 10),
                "chunk_size": section.getint("chunk_size", 131072),
                "digest_algorithm": section.get("digest_algorithm", "sha256"),
                "user_agent": section.get("user_agent", ""),
            }
        except ValueError as e:
            raise ConfigurationError(f"Invalid value in configuration file: {e}") from e

        # Blank entries fall back to the model defaults
        return {key: value for key, value in settings.items() if value != ""}

    def _migrate_if_needed(self) -> bool:
        """Adds missing default values to an existing config file."""
        defaults = LauncherConfig()
        needs_saving = False

        config_section = self._parser["DEFAULT"]

        for key in sorted(LauncherConfig.get_ini_keys()):
            if key not in config_section:
                default_value = (
                    None if key in OPTIONAL_PATH_KEYS else getattr(defaults, key)
                )
                config_section[key] = self._to_ini_value(default_value)
                needs_saving = True
                log.debug(
                    f"Migrating config: added missing key '{key}' with "
                    f"value '{config_section[key]}'."
                )

        if needs_saving:
            try:
                with open(self.config_file_path, "w", encoding="utf-8") as f:
                    self._parser.write(f)
            except OSError as e:
                log.error(f"Could not save migrated configuration file: {e}")
                return False

        return needs_saving

    @staticmethod
    def _to_ini_value(value: Any) -> str:
        if value is None:
            return ""
        return str(value)
