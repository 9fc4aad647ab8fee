"""Loading and saving configuration as JSON, in files and in the user's config directory."""

from __future__ import annotations

import json
import logging
import os
import stat
import sys
from pathlib import Path
from typing import IO, Any

from azdcore.config.config import VAULT_KEY_NAME, Config, ConfigError

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV_VAR = "AZD_CONFIG_DIR"
USER_CONFIG_FILE_NAME = "config.json"

_PERMISSION_DIRECTORY = 0o755
_PERMISSION_DIRECTORY_OWNER_ONLY = 0o700
_PERMISSION_FILE = 0o644
_PERMISSION_MASK_DIRECTORY_EXECUTE = stat.S_IXUSR


def parse(config_json: str | bytes) -> Config:
    """Parse configuration JSON into a Config."""
    try:
        data = json.loads(config_json)
    except ValueError as exc:
        raise ConfigError(f"failed unmarshalling configuration JSON: {exc}") from exc

    if data is None:
        return Config()
    if not isinstance(data, dict):
        raise ConfigError(
            "failed unmarshalling configuration JSON: "
            f"expected an object, got {type(data).__name__}"
        )
    return Config(data)


def get_user_config_dir() -> Path:
    """Return the directory for user-wide configuration, creating it if needed."""
    configured = os.environ.get(CONFIG_DIR_ENV_VAR, "")
    if configured:
        config_dir = Path(configured)
    else:
        try:
            home = Path.home()
        except RuntimeError as exc:
            raise ConfigError(f"could not determine current home directory: {exc}") from exc
        config_dir = home / ".azd"

    config_dir.mkdir(mode=_PERMISSION_DIRECTORY_OWNER_ONLY, parents=True, exist_ok=True)

    # OS upgrades and other tools can strip the owner's execute bit.
    if sys.platform.startswith("linux") or sys.platform == "darwin":
        mode = stat.S_IMODE(config_dir.stat().st_mode)
        if not mode & _PERMISSION_MASK_DIRECTORY_EXECUTE:
            config_dir.chmod(mode | _PERMISSION_MASK_DIRECTORY_EXECUTE)

    return config_dir


def get_user_config_file_path() -> Path:
    """Return the path of the user's configuration file."""
    try:
        config_dir = get_user_config_dir()
    except OSError as exc:
        raise ConfigError(f"failed getting user config file path. {exc}") from exc
    return config_dir / USER_CONFIG_FILE_NAME


def _vault_path(vault_id: str) -> Path:
    try:
        config_dir = get_user_config_dir()
    except OSError as exc:
        raise ConfigError(f"failed getting user config directory: {exc}") from exc
    return config_dir / "vaults" / f"{vault_id}.json"


class ConfigManager:
    """Serialises configuration to and from streams as JSON."""

    def save(self, config: Config, writer: IO[Any]) -> None:
        """Write the configuration as indented JSON to a text stream."""
        try:
            text = json.dumps(config.raw(), indent=2, sort_keys=True, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"failed marshalling config JSON: {exc}") from exc
        try:
            writer.write(text)
        except OSError as exc:
            raise ConfigError(f"failed writing configuration data: {exc}") from exc

    def load(self, reader: IO[Any]) -> Config:
        """Read JSON configuration from a text or binary stream."""
        try:
            content = reader.read()
        except OSError as exc:
            raise ConfigError("failed reading azd configuration file") from exc
        return parse(content)


class FileConfigManager:
    """Loads and saves configuration files, together with any vault they use."""

    def __init__(self, manager: ConfigManager | None = None) -> None:
        self._manager = manager if manager is not None else ConfigManager()

    def load(self, file_path: str | os.PathLike[str]) -> Config:
        """Load configuration from a file.

        Raises FileNotFoundError when the file, or the vault it refers to,
        does not exist.
        """
        with open(file_path, encoding="utf-8") as file:
            config = self._manager.load(file)

        vault_id = config.get_string(VAULT_KEY_NAME)
        if vault_id is not None:
            vault_path = _vault_path(vault_id)
            message = f"failed loading vault configuration from '{vault_path}'"
            try:
                vault = self.load(vault_path)
            except FileNotFoundError as exc:
                raise FileNotFoundError(
                    exc.errno, f"{message}: {exc.strerror}", str(vault_path)
                ) from exc
            except (ConfigError, OSError) as exc:
                raise ConfigError(f"{message}: {exc}") from exc
            config._attach_vault(vault_id, vault)

        return config

    def save(self, config: Config, file_path: str | os.PathLike[str]) -> None:
        """Save configuration to a file, creating its directory if needed.

        A vault in use is saved to the user's config directory.
        """
        path = Path(file_path)
        try:
            path.parent.mkdir(mode=_PERMISSION_DIRECTORY, parents=True, exist_ok=True)
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, _PERMISSION_FILE)
        except OSError as exc:
            raise ConfigError(f"failed creating config directory: {exc}") from exc

        with os.fdopen(fd, "w", encoding="utf-8") as file:
            self._manager.save(config, file)

        if config._vault_id and config._vault is not None:
            vault_path = _vault_path(config._vault_id)
            try:
                vault_path.parent.mkdir(mode=_PERMISSION_DIRECTORY, parents=True, exist_ok=True)
            except OSError as exc:
                raise ConfigError(f"failed creating vaults directory: {exc}") from exc
            self.save(config._vault, vault_path)


class UserConfigManager:
    """Loads and saves the user-wide configuration file."""

    def __init__(self, file_manager: FileConfigManager | None = None) -> None:
        self._file_manager = file_manager if file_manager is not None else FileConfigManager()

    def load(self) -> Config:
        """Load the user configuration; an absent file gives an empty one."""
        path = get_user_config_file_path()
        try:
            return self._file_manager.load(path)
        except FileNotFoundError:
            logger.info("creating empty config since '%s' did not exist.", path)
            return Config()
        except (ConfigError, OSError) as exc:
            raise ConfigError(f"failed loading azd user config from '{path}'. {exc}") from exc

    def save(self, config: Config) -> None:
        """Save the user configuration."""
        path = get_user_config_file_path()
        try:
            self._file_manager.save(config, path)
        except (ConfigError, OSError) as exc:
            raise ConfigError(f"failed saving configuration. {exc}") from exc