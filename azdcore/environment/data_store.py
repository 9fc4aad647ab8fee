"""Persistent storage of environments, and its implementation on the local file system."""

from __future__ import annotations

import enum
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from azdcore.config.config import Config
from azdcore.config.manager import FileConfigManager
from azdcore.context import AzdContext
from azdcore.environment.environment import Environment, marshal_dotenv, parse_dotenv

DOT_ENV_FILE_NAME = ".env"
CONFIG_FILE_NAME = "config.json"


class RemoteKind(str, enum.Enum):
    """Kinds of remote environment storage."""

    AZURE_BLOB_STORAGE = "AzureBlobStorage"


VALID_REMOTE_KINDS = [kind.value for kind in RemoteKind]


class EnvironmentNotFoundError(LookupError):
    """Raised when an environment with the given name cannot be found."""

    def __init__(self, name: str) -> None:
        super().__init__(f"'{name}': environment not found")
        self.name = name


@dataclass
class EnvironmentListItem:
    """An environment found in a data store."""

    name: str
    is_default: bool = False
    dot_env_path: str = ""
    config_path: str = ""


@dataclass
class SaveOptions:
    """Extra information for a save operation."""

    is_new: bool = False


class DataStore(Protocol):
    """Persistent storage of environments."""

    def env_path(self, env: Environment) -> Path | str:
        """Path of the environment's .env file."""
        ...

    def config_path(self, env: Environment) -> Path | str:
        """Path of the environment's JSON config file."""
        ...

    def list(self) -> list[EnvironmentListItem]:
        """All environments in the store, sorted by name."""
        ...

    def get(self, name: str) -> Environment:
        """The named environment; raises EnvironmentNotFoundError if absent."""
        ...

    def reload(self, env: Environment) -> None:
        """Reload the environment's values and config from the store."""
        ...

    def save(self, env: Environment, options: SaveOptions | None = None) -> None:
        """Persist the environment."""
        ...

    def delete(self, name: str) -> None:
        """Remove the named environment."""
        ...


class LocalFileDataStore:
    """Keeps environments in the project's environment directory."""

    def __init__(
        self, azd_context: AzdContext, config_manager: FileConfigManager | None = None
    ) -> None:
        self._context = azd_context
        self._config_manager = config_manager if config_manager is not None else FileConfigManager()

    def env_path(self, env: Environment) -> Path:
        """Path of the environment's .env file."""
        return self._context.environment_root(env.name) / DOT_ENV_FILE_NAME

    def config_path(self, env: Environment) -> Path:
        """Path of the environment's config.json file."""
        return self._context.environment_root(env.name) / CONFIG_FILE_NAME

    def list(self) -> list[EnvironmentListItem]:
        """Every environment directory, sorted by name, with the default marked."""
        default_env = self._context.get_default_environment_name()
        directory = self._context.environment_directory
        try:
            entries = list(directory.iterdir())
        except FileNotFoundError:
            return []

        items = [
            EnvironmentListItem(
                name=entry.name,
                is_default=entry.name == default_env,
                dot_env_path=str(self._context.environment_root(entry.name) / DOT_ENV_FILE_NAME),
                config_path=str(self._context.environment_root(entry.name) / CONFIG_FILE_NAME),
            )
            for entry in entries
            if entry.is_dir()
        ]
        return sorted(items, key=lambda item: item.name)

    def get(self, name: str) -> Environment:
        """Load the named environment; raises EnvironmentNotFoundError if absent."""
        if not self._context.environment_root(name).exists():
            raise EnvironmentNotFoundError(name)
        env = Environment(name)
        self.reload(env)
        return env

    def reload(self, env: Environment) -> None:
        """Replace the environment's values and config with what is on disk."""
        try:
            text = self.env_path(env).read_text(encoding="utf-8")
        except FileNotFoundError:
            env._replace_values({})
        else:
            try:
                values = parse_dotenv(text)
            except ValueError as exc:
                raise ValueError(f"loading .env: {exc}") from exc
            env._replace_values(values)

        try:
            env.config = self._config_manager.load(self.config_path(env))
        except FileNotFoundError:
            env.config = Config()

    def save(self, env: Environment, options: SaveOptions | None = None) -> None:
        """Write the config, then merge the values over what is on disk and write them.

        Values set since the last load win over values on disk, and keys
        deleted since then are removed.
        """
        self._config_manager.save(env.config, self.config_path(env))

        current = env.dotenv()
        deleted = set(env._deleted_keys)
        self.reload(env)

        merged = env.dotenv()
        merged.update(current)
        for key in deleted:
            merged.pop(key, None)
        env._replace_values(merged)

        content = marshal_dotenv(merged) + "\n"
        with open(self.env_path(env), "w", encoding="utf-8") as file:
            file.write(content)
            file.flush()
            os.fsync(file.fileno())

    def delete(self, name: str) -> None:
        """Remove the named environment's directory."""
        root = self._context.environment_root(name)
        if not root.exists():
            raise EnvironmentNotFoundError(name)
        shutil.rmtree(root)