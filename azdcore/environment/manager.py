"""Creation, lookup and removal of environments across local and remote stores."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from azdcore.context import AzdContext, ProjectState
from azdcore.environment.data_store import (
    DataStore,
    EnvironmentNotFoundError,
    SaveOptions,
)
from azdcore.environment.environment import (
    ENV_NAME_ENV_VAR_NAME,
    Environment,
    is_valid_environment_name,
)

logger = logging.getLogger(__name__)


class EnvironmentExistsError(Exception):
    """Raised when an environment with the given name already exists."""

    def __init__(self, name: str) -> None:
        super().__init__(f"environment '{name}' already exists")
        self.name = name


class EnvironmentNameNotSpecifiedError(ValueError):
    """Raised when an environment name is required but empty."""

    def __init__(self) -> None:
        super().__init__("environment not specified")


class InvalidEnvironmentNameError(ValueError):
    """Raised when an environment name contains characters that are not allowed."""

    def __init__(self, name: str) -> None:
        super().__init__(
            f"environment name '{name}' is invalid "
            "(it should contain only alphanumeric characters and hyphens)\n"
        )
        self.name = name


@dataclass
class Description:
    """An environment as listed across the local and remote stores."""

    name: str
    dot_env_path: str = ""
    has_local: bool = False
    has_remote: bool = False
    is_default: bool = False


@dataclass
class Spec:
    """What a new environment is created with."""

    name: str = ""
    subscription: str = ""
    location: str = ""
    examples: list[str] = field(default_factory=list)


class EnvironmentManager:
    """Manages environments kept in a local store and, optionally, a remote one."""

    def __init__(
        self,
        azd_context: AzdContext,
        local: DataStore,
        remote: DataStore | None = None,
    ) -> None:
        self._context = azd_context
        self._local = local
        self._remote = remote

    def create(self, spec: Spec) -> Environment:
        """Create and save a new environment."""
        if not is_valid_environment_name(spec.name):
            raise InvalidEnvironmentNameError(spec.name)

        try:
            self.get(spec.name)
        except EnvironmentNotFoundError:
            pass
        else:
            raise EnvironmentExistsError(spec.name)

        env = Environment(spec.name)
        if spec.subscription:
            env.subscription_id = spec.subscription
        if spec.location:
            env.location = spec.location

        self.save(env, SaveOptions(is_new=True))
        return env

    def env_path(self, env: Environment):
        """Path of the environment's local .env file."""
        return self._local.env_path(env)

    def config_path(self, env: Environment):
        """Path of the environment's local config file."""
        return self._local.config_path(env)

    def list(self) -> list[Description]:
        """Every environment in either store, sorted by name."""
        try:
            default_name = self._context.get_default_environment_name()
        except (OSError, ValueError):
            default_name = ""

        descriptions: dict[str, Description] = {}
        for item in self._local.list():
            descriptions[item.name] = Description(
                name=item.name, has_local=True, dot_env_path=item.dot_env_path
            )

        if self._remote is not None:
            for item in self._remote.list():
                existing = descriptions.setdefault(item.name, Description(name=item.name))
                existing.has_remote = True

        for description in descriptions.values():
            description.is_default = description.name == default_name

        return sorted(descriptions.values(), key=lambda d: d.name)

    def get(self, name: str) -> Environment:
        """Return the named environment, fetching it from the remote store if needed.

        Raises EnvironmentNotFoundError if it exists in neither store.
        """
        if not name:
            raise EnvironmentNameNotSpecifiedError()

        try:
            env = self._local.get(name)
        except Exception:
            if self._remote is None:
                raise
            env = self._remote.get(name)
            self._local.save(env, None)

        if env.lookup_env(ENV_NAME_ENV_VAR_NAME) != name:
            env.dotenv_set(ENV_NAME_ENV_VAR_NAME, name)
            self.save(env)

        return env

    def save(self, env: Environment, options: SaveOptions | None = None) -> None:
        """Save the environment locally and, when configured, remotely."""
        if options is None:
            options = SaveOptions()
        self._local.save(env, options)
        if self._remote is not None:
            self._remote.save(env, options)

    def reload(self, env: Environment) -> None:
        """Reload the environment from the local store."""
        self._local.reload(env)

    def delete(self, name: str) -> None:
        """Delete the environment locally, clearing the default if it was the default."""
        if not name:
            raise EnvironmentNameNotSpecifiedError()

        self._local.delete(name)

        if self._context.get_default_environment_name() == name:
            self._context.set_project_state(ProjectState(default_environment=""))