"""Location of an azd project on disk and of the environments kept inside it."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

PROJECT_FILE_NAME = "azure.yaml"
ENVIRONMENT_DIRECTORY_NAME = ".azure"
DOT_ENV_FILE_NAME = ".env"
CONFIG_FILE_NAME = "config.json"
CONFIG_FILE_VERSION = 1

_GITIGNORE_CONTENT = "# .azure is not intended to be committed\n*"
_PERMISSION_DIRECTORY = 0o755
_PERMISSION_FILE = 0o644


class NoProjectError(Exception):
    """Raised when no project file can be found."""

    def __init__(self) -> None:
        super().__init__("no project exists; to create a new project, run `azd init`")


@dataclass
class ProjectState:
    """State of a project that is persisted in its environment directory."""

    default_environment: str = ""


def _write_file(path: Path, content: str) -> None:
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, _PERMISSION_FILE)
    with os.fdopen(fd, "w", encoding="utf-8") as file:
        file.write(content)


class AzdContext:
    """Paths of a project rooted at a given directory."""

    def __init__(self, project_directory: str | os.PathLike[str]) -> None:
        self.project_directory = Path(project_directory)

    @property
    def project_path(self) -> Path:
        """Path of the project file."""
        return self.project_directory / PROJECT_FILE_NAME

    @property
    def environment_directory(self) -> Path:
        """Directory that holds all environments of the project."""
        return self.project_directory / ENVIRONMENT_DIRECTORY_NAME

    @property
    def default_project_name(self) -> str:
        """Name of the project directory, used as the default project name."""
        return self.project_directory.name

    def environment_root(self, name: str) -> Path:
        """Directory of the named environment."""
        return self.environment_directory / name

    def environment_work_directory(self, name: str) -> Path:
        """Work directory of the named environment."""
        return self.environment_root(name) / "wd"

    def get_default_environment_name(self) -> str:
        """Return the default environment's name, or "" if none has been set."""
        path = self.environment_directory / CONFIG_FILE_NAME
        try:
            content = path.read_bytes()
        except FileNotFoundError:
            return ""

        try:
            data = json.loads(content)
        except ValueError as exc:
            raise ValueError(f"deserializing config file: {exc}") from exc

        if data is None:
            return ""
        if not isinstance(data, dict):
            raise ValueError(
                f"deserializing config file: expected an object, got {type(data).__name__}"
            )
        value = data.get("defaultEnvironment")
        if value is None:
            return ""
        if not isinstance(value, str):
            raise ValueError("deserializing config file: defaultEnvironment must be a string")
        return value

    def set_project_state(self, state: ProjectState) -> None:
        """Persist the project state and make sure the directory is git-ignored."""
        config: dict[str, object] = {"version": CONFIG_FILE_VERSION}
        if state.default_environment:
            config["defaultEnvironment"] = state.default_environment

        directory = self.environment_directory
        directory.mkdir(mode=_PERMISSION_DIRECTORY, parents=True, exist_ok=True)
        _write_file(directory / CONFIG_FILE_NAME, json.dumps(config, separators=(",", ":")))
        _write_file(directory / ".gitignore", _GITIGNORE_CONTENT)

    def __repr__(self) -> str:
        return f"AzdContext({str(self.project_directory)!r})"


def find_project_context(wd: str | os.PathLike[str] | None = None) -> AzdContext:
    """Return the context of the nearest project at or above wd.

    The working directory is searched first, then each parent up to the
    root. Raises NoProjectError when no project file is found.
    """
    search = Path(os.path.abspath(os.getcwd() if wd is None else wd))
    while True:
        candidate = search / PROJECT_FILE_NAME
        try:
            found = not candidate.stat().st_mode & 0o040000
        except (FileNotFoundError, NotADirectoryError):
            found = False

        if found:
            return AzdContext(search)

        parent = search.parent
        if parent == search:
            raise NoProjectError()
        search = parent