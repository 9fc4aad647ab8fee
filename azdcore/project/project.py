"""Reading, validating and writing the project file."""

from __future__ import annotations

import logging
import os

import yaml

from azdcore.config.config import Config
from azdcore.contracts.options import parse_provisioning_provider
from azdcore.project.event_dispatcher import EventDispatcher
from azdcore.project.models import (
    ProjectConfig,
    ServiceLanguageKind,
    ServiceTargetKind,
    parse_service_host,
    parse_service_language,
)
from azdcore.version import is_dev_version, version_in_range, version_info

logger = logging.getLogger(__name__)

PROJECT_SCHEMA_ANNOTATION = "# yaml-language-server: $schema=azure.yaml.json"

_PERMISSION_FILE = 0o644
_FORMAT_HINT = (
    "unable to parse azure.yaml file. Check the format of the file, "
    "and also verify you have the latest version of the CLI"
)


class ProjectParseError(ValueError):
    """Raised when a project file cannot be parsed or is invalid."""


def _from_slash(path: str) -> str:
    """Normalise a path written with either separator to the native one."""
    if "\\" in path and "/" not in path:
        path = path.replace("\\", "/")
    return path.replace("/", os.sep)


def _to_slash(path: str) -> str:
    return path.replace(os.sep, "/")


def parse(yaml_content: str) -> ProjectConfig:
    """Parse and validate project file content."""
    if not yaml_content.strip():
        raise ProjectParseError("unable to parse azure.yaml file. File is empty.")

    try:
        data = yaml.safe_load(yaml_content)
        project = ProjectConfig.from_dict(data)
    except (yaml.YAMLError, ValueError) as exc:
        raise ProjectParseError(f"{_FORMAT_HINT}: {exc}") from exc

    project.event_dispatcher = EventDispatcher()

    required = project.required_versions
    if required is not None and required.azd is not None:
        current = version_info().version
        try:
            supported = version_in_range(current, required.azd)
        except ValueError as exc:
            raise ProjectParseError(
                f"{required.azd} is not a valid semver range (for requiredVersions.azd): {exc}"
            ) from exc
        if not is_dev_version() and not supported:
            raise ProjectParseError(
                f"this project requires a version of azd within the range '{required.azd}', "
                f"but you have '{current}'. Install a supported version."
            )

    try:
        project.infra.provider = parse_provisioning_provider(project.infra.provider).value
    except ValueError as exc:
        raise ProjectParseError(f"parsing project {project.name}: {exc}") from exc

    if not project.infra.path:
        project.infra.path = "infra"
    project.infra.path = _from_slash(project.infra.path)

    for key, service in project.services.items():
        service.name = key
        service.project = project
        service.event_dispatcher = EventDispatcher()

        try:
            service.language = parse_service_language(service.language)
            service.host = parse_service_host(service.host)
            service.infra.provider = parse_provisioning_provider(service.infra.provider).value
        except ValueError as exc:
            raise ProjectParseError(f"parsing service {key}: {exc}") from exc

        service.infra.path = _from_slash(service.infra.path)

        # Container apps may run a prebuilt image instead of building from source.
        if (
            service.host is ServiceTargetKind.CONTAINER_APP
            and service.language is ServiceLanguageKind.NONE
            and not service.image
        ):
            raise ProjectParseError(f"parsing service {key}: must specify language or image")

        service.relative_path = _from_slash(service.relative_path)
        service.output_path = _from_slash(service.output_path)

    return project


def load(project_file_path: str | os.PathLike[str]) -> ProjectConfig:
    """Read and parse the project file; the project's path is its directory."""
    logger.info("Reading project from file '%s'", project_file_path)
    with open(project_file_path, encoding="utf-8") as file:
        content = file.read()

    try:
        project = parse(content)
    except ProjectParseError as exc:
        raise ProjectParseError(f"parsing project file: {exc}") from exc

    project.path = os.path.dirname(os.fspath(project_file_path))
    return project


def new_project(project_file_path: str | os.PathLike[str], project_name: str) -> ProjectConfig:
    """Write a new project file with the given name and load it back."""
    save(ProjectConfig(name=project_name), project_file_path)
    return load(project_file_path)


def load_config(project_file_path: str | os.PathLike[str]) -> Config:
    """Read the project file as untyped configuration."""
    logger.info("Reading project from file '%s'", project_file_path)
    with open(project_file_path, encoding="utf-8") as file:
        content = file.read()

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise ProjectParseError(f"{_FORMAT_HINT}: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ProjectParseError(f"{_FORMAT_HINT}: expected a map")
    return Config(data)


def save_config(config: Config, project_file_path: str | os.PathLike[str]) -> None:
    """Validate untyped configuration as a project and write it to the project file."""
    content = yaml.safe_dump(config.raw(), sort_keys=False, allow_unicode=True)
    try:
        project = parse(content)
    except ProjectParseError as exc:
        raise ProjectParseError(f"parsing project yaml: {exc}") from exc
    save(project, project_file_path)


def save(project_config: ProjectConfig, project_file_path: str | os.PathLike[str]) -> None:
    """Write the project to the project file using forward slashes in paths.

    The project itself is left unchanged apart from its path, which is set to
    the file written.
    """
    data = project_config.to_dict()

    infra = data.get("infra")
    if infra and infra.get("path"):
        infra["path"] = _to_slash(infra["path"])

    for service in data.get("services", {}).values():
        service["project"] = _to_slash(service["project"])
        if "dist" in service:
            service["dist"] = _to_slash(service["dist"])
        service_infra = service.get("infra")
        if service_infra and service_infra.get("path"):
            service_infra["path"] = _to_slash(service_infra["path"])

    body = yaml.safe_dump(data, sort_keys=False, default_flow_style=False, allow_unicode=True)
    content = f"{PROJECT_SCHEMA_ANNOTATION}\n\n{body}"

    fd = os.open(project_file_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, _PERMISSION_FILE)
    with os.fdopen(fd, "w", encoding="utf-8") as file:
        file.write(content)

    project_config.path = os.fspath(project_file_path)