"""Project and service configuration as read from and written to the project file."""

from __future__ import annotations

import enum
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from azdcore.contracts.hooks import HookConfig, dump_hooks, parse_hooks
from azdcore.contracts.options import (
    AksOptions,
    DockerProjectOptions,
    PipelineOptions,
    PlatformConfig,
    ProvisioningOptions,
    SpringOptions,
    StateConfig,
)
from azdcore.contracts.workflow import Workflow, dump_workflows, parse_workflows
from azdcore.project.event_dispatcher import EventDispatcher


class ServiceLanguageKind(str, enum.Enum):
    """Programming languages a service can be written in."""

    NONE = ""
    DOTNET = "dotnet"
    CSHARP = "csharp"
    FSHARP = "fsharp"
    JAVASCRIPT = "js"
    TYPESCRIPT = "ts"
    PYTHON = "python"
    JAVA = "java"
    DOCKER = "docker"
    SWA = "swa"


class ServiceTargetKind(str, enum.Enum):
    """Hosting models a service can be deployed to."""

    NON_SPECIFIED = ""
    APP_SERVICE = "appservice"
    CONTAINER_APP = "containerapp"
    AZURE_FUNCTION = "function"
    STATIC_WEB_APP = "staticwebapp"
    SPRING_APP = "springapp"
    AKS = "aks"
    DOTNET_CONTAINER_APP = "containerapp-dotnet"
    AI_ENDPOINT = "ai.endpoint"


# Docker and SWA are derived from the project, never declared as a language.
_DECLARABLE_LANGUAGES = frozenset(
    {
        ServiceLanguageKind.NONE,
        ServiceLanguageKind.DOTNET,
        ServiceLanguageKind.CSHARP,
        ServiceLanguageKind.FSHARP,
        ServiceLanguageKind.JAVASCRIPT,
        ServiceLanguageKind.TYPESCRIPT,
        ServiceLanguageKind.PYTHON,
        ServiceLanguageKind.JAVA,
    }
)

# The .NET container app target is set by importers and cannot be declared.
_DECLARABLE_HOSTS = frozenset(
    {
        ServiceTargetKind.APP_SERVICE,
        ServiceTargetKind.CONTAINER_APP,
        ServiceTargetKind.AZURE_FUNCTION,
        ServiceTargetKind.STATIC_WEB_APP,
        ServiceTargetKind.SPRING_APP,
        ServiceTargetKind.AKS,
        ServiceTargetKind.AI_ENDPOINT,
    }
)


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, enum.Enum):
        return str(value.value)
    return str(value)


def _mapping(data: Any, what: str) -> Mapping[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ValueError(f"{what} must be a map, got {type(data).__name__}")
    return data


def parse_service_language(kind: str) -> ServiceLanguageKind:
    """Validate a declared service language; "py" is accepted for Python."""
    raw = _text(kind)
    if raw == "py":
        return ServiceLanguageKind.PYTHON
    try:
        parsed = ServiceLanguageKind(raw)
    except ValueError:
        parsed = None
    if parsed is None or parsed not in _DECLARABLE_LANGUAGES:
        raise ValueError(f"unsupported language '{raw}'")
    return parsed


def parse_service_host(kind: str) -> ServiceTargetKind:
    """Validate a declared service host."""
    raw = _text(kind)
    try:
        parsed = ServiceTargetKind(raw)
    except ValueError:
        parsed = None
    if parsed is None or parsed not in _DECLARABLE_HOSTS:
        raise ValueError(f"unsupported host '{raw}'")
    return parsed


def _is_default(value: Any) -> bool:
    return value == type(value)()


@dataclass
class RequiredVersions:
    """Versions of tools the project requires; None means no constraint."""

    azd: str | None = None


@dataclass
class ProjectMetadata:
    """Metadata identifying the template a project came from."""

    template: str = ""


@dataclass
class ServiceConfig:
    """A service of the project."""

    project: ProjectConfig | None = field(default=None, repr=False, compare=False)
    name: str = ""
    resource_group_name: str = ""
    resource_name: str = ""
    api_version: str = ""
    relative_path: str = ""
    host: ServiceTargetKind | str = ""
    language: ServiceLanguageKind | str = ""
    output_path: str = ""
    image: str = ""
    docker: DockerProjectOptions = field(default_factory=DockerProjectOptions)
    k8s: AksOptions = field(default_factory=AksOptions)
    spring: SpringOptions = field(default_factory=SpringOptions)
    infra: ProvisioningOptions = field(default_factory=ProvisioningOptions)
    hooks: dict[str, list[HookConfig]] = field(default_factory=dict)
    # Set by importers only; never read from or written to the project file.
    dotnet_container_app: Any = field(default=None, repr=False, compare=False)
    config: dict[str, Any] = field(default_factory=dict)
    event_dispatcher: EventDispatcher | None = field(default=None, repr=False, compare=False)

    def path(self) -> str:
        """Return the full path of the service's folder."""
        if os.path.isabs(self.relative_path):
            return self.relative_path
        base = self.project.path if self.project is not None else ""
        return os.path.normpath(os.path.join(base, self.relative_path))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> ServiceConfig:
        """Build a service from its mapping in the project file."""
        data = _mapping(data, "service configuration")
        config = data.get("config")
        return cls(
            resource_group_name=_text(data.get("resourceGroup")),
            resource_name=_text(data.get("resourceName")),
            api_version=_text(data.get("apiVersion")),
            relative_path=_text(data.get("project")),
            host=_text(data.get("host")),
            language=_text(data.get("language")),
            output_path=_text(data.get("dist")),
            image=_text(data.get("image")),
            docker=DockerProjectOptions.from_dict(data.get("docker")),
            k8s=AksOptions.from_dict(data.get("k8s")),
            spring=SpringOptions.from_dict(data.get("spring")),
            infra=ProvisioningOptions.from_dict(data.get("infra")),
            hooks=parse_hooks(data.get("hooks")),
            config=dict(_mapping(config, "service config")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the service's mapping, leaving out empty optional values."""
        out: dict[str, Any] = {}
        if self.resource_group_name:
            out["resourceGroup"] = self.resource_group_name
        if self.resource_name:
            out["resourceName"] = self.resource_name
        if self.api_version:
            out["apiVersion"] = self.api_version
        out["project"] = self.relative_path
        out["host"] = _text(self.host)
        out["language"] = _text(self.language)
        if self.output_path:
            out["dist"] = self.output_path
        if self.image:
            out["image"] = self.image
        for key, model in (
            ("docker", self.docker),
            ("k8s", self.k8s),
            ("spring", self.spring),
            ("infra", self.infra),
        ):
            if not _is_default(model):
                out[key] = model.to_dict()
        hooks = dump_hooks(self.hooks)
        if hooks:
            out["hooks"] = hooks
        if self.config:
            out["config"] = dict(self.config)
        return out


@dataclass
class ProjectConfig:
    """The top-level object of the project file."""

    required_versions: RequiredVersions | None = None
    name: str = ""
    resource_group_name: str = ""
    path: str = ""
    metadata: ProjectMetadata | None = None
    services: dict[str, ServiceConfig] = field(default_factory=dict)
    infra: ProvisioningOptions = field(default_factory=ProvisioningOptions)
    pipeline: PipelineOptions = field(default_factory=PipelineOptions)
    hooks: dict[str, list[HookConfig]] = field(default_factory=dict)
    state: StateConfig | None = None
    platform: PlatformConfig | None = None
    workflows: dict[str, Workflow] = field(default_factory=dict)
    cloud: dict[str, Any] = field(default_factory=dict)
    event_dispatcher: EventDispatcher | None = field(default=None, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> ProjectConfig:
        """Build a project from the mapping of a project file.

        Each service takes its key as its name and refers back to the project.
        """
        data = _mapping(data, "project configuration")

        required = data.get("requiredVersions")
        required_versions = None
        if required is not None:
            azd = _mapping(required, "requiredVersions").get("azd")
            required_versions = RequiredVersions(azd=None if azd is None else _text(azd))

        metadata = data.get("metadata")
        state = data.get("state")
        platform = data.get("platform")

        project = cls(
            required_versions=required_versions,
            name=_text(data.get("name")),
            resource_group_name=_text(data.get("resourceGroup")),
            metadata=(
                ProjectMetadata(_text(_mapping(metadata, "metadata").get("template")))
                if metadata is not None
                else None
            ),
            infra=ProvisioningOptions.from_dict(data.get("infra")),
            pipeline=PipelineOptions.from_dict(data.get("pipeline")),
            hooks=parse_hooks(data.get("hooks")),
            state=StateConfig.from_dict(state) if state is not None else None,
            platform=PlatformConfig.from_dict(platform) if platform is not None else None,
            workflows=parse_workflows(data.get("workflows")),
            cloud=dict(_mapping(data.get("cloud"), "cloud")),
        )

        for key, raw in _mapping(data.get("services"), "services").items():
            service = ServiceConfig.from_dict(raw)
            service.name = key
            service.project = project
            project.services[key] = service
        return project

    def to_dict(self) -> dict[str, Any]:
        """Return the project file's mapping, leaving out empty optional values."""
        out: dict[str, Any] = {}
        if self.required_versions is not None:
            out["requiredVersions"] = (
                {"azd": self.required_versions.azd}
                if self.required_versions.azd is not None
                else {}
            )
        out["name"] = self.name
        if self.resource_group_name:
            out["resourceGroup"] = self.resource_group_name
        if self.metadata is not None:
            out["metadata"] = {"template": self.metadata.template}
        if self.services:
            out["services"] = {
                key: self.services[key].to_dict() for key in sorted(self.services)
            }
        if not _is_default(self.infra):
            out["infra"] = self.infra.to_dict()
        if not _is_default(self.pipeline):
            out["pipeline"] = self.pipeline.to_dict()
        hooks = dump_hooks(self.hooks)
        if hooks:
            out["hooks"] = hooks
        if self.state is not None:
            out["state"] = self.state.to_dict()
        if self.platform is not None:
            out["platform"] = self.platform.to_dict()
        if self.workflows:
            out["workflows"] = dump_workflows(self.workflows)
        if self.cloud:
            out["cloud"] = dict(self.cloud)
        return out


@dataclass
class ProjectLifecycleEventArgs:
    """Arguments passed to project lifecycle event handlers."""

    project: ProjectConfig
    args: dict[str, Any] = field(default_factory=dict)


@dataclass
class ServiceLifecycleEventArgs:
    """Arguments passed to service lifecycle event handlers."""

    project: ProjectConfig
    service: ServiceConfig
    args: dict[str, Any] = field(default_factory=dict)