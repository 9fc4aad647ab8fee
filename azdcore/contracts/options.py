"""Option blocks of the project file: AKS, Docker, Helm, Kustomize, pipelines, platform, infra and state."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import MISSING, dataclass, field, fields
from typing import Any


def _option(
    key: str | None,
    *,
    default: Any = MISSING,
    factory: Any = MISSING,
    omitempty: bool = False,
    model: type | None = None,
    many: bool = False,
    optional: bool = False,
) -> Any:
    metadata = {
        "key": key,
        "omitempty": omitempty,
        "model": model,
        "many": many,
        "optional": optional,
    }
    if factory is not MISSING:
        return field(default_factory=factory, metadata=metadata)
    return field(default=default, metadata=metadata)


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, YamlModel):
        return value == type(value)()
    return not value


def _dump(value: Any) -> Any:
    if isinstance(value, YamlModel):
        return value.to_dict()
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, list):
        return [_dump(item) for item in value]
    if isinstance(value, dict):
        return {key: _dump(item) for key, item in value.items()}
    return value


class YamlModel:
    """Base of dataclasses that map to and from YAML-shaped mappings.

    Each field names its key in the mapping; fields without a key are not
    read or written.
    """

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Any:
        """Build an instance from a mapping; None gives the default instance."""
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ValueError(f"cannot read {cls.__name__} from {type(data).__name__}")

        kwargs: dict[str, Any] = {}
        for f in fields(cls):  # type: ignore[arg-type]
            key = f.metadata.get("key")
            if key is None or key not in data:
                continue
            value = data[key]
            if value is None and not f.metadata.get("optional"):
                continue
            kwargs[f.name] = cls._load_field(f.metadata, value)
        return cls(**kwargs)

    @staticmethod
    def _load_field(metadata: Mapping[str, Any], value: Any) -> Any:
        model = metadata.get("model")
        if model is None:
            if isinstance(value, list):
                return list(value)
            if isinstance(value, dict):
                return dict(value)
            return value
        if value is None:
            return None
        if metadata.get("many"):
            if not isinstance(value, list):
                raise ValueError(f"expected a list of {model.__name__}")
            return [model.from_dict(item) for item in value]
        return model.from_dict(value)

    def to_dict(self) -> dict[str, Any]:
        """Return the mapping this instance is written as."""
        out: dict[str, Any] = {}
        for f in fields(self):  # type: ignore[arg-type]
            key = f.metadata.get("key")
            if key is None:
                continue
            value = getattr(self, f.name)
            if f.metadata.get("omitempty") and _is_empty(value):
                continue
            out[key] = _dump(value)
        return out


@dataclass
class AksIngressOptions(YamlModel):
    name: str = _option("name", default="")
    relative_path: str = _option("relativePath", default="")


@dataclass
class AksDeploymentOptions(YamlModel):
    name: str = _option("name", default="")


@dataclass
class AksServiceOptions(YamlModel):
    name: str = _option("name", default="")


@dataclass
class HelmRepository(YamlModel):
    name: str = _option("name", default="")
    url: str = _option("url", default="")


@dataclass
class HelmRelease(YamlModel):
    name: str = _option("name", default="")
    chart: str = _option("chart", default="")
    version: str = _option("version", default="")
    namespace: str = _option("namespace", default="")
    values: str = _option("values", default="")


@dataclass
class HelmConfig(YamlModel):
    repositories: list[HelmRepository] = _option(
        "repositories", factory=list, model=HelmRepository, many=True
    )
    releases: list[HelmRelease] = _option(
        "releases", factory=list, model=HelmRelease, many=True
    )


@dataclass
class KustomizeConfig(YamlModel):
    directory: str = _option("dir", default="")
    edits: list[str] = _option("edits", factory=list)
    env: dict[str, str] = _option("env", factory=dict)


@dataclass
class AksOptions(YamlModel):
    """Options for deploying a service to Kubernetes."""

    namespace: str = _option("namespace", default="")
    deployment_path: str = _option("deploymentPath", default="")
    ingress: AksIngressOptions = _option(
        "ingress", factory=AksIngressOptions, model=AksIngressOptions
    )
    deployment: AksDeploymentOptions = _option(
        "deployment", factory=AksDeploymentOptions, model=AksDeploymentOptions
    )
    service: AksServiceOptions = _option(
        "service", factory=AksServiceOptions, model=AksServiceOptions
    )
    helm: HelmConfig | None = _option("helm", default=None, model=HelmConfig, optional=True)
    kustomize: KustomizeConfig | None = _option(
        "kustomize", default=None, model=KustomizeConfig, optional=True
    )


@dataclass
class DockerProjectOptions(YamlModel):
    """Options for building a service's container image."""

    path: str = _option("path", default="", omitempty=True)
    context: str = _option("context", default="", omitempty=True)
    platform: str = _option("platform", default="", omitempty=True)
    target: str = _option("target", default="", omitempty=True)
    registry: str = _option("registry", default="", omitempty=True)
    image: str = _option("image", default="", omitempty=True)
    tag: str = _option("tag", default="", omitempty=True)
    remote_build: bool = _option("remoteBuild", default=False, omitempty=True)
    build_args: list[str] = _option("buildArgs", factory=list, omitempty=True)
    # Set programmatically only; never read from or written to the project file.
    build_secrets: list[str] = _option(None, factory=list)
    build_env: list[str] = _option(None, factory=list)


@dataclass
class PipelineOptions(YamlModel):
    provider: str = _option("provider", default="")
    variables: list[str] = _option("variables", factory=list)
    secrets: list[str] = _option("secrets", factory=list)


@dataclass
class PlatformConfig(YamlModel):
    type: str = _option("type", default="")
    config: dict[str, Any] = _option("config", factory=dict)


class ProvisioningProviderKind(str, enum.Enum):
    """Infrastructure-as-code providers."""

    NOT_SPECIFIED = ""
    BICEP = "bicep"
    ARM = "arm"
    TERRAFORM = "terraform"
    PULUMI = "pulumi"
    TEST = "test"


_SUPPORTED_PROVIDERS = frozenset(
    {
        ProvisioningProviderKind.NOT_SPECIFIED,
        ProvisioningProviderKind.BICEP,
        ProvisioningProviderKind.TERRAFORM,
        ProvisioningProviderKind.TEST,
    }
)


def parse_provisioning_provider(kind: str) -> ProvisioningProviderKind:
    """Validate an infrastructure provider name; an empty name is allowed."""
    raw = kind.value if isinstance(kind, enum.Enum) else kind
    try:
        parsed = ProvisioningProviderKind(raw)
    except ValueError:
        parsed = None
    if parsed is None or parsed not in _SUPPORTED_PROVIDERS:
        raise ValueError(f"unsupported IaC provider '{raw}'")
    return parsed


@dataclass
class ProvisioningOptions(YamlModel):
    provider: str = _option("provider", default="", omitempty=True)
    path: str = _option("path", default="", omitempty=True)
    module: str = _option("module", default="", omitempty=True)
    deployment_stacks: dict[str, Any] = _option(
        "deploymentStacks", factory=dict, omitempty=True
    )
    ignore_deployment_state: bool = _option(None, default=False)


@dataclass
class SpringOptions(YamlModel):
    deployment_name: str = _option("deploymentName", default="")


@dataclass
class RemoteConfig(YamlModel):
    """State configuration for a remote backend."""

    backend: str = _option("backend", default="")
    config: dict[str, Any] = _option("config", factory=dict)


@dataclass
class StateConfig(YamlModel):
    remote: RemoteConfig | None = _option(
        "remote", default=None, model=RemoteConfig, optional=True
    )