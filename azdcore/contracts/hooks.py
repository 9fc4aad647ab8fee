"""Hook configuration: scripts that run before or after commands and service events."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


class HookType(str, enum.Enum):
    PRE = "pre"
    POST = "post"
    NONE = ""


class HookPlatformType(str, enum.Enum):
    WINDOWS = "windows"
    POSIX = "posix"


class ShellType(str, enum.Enum):
    BASH = "sh"
    POWERSHELL = "pwsh"
    UNKNOWN = ""


class ScriptLocation(str, enum.Enum):
    INLINE = "inline"
    PATH = "path"
    UNKNOWN = ""


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value.value if isinstance(value, enum.Enum) else str(value)


@dataclass
class HookConfig:
    """A single hook: a script or inline command and how to run it."""

    name: str = ""
    shell: str = ""
    run: str = ""
    continue_on_error: bool = False
    interactive: bool = False
    windows: HookConfig | None = None
    posix: HookConfig | None = None

    # Runtime state filled in when the hook is validated.
    location: str = field(default=ScriptLocation.UNKNOWN.value, init=False, repr=False, compare=False)
    path: str = field(default="", init=False, repr=False, compare=False)
    validated: bool = field(default=False, init=False, repr=False, compare=False)
    cwd: str = field(default="", init=False, repr=False, compare=False)
    script: str = field(default="", init=False, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> HookConfig:
        """Build a hook from its mapping; None gives an empty hook."""
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ValueError(f"hook configuration must be a map, got {type(data).__name__}")
        return cls(
            name=_text(data.get("name")),
            shell=_text(data.get("shell")),
            run=_text(data.get("run")),
            continue_on_error=bool(data.get("continueOnError", False)),
            interactive=bool(data.get("interactive", False)),
            windows=cls.from_dict(data["windows"]) if data.get("windows") is not None else None,
            posix=cls.from_dict(data["posix"]) if data.get("posix") is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the hook's mapping, leaving out empty values."""
        out: dict[str, Any] = {}
        if self.name:
            out["name"] = self.name
        if _text(self.shell):
            out["shell"] = _text(self.shell)
        if self.run:
            out["run"] = self.run
        if self.continue_on_error:
            out["continueOnError"] = True
        if self.interactive:
            out["interactive"] = True
        if self.windows is not None:
            out["windows"] = self.windows.to_dict()
        if self.posix is not None:
            out["posix"] = self.posix.to_dict()
        return out


def parse_hooks(data: Mapping[str, Any] | None) -> dict[str, list[HookConfig]]:
    """Read hooks keyed by event name.

    Each event may hold a single hook (the legacy form) or a list of hooks.
    """
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ValueError("failed to unmarshal hooks configuration: expected a map")

    values = list(data.values())
    if all(v is None or isinstance(v, Mapping) for v in values):
        return {key: [HookConfig.from_dict(v)] if v is not None else [] for key, v in data.items()}

    if all(v is None or isinstance(v, list) for v in values):
        hooks: dict[str, list[HookConfig]] = {}
        for key, items in data.items():
            try:
                hooks[key] = [HookConfig.from_dict(item) for item in items or []]
            except ValueError as exc:
                raise ValueError(f"failed to unmarshal hooks configuration: {exc}") from exc
        return hooks

    raise ValueError(
        "failed to unmarshal hooks configuration: each event must hold a hook or a list of hooks"
    )


def dump_hooks(hooks: Mapping[str, list[HookConfig]] | None) -> dict[str, Any] | None:
    """Write hooks, using the single-hook form for events with exactly one hook."""
    if not hooks:
        return None
    return {
        key: items[0].to_dict() if len(items) == 1 else [item.to_dict() for item in items]
        for key, items in hooks.items()
    }