"""Workflows: named sequences of azd command steps."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


class WorkflowError(ValueError):
    """Raised when workflow configuration has the wrong shape."""


@dataclass
class Command:
    """An azd command given as its arguments."""

    args: list[str] = field(default_factory=list)

    @classmethod
    def from_yaml(cls, data: Any) -> Command:
        """Read a command written as a string or as a map with an args list."""
        if data is None:
            return cls()
        if isinstance(data, Mapping):
            raw_args = data.get("args")
            args = [a for a in raw_args if isinstance(a, str)] if isinstance(raw_args, list) else []
            return cls(args)
        if isinstance(data, str):
            return cls(data.split(" "))
        raise WorkflowError("command must be a string or a map")

    def to_yaml(self) -> str:
        return " ".join(self.args)


@dataclass
class Step:
    """A single workflow step."""

    azd_command: Command = field(default_factory=Command)

    @classmethod
    def from_yaml(cls, data: Any) -> Step:
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise WorkflowError("step must be a map")
        if data.get("azd") is None:
            return cls()
        return cls(Command.from_yaml(data["azd"]))

    def to_yaml(self) -> dict[str, Any]:
        if not self.azd_command.args:
            return {}
        return {"azd": self.azd_command.to_yaml()}


def _steps(raw: list[Any]) -> list[Step]:
    return [Step.from_yaml(item) for item in raw]


@dataclass
class Workflow:
    """A named list of steps."""

    name: str = ""
    steps: list[Step] = field(default_factory=list)

    @classmethod
    def from_yaml(cls, data: Any) -> Workflow:
        """Read a workflow written as a list of steps or as a map with steps."""
        workflow = cls()
        if isinstance(data, Mapping):
            if "name" in data:
                if not isinstance(data["name"], str):
                    raise WorkflowError("workflow name must be a string")
                workflow.name = data["name"]
            if isinstance(data.get("steps"), list):
                workflow.steps = _steps(data["steps"])
        elif isinstance(data, list):
            workflow.steps = _steps(data)

        if not workflow.steps:
            raise WorkflowError("workflow configuration must be a map or an array of steps")
        return workflow

    def to_yaml(self) -> dict[str, Any]:
        if not self.steps:
            return {}
        return {"steps": [step.to_yaml() for step in self.steps]}


def parse_workflows(data: Mapping[str, Any] | None) -> dict[str, Workflow]:
    """Read workflows keyed by name; each workflow takes its key as its name."""
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise WorkflowError("workflows must be a map")
    workflows: dict[str, Workflow] = {}
    for key, raw in data.items():
        workflow = Workflow.from_yaml(raw)
        workflow.name = key
        workflows[key] = workflow
    return workflows


def dump_workflows(workflows: Mapping[str, Workflow]) -> dict[str, Any]:
    return {key: workflow.to_yaml() for key, workflow in workflows.items()}


def new_azd_command_step(*args: str) -> Step:
    """Return a step that runs azd with the given arguments."""
    return Step(Command(list(args)))