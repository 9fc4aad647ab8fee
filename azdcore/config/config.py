"""Hierarchical, dot-path addressed configuration with a local secret vault."""

from __future__ import annotations

import base64
import binascii
import copy
import dataclasses
import json
import re
import uuid
from typing import Any, TypeVar

T = TypeVar("T")

VAULT_KEY_NAME = "vault"

_UUID = r"[a-fA-F0-9]{8}-[a-fA-F0-9]{4}-[a-fA-F0-9]{4}-[a-fA-F0-9]{4}-[a-fA-F0-9]{12}"
_VAULT_PATTERN = re.compile(rf"^vault://{_UUID}/{_UUID}$")


class ConfigError(Exception):
    """Raised when configuration data cannot be read, changed or converted."""


def _leaf_paths(start: dict[str, Any]) -> list[str]:
    """Return the dot-separated paths to every leaf value of a nested mapping."""
    paths: list[str] = []
    for key, value in start.items():
        if isinstance(value, dict):
            paths.extend(f"{key}.{child}" for child in _leaf_paths(value))
        else:
            paths.append(key)
    return paths


class Config:
    """Configuration values addressed by dot-separated paths such as ``a.b.c``.

    Secrets set with :meth:`set_secret` are kept in a separate vault and the
    configuration only stores a ``vault://`` reference to them. Reading a
    path resolves such references transparently.
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = {} if data is None else data
        self._vault_id: str = ""
        self._vault: Config | None = None

    def _attach_vault(self, vault_id: str, vault: Config) -> None:
        self._vault_id = vault_id
        self._vault = vault

    def is_empty(self) -> bool:
        """Return whether the configuration holds no values."""
        return not self._data

    def raw(self) -> dict[str, Any]:
        """Return the underlying data, with vault references left unresolved."""
        return self._data

    def resolved_raw(self) -> dict[str, Any]:
        """Return a copy of the data with every vault reference resolved.

        The top-level vault identifier is left out.
        """
        resolved = Config()
        for path in _leaf_paths(self._data):
            if path == VAULT_KEY_NAME:
                continue
            resolved.set(path, self.get(path))
        return resolved._data

    def get(self, path: str, default: Any = None) -> Any:
        """Return the value at path, or default when there is none."""
        found, value = self._lookup(path)
        return value if found else default

    def get_string(self, path: str) -> str | None:
        """Return the value at path if it is a string, otherwise None."""
        value = self.get(path)
        return value if isinstance(value, str) else None

    def get_map(self, path: str) -> dict[str, Any] | None:
        """Return the mapping at path if there is one, otherwise None."""
        value = self.get(path)
        return value if isinstance(value, dict) else None

    def get_slice(self, path: str) -> list[Any] | None:
        """Return the list at path if there is one, otherwise None."""
        value = self.get(path)
        return value if isinstance(value, list) else None

    def get_section(self, path: str, section_type: type[T]) -> T | None:
        """Convert the value at path into an instance of section_type.

        Dataclasses are built from the matching keys of a mapping; any other
        type is called with the JSON-normalised value. Returns None when the
        path holds nothing.
        """
        found, value = self._lookup(path)
        if not found:
            return None

        try:
            data = json.loads(json.dumps(value))
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"marshalling section config: {exc}") from exc

        try:
            if dataclasses.is_dataclass(section_type):
                if not isinstance(data, dict):
                    raise TypeError(
                        f"cannot build {section_type.__name__} from {type(data).__name__}"
                    )
                names = {f.name for f in dataclasses.fields(section_type) if f.init}
                return section_type(**{k: v for k, v in data.items() if k in names})
            return section_type(data)  # type: ignore[call-arg]
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"unmarshalling section config: {exc}") from exc

    def set(self, path: str, value: Any) -> None:
        """Store value at path, creating intermediate mappings as needed."""
        *parents, leaf = path.split(".")
        node = self._data
        for part in parents:
            child = node.get(part)
            if child is None:
                child = {}
            elif not isinstance(child, dict):
                raise ConfigError(f"failed converting node at path '{part}' to map")
            node[part] = child
            node = child
        node[leaf] = value

    def set_secret(self, path: str, value: str) -> None:
        """Store value in the vault and a reference to it at path."""
        if not self._vault_id:
            self._vault = Config()
            self._vault_id = str(uuid.uuid4())
            self.set(VAULT_KEY_NAME, self._vault_id)

        assert self._vault is not None
        path_id = str(uuid.uuid4())
        encoded = base64.b64encode(value.encode("utf-8")).decode("ascii")
        self._vault.set(path_id, encoded)
        self.set(path, f"vault://{self._vault_id}/{path_id}")

    def unset(self, path: str) -> None:
        """Remove the value or whole node at path. Missing paths are ignored."""
        *parents, leaf = path.split(".")
        node = self._data
        for part in parents:
            child = node.get(part)
            if child is None:
                return
            if not isinstance(child, dict):
                raise ConfigError(f"failed converting node at path '{part}' to map")
            node = child
        node.pop(leaf, None)

    def _lookup(self, path: str) -> tuple[bool, Any]:
        *parents, leaf = path.split(".")
        node = self._data
        for part in parents:
            child = node.get(part)
            if not isinstance(child, dict):
                return False, None
            node = child
        if leaf not in node:
            return False, None
        return self._interpolate(node[leaf])

    def _secret(self, vault_ref: str) -> tuple[bool, Any]:
        if self._vault is None:
            return False, None
        encoded = self._vault.get_string(vault_ref.rsplit("/", 1)[-1])
        if encoded is None:
            return False, None
        try:
            decoded = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError):
            return False, None
        return True, decoded.decode("utf-8", errors="replace")

    def _interpolate(self, value: Any) -> tuple[bool, Any]:
        if isinstance(value, str) and _VAULT_PATTERN.match(value):
            return self._secret(value)

        if isinstance(value, dict):
            clone: dict[str, Any] = {}
            for key, item in value.items():
                found, resolved = self._interpolate(item)
                if found:
                    clone[key] = resolved
            return True, clone

        if isinstance(value, list):
            return True, copy.deepcopy(value)

        return True, value

    def __repr__(self) -> str:
        return f"Config({self._data!r})"