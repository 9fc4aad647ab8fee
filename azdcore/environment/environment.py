"""Named environments: key/value pairs kept in a .env file plus their own configuration."""

from __future__ import annotations

import json
import logging
import os
import re
from collections.abc import Mapping

from azdcore.config.config import Config

logger = logging.getLogger(__name__)

ENV_NAME_ENV_VAR_NAME = "AZURE_ENV_NAME"
LOCATION_ENV_VAR_NAME = "AZURE_LOCATION"
SUBSCRIPTION_ID_ENV_VAR_NAME = "AZURE_SUBSCRIPTION_ID"
PRINCIPAL_ID_ENV_VAR_NAME = "AZURE_PRINCIPAL_ID"
TENANT_ID_ENV_VAR_NAME = "AZURE_TENANT_ID"
CONTAINER_REGISTRY_ENDPOINT_ENV_VAR_NAME = "AZURE_CONTAINER_REGISTRY_ENDPOINT"
AKS_CLUSTER_ENV_VAR_NAME = "AZURE_AKS_CLUSTER_NAME"
RESOURCE_GROUP_ENV_VAR_NAME = "AZURE_RESOURCE_GROUP"
PLATFORM_TYPE_ENV_VAR_NAME = "AZD_PLATFORM_TYPE"
INITIAL_ENVIRONMENT_CONFIG_ENV_VAR_NAME = "AZD_INITIAL_ENVIRONMENT_CONFIG"

ENVIRONMENT_NAME_MAX_LENGTH = 64
ENVIRONMENT_NAME_PATTERN = re.compile(r"[a-zA-Z0-9\-()_.]{1,64}")

_ALLOWED_NAME_CHARS = frozenset(
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789-()_."
)


class EnvironmentInitError(Exception):
    """Raised when an environment has already been initialised."""

    def __init__(self, name: str) -> None:
        super().__init__(f"environment already initialized to {name}")
        self.name = name


def _initial_config() -> Config:
    raw = os.environ.get(INITIAL_ENVIRONMENT_CONFIG_ENV_VAR_NAME, "")
    if not raw:
        return Config()
    try:
        data = json.loads(raw)
    except ValueError as exc:
        logger.warning("Failed to unmarshal initial config %s. Using empty config.", exc)
        return Config()
    if data is None:
        return Config()
    if not isinstance(data, dict):
        logger.warning("Initial config is not an object. Using empty config.")
        return Config()
    return Config(data)


def _normalize(key: str) -> str:
    return key.upper().replace("-", "_")


class Environment:
    """An environment's .env values and configuration.

    Values given explicitly replace the initial ones entirely, including the
    AZURE_ENV_NAME entry that a new environment otherwise starts with.
    """

    def __init__(self, name: str = "", values: Mapping[str, str] | None = None) -> None:
        self._name = name
        self._dotenv: dict[str, str] = {}
        self._deleted_keys: set[str] = set()
        self.config: Config = _initial_config()
        self.dotenv_set(ENV_NAME_ENV_VAR_NAME, name)
        if values is not None:
            self._dotenv = dict(values)

    def _replace_values(self, values: Mapping[str, str]) -> None:
        """Replace all .env values and forget pending deletions."""
        self._dotenv = dict(values)
        self._deleted_keys = set()

    @property
    def name(self) -> str:
        """The environment's name, falling back to the AZURE_ENV_NAME value."""
        if not self._name:
            self._name = self.getenv(ENV_NAME_ENV_VAR_NAME)
        return self._name

    def getenv(self, key: str) -> str:
        """Return the .env value for key, else the process environment's, else ""."""
        if key in self._dotenv:
            return self._dotenv[key]
        return os.environ.get(key, "")

    def lookup_env(self, key: str) -> str | None:
        """Return the .env value for key, else the process environment's, else None."""
        if key in self._dotenv:
            return self._dotenv[key]
        return os.environ.get(key)

    def dotenv(self) -> dict[str, str]:
        """Return a copy of the .env values."""
        return dict(self._dotenv)

    def dotenv_set(self, key: str, value: str) -> None:
        """Set a .env value. Saving is needed to persist it."""
        self._dotenv[key] = value
        self._deleted_keys.discard(key)

    def dotenv_delete(self, key: str) -> None:
        """Remove a .env value; missing keys are ignored. Saving is needed to persist it."""
        self._dotenv.pop(key, None)
        self._deleted_keys.add(key)

    @property
    def subscription_id(self) -> str:
        return self.getenv(SUBSCRIPTION_ID_ENV_VAR_NAME)

    @subscription_id.setter
    def subscription_id(self, value: str) -> None:
        self.dotenv_set(SUBSCRIPTION_ID_ENV_VAR_NAME, value)

    @property
    def tenant_id(self) -> str:
        return self.getenv(TENANT_ID_ENV_VAR_NAME)

    @property
    def location(self) -> str:
        return self.getenv(LOCATION_ENV_VAR_NAME)

    @location.setter
    def location(self, value: str) -> None:
        self.dotenv_set(LOCATION_ENV_VAR_NAME, value)

    def get_service_property(self, service_name: str, property_name: str) -> str:
        """Return the SERVICE_<NAME>_<PROPERTY> value."""
        return self.getenv(f"SERVICE_{_normalize(service_name)}_{property_name}")

    def set_service_property(self, service_name: str, property_name: str, value: str) -> None:
        """Set the SERVICE_<NAME>_<PROPERTY> value."""
        self.dotenv_set(f"SERVICE_{_normalize(service_name)}_{property_name}", value)

    def environ(self) -> list[str]:
        """Return the .env values as KEY=VALUE strings."""
        return [f"{key}={value}" for key, value in self._dotenv.items()]

    def __repr__(self) -> str:
        return f"Environment({self._name!r})"


def is_valid_environment_name(name: str) -> bool:
    """Return whether name is allowed as an environment name."""
    return ENVIRONMENT_NAME_PATTERN.fullmatch(name) is not None


def clean_name(name: str) -> str:
    """Replace every character not allowed in an environment name with a hyphen."""
    return "".join(c if c in _ALLOWED_NAME_CHARS else "-" for c in name)


_DOUBLE_QUOTE_ESCAPES = (
    ("\\", "\\\\"),
    ("\n", "\\n"),
    ("\r", "\\r"),
    ('"', '\\"'),
    ("!", "\\!"),
    ("$", "\\$"),
    ("`", "\\`"),
)
_INT_PATTERN = re.compile(r"[+-]?[0-9]+")


def _parse_int64(value: str) -> int | None:
    if _INT_PATTERN.fullmatch(value):
        number = int(value)
        if -(2**63) <= number < 2**63:
            return number
    return None


def _escape(value: str) -> str:
    for char, replacement in _DOUBLE_QUOTE_ESCAPES:
        value = value.replace(char, replacement)
    return value


def marshal_dotenv(values: Mapping[str, str]) -> str:
    """Serialise values in .env format, one sorted line per key.

    Integers in canonical form are written bare; every other value is
    double-quoted, so leading zeros and signs are preserved.
    """
    lines = []
    for key, value in values.items():
        number = _parse_int64(value)
        if number is not None and str(number) == value:
            lines.append(f"{key}={value}")
        elif number is not None:
            lines.append(f'{key}="{value}"')
        else:
            lines.append(f'{key}="{_escape(value)}"')
    lines.sort()
    return "\n".join(lines)


_INLINE_SPACE = " \t\v\f\r\x85\xa0"
_ESCAPE_PATTERN = re.compile(r"\\(.)")
_UNESCAPE_PATTERN = re.compile(r"\\([^$])")
_EXPAND_PATTERN = re.compile(r"(\\)?(\$)(\()?\{?([A-Z0-9_]+)?\}?")


def _expand_escapes(value: str) -> str:
    value = _ESCAPE_PATTERN.sub(
        lambda m: {"n": "\n", "r": "\r"}.get(m.group(1), m.group(0)), value
    )
    return _UNESCAPE_PATTERN.sub(r"\1", value)


def _expand_variables(value: str, known: Mapping[str, str]) -> str:
    def replace(match: re.Match[str]) -> str:
        if match.group(1):
            return match.group(0)[1:]
        name = match.group(4)
        if name:
            if name in known:
                return known[name]
            return os.environ.get(name, "")
        return match.group(0)

    return _EXPAND_PATTERN.sub(replace, value)


def _extract_key(src: str) -> tuple[str, str]:
    if src.startswith("export "):
        src = src[len("export ") :].lstrip(_INLINE_SPACE)
    for index, char in enumerate(src):
        if char in _INLINE_SPACE:
            continue
        if char in "=:":
            key = src[:index].rstrip()
            if not key:
                raise ValueError(f"missing variable name near {src[:20]!r}")
            return key, src[index + 1 :].lstrip(_INLINE_SPACE)
        if char == "_" or char == "." or char.isalnum():
            continue
        raise ValueError(f"unexpected character {char!r} in variable name near {src[:20]!r}")
    raise ValueError(f"missing '=' after variable name near {src[:20]!r}")


def _extract_value(src: str, known: Mapping[str, str]) -> tuple[str, str]:
    if src[:1] in ("'", '"'):
        quote = src[0]
        index = 1
        while index < len(src):
            char = src[index]
            if quote == '"' and char == "\\":
                index += 2
                continue
            if char == quote:
                raw = src[1:index]
                rest = src[index + 1 :].partition("\n")[2]
                if quote == "'":
                    return raw, rest
                return _expand_variables(_expand_escapes(raw), known), rest
            index += 1
        raise ValueError(f"unterminated quoted value {src[:20]!r}")

    line, _, rest = src.partition("\n")
    comment = line.find(" #")
    if comment >= 0:
        line = line[:comment]
    elif line.startswith("#"):
        line = ""
    return _expand_variables(line.rstrip(), known), rest


def parse_dotenv(text: str) -> dict[str, str]:
    """Parse .env content into a mapping of keys to values."""
    values: dict[str, str] = {}
    rest = text.replace("\r\n", "\n")
    while True:
        rest = rest.lstrip()
        if not rest:
            return values
        if rest.startswith("#"):
            rest = rest.partition("\n")[2]
            continue
        key, rest = _extract_key(rest)
        value, rest = _extract_value(rest, values)
        values[key] = value