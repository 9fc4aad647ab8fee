"""Version information and the user agent string built from it."""

from __future__ import annotations

import os
import platform
import re
import sys
from dataclasses import dataclass

import semver

DEV_VERSION_STRING = "0.0.0-dev.0 (commit 0000000000000000000000000000000000000000)"

# The version string, of the form "<semver> (commit <full commit hash>)".
VERSION = DEV_VERSION_STRING

AZD_USER_AGENT_ENV_VAR = "AZURE_DEV_USER_AGENT"
VS_CODE_AGENT_PREFIX = "vscode:/extensions/ms-azuretools.azure-dev"
VS_AGENT_PREFIX = "vside:/webtools/azdev.publish"

_VERSION_PATTERN = re.compile(r"^(\S+) \(commit ([0-9a-f]{40})\)$")
_OPERATORS = (">=", "<=", "!=", "==", ">", "<", "=")
_COMPARATOR_PATTERN = re.compile(r"(>=|<=|!=|==|>|<|=)?(\S+)")
_CHECKS = {
    "=": lambda c: c == 0,
    "==": lambda c: c == 0,
    "!=": lambda c: c != 0,
    ">": lambda c: c > 0,
    ">=": lambda c: c >= 0,
    "<": lambda c: c < 0,
    "<=": lambda c: c <= 0,
}


@dataclass(frozen=True)
class VersionInfo:
    version: semver.Version
    commit: str


def version_info(version: str | None = None) -> VersionInfo:
    """Parse a version string; defaults to the running version."""
    text = VERSION if version is None else version
    match = _VERSION_PATTERN.match(text)
    if match is None:
        raise ValueError(f"version is malformed: {text!r}")
    try:
        parsed = semver.Version.parse(match.group(1))
    except ValueError as exc:
        raise ValueError(f"version is malformed: {text!r}") from exc
    return VersionInfo(parsed, match.group(2))


def is_dev_version(version: str | None = None) -> bool:
    return (VERSION if version is None else version) == DEV_VERSION_STRING


def is_non_prod_version(version: str | None = None) -> bool:
    """True for development builds and internal pre-release builds."""
    if is_dev_version(version):
        return True
    return "pr" in str(version_info(version).version)


def _parse_range(range_expr: str) -> list[list[tuple[str, semver.Version]]]:
    alternatives = []
    for part in range_expr.split("||"):
        tokens: list[str] = []
        pending = ""
        for token in part.split():
            if token in _OPERATORS:
                if pending:
                    raise ValueError(f"invalid range {range_expr!r}")
                pending = token
                continue
            tokens.append(pending + token)
            pending = ""
        if pending or not tokens:
            raise ValueError(f"invalid range {range_expr!r}")

        comparators = []
        for token in tokens:
            match = _COMPARATOR_PATTERN.fullmatch(token)
            if match is None:
                raise ValueError(f"invalid range {range_expr!r}")
            try:
                bound = semver.Version.parse(match.group(2))
            except ValueError as exc:
                raise ValueError(f"invalid range {range_expr!r}: {exc}") from exc
            comparators.append((match.group(1) or "=", bound))
        alternatives.append(comparators)
    return alternatives


def version_in_range(version: str | semver.Version, range_expr: str) -> bool:
    """Return whether version satisfies a range such as ">=1.0.0 <2.0.0 || 3.0.0".

    Space-separated comparators must all hold; "||" separates alternatives.
    Raises ValueError for a malformed range.
    """
    alternatives = _parse_range(range_expr)
    parsed = version if isinstance(version, semver.Version) else semver.Version.parse(version)
    return any(
        all(_CHECKS[op](parsed.compare(bound)) for op, bound in comparators)
        for comparators in alternatives
    )


def _runtime_info() -> str:
    return f"(Python {platform.python_version()}; {sys.platform}/{platform.machine()})"


def user_agent(version: str | None = None) -> str:
    """Return the user agent string, including any caller-supplied agent."""
    parts = [f"azdev/{version_info(version).version}", _runtime_info()]
    caller = os.environ.get(AZD_USER_AGENT_ENV_VAR, "")
    if caller:
        parts.append(caller)
    if os.environ.get("GITHUB_ACTIONS", "").lower() == "true":
        parts.append("GhActions")
    return " ".join(parts)