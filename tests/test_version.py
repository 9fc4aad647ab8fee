import pytest

from azdcore.version import (
    DEV_VERSION_STRING,
    is_dev_version,
    is_non_prod_version,
    user_agent,
    version_in_range,
    version_info,
)

COMMIT = "8a49ae5ae9ab13beeade35f91ad4b4611c2f5574"


def test_dev_version_info():
    info = version_info()
    assert str(info.version) == "0.0.0-dev.0"
    assert info.commit == "0" * 40


def test_release_version_info():
    info = version_info(f"0.0.1-alpha.1 (commit {COMMIT})")
    assert str(info.version) == "0.0.1-alpha.1"
    assert info.commit == COMMIT


@pytest.mark.parametrize(
    "text", ["1.0.0", "1.0.0 (commit abc)", f"not-semver (commit {COMMIT})", ""]
)
def test_malformed_version(text):
    with pytest.raises(ValueError):
        version_info(text)


def test_is_dev_version():
    assert is_dev_version() is True
    assert is_dev_version(DEV_VERSION_STRING) is True
    assert is_dev_version(f"1.0.0 (commit {COMMIT})") is False


def test_is_non_prod_version():
    assert is_non_prod_version() is True
    assert is_non_prod_version(f"1.0.0-pr.1 (commit {COMMIT})") is True
    assert is_non_prod_version(f"1.0.0 (commit {COMMIT})") is False


@pytest.mark.parametrize(
    "version, range_expr, expected",
    [
        ("1.2.3", ">=1.0.0 <2.0.0", True),
        ("2.0.0", ">=1.0.0 <2.0.0", False),
        ("3.0.0", "<1.0.0 || >=3.0.0", True),
        ("1.5.0", "<1.0.0 || >=3.0.0", False),
        ("1.0.0", "1.0.0", True),
        ("1.0.1", "!=1.0.0", True),
        ("1.0.0", ">= 1.0.0", True),
    ],
)
def test_version_in_range(version, range_expr, expected):
    assert version_in_range(version, range_expr) is expected


@pytest.mark.parametrize("range_expr", ["", ">=", "abc", ">=1.0"])
def test_invalid_range(range_expr):
    with pytest.raises(ValueError):
        version_in_range("1.0.0", range_expr)


def test_user_agent_plain(monkeypatch):
    monkeypatch.delenv("AZURE_DEV_USER_AGENT", raising=False)
    monkeypatch.delenv("GITHUB_ACTIONS", raising=False)
    agent = user_agent()
    assert agent.startswith("azdev/0.0.0-dev.0 (")
    assert agent.endswith(")")


def test_user_agent_with_caller_and_actions(monkeypatch):
    monkeypatch.setenv("AZURE_DEV_USER_AGENT", "azd-caller/1.0.0")
    monkeypatch.setenv("GITHUB_ACTIONS", "True")
    agent = user_agent()
    assert agent.endswith(" azd-caller/1.0.0 GhActions")
    assert agent.startswith("azdev/0.0.0-dev.0 ")