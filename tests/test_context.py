import json

import pytest

from azdcore.context import (
    AzdContext,
    NoProjectError,
    ProjectState,
    find_project_context,
)


def test_paths(tmp_path):
    ctx = AzdContext(tmp_path)
    assert ctx.project_path == tmp_path / "azure.yaml"
    assert ctx.environment_directory == tmp_path / ".azure"
    assert ctx.environment_root("dev") == tmp_path / ".azure" / "dev"
    assert ctx.environment_work_directory("dev") == tmp_path / ".azure" / "dev" / "wd"


def test_default_project_name(tmp_path):
    project = tmp_path / "my-app"
    project.mkdir()
    assert AzdContext(project).default_project_name == "my-app"


def test_default_environment_missing(tmp_path):
    assert AzdContext(tmp_path).get_default_environment_name() == ""


def test_set_project_state_round_trip(tmp_path):
    ctx = AzdContext(tmp_path)
    ctx.set_project_state(ProjectState(default_environment="dev"))
    assert ctx.get_default_environment_name() == "dev"

    data = json.loads((tmp_path / ".azure" / "config.json").read_text())
    assert data == {"version": 1, "defaultEnvironment": "dev"}

    gitignore = (tmp_path / ".azure" / ".gitignore").read_text()
    assert gitignore == "# .azure is not intended to be committed\n*"


def test_clearing_default_environment(tmp_path):
    ctx = AzdContext(tmp_path)
    ctx.set_project_state(ProjectState(default_environment="dev"))
    ctx.set_project_state(ProjectState())
    assert ctx.get_default_environment_name() == ""
    data = json.loads((tmp_path / ".azure" / "config.json").read_text())
    assert "defaultEnvironment" not in data


def test_invalid_config_raises(tmp_path):
    (tmp_path / ".azure").mkdir()
    (tmp_path / ".azure" / "config.json").write_text("{not json")
    with pytest.raises(ValueError, match="deserializing config file"):
        AzdContext(tmp_path).get_default_environment_name()


def test_find_project_from_nested_directory(tmp_path):
    (tmp_path / "azure.yaml").write_text("name: app\n")
    nested = tmp_path / "src" / "api"
    nested.mkdir(parents=True)
    ctx = find_project_context(nested)
    assert ctx.project_directory == tmp_path


def test_find_project_in_working_directory(tmp_path, monkeypatch):
    (tmp_path / "azure.yaml").write_text("name: app\n")
    monkeypatch.chdir(tmp_path)
    assert find_project_context().project_directory.resolve() == tmp_path.resolve()


def test_project_file_directory_is_skipped(tmp_path):
    outer = tmp_path / "outer"
    inner = outer / "inner"
    (inner / "azure.yaml").mkdir(parents=True)
    (outer / "azure.yaml").write_text("name: app\n")
    assert find_project_context(inner).project_directory == outer


def test_no_project_raises(tmp_path):
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    with pytest.raises(NoProjectError, match="azd init"):
        find_project_context(nested)