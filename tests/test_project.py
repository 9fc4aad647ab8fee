import os

import pytest

import azdcore.version
from azdcore.project.models import ProjectConfig, ServiceLanguageKind, ServiceTargetKind
from azdcore.project.project import (
    PROJECT_SCHEMA_ANNOTATION,
    ProjectParseError,
    load,
    load_config,
    new_project,
    parse,
    save,
    save_config,
)

SAMPLE = """
name: demo
services:
  api:
    project: src/api
    host: containerapp
    language: py
  web:
    project: src\\web
    host: appservice
    language: ts
    dist: build
"""


def test_empty_content_is_rejected():
    with pytest.raises(ProjectParseError, match="File is empty"):
        parse("   \n")


def test_invalid_yaml_is_rejected():
    with pytest.raises(ProjectParseError, match="unable to parse azure.yaml file"):
        parse("name: [unclosed")


def test_infra_defaults():
    project = parse("name: demo\n")
    assert project.infra.path == "infra"
    assert project.infra.provider == ""
    assert project.event_dispatcher is not None


def test_backslash_infra_path_is_normalised():
    project = parse("name: demo\ninfra:\n  path: deploy\\\\bicep\n")
    assert project.infra.path == os.path.join("deploy", "bicep")


def test_services_are_validated_and_linked():
    project = parse(SAMPLE)
    api = project.services["api"]
    web = project.services["web"]
    assert api.name == "api"
    assert api.project is project
    assert api.language is ServiceLanguageKind.PYTHON
    assert api.host is ServiceTargetKind.CONTAINER_APP
    assert api.relative_path == os.path.join("src", "api")
    assert web.relative_path == os.path.join("src", "web")
    assert api.event_dispatcher is not None


def test_container_app_needs_language_or_image():
    content = "name: demo\nservices:\n  api:\n    project: api\n    host: containerapp\n"
    with pytest.raises(ProjectParseError, match="must specify language or image"):
        parse(content)


def test_container_app_with_image_is_accepted():
    content = (
        "name: demo\nservices:\n  api:\n    project: api\n"
        "    host: containerapp\n    image: nginx\n"
    )
    assert parse(content).services["api"].image == "nginx"


def test_unsupported_host_is_rejected():
    content = "name: demo\nservices:\n  api:\n    project: api\n    host: vm\n"
    with pytest.raises(ProjectParseError, match="unsupported host 'vm'"):
        parse(content)


def test_unsupported_provider_is_rejected():
    with pytest.raises(ProjectParseError, match="unsupported IaC provider 'arm'"):
        parse("name: demo\ninfra:\n  provider: arm\n")


def test_invalid_version_range_is_rejected():
    with pytest.raises(ProjectParseError, match="is not a valid semver range"):
        parse("name: demo\nrequiredVersions:\n  azd: '>= banana'\n")


def test_dev_version_ignores_range():
    project = parse("name: demo\nrequiredVersions:\n  azd: '>= 99.0.0'\n")
    assert project.required_versions.azd == ">= 99.0.0"


def test_release_version_outside_range_is_rejected(monkeypatch):
    monkeypatch.setattr(azdcore.version, "VERSION", "1.0.0 (commit " + "a" * 40 + ")")
    with pytest.raises(ProjectParseError, match="requires a version of azd within the range"):
        parse("name: demo\nrequiredVersions:\n  azd: '>= 99.0.0'\n")


def test_save_and_load_round_trip(tmp_path):
    path = tmp_path / "azure.yaml"
    original = parse(SAMPLE)
    save(original, path)

    content = path.read_text(encoding="utf-8")
    assert content.startswith(PROJECT_SCHEMA_ANNOTATION + "\n\n")
    assert "src/web" in content
    assert original.path == str(path)

    loaded = load(path)
    assert loaded.path == str(tmp_path)
    assert loaded.name == original.name
    assert loaded.services["web"].output_path == original.services["web"].output_path
    assert loaded.services["api"].relative_path == original.services["api"].relative_path


def test_save_does_not_change_service_paths(tmp_path):
    project = parse(SAMPLE)
    before = project.services["api"].relative_path
    save(project, tmp_path / "azure.yaml")
    assert project.services["api"].relative_path == before


def test_new_project_writes_named_project(tmp_path):
    path = tmp_path / "azure.yaml"
    project = new_project(path, "fresh")
    assert project.name == "fresh"
    assert path.exists()
    assert project.path == str(tmp_path)


def test_load_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load(tmp_path / "azure.yaml")


def test_load_wraps_parse_errors(tmp_path):
    path = tmp_path / "azure.yaml"
    path.write_text("", encoding="utf-8")
    with pytest.raises(ProjectParseError, match="parsing project file"):
        load(path)


def test_load_config_and_save_config(tmp_path):
    path = tmp_path / "azure.yaml"
    path.write_text(SAMPLE, encoding="utf-8")

    config = load_config(path)
    assert config.get("name") == "demo"
    assert config.get("services.api.host") == "containerapp"

    config.set("name", "renamed")
    save_config(config, path)
    assert load(path).name == "renamed"


def test_save_config_rejects_invalid_project(tmp_path):
    path = tmp_path / "azure.yaml"
    path.write_text("name: demo\n", encoding="utf-8")
    config = load_config(path)
    config.set("infra.provider", "pulumi")
    with pytest.raises(ProjectParseError, match="parsing project yaml"):
        save_config(config, path)


def test_saved_project_parses_to_equal_config(tmp_path):
    path = tmp_path / "azure.yaml"
    project = ProjectConfig(name="demo")
    save(project, path)
    reparsed = load(path)
    assert reparsed.to_dict() == parse("name: demo\n").to_dict()