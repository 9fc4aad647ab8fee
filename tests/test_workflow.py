import pytest

from azdcore.contracts.workflow import (
    Command,
    Step,
    Workflow,
    WorkflowError,
    dump_workflows,
    new_azd_command_step,
    parse_workflows,
)


def test_workflow_from_array_of_steps():
    wf = Workflow.from_yaml([{"azd": "provision"}, {"azd": {"args": ["deploy", "--all"]}}])
    assert wf.steps[0].azd_command.args == ["provision"]
    assert wf.steps[1].azd_command.args == ["deploy", "--all"]


def test_workflow_from_map():
    wf = Workflow.from_yaml({"name": "custom", "steps": [{"azd": "package --all"}]})
    assert wf.name == "custom"
    assert wf.steps[0].azd_command.args == ["package", "--all"]


@pytest.mark.parametrize("data", [[], {"steps": []}, "provision", None])
def test_workflow_without_steps_fails(data):
    with pytest.raises(WorkflowError, match="must be a map or an array of steps"):
        Workflow.from_yaml(data)


def test_command_with_invalid_type_fails():
    with pytest.raises(WorkflowError, match="command must be a string or a map"):
        Command.from_yaml(42)


def test_step_must_be_map():
    with pytest.raises(WorkflowError):
        Step.from_yaml("provision")


def test_command_to_yaml_joins_args():
    args = ["env", "list"]
    assert Command(args).to_yaml() == " ".join(args)
    assert Command.from_yaml(Command(args).to_yaml()) == Command(args)


def test_parse_workflows_sets_names():
    workflows = parse_workflows({"up": [{"azd": "provision"}, {"azd": "deploy"}]})
    assert workflows["up"].name == "up"
    assert [s.azd_command.args for s in workflows["up"].steps] == [["provision"], ["deploy"]]


def test_workflows_round_trip():
    workflows = {"up": Workflow("up", [new_azd_command_step("provision"), new_azd_command_step("deploy", "--all")])}
    assert parse_workflows(dump_workflows(workflows)) == workflows


def test_new_azd_command_step():
    step = new_azd_command_step("provision", "--debug")
    assert step.azd_command.args == ["provision", "--debug"]
    assert step.to_yaml() == {"azd": "provision --debug"}


def test_empty_step_writes_nothing():
    assert Step().to_yaml() == {}