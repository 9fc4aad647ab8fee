import pytest

from azdcore.telemetry.events import get_command_event_name


@pytest.mark.parametrize(
    "cmd_path, expected",
    [
        ("azd provision", "cmd.provision"),
        ("azd env list", "cmd.env.list"),
        ("azd env get-values", "cmd.env.get-values"),
        ("provision", "cmd.provision"),
        ("env list", "cmd.env.list"),
        ("env get-values", "cmd.env.get-values"),
    ],
    ids=[
        "Single",
        "Multiple",
        "SpecialChar",
        "LenientSingle",
        "LenientMultiple",
        "LenientSpecialChar",
    ],
)
def test_get_command_event_name(cmd_path, expected):
    assert get_command_event_name(cmd_path) == expected