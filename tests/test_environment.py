import pytest

from azdcore.environment.environment import (
    Environment,
    EnvironmentInitError,
    clean_name,
    is_valid_environment_name,
    marshal_dotenv,
    parse_dotenv,
)


def test_new_environment_records_its_name():
    env = Environment("dev")
    assert env.name == "dev"
    assert env.dotenv() == {"AZURE_ENV_NAME": "dev"}


def test_values_replace_initial_dotenv():
    env = Environment("dev", {"A": "1"})
    assert env.dotenv() == {"A": "1"}
    assert env.name == "dev"


def test_name_falls_back_to_dotenv_value():
    env = Environment("", {"AZURE_ENV_NAME": "from-file"})
    assert env.name == "from-file"


def test_getenv_prefers_dotenv(monkeypatch):
    monkeypatch.setenv("AZDCORE_TEST_KEY", "process")
    env = Environment("dev")
    assert env.getenv("AZDCORE_TEST_KEY") == "process"
    env.dotenv_set("AZDCORE_TEST_KEY", "file")
    assert env.getenv("AZDCORE_TEST_KEY") == "file"
    assert env.lookup_env("AZDCORE_TEST_KEY") == "file"


def test_lookup_missing(monkeypatch):
    monkeypatch.delenv("AZDCORE_MISSING_KEY", raising=False)
    env = Environment("dev")
    assert env.lookup_env("AZDCORE_MISSING_KEY") is None
    assert env.getenv("AZDCORE_MISSING_KEY") == ""


def test_dotenv_returns_copy():
    env = Environment("dev")
    copy = env.dotenv()
    copy["X"] = "y"
    assert "X" not in env.dotenv()


def test_delete_and_set():
    env = Environment("dev")
    env.dotenv_set("K", "v")
    env.dotenv_delete("K")
    assert "K" not in env.dotenv()
    env.dotenv_delete("never-there")
    env.dotenv_set("K", "w")
    assert env.dotenv()["K"] == "w"


def test_shorthand_properties(monkeypatch):
    monkeypatch.delenv("AZURE_TENANT_ID", raising=False)
    env = Environment("dev")
    env.subscription_id = "sub"
    env.location = "westus"
    assert env.subscription_id == "sub"
    assert env.location == "westus"
    assert env.dotenv()["AZURE_SUBSCRIPTION_ID"] == "sub"
    assert env.dotenv()["AZURE_LOCATION"] == "westus"
    assert env.tenant_id == ""


def test_service_property():
    env = Environment("dev")
    env.set_service_property("my-api", "ENDPOINT", "http://localhost")
    assert env.dotenv()["SERVICE_MY_API_ENDPOINT"] == "http://localhost"
    assert env.get_service_property("My-Api", "ENDPOINT") == "http://localhost"


def test_environ():
    env = Environment("dev", {"A": "1", "B": "x=y"})
    assert sorted(env.environ()) == ["A=1", "B=x=y"]


def test_initial_config_from_environment(monkeypatch):
    monkeypatch.setenv("AZD_INITIAL_ENVIRONMENT_CONFIG", '{"a": {"b": "c"}}')
    env = Environment("dev")
    assert env.config.get("a.b") == "c"


def test_invalid_initial_config_gives_empty(monkeypatch):
    monkeypatch.setenv("AZD_INITIAL_ENVIRONMENT_CONFIG", "not json")
    assert Environment("dev").config.is_empty()


@pytest.mark.parametrize(
    "name, valid",
    [
        ("dev", True),
        ("my-env_1.(x)", True),
        ("a" * 64, True),
        ("a" * 65, False),
        ("", False),
        ("has space", False),
        ("bad/name", False),
    ],
)
def test_is_valid_environment_name(name, valid):
    assert is_valid_environment_name(name) is valid


def test_clean_name_produces_valid_names():
    cleaned = clean_name("my env!")
    assert cleaned == "my-env-"
    assert is_valid_environment_name(cleaned)
    assert clean_name("ok-name_1.(x)") == "ok-name_1.(x)"


def test_marshal_keeps_leading_zeros():
    assert marshal_dotenv({"FOO": "01"}) == 'FOO="01"'
    assert marshal_dotenv({"FOO": "1"}) == "FOO=1"


def test_marshal_sorts_lines():
    lines = marshal_dotenv({"B": "x", "A": "y"}).split("\n")
    assert lines == sorted(lines)
    assert len(lines) == 2


def test_marshal_empty():
    assert marshal_dotenv({}) == ""


def test_round_trip_special_characters():
    values = {
        "PLAIN": "hello world",
        "QUOTE": 'say "hi"',
        "DOLLAR": "$HOME and ${PATH}",
        "BACKSLASH": "C:\\path\\n",
        "NEWLINE": "line1\nline2",
        "BANG": "wow!`tick`",
        "NUM": "007",
        "INT": "42",
        "NEG": "-5",
        "EMPTY": "",
    }
    assert parse_dotenv(marshal_dotenv(values)) == values


def test_parse_forms():
    text = "# comment\nexport A=1\nB='single $X'\nC=plain value # trailing\n\nD: colon\n"
    assert parse_dotenv(text) == {
        "A": "1",
        "B": "single $X",
        "C": "plain value",
        "D": "colon",
    }


def test_parse_expands_known_variables():
    assert parse_dotenv('A=x\nB="${A}y"')["B"] == "xy"


def test_parse_rejects_bad_key():
    with pytest.raises(ValueError, match="unexpected character"):
        parse_dotenv("BAD-KEY=1")


def test_parse_rejects_unterminated_quote():
    with pytest.raises(ValueError, match="unterminated"):
        parse_dotenv('A="open')


def test_environment_init_error():
    err = EnvironmentInitError("dev")
    assert str(err) == "environment already initialized to dev"
    assert err.name == "dev"