import pytest

from azdcore.project.event_dispatcher import (
    EventDispatcher,
    EventHandlerError,
    InvalidEventError,
)


def test_raise_event_calls_handlers_with_args():
    dispatcher = EventDispatcher("deploy")
    received = []
    dispatcher.add_handler("deploy", received.append)
    dispatcher.raise_event("deploy", {"service": "api"})
    assert received == [{"service": "api"}]


def test_pre_and_post_names_are_valid():
    dispatcher = EventDispatcher("deploy")
    received = []
    dispatcher.add_handler("predeploy", received.append)
    dispatcher.add_handler("postdeploy", received.append)
    dispatcher.raise_event("predeploy", 1)
    dispatcher.raise_event("postdeploy", 2)
    assert received == [1, 2]


def test_invalid_event_name_rejected():
    dispatcher = EventDispatcher("deploy")
    with pytest.raises(InvalidEventError):
        dispatcher.add_handler("package", lambda args: None)
    with pytest.raises(InvalidEventError):
        dispatcher.raise_event("package", None)
    with pytest.raises(InvalidEventError):
        dispatcher.invoke("package", None, lambda: None)


def test_no_names_accepts_any_event():
    dispatcher = EventDispatcher()
    received = []
    dispatcher.add_handler("anything", received.append)
    dispatcher.raise_event("anything", "x")
    assert received == ["x"]


def test_handler_errors_are_aggregated():
    dispatcher = EventDispatcher("deploy")
    called = []

    def fail_a(args):
        raise ValueError("a")

    def fail_b(args):
        raise ValueError("b")

    dispatcher.add_handler("deploy", fail_a)
    dispatcher.add_handler("deploy", fail_b)
    dispatcher.add_handler("deploy", called.append)

    with pytest.raises(EventHandlerError) as info:
        dispatcher.raise_event("deploy", "args")
    assert str(info.value) == "a,b"
    assert len(info.value.errors) == 2
    assert called == ["args"]


def test_remove_handler():
    dispatcher = EventDispatcher("deploy")
    received = []
    dispatcher.add_handler("deploy", received.append)
    dispatcher.remove_handler("deploy", received.append)
    dispatcher.raise_event("deploy", "args")
    assert received == []
    with pytest.raises(ValueError, match="was not found in deploy"):
        dispatcher.remove_handler("deploy", received.append)


def test_invoke_order_and_result():
    dispatcher = EventDispatcher("deploy")
    order = []
    dispatcher.add_handler("predeploy", lambda args: order.append("pre"))
    dispatcher.add_handler("postdeploy", lambda args: order.append("post"))

    def action():
        order.append("action")
        return "done"

    assert dispatcher.invoke("deploy", None, action) == "done"
    assert order == ["pre", "action", "post"]


def test_invoke_pre_failure_skips_action():
    dispatcher = EventDispatcher("deploy")
    ran = []

    def fail(args):
        raise RuntimeError("boom")

    dispatcher.add_handler("predeploy", fail)
    with pytest.raises(EventHandlerError, match="'predeploy'"):
        dispatcher.invoke("deploy", None, lambda: ran.append(True))
    assert ran == []


def test_invoke_action_failure_skips_post():
    dispatcher = EventDispatcher("deploy")
    post = []
    dispatcher.add_handler("postdeploy", post.append)

    def action():
        raise KeyError("missing")

    with pytest.raises(KeyError):
        dispatcher.invoke("deploy", "args", action)
    assert post == []


def test_invoke_post_failure_reported():
    dispatcher = EventDispatcher("deploy")

    def fail(args):
        raise RuntimeError("boom")

    dispatcher.add_handler("postdeploy", fail)
    with pytest.raises(EventHandlerError, match="'postdeploy'") as info:
        dispatcher.invoke("deploy", None, lambda: None)
    assert isinstance(info.value.errors[0], RuntimeError)