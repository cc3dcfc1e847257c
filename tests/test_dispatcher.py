import io

import pytest

from maas_exerciser.client.memory import InMemoryResourceClient
from maas_exerciser.config import ExerciserConfig
from maas_exerciser.core.errors import AmbiguousResult, ValidationError
from maas_exerciser.core.types import Machine
from maas_exerciser.workflow.base import Arity, WorkflowResult
from maas_exerciser.workflow.dispatcher import ActionDispatcher, default_workflows


class RecordingWorkflow:
    """A fake workflow that records the arguments it was run with."""

    name = "echo"
    arity = Arity(minimum=1, maximum=2, usage="<word> [word]")

    def __init__(self) -> None:
        self.seen: list[list[str]] = []

    def execute(self, args, client, ctx):  # type: ignore[no-untyped-def]
        self.seen.append(args)
        ctx.emit(" ".join(args))
        return WorkflowResult(action=self.name, ok=True, summary="echoed")


def test_every_action_has_exactly_one_workflow():
    names = [w.name for w in default_workflows()]

    assert len(names) == len(set(names))
    assert sorted(names) == sorted(
        [
            "",
            "allocate",
            "release",
            "start",
            "create-device",
            "delete-devices",
            "list-files",
            "add-file",
            "read-file",
            "delete-file",
            "container",
            "unlink-subnet",
        ]
    )


def test_unknown_action_is_a_plain_no_op():
    client = InMemoryResourceClient()
    out = io.StringIO()

    result = ActionDispatcher(client, out=out).dispatch("frobnicate", ["x"])

    assert result.ok
    assert not result.handled
    assert "unknown action: 'frobnicate'" in out.getvalue()
    assert client.calls == []


def test_arity_is_checked_before_any_remote_call():
    client = InMemoryResourceClient(machine_list=[Machine(system_id="abc", hostname="node1")])
    out = io.StringIO()
    dispatcher = ActionDispatcher(client, out=out)

    with pytest.raises(ValidationError) as info:
        dispatcher.dispatch("start", ["node1"])

    assert client.calls == []
    assert "start expects exactly 2 args, got 1" in str(info.value)
    assert "Error type: ValidationError" in out.getvalue()


@pytest.mark.parametrize(
    ("action", "args"),
    [
        ("allocate", []),
        ("allocate", ["a", "b"]),
        ("delete-devices", []),
        ("list-files", ["a", "b"]),
        ("add-file", ["only-name"]),
        ("read-file", []),
        ("delete-file", ["a", "b"]),
        ("container", ["a", "b"]),
        ("unlink-subnet", ["dev1", "eth0"]),
        ("unlink-subnet", ["dev1", "eth0", "sub-a", "extra"]),
    ],
)
def test_wrong_argument_counts_are_validation_errors(action, args):
    client = InMemoryResourceClient()
    dispatcher = ActionDispatcher(client, ExerciserConfig(parent="node1"), out=io.StringIO())

    with pytest.raises(ValidationError):
        dispatcher.dispatch(action, args)
    assert client.calls == []


def test_failures_are_reported_and_the_original_error_is_reraised():
    client = InMemoryResourceClient(
        machine_list=[
            Machine(system_id="a", hostname="dup"),
            Machine(system_id="b", hostname="dup"),
        ]
    )
    out = io.StringIO()
    dispatcher = ActionDispatcher(client, out=out)

    with pytest.raises(AmbiguousResult) as info:
        dispatcher.dispatch("start", ["dup", "jammy"])

    err = info.value
    assert [f.context for f in err.frames] == [
        "running action 'start'",
        "resolving machine 'dup'",
    ]
    text = out.getvalue()
    assert "Error type: AmbiguousResult" in text
    assert text.index("running action 'start'") < text.index("resolving machine 'dup'")
    assert "start_machine" not in client.operations()


def test_custom_workflow_mapping_runs_in_isolation():
    workflow = RecordingWorkflow()
    out = io.StringIO()
    dispatcher = ActionDispatcher(InMemoryResourceClient(), out=out, workflows=[workflow])

    result = dispatcher.dispatch("echo", ["hello", "world"])

    assert result.summary == "echoed"
    assert workflow.seen == [["hello", "world"]]
    assert out.getvalue() == "hello world\n"
    assert dispatcher.actions() == ["echo"]
    assert dispatcher.select("") is None
