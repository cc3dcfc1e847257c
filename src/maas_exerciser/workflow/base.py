"""
Workflow interfaces.

Every action is a Workflow: a fixed, short, ordered sequence of remote calls.

Contract
execute validates nothing the dispatcher already checked, issues its calls
in order, writes progress to ctx.out and returns a WorkflowResult.
Any ExerciserError aborts the workflow immediately. Nothing is retried.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, TextIO

from maas_exerciser.client.base import ResourceClient
from maas_exerciser.config import ExerciserConfig
from maas_exerciser.core.errors import ValidationError


@dataclass(frozen=True)
class Arity:
    """
    Accepted positional argument counts.

    maximum None means unbounded.
    usage is shown in the error message when the count is wrong.
    """

    minimum: int = 0
    maximum: int | None = None
    usage: str = ""

    @classmethod
    def exactly(cls, count: int, usage: str = "") -> Arity:
        return cls(minimum=count, maximum=count, usage=usage)

    def check(self, action: str, args: list[str]) -> None:
        count = len(args)
        if count >= self.minimum and (self.maximum is None or count <= self.maximum):
            return
        if self.maximum == self.minimum:
            expected = f"exactly {self.minimum}"
        elif self.maximum is None:
            expected = f"at least {self.minimum}"
        else:
            expected = f"{self.minimum} to {self.maximum}"
        message = f"{action} expects {expected} args, got {count}"
        if self.usage:
            message = f"{message}: usage '{action} {self.usage}'"
        raise ValidationError(message)


@dataclass(frozen=True)
class WorkflowContext:
    """
    Per invocation context handed to a workflow.

    config carries the flags that change workflow behavior, such as
    read_direct and parent.
    out receives the human readable progress lines.
    """

    config: ExerciserConfig
    out: TextIO

    def emit(self, line: str = "") -> None:
        print(line, file=self.out)


@dataclass(frozen=True)
class WorkflowResult:
    """
    Outcome of one workflow run.

    summary is a one line description.
    details carries structured data for tests and debug logs.
    handled is False only for the unknown action no op.
    """

    action: str
    ok: bool
    summary: str
    details: dict[str, Any] = field(default_factory=dict)
    handled: bool = True


class Workflow(Protocol):
    """One variant per action."""

    name: str
    arity: Arity

    def execute(self, args: list[str], client: ResourceClient, ctx: WorkflowContext) -> WorkflowResult:
        """Run the workflow and return its result, or raise ExerciserError."""
