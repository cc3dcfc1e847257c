"""
Diagnostic reporter.

Purpose
Turn a failed workflow into something that helps debug the remote service.

The report shows the category of the root cause and the class the workflow
raised, then every annotation frame from the outermost call site inwards,
then the root cause message. Nothing is
flattened while the error travels, so the rendering is deterministic and
tests can assert on the structured fields.

The reporter never swallows anything. Callers re raise the original error
after reporting.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import TextIO

from maas_exerciser.core.errors import ExerciserError, root_cause


@dataclass(frozen=True)
class DiagnosticReport:
    """
    Structured failure report.

    category
    Class name of the root cause.

    error
    Message of the error the workflow raised.

    frames
    Annotation contexts, outermost first.

    root_message
    Message of the root cause. Equal to error when nothing is chained.

    raised_as
    Class name of the error the workflow raised. Shown only when it differs
    from category.
    """

    category: str
    error: str
    frames: list[str] = field(default_factory=list)
    root_message: str = ""
    raised_as: str = ""

    def lines(self) -> list[str]:
        out = [f"Error type: {self.category}"]
        if self.raised_as and self.raised_as != self.category:
            out.append(f"raised as: {self.raised_as}")
        out.extend(self.frames)
        out.append(self.error)
        if self.root_message and self.root_message != self.error:
            out.append(f"caused by: {self.root_message}")
        return out


class DiagnosticReporter:
    """Write diagnostic reports to a text stream."""

    def __init__(self, out: TextIO | None = None) -> None:
        self._out = out if out is not None else sys.stdout

    @staticmethod
    def build(exc: BaseException) -> DiagnosticReport:
        root = root_cause(exc)
        frames: list[str] = []
        if isinstance(exc, ExerciserError):
            frames = [f.context for f in exc.frames]
        return DiagnosticReport(
            category=type(root).__name__,
            error=str(exc),
            frames=frames,
            root_message=str(root),
            raised_as=type(exc).__name__,
        )

    def report(self, exc: BaseException) -> DiagnosticReport:
        report = self.build(exc)
        print(file=self._out)
        for line in report.lines():
            print(line, file=self._out)
        return report
