"""
Action dispatcher.

Maps an action name to exactly one Workflow.

Responsibilities
1) apply the logging configuration it was given at startup
2) report unknown actions plainly, as a no op that is not an error
3) check argument counts before any remote call
4) run the workflow and route any failure through the diagnostic reporter,
   then re raise the original error so the process exit status reflects it

Every other validation happens in the workflows against live remote state.
"""

from __future__ import annotations

import logging
import sys
from typing import Iterable, Sequence, TextIO

from maas_exerciser.client.base import ResourceClient
from maas_exerciser.config import ExerciserConfig, LoggingConfig
from maas_exerciser.core.errors import ExerciserError
from maas_exerciser.workflow.base import Workflow, WorkflowContext, WorkflowResult
from maas_exerciser.workflow.devices import (
    ContainerWorkflow,
    CreateDeviceWorkflow,
    DeleteDevicesWorkflow,
    UnlinkSubnetWorkflow,
)
from maas_exerciser.workflow.files import (
    AddFileWorkflow,
    DeleteFileWorkflow,
    ListFilesWorkflow,
    ReadFileWorkflow,
)
from maas_exerciser.workflow.inspection import InspectWorkflow
from maas_exerciser.workflow.machines import AllocateWorkflow, ReleaseWorkflow, StartWorkflow
from maas_exerciser.workflow.reporter import DiagnosticReporter

_logger = logging.getLogger(__name__)


def default_workflows() -> list[Workflow]:
    """One workflow per supported action. The empty name is inspection."""
    return [
        InspectWorkflow(),
        AllocateWorkflow(),
        ReleaseWorkflow(),
        StartWorkflow(),
        CreateDeviceWorkflow(),
        DeleteDevicesWorkflow(),
        ListFilesWorkflow(),
        AddFileWorkflow(),
        ReadFileWorkflow(),
        DeleteFileWorkflow(),
        ContainerWorkflow(),
        UnlinkSubnetWorkflow(),
    ]


class ActionDispatcher:
    """
    Select and run one workflow per invocation.

    client
    Resource client every workflow talks to.

    logging_config
    Applied once, here. None leaves logging untouched, which suits tests.

    reporter
    Receives every failure before it is re raised.
    """

    def __init__(
        self,
        client: ResourceClient,
        config: ExerciserConfig | None = None,
        *,
        logging_config: LoggingConfig | None = None,
        out: TextIO | None = None,
        reporter: DiagnosticReporter | None = None,
        workflows: Iterable[Workflow] | None = None,
    ) -> None:
        if logging_config is not None:
            logging_config.apply()
        self._client = client
        self._config = config or ExerciserConfig()
        self._out = out if out is not None else sys.stdout
        self._reporter = reporter or DiagnosticReporter(self._out)
        self._workflows = {w.name: w for w in (workflows if workflows is not None else default_workflows())}

    def actions(self) -> list[str]:
        """Known action names, sorted."""
        return sorted(self._workflows)

    def select(self, action: str) -> Workflow | None:
        return self._workflows.get(action)

    def dispatch(self, action: str, args: Sequence[str] = ()) -> WorkflowResult:
        workflow = self.select(action)
        if workflow is None:
            print(f"unknown action: {action!r}", file=self._out)
            print(file=self._out)
            return WorkflowResult(action=action, ok=True, summary="unknown action", handled=False)

        label = action or "inspect"
        arguments = list(args)
        ctx = WorkflowContext(config=self._config, out=self._out)
        _logger.debug("dispatching %s with %d args", label, len(arguments))
        try:
            workflow.arity.check(label, arguments)
            result = workflow.execute(arguments, self._client, ctx)
        except ExerciserError as exc:
            exc.annotate(f"running action {label!r}")
            self._reporter.report(exc)
            raise
        _logger.debug("%s finished: %s", label, result.summary)
        return result
