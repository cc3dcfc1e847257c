"""
Machine lifecycle workflows.

allocate reserves a machine, start deploys it, release returns machines to
the pool. Allocation and deployment are separate steps, allocate never starts
the machine.
"""

from __future__ import annotations

import logging

from maas_exerciser.client.base import ResourceClient
from maas_exerciser.core.errors import trace
from maas_exerciser.core.serialization import describe_matches, to_json_safe_dict
from maas_exerciser.core.types import AllocateMachineArgs, ReleaseMachinesArgs, StartArgs
from maas_exerciser.workflow.base import Arity, WorkflowContext, WorkflowResult
from maas_exerciser.workflow.resolver import PreconditionResolver

_logger = logging.getLogger(__name__)


class AllocateWorkflow:
    name = "allocate"
    arity = Arity.exactly(1, "<hostname>")

    def execute(self, args: list[str], client: ResourceClient, ctx: WorkflowContext) -> WorkflowResult:
        hostname = args[0]
        with trace(f"allocating machine {hostname!r}"):
            machine, matches = client.allocate_machine(AllocateMachineArgs(hostname=hostname))
        _logger.debug("allocation matches %s", to_json_safe_dict(matches))
        ctx.emit(f"match: {describe_matches(matches)}")
        ctx.emit(f"Allocated machine: {machine.fqdn}")
        return WorkflowResult(
            action=self.name,
            ok=True,
            summary=f"allocated {machine.fqdn}",
            details={"system_id": machine.system_id, "matches": to_json_safe_dict(matches)},
        )


class ReleaseWorkflow:
    """
    Release every given system id in one bulk call.

    An empty list still issues the call. A failure covers the whole batch,
    there is no per id retry or rollback.
    """

    name = "release"
    arity = Arity(usage="<system id>...")

    def execute(self, args: list[str], client: ResourceClient, ctx: WorkflowContext) -> WorkflowResult:
        system_ids = list(args)
        with trace(f"releasing {len(system_ids)} machines"):
            client.release_machines(ReleaseMachinesArgs(system_ids=system_ids))
        ctx.emit("Released successfully")
        return WorkflowResult(
            action=self.name,
            ok=True,
            summary=f"released {len(system_ids)} machines",
            details={"system_ids": system_ids},
        )


class StartWorkflow:
    name = "start"
    arity = Arity.exactly(2, "<hostname> <series>")

    def execute(self, args: list[str], client: ResourceClient, ctx: WorkflowContext) -> WorkflowResult:
        hostname, series = args[0], args[1]
        resolver = PreconditionResolver(client)
        with trace(f"resolving machine {hostname!r}"):
            machine = resolver.resolve_machine_by_hostname(hostname)
        with trace(f"starting machine {machine.system_id} with series {series!r}"):
            client.start_machine(machine, StartArgs(distro_series=series))
        ctx.emit("Started successfully")
        return WorkflowResult(
            action=self.name,
            ok=True,
            summary=f"started {hostname} with {series}",
            details={"system_id": machine.system_id, "distro_series": series},
        )
