"""
Inspection workflow, run when no action is given.

Prints fabrics, zones and machines, then checks the service filtering
contract: asking for the first machine by system id must return exactly that
one machine.
"""

from __future__ import annotations

import logging

from maas_exerciser.client.base import ResourceClient
from maas_exerciser.core.errors import AmbiguousResult, trace
from maas_exerciser.core.types import MachinesArgs
from maas_exerciser.workflow.base import Arity, WorkflowContext, WorkflowResult

_logger = logging.getLogger(__name__)


class InspectWorkflow:
    name = ""
    arity = Arity()

    def execute(self, args: list[str], client: ResourceClient, ctx: WorkflowContext) -> WorkflowResult:
        with trace("listing zones"):
            zones = client.zones()
        with trace("listing fabrics"):
            fabrics = client.fabrics()

        for fabric in fabrics:
            ctx.emit(f"Fabric {fabric.name}({fabric.id}) has {len(fabric.vlans)} vlans")
        for zone in zones:
            ctx.emit(f"Zone: {zone.name} ({zone.description})")

        with trace("listing machines"):
            machines = client.machines(MachinesArgs())

        for i, machine in enumerate(machines, start=1):
            ctx.emit()
            ctx.emit(f"-- machine {i}")
            ctx.emit(f"fqdn: {machine.fqdn}")
            ctx.emit(f"system id: {machine.system_id}")
            ctx.emit(f"OS: {machine.osystem}/{machine.distro_series}")
            ctx.emit(f"Power: {machine.power_state}")

        details = {"zones": len(zones), "fabrics": len(fabrics), "machines": len(machines)}
        if not machines:
            _logger.warning("no machines listed, skipping the system id filter check")
            return WorkflowResult(action="inspect", ok=True, summary="no machines to check", details=details)

        system_id = machines[0].system_id
        ctx.emit()
        ctx.emit(f"Asking for machine with system ID: {system_id}")
        with trace(f"listing machines filtered by system id {system_id!r}"):
            matched = client.machines(MachinesArgs(system_ids=[system_id]))
        ctx.emit(f"Should just have 1 result: {len(matched)}")

        if len(matched) != 1 or matched[0].system_id != system_id:
            raise AmbiguousResult("machine", system_id, len(matched)).annotate(
                "checking the system id filter"
            )
        ctx.emit(matched[0].system_id)
        ctx.emit()

        details["checked_system_id"] = system_id
        return WorkflowResult(action="inspect", ok=True, summary="inspection passed", details=details)
