import io

import pytest

from maas_exerciser.client.memory import InMemoryResourceClient
from maas_exerciser.config import ExerciserConfig
from maas_exerciser.core.errors import AmbiguousResult
from maas_exerciser.core.types import Fabric, Machine, MachinesArgs, Vlan, Zone
from maas_exerciser.workflow.base import WorkflowContext
from maas_exerciser.workflow.inspection import InspectWorkflow


class UnfilteredClient(InMemoryResourceClient):
    """A service that ignores the system id filter."""

    def machines(self, args: MachinesArgs) -> list[Machine]:
        return super().machines(MachinesArgs())


def make_ctx() -> WorkflowContext:
    return WorkflowContext(config=ExerciserConfig(), out=io.StringIO())


def test_inspection_prints_summary_and_checks_filter():
    client = InMemoryResourceClient(
        zone_list=[Zone(name="default", description="default zone")],
        fabric_list=[Fabric(id=0, name="fabric-0", vlans=[Vlan(id=5001, name="untagged")])],
        machine_list=[
            Machine(
                system_id="abc",
                hostname="node1",
                fqdn="node1.maas",
                osystem="ubuntu",
                distro_series="jammy",
                power_state="off",
            )
        ],
    )
    ctx = make_ctx()

    result = InspectWorkflow().execute([], client, ctx)

    assert result.details["checked_system_id"] == "abc"
    assert client.calls == [("zones", ""), ("fabrics", ""), ("machines", ""), ("machines", "abc")]
    text = ctx.out.getvalue()
    assert "Fabric fabric-0(0) has 1 vlans" in text
    assert "Zone: default (default zone)" in text
    assert "OS: ubuntu/jammy" in text
    assert "Power: off" in text
    assert "Should just have 1 result: 1" in text


def test_inspection_fails_when_filter_returns_more_than_one():
    client = UnfilteredClient(
        machine_list=[
            Machine(system_id="abc", hostname="node1"),
            Machine(system_id="def", hostname="node2"),
        ]
    )

    with pytest.raises(AmbiguousResult) as info:
        InspectWorkflow().execute([], client, make_ctx())

    assert info.value.count == 2
    assert info.value.frames[0].context == "checking the system id filter"


def test_inspection_without_machines_skips_the_check():
    client = InMemoryResourceClient()

    result = InspectWorkflow().execute([], client, make_ctx())

    assert result.ok
    assert result.summary == "no machines to check"
    assert client.operations() == ["zones", "fabrics", "machines"]
