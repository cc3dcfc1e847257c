"""
Device workflows.

create-device
Standalone device, optionally parented by the configured parent hostname.

delete-devices
Delete every device of a machine, in listing order. The first failure stops
the loop, later devices are left in place.

container
Child device on the parent machine boot network. The subnet of the first
link on the boot interface is the template, the MAC address is random.

unlink-subnet
device by hostname, then interface by name, then link by subnet name, then
the unlink call on that one link.
"""

from __future__ import annotations

import logging

from maas_exerciser.client.base import ResourceClient
from maas_exerciser.core.errors import NotFound, ValidationError, trace
from maas_exerciser.core.types import CreateDeviceArgs, CreateMachineDeviceArgs, DevicesArgs
from maas_exerciser.workflow.base import Arity, WorkflowContext, WorkflowResult
from maas_exerciser.workflow.macaddr import new_mac_address
from maas_exerciser.workflow.resolver import PreconditionResolver

CONTAINER_INTERFACE = "eth1"

_logger = logging.getLogger(__name__)


class CreateDeviceWorkflow:
    name = "create-device"
    arity = Arity(usage="[hostname] [mac address...]")

    def execute(self, args: list[str], client: ResourceClient, ctx: WorkflowContext) -> WorkflowResult:
        hostname = args[0] if args else ""
        macs = list(args[1:])
        create_args = CreateDeviceArgs(hostname=hostname, mac_addresses=macs, parent=ctx.config.parent)
        with trace(f"creating device {hostname or '<generated>'!r}"):
            device = client.create_device(create_args)
        ctx.emit(f"Device created: {device.system_id}")
        return WorkflowResult(
            action=self.name,
            ok=True,
            summary=f"created device {device.system_id}",
            details={"system_id": device.system_id, "hostname": device.hostname},
        )


class DeleteDevicesWorkflow:
    name = "delete-devices"
    arity = Arity(minimum=1, usage="<machine hostname>")

    def execute(self, args: list[str], client: ResourceClient, ctx: WorkflowContext) -> WorkflowResult:
        hostname = args[0]
        resolver = PreconditionResolver(client)
        with trace(f"resolving machine {hostname!r}"):
            machine = resolver.resolve_machine_by_hostname(hostname)
        with trace(f"listing devices of {hostname}"):
            devices = client.machine_devices(machine, DevicesArgs())

        deleted: list[str] = []
        for device in devices:
            with trace(f"deleting device {device.hostname!r} ({len(deleted)} of {len(devices)} deleted)"):
                client.delete_device(device)
            deleted.append(device.hostname)
            ctx.emit(f"deleted device {device.hostname!r}")

        return WorkflowResult(
            action=self.name,
            ok=True,
            summary=f"deleted {len(deleted)} devices of {hostname}",
            details={"deleted": deleted},
        )


class ContainerWorkflow:
    name = "container"
    arity = Arity(maximum=1, usage="[hostname]")

    def execute(self, args: list[str], client: ResourceClient, ctx: WorkflowContext) -> WorkflowResult:
        parent = ctx.config.parent
        if not parent:
            raise ValidationError("missing parent, set --parent")
        hostname = args[0] if args else ""

        resolver = PreconditionResolver(client)
        with trace(f"resolving parent machine {parent!r}"):
            machine = resolver.resolve_machine_by_hostname(parent)

        boot = machine.boot_interface
        if boot is None:
            raise NotFound("boot interface", parent, "on parent machine").annotate(
                "reading template subnet"
            )
        if not boot.links:
            raise NotFound("link", boot.name, f"on boot interface of {parent}").annotate(
                "reading template subnet"
            )
        subnet = boot.links[0].subnet
        mac = new_mac_address()
        _logger.info("creating container device on %s with mac %s", parent, mac)

        create_args = CreateMachineDeviceArgs(
            interface_name=CONTAINER_INTERFACE,
            mac_address=mac,
            subnet=subnet,
            hostname=hostname,
        )
        with trace(f"creating device under {machine.system_id}"):
            device = client.create_machine_device(machine, create_args)
        ctx.emit(f"Device {device.hostname!r} created")
        return WorkflowResult(
            action=self.name,
            ok=True,
            summary=f"created device {device.hostname} under {parent}",
            details={
                "system_id": device.system_id,
                "mac_address": mac,
                "subnet": subnet.name if subnet is not None else None,
            },
        )


class UnlinkSubnetWorkflow:
    name = "unlink-subnet"
    arity = Arity.exactly(3, "<device hostname> <interface name> <subnet name>")

    def execute(self, args: list[str], client: ResourceClient, ctx: WorkflowContext) -> WorkflowResult:
        device_name, interface_name, subnet_name = args[0], args[1], args[2]
        resolver = PreconditionResolver(client)

        with trace(f"resolving device {device_name!r}"):
            device = resolver.resolve_device_by_hostname(device_name)
        with trace(f"resolving interface {interface_name!r} on {device_name}"):
            iface = resolver.resolve_interface_by_name(device, interface_name)
        with trace(f"resolving subnet {subnet_name!r} on {device_name} interface {interface_name}"):
            link = resolver.resolve_link_by_subnet_name(iface, subnet_name)

        subnet = link.subnet
        if subnet is None:
            raise NotFound("subnet", subnet_name, f"link {link.id} has no subnet")
        with trace(f"unlinking subnet {subnet_name!r}"):
            client.unlink_subnet(iface, subnet)
        ctx.emit(f"subnet {subnet_name!r} unlinked from {device.hostname} interface {interface_name}")
        return WorkflowResult(
            action=self.name,
            ok=True,
            summary=f"unlinked {subnet_name} from {device_name}/{interface_name}",
            details={"link_id": link.id},
        )
