"""
Resource client interface.

Goal
Define a stable interface to the cluster management service without binding
the workflows to a specific transport.

Design notes
Entities are plain data. Every operation, including ones that conceptually
belong to an entity such as starting a machine, is a client method that takes
the entity as its first argument.

Errors
Implementations raise RemoteError for service failures, chained to the
underlying exception, and NotFound when the service reports a missing
resource on a direct fetch.
"""

from __future__ import annotations

from typing import Protocol

from maas_exerciser.core.types import (
    AddFileArgs,
    AllocateMachineArgs,
    ConstraintMatches,
    CreateDeviceArgs,
    CreateMachineDeviceArgs,
    Device,
    DevicesArgs,
    Fabric,
    File,
    Interface,
    Link,
    Machine,
    MachinesArgs,
    ReleaseMachinesArgs,
    StartArgs,
    Subnet,
    Zone,
)


class ResourceClient(Protocol):
    """
    Operations consumed by the workflows.

    Listing calls return fresh data on every call.
    """

    def zones(self) -> list[Zone]:
        """List availability zones."""

    def fabrics(self) -> list[Fabric]:
        """List fabrics with their VLANs."""

    def machines(self, args: MachinesArgs) -> list[Machine]:
        """List machines matching the filter."""

    def allocate_machine(self, args: AllocateMachineArgs) -> tuple[Machine, ConstraintMatches]:
        """Allocate one machine and report what the service matched."""

    def release_machines(self, args: ReleaseMachinesArgs) -> None:
        """Release every listed machine in one call."""

    def start_machine(self, machine: Machine, args: StartArgs) -> None:
        """Deploy an allocated machine."""

    def machine_devices(self, machine: Machine, args: DevicesArgs) -> list[Device]:
        """List devices parented by the machine."""

    def create_machine_device(self, machine: Machine, args: CreateMachineDeviceArgs) -> Device:
        """Create a device parented by the machine, linked to a subnet."""

    def devices(self, args: DevicesArgs) -> list[Device]:
        """List devices matching the filter."""

    def create_device(self, args: CreateDeviceArgs) -> Device:
        """Create a device."""

    def delete_device(self, device: Device) -> None:
        """Delete a device."""

    def device_interfaces(self, device: Device) -> list[Interface]:
        """Return the interface set of a device."""

    def interface_links(self, interface: Interface) -> list[Link]:
        """Return the links of an interface, in service order."""

    def unlink_subnet(self, interface: Interface, subnet: Subnet) -> None:
        """Remove the link between interface and subnet."""

    def files(self, prefix: str) -> list[File]:
        """List files whose name starts with prefix."""

    def get_file(self, filename: str) -> File:
        """Fetch a file by exact name. Raises NotFound when missing."""

    def add_file(self, args: AddFileArgs) -> None:
        """Upload a file from content or from a reader with a known length."""

    def read_file(self, file: File) -> bytes:
        """Return the whole content of a file."""

    def delete_file(self, file: File) -> None:
        """Delete a file."""
