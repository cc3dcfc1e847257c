"""
Precondition resolver.

Turns the identifiers a user typed into live resources.

Rules
Hostname lookups must match exactly one resource. Zero or many is an
AmbiguousResult, we never silently pick the first.
Sub resource lookups, such as an interface on a device, raise NotFound.
Each resolution issues at most one remote listing call and caches nothing.
"""

from __future__ import annotations

import logging

from maas_exerciser.client.base import ResourceClient
from maas_exerciser.core.errors import AmbiguousResult, NotFound
from maas_exerciser.core.types import Device, DevicesArgs, File, Interface, Link, Machine, MachinesArgs

_logger = logging.getLogger(__name__)


class PreconditionResolver:
    """Resolve user supplied names against the resource client."""

    def __init__(self, client: ResourceClient) -> None:
        self._client = client

    def resolve_machine_by_hostname(self, hostname: str) -> Machine:
        machines = self._client.machines(MachinesArgs(hostnames=[hostname]))
        _logger.debug("machine lookup %r returned %d results", hostname, len(machines))
        if len(machines) != 1:
            raise AmbiguousResult("machine", hostname, len(machines))
        return machines[0]

    def resolve_device_by_hostname(self, hostname: str) -> Device:
        devices = self._client.devices(DevicesArgs(hostnames=[hostname]))
        _logger.debug("device lookup %r returned %d results", hostname, len(devices))
        if len(devices) != 1:
            raise AmbiguousResult("device", hostname, len(devices))
        return devices[0]

    def resolve_interface_by_name(self, device: Device, name: str) -> Interface:
        """Exact name match over the device interface set."""
        for iface in self._client.device_interfaces(device):
            if iface.name == name:
                return iface
        raise NotFound("interface", name, f"on device {device.hostname}")

    def resolve_link_by_subnet_name(self, interface: Interface, name: str) -> Link:
        """
        First link whose subnet is named name.

        Links without a subnet never match.
        """
        for link in self._client.interface_links(interface):
            if link.subnet is None:
                continue
            if link.subnet.name == name:
                return link
        raise NotFound("subnet", name, f"is not linked to interface {interface.name}")

    @staticmethod
    def resolve_file_by_exact_name(prefix_results: list[File], filename: str) -> File:
        """Pick the exact filename out of a prefix filtered listing."""
        for f in prefix_results:
            if f.filename == filename:
                return f
        raise NotFound("file", filename)
