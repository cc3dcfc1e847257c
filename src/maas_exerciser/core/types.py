"""
Core types.

This file defines the shared data structures used across the exerciser.

Important design choice
Entities are read mostly projections of remote state. They are decoded fresh
for every action and never cached between actions.

Operations live on the resource client, not on the entities. That keeps the
entities plain data and lets the workflows run against any client, including
the in memory one used by tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import BinaryIO, Dict, List, Optional

from maas_exerciser.core.errors import ValidationError


@dataclass(frozen=True)
class Zone:
    """Availability zone."""

    name: str
    description: str = ""


@dataclass(frozen=True)
class Vlan:
    """
    VLAN on a fabric.

    vid is the 802.1Q tag, id is the service identifier.
    """

    id: int
    name: str
    vid: int = 0
    mtu: int = 1500


@dataclass(frozen=True)
class Fabric:
    """A fabric and the VLANs defined on it."""

    id: int
    name: str
    vlans: List[Vlan] = field(default_factory=list)


@dataclass(frozen=True)
class Subnet:
    """
    Named IP addressing domain.

    Subnets are referenced by links, never created by this tool.
    """

    id: int
    name: str
    cidr: str = ""
    vlan_id: Optional[int] = None


@dataclass(frozen=True)
class Link:
    """
    Association between an interface and at most one subnet.

    subnet is None for links that carry no addressing, such as a link in
    LINK_UP mode.
    """

    id: int
    mode: str
    subnet: Optional[Subnet] = None
    ip_address: str = ""


@dataclass(frozen=True)
class Interface:
    """
    Network attachment point on a machine or a device.

    resource_uri identifies the owning node, mutation calls are issued
    against it.
    """

    id: int
    name: str
    type: str = "physical"
    mac_address: str = ""
    enabled: bool = True
    links: List[Link] = field(default_factory=list)
    resource_uri: str = ""


@dataclass(frozen=True)
class Machine:
    """
    Bare metal machine.

    hostname is not guaranteed unique by the service, but every lookup in this
    tool treats it as unique and fails when it is not.
    """

    system_id: str
    hostname: str
    fqdn: str = ""
    osystem: str = ""
    distro_series: str = ""
    power_state: str = "unknown"
    status_name: str = ""
    zone: str = ""
    interfaces: List[Interface] = field(default_factory=list)
    boot_interface: Optional[Interface] = None


@dataclass(frozen=True)
class Device:
    """
    Lightweight node, standalone or parented by a machine.

    parent holds the parent machine system id, or an empty string.
    """

    system_id: str
    hostname: str
    fqdn: str = ""
    parent: str = ""
    ip_addresses: List[str] = field(default_factory=list)
    zone: str = ""
    interfaces: List[Interface] = field(default_factory=list)


@dataclass(frozen=True)
class File:
    """
    Entry in the file store.

    content is populated only when the service returned it inline, such as a
    direct fetch by name.
    """

    filename: str
    anon_resource_uri: str = ""
    resource_uri: str = ""
    content: Optional[bytes] = None


@dataclass(frozen=True)
class ConstraintMatches:
    """
    What the service matched while allocating a machine.

    Both maps go from a constraint label to the ids of matched resources.
    """

    interfaces: Dict[str, List[int]] = field(default_factory=dict)
    storage: Dict[str, List[int]] = field(default_factory=dict)


@dataclass(frozen=True)
class MachinesArgs:
    """Filter for listing machines. Empty lists mean no filter."""

    system_ids: List[str] = field(default_factory=list)
    hostnames: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class AllocateMachineArgs:
    hostname: str = ""


@dataclass(frozen=True)
class ReleaseMachinesArgs:
    system_ids: List[str] = field(default_factory=list)
    comment: str = ""


@dataclass(frozen=True)
class StartArgs:
    distro_series: str = ""
    user_data: str = ""
    comment: str = ""


@dataclass(frozen=True)
class DevicesArgs:
    """Filter for listing devices. Empty lists mean no filter."""

    hostnames: List[str] = field(default_factory=list)
    system_ids: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class CreateDeviceArgs:
    """
    Arguments for a standalone device.

    parent is a parent machine hostname or system id, empty for none.
    """

    hostname: str = ""
    mac_addresses: List[str] = field(default_factory=list)
    parent: str = ""


@dataclass(frozen=True)
class CreateMachineDeviceArgs:
    """
    Arguments for a device parented by a machine.

    The device gets a single interface named interface_name with the given MAC
    address, linked to subnet.
    """

    interface_name: str
    mac_address: str
    subnet: Optional[Subnet]
    hostname: str = ""


@dataclass(frozen=True)
class AddFileArgs:
    """
    Arguments for uploading a file.

    Exactly one content source must be set:
    content holds the whole body in memory
    reader streams the body and length declares how many bytes it yields
    """

    filename: str
    content: Optional[bytes] = None
    reader: Optional[BinaryIO] = None
    length: int = 0

    def validate(self) -> None:
        if not self.filename:
            raise ValidationError("missing filename")
        if self.content is None and self.reader is None:
            raise ValidationError("missing content or reader")
        if self.content is not None and self.reader is not None:
            raise ValidationError("content and reader are mutually exclusive")
        if self.reader is not None and self.length < 0:
            raise ValidationError(f"invalid length {self.length} for reader")
